"""
Tests for the per-entity repositories.

These tests verify that:
- Reads substitute fallback data only on failure, never for a genuine empty list
- Fallback data is filtered by the same predicate as the live request
- Writes surface the upstream message through ServiceRequestError
- Plan records and nested items get their "_id" renamed to "id"
- Deleting a plan with items is refused unless cascade=True
"""

import json

import pytest

from nutriplan.config import PLANS, RECIPES, USERS
from nutriplan.errors import PlanHasItemsError, ServiceRequestError
from nutriplan.models import MealPlanCreate, PlanItemCreate, RecipeUpdate, User, UserCreate, UserRole
from nutriplan.repositories import MealPlanRepository, RecipeRepository, UserRepository

from conftest import wire_plan, wire_recipe, wire_user


class TestUserRepository:
    @pytest.mark.asyncio
    async def test_list_live(self, services, service_client):
        services.route("GET", USERS, "/api/usuarios", json=[wire_user(1, "Ana"), wire_user(2, "Bia")])
        repo = UserRepository(service_client)

        listing = await repo.list_result()

        assert listing.live is True
        assert [u.name for u in listing.items] == ["Ana", "Bia"]
        assert listing.items[0].id == "1"

    @pytest.mark.asyncio
    async def test_role_filter_is_sent_as_query(self, services, service_client):
        services.route("GET", USERS, "/api/usuarios", json=[])
        repo = UserRepository(service_client)

        await repo.list(role=UserRole.PATIENT)

        assert services.requests[-1].url.params["role"] == "paciente"

    @pytest.mark.asyncio
    async def test_empty_list_is_not_replaced(self, services, service_client):
        services.route("GET", USERS, "/api/usuarios", json=[])
        repo = UserRepository(service_client)

        listing = await repo.list_result()

        assert listing.items == []
        assert listing.live is True

    @pytest.mark.asyncio
    async def test_204_lists_as_empty(self, services, service_client):
        services.route("GET", USERS, "/api/usuarios", status_code=204)
        repo = UserRepository(service_client)

        assert await repo.list() == []

    @pytest.mark.asyncio
    async def test_failure_serves_filtered_fallback(self, services, service_client):
        services.take_down(USERS)
        repo = UserRepository(service_client)

        listing = await repo.list_result(role="paciente")

        assert listing.live is False
        assert listing.error
        assert [u.id for u in listing.items] == ["mock-user-2", "mock-user-3"]

    @pytest.mark.asyncio
    async def test_injected_fallback(self, services, service_client):
        services.take_down(USERS)
        fixture = [User(id="mock-x", name="X", role="paciente")]
        repo = UserRepository(service_client, fallback=fixture)

        assert [u.id for u in await repo.list()] == ["mock-x"]

    @pytest.mark.asyncio
    async def test_non_list_body_falls_back(self, services, service_client):
        services.route("GET", USERS, "/api/usuarios", json={"error": "unexpected"})
        repo = UserRepository(service_client)

        listing = await repo.list_result()

        assert listing.live is False
        assert len(listing.items) == 3

    @pytest.mark.asyncio
    async def test_invalid_records_are_skipped(self, services, service_client):
        services.route("GET", USERS, "/api/usuarios", json=[wire_user(1, "Ana"), {"id": 2, "role": "paciente"}])
        repo = UserRepository(service_client)

        users = await repo.list()

        assert [u.id for u in users] == ["1"]

    @pytest.mark.asyncio
    async def test_patients_of_practitioner(self, services, service_client):
        services.route("GET", USERS, "/api/nutricionistas/9/pacientes", json=[wire_user(1, "Ana")])
        repo = UserRepository(service_client)

        patients = await repo.list_patients_of("9")

        assert [p.name for p in patients] == ["Ana"]

    @pytest.mark.asyncio
    async def test_patients_of_practitioner_fallback(self, services, service_client):
        services.take_down(USERS)
        repo = UserRepository(service_client)

        assert [p.id for p in await repo.list_patients_of("mock-user-1")] == ["mock-user-2", "mock-user-3"]
        assert await repo.list_patients_of("someone-else") == []

    @pytest.mark.asyncio
    async def test_get_by_id(self, services, service_client):
        services.route("GET", USERS, "/api/usuarios/1", json=wire_user(1, "Ana"))
        repo = UserRepository(service_client)

        user = await repo.get_by_id("1")

        assert user.name == "Ana"

    @pytest.mark.asyncio
    async def test_get_by_id_failure_uses_fallback_record(self, services, service_client):
        services.take_down(USERS)
        repo = UserRepository(service_client)

        assert (await repo.get_by_id("mock-user-1")).name == "Dr. Maria Silva"
        assert await repo.get_by_id("42") is None

    @pytest.mark.asyncio
    async def test_create_sends_wire_names(self, services, service_client):
        services.route("POST", USERS, "/api/usuarios", status_code=201, json=wire_user(5, "Bob"))
        repo = UserRepository(service_client)

        created = await repo.create(UserCreate(name="Bob", email="bob@example.com", role="paciente"))

        assert created.id == "5"
        body = json.loads(services.requests[-1].content)
        assert body == {"nome": "Bob", "email": "bob@example.com", "role": "paciente"}

    @pytest.mark.asyncio
    async def test_create_failure_raises_with_message(self, services, service_client):
        services.route("POST", USERS, "/api/usuarios", status_code=400, json={"message": "Email already registered"})
        repo = UserRepository(service_client)

        with pytest.raises(ServiceRequestError) as exc_info:
            await repo.create(UserCreate(name="Bob", email="bob@example.com", role="paciente"))

        assert exc_info.value.message == "Email already registered"
        assert exc_info.value.status_code == 400
        assert exc_info.value.service == USERS

    @pytest.mark.asyncio
    async def test_write_to_unreachable_service_raises(self, services, service_client):
        services.take_down(USERS)
        repo = UserRepository(service_client)

        with pytest.raises(ServiceRequestError):
            await repo.delete("1")

    @pytest.mark.asyncio
    async def test_delete(self, services, service_client):
        services.route("DELETE", USERS, "/api/usuarios/1", status_code=204)
        repo = UserRepository(service_client)

        assert await repo.delete("1") is True


class TestMealPlanRepository:
    @pytest.mark.asyncio
    async def test_list_normalizes_mongo_ids(self, services, service_client):
        services.route("GET", PLANS, "/planos/", json=[wire_plan("p1", "u1", "Plan A", start="2024-06-01")])
        repo = MealPlanRepository(service_client)

        plans = await repo.list()

        assert plans[0].id == "p1"
        assert plans[0].title == "Plan A"

    @pytest.mark.asyncio
    async def test_unsupported_filter(self, service_client):
        repo = MealPlanRepository(service_client)

        with pytest.raises(TypeError):
            await repo.list(role="paciente")

    @pytest.mark.asyncio
    async def test_get_by_id_with_nested_items(self, services, service_client):
        detail = wire_plan("p1", "u1", "Plan A")
        detail["itens"] = [{"_id": "i1", "plano_mestre_id": "p1", "horario": "08:00", "nome_refeicao": "Breakfast"}]
        services.route("GET", PLANS, "/planos/p1", json=detail)
        repo = MealPlanRepository(service_client)

        plan = await repo.get_by_id("p1")

        assert plan.id == "p1"
        assert [item.id for item in plan.items] == ["i1"]

    @pytest.mark.asyncio
    async def test_get_by_id_fallback_includes_items(self, services, service_client):
        services.take_down(PLANS)
        repo = MealPlanRepository(service_client)

        plan = await repo.get_by_id("mock-plan-1")

        assert plan.title == "Balanced weekly plan"
        assert [item.id for item in plan.items] == ["mock-item-1", "mock-item-2"]

    @pytest.mark.asyncio
    async def test_items_of_plan(self, services, service_client):
        services.route("GET", PLANS, "/planos/p1/itens", json=[
            {"_id": "i1", "plano_mestre_id": "p1", "horario": "08:00", "nome_refeicao": "Breakfast"},
        ])
        repo = MealPlanRepository(service_client)

        items = await repo.items.list(plan_id="p1")

        assert items[0].id == "i1"
        assert items[0].plan_ref == "p1"

    @pytest.mark.asyncio
    async def test_items_require_plan_id(self, service_client):
        repo = MealPlanRepository(service_client)

        with pytest.raises(TypeError):
            await repo.items.list()

    @pytest.mark.asyncio
    async def test_create_plan_and_item(self, services, service_client):
        services.route("POST", PLANS, "/planos/", status_code=201, json=wire_plan("p9", "u1", "New"))
        services.route("POST", PLANS, "/planos/itens/", status_code=201, json={
            "_id": "i9", "plano_mestre_id": "p9", "horario": "12:00", "nome_refeicao": "Lunch",
        })
        repo = MealPlanRepository(service_client)

        plan = await repo.create(MealPlanCreate(patient_ref="u1", practitioner_ref="n1", title="New"))
        item = await repo.items.create(PlanItemCreate(plan_ref=plan.id, time="12:00", meal_name="Lunch"))

        assert plan.id == "p9"
        assert item.id == "i9"
        assert json.loads(services.requests[0].content) == {
            "paciente_id": "u1", "nutricionista_id": "n1", "titulo": "New",
        }

    @pytest.mark.asyncio
    async def test_delete_with_items_is_refused(self, services, service_client):
        services.route("GET", PLANS, "/planos/p1/itens", json=[
            {"_id": "i1", "plano_mestre_id": "p1"},
            {"_id": "i2", "plano_mestre_id": "p1"},
        ])
        repo = MealPlanRepository(service_client)

        with pytest.raises(PlanHasItemsError) as exc_info:
            await repo.delete("p1")

        assert exc_info.value.item_count == 2
        assert services.calls("DELETE") == []

    @pytest.mark.asyncio
    async def test_cascade_delete_removes_items_first(self, services, service_client):
        services.route("GET", PLANS, "/planos/p1/itens", json=[
            {"_id": "i1", "plano_mestre_id": "p1"},
            {"_id": "i2", "plano_mestre_id": "p1"},
        ])
        services.route("DELETE", PLANS, "/planos/itens/i1", status_code=204)
        services.route("DELETE", PLANS, "/planos/itens/i2", status_code=204)
        services.route("DELETE", PLANS, "/planos/p1", json={"message": "deleted"})
        repo = MealPlanRepository(service_client)

        assert await repo.delete("p1", cascade=True) is True
        assert services.calls("DELETE") == [
            ("DELETE", "/planos/itens/i1"),
            ("DELETE", "/planos/itens/i2"),
            ("DELETE", "/planos/p1"),
        ]

    @pytest.mark.asyncio
    async def test_delete_without_items(self, services, service_client):
        services.route("GET", PLANS, "/planos/p1/itens", json=[])
        services.route("DELETE", PLANS, "/planos/p1", status_code=204)
        repo = MealPlanRepository(service_client)

        assert await repo.delete("p1") is True

    @pytest.mark.asyncio
    async def test_delete_refused_when_items_cannot_be_verified(self, services, service_client):
        services.take_down(PLANS)
        repo = MealPlanRepository(service_client)

        with pytest.raises(ServiceRequestError):
            await repo.delete("p1", cascade=True)

    @pytest.mark.asyncio
    async def test_cascade_stops_at_failed_item_delete(self, services, service_client):
        services.route("GET", PLANS, "/planos/p1/itens", json=[
            {"_id": "i1", "plano_mestre_id": "p1"},
            {"_id": "i2", "plano_mestre_id": "p1"},
            {"_id": "i3", "plano_mestre_id": "p1"},
        ])
        services.route("DELETE", PLANS, "/planos/itens/i1", status_code=204)
        services.route("DELETE", PLANS, "/planos/itens/i2", status_code=500, json={"detail": "internal error"})
        repo = MealPlanRepository(service_client)

        with pytest.raises(ServiceRequestError):
            await repo.delete("p1", cascade=True)

        assert services.calls("DELETE") == [
            ("DELETE", "/planos/itens/i1"),
            ("DELETE", "/planos/itens/i2"),
        ]


class TestRecipeRepository:
    @pytest.mark.asyncio
    async def test_patient_filter_path(self, services, service_client):
        services.route("GET", RECIPES, "/api/receitas/paciente/u1", json=[wire_recipe("r1", "Soup")])
        repo = RecipeRepository(service_client)

        recipes = await repo.list(patient_id="u1")

        assert [r.name for r in recipes] == ["Soup"]

    @pytest.mark.asyncio
    async def test_practitioner_filter_path(self, services, service_client):
        services.route("GET", RECIPES, "/api/receitas/nutricionista/n1", json=[])
        repo = RecipeRepository(service_client)

        assert await repo.list(practitioner_id="n1") == []
        assert services.calls() == [("GET", "/api/receitas/nutricionista/n1")]

    @pytest.mark.asyncio
    async def test_both_filters_rejected(self, service_client):
        repo = RecipeRepository(service_client)

        with pytest.raises(ValueError):
            await repo.list(patient_id="u1", practitioner_id="n1")

    @pytest.mark.asyncio
    async def test_fallback_filtered_by_patient(self, services, service_client):
        services.take_down(RECIPES)
        repo = RecipeRepository(service_client)

        recipes = await repo.list(patient_id="mock-user-3")

        assert [r.id for r in recipes] == ["mock-recipe-3"]

    @pytest.mark.asyncio
    async def test_update_sends_partial_payload(self, services, service_client):
        services.route("PUT", RECIPES, "/api/receitas/r1", json=wire_recipe("r1", "Soup", minutes=12))
        repo = RecipeRepository(service_client)

        updated = await repo.update("r1", RecipeUpdate(prep_minutes=12))

        assert updated.prep_minutes == 12
        assert json.loads(services.requests[-1].content) == {"tempoPreparo": 12}


class TestServerErrorFallback:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("repo_class, service, path, fallback_ids", [
        (UserRepository, USERS, "/api/usuarios", ["mock-user-1", "mock-user-2", "mock-user-3"]),
        (MealPlanRepository, PLANS, "/planos/", ["mock-plan-1"]),
        (RecipeRepository, RECIPES, "/api/receitas", ["mock-recipe-1", "mock-recipe-2", "mock-recipe-3"]),
    ])
    async def test_5xx_on_collection_serves_fallback(self, services, service_client, repo_class, service, path, fallback_ids):
        services.route("GET", service, path, status_code=500, json={"detail": "internal error"})
        repo = repo_class(service_client)

        listing = await repo.list_result()

        assert listing.live is False
        assert listing.error == "internal error"
        assert [record.id for record in listing.items] == fallback_ids
