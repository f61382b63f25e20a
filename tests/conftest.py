"""
Shared fixtures: an in-memory stand-in for the three microservices.

FakeServices answers requests through httpx.MockTransport, so the real
ServiceClient code path (URL building, headers, status handling) runs in every
test without touching the network.
"""

from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Set, Tuple

import httpx
import pytest
import pytest_asyncio

from nutriplan.client import ServiceClient
from nutriplan.config import PLANS, RECIPES, USERS
from nutriplan.utils.cache import ServiceFailureCache

HOSTS = {
    USERS: "users.test",
    PLANS: "plans.test",
    RECIPES: "recipes.test",
}

BASE_URLS = {service: f"http://{host}" for service, host in HOSTS.items()}


class FakeServices:
    """Route table keyed by (method, host, path); unknown routes answer 404."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []
        self.down: Set[str] = set()

    def route(
        self,
        method: str,
        service: str,
        path: str,
        status_code: int = 200,
        json: Any = None,
        content: Optional[bytes] = None,
    ) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            if content is not None:
                return httpx.Response(status_code, content=content)
            if json is None:
                return httpx.Response(status_code)
            return httpx.Response(status_code, json=json)

        self.routes[(method.upper(), HOSTS[service], path)] = respond

    def raise_on(self, method: str, service: str, path: str, error: type) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            raise error("simulated failure", request=request)

        self.routes[(method.upper(), HOSTS[service], path)] = respond

    def take_down(self, service: str) -> None:
        self.down.add(HOSTS[service])

    def bring_up(self, service: str) -> None:
        self.down.discard(HOSTS[service])

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host in self.down:
            raise httpx.ConnectError("Connection refused", request=request)
        respond = self.routes.get((request.method, request.url.host, request.url.path))
        if respond is None:
            return httpx.Response(404, json={"detail": "Not Found"})
        return respond(request)

    def calls(self, method: Optional[str] = None) -> List[Tuple[str, str]]:
        """(method, path) of every request received, optionally filtered by method."""
        return [
            (r.method, r.url.path) for r in self.requests
            if method is None or r.method == method
        ]


def mock_http(services: FakeServices) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(services.handler))


def build_client(http: httpx.AsyncClient, failure_cache: Optional[ServiceFailureCache] = None) -> ServiceClient:
    """ServiceClient over `http`; the caller closes `http`."""
    return ServiceClient(
        base_urls=BASE_URLS,
        timeout=1.0,
        health_timeout=0.5,
        failure_cache=failure_cache or ServiceFailureCache(0),
        http_client=http,
    )


@pytest.fixture
def services() -> FakeServices:
    return FakeServices()


@pytest_asyncio.fixture
async def http_client(services: FakeServices) -> AsyncIterator[httpx.AsyncClient]:
    async with mock_http(services) as http:
        yield http


@pytest.fixture
def service_client(http_client: httpx.AsyncClient) -> ServiceClient:
    return build_client(http_client)


# Wire-format sample records, as the services send them

def wire_user(user_id: Any, name: str, role: str = "paciente", created: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    record = {"id": user_id, "nome": name, "email": f"{name.lower()}@example.com", "role": role}
    if created is not None:
        record["data_criacao"] = created
    record.update(extra)
    return record


def wire_plan(plan_id: str, patient: str, title: str, start: Optional[str] = None, end: Optional[str] = None) -> Dict[str, Any]:
    return {
        "_id": plan_id,
        "paciente_id": patient,
        "nutricionista_id": "n1",
        "titulo": title,
        "data_inicio": start,
        "data_fim": end,
    }


def wire_recipe(recipe_id: str, name: str, category: str = "Lunch", minutes: int = 15, created: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": recipe_id,
        "nome": name,
        "categoria": category,
        "tempoPreparo": minutes,
        "ingredientes": ["water"],
        "modoPreparo": ["boil"],
        "nutricionistaId": "n1",
        "pacienteId": "u1",
        "data_criacao": created,
    }
