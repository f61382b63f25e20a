"""
Meal plans router for the plans screens.

This router provides:
- GET    /plans                        list plans (optional search term on title)
- GET    /plans/summary                stat cards of the plans screen
- GET    /plans/{plan_id}              plan with its items
- POST   /plans, PUT /plans/{plan_id}
- DELETE /plans/{plan_id}?cascade=     409 if items exist and cascade is false
- GET    /plans/{plan_id}/items, POST /plans/{plan_id}/items
- PUT    /plans/items/{item_id}, DELETE /plans/items/{item_id}
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from nutriplan.errors import PlanHasItemsError, ServiceRequestError
from nutriplan.filters import search_plans
from nutriplan.models import (
    MealPlan,
    MealPlanCreate,
    MealPlanUpdate,
    MealPlanWithItems,
    PlanItem,
    PlanItemCreate,
    PlanItemUpdate,
)
from nutriplan.repositories import MealPlanRepository
from nutriplan.stats import plan_page_summary

from api.dependencies import get_plan_repository, not_found, upstream_error
from api.schemas import MealPlanListResponse, PlanItemInput, PlanItemListResponse, PlanSummaryResponse

router = APIRouter(prefix="/plans", tags=["plans"])


@router.get("", response_model=MealPlanListResponse, response_model_by_alias=False, summary="List meal plans")
async def list_plans(
    q: Optional[str] = Query(None, description="Case-insensitive search on the plan title"),
    repo: MealPlanRepository = Depends(get_plan_repository),
) -> MealPlanListResponse:
    listing = await repo.list_result()
    return MealPlanListResponse(items=search_plans(listing.items, q), live=listing.live, error=listing.error)


@router.get("/summary", response_model=PlanSummaryResponse, summary="Plans screen stat cards")
async def plans_summary(repo: MealPlanRepository = Depends(get_plan_repository)) -> PlanSummaryResponse:
    listing = await repo.list_result()
    summary = plan_page_summary(listing.items)
    return PlanSummaryResponse(
        live=listing.live,
        total=summary.total,
        active=summary.active,
        started_this_month=summary.started_this_month,
    )


@router.put("/items/{item_id}", response_model=Optional[PlanItem], response_model_by_alias=False)
async def update_item(
    item_id: str, payload: PlanItemUpdate, repo: MealPlanRepository = Depends(get_plan_repository)
) -> Optional[PlanItem]:
    try:
        return await repo.items.update(item_id, payload)
    except ServiceRequestError as e:
        raise upstream_error(e) from e


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(item_id: str, repo: MealPlanRepository = Depends(get_plan_repository)) -> Response:
    try:
        await repo.items.delete(item_id)
    except ServiceRequestError as e:
        raise upstream_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{plan_id}", response_model=MealPlanWithItems, response_model_by_alias=False)
async def get_plan(plan_id: str, repo: MealPlanRepository = Depends(get_plan_repository)) -> MealPlanWithItems:
    plan = await repo.get_by_id(plan_id)
    if plan is None:
        raise not_found("Meal plan", plan_id)
    return plan


@router.post(
    "",
    response_model=Optional[MealPlan],
    response_model_by_alias=False,
    status_code=status.HTTP_201_CREATED,
)
async def create_plan(
    payload: MealPlanCreate, repo: MealPlanRepository = Depends(get_plan_repository)
) -> Optional[MealPlan]:
    try:
        return await repo.create(payload)
    except ServiceRequestError as e:
        raise upstream_error(e) from e


@router.put("/{plan_id}", response_model=Optional[MealPlan], response_model_by_alias=False)
async def update_plan(
    plan_id: str, payload: MealPlanUpdate, repo: MealPlanRepository = Depends(get_plan_repository)
) -> Optional[MealPlan]:
    try:
        return await repo.update(plan_id, payload)
    except ServiceRequestError as e:
        raise upstream_error(e) from e


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plan(
    plan_id: str,
    cascade: bool = Query(False, description="Delete the plan's items first instead of refusing"),
    repo: MealPlanRepository = Depends(get_plan_repository),
) -> Response:
    try:
        await repo.delete(plan_id, cascade=cascade)
    except (PlanHasItemsError, ServiceRequestError) as e:
        raise upstream_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{plan_id}/items", response_model=PlanItemListResponse, response_model_by_alias=False)
async def list_items(plan_id: str, repo: MealPlanRepository = Depends(get_plan_repository)) -> PlanItemListResponse:
    listing = await repo.items.list_result(plan_id=plan_id)
    return PlanItemListResponse(items=listing.items, live=listing.live, error=listing.error)


@router.post(
    "/{plan_id}/items",
    response_model=Optional[PlanItem],
    response_model_by_alias=False,
    status_code=status.HTTP_201_CREATED,
)
async def create_item(
    plan_id: str, payload: PlanItemInput, repo: MealPlanRepository = Depends(get_plan_repository)
) -> Optional[PlanItem]:
    item = PlanItemCreate(
        plan_ref=plan_id,
        time=payload.time,
        meal_name=payload.meal_name,
        description=payload.description,
    )
    try:
        return await repo.items.create(item)
    except ServiceRequestError as e:
        raise upstream_error(e) from e
