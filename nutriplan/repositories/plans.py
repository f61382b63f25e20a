"""
Repositories for meal plans and their items in the plans service.

The plans service is MongoDB backed and returns "_id" as primary key for both
plans and items; both repositories rename it to "id", including the nested
"itens" list of a plan detail.

Endpoints:
- GET    /planos/                  list plans
- GET    /planos/{id}              plan with its items
- POST   /planos/                  create plan
- PUT    /planos/{id}, DELETE /planos/{id}
- GET    /planos/{id}/itens        items of a plan
- GET    /planos/itens/{item_id}, PUT, DELETE
- POST   /planos/itens/            create item

Deleting a plan that still has items is refused with PlanHasItemsError unless
cascade=True, in which case the items are deleted first, one at a time.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from nutriplan.client import ServiceClient
from nutriplan.config import PLANS
from nutriplan.errors import PlanHasItemsError, ServiceRequestError
from nutriplan.fallback import default_plan_items, default_plans
from nutriplan.models import MONGO_ID_FIELD, MealPlan, MealPlanWithItems, PlanItem, normalize_identifier

from .base import BaseRepository, Predicate

logger = logging.getLogger(__name__)


class PlanItemRepository(BaseRepository[PlanItem]):
    service = PLANS
    model = PlanItem
    key_field = MONGO_ID_FIELD

    def default_fallback(self) -> List[PlanItem]:
        return default_plan_items()

    def collection_path(self) -> str:
        return "/planos/itens/"

    def list_request(self, plan_id: Optional[str] = None) -> Tuple[str, Optional[Dict[str, Any]]]:
        if not plan_id:
            raise TypeError("PlanItemRepository.list() requires plan_id")
        return f"/planos/{plan_id}/itens", None

    def fallback_predicate(self, plan_id: Optional[str] = None) -> Optional[Predicate]:
        return lambda item: item.plan_ref == plan_id


class MealPlanRepository(BaseRepository[MealPlan]):
    service = PLANS
    model = MealPlan
    key_field = MONGO_ID_FIELD

    def __init__(
        self,
        client: ServiceClient,
        fallback: Optional[Sequence[MealPlan]] = None,
        item_fallback: Optional[Sequence[PlanItem]] = None,
    ) -> None:
        super().__init__(client, fallback)
        self.items = PlanItemRepository(client, fallback=item_fallback)

    def default_fallback(self) -> List[MealPlan]:
        return default_plans()

    def collection_path(self) -> str:
        return "/planos/"

    def normalize(self, raw: Any) -> Any:
        plan = normalize_identifier(raw, self.key_field)
        if isinstance(plan, dict) and isinstance(plan.get("itens"), list):
            plan["itens"] = [normalize_identifier(item, self.key_field) for item in plan["itens"]]
        return plan

    async def get_by_id(self, record_id: str) -> Optional[MealPlanWithItems]:
        """
        Get a plan together with its items.

        Returns:
            MealPlanWithItems; on failure the fallback plan with its fallback items.
        """
        result = await self.client.call(self.service, self.record_path(record_id))
        if result.is_ok:
            return self.parse_record(result.data, model=MealPlanWithItems)
        if result.is_empty:
            return None

        plan = self.fallback_record(record_id)
        if plan is None:
            return None
        items = [item for item in self.items.fallback if item.plan_ref == record_id]
        return MealPlanWithItems(**plan.model_dump(), items=items)

    async def delete(self, record_id: str, cascade: bool = False) -> bool:
        """
        Delete a plan.

        Args:
            record_id: Plan identifier
            cascade: Delete the plan's items first instead of refusing. Not atomic: items
                deleted before a failing call stay deleted and the plan is kept.

        Raises:
            PlanHasItemsError: If the plan has items and cascade is False
            ServiceRequestError: If the items could not be verified live, or a delete failed
        """
        listing = await self.items.list_result(plan_id=record_id)
        if not listing.live:
            raise ServiceRequestError(
                self.service, f"Could not verify the items of meal plan '{record_id}': {listing.error}"
            )

        if listing.items:
            if not cascade:
                raise PlanHasItemsError(record_id, len(listing.items))
            logger.info("Cascading delete of %d item(s) of plan %s", len(listing.items), record_id)
            for item in listing.items:
                await self.items.delete(item.id)

        return await super().delete(record_id)
