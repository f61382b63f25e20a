"""
Exception types raised by the NutriPlan core.

Read paths never raise for upstream problems (they degrade to fallback data),
so these exceptions only show up on write paths and for programming errors:

- UnknownServiceError: a service name that is not in the base URL table
- ServiceRequestError: a create/update/delete call that the upstream service rejected
  or that never reached it; carries the human-readable message for the form/modal
- PlanHasItemsError: a meal plan deletion refused because items still reference it
"""

from typing import Optional


class NutriPlanError(Exception):
    """Base class for all NutriPlan errors."""


class UnknownServiceError(NutriPlanError):
    """Raised when a call names a service that has no configured base URL."""

    def __init__(self, service: str) -> None:
        self.service = service
        super().__init__(f"Unknown service '{service}'")


class ServiceRequestError(NutriPlanError):
    """
    A write operation failed at the upstream service.

    Attributes:
        service: Service name ("users", "plans", "recipes")
        message: Human-readable message extracted from the error body (detail/message)
            or "HTTP Error: <status> <reason>" when the body has neither
        status_code: HTTP status code, or None for transport failures
    """

    def __init__(self, service: str, message: str, status_code: Optional[int] = None) -> None:
        self.service = service
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class PlanHasItemsError(NutriPlanError):
    """Raised when deleting a meal plan that still owns items without cascade."""

    def __init__(self, plan_id: str, item_count: int) -> None:
        self.plan_id = plan_id
        self.item_count = item_count
        super().__init__(
            f"Meal plan '{plan_id}' still has {item_count} item(s); delete them first or use cascade"
        )
