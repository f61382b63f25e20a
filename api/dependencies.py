"""
FastAPI dependencies shared by the routers.

The ServiceClient lives on app.state and is created lazily, so the app also
works under TestClient without running the lifespan. Tests replace it through
app.dependency_overrides[get_client].
"""

import logging

from fastapi import Depends, HTTPException, Request, status

from nutriplan.client import ServiceClient
from nutriplan.errors import PlanHasItemsError, ServiceRequestError
from nutriplan.repositories import MealPlanRepository, RecipeRepository, UserRepository

logger = logging.getLogger(__name__)


def get_client(request: Request) -> ServiceClient:
    client = getattr(request.app.state, "service_client", None)
    if client is None:
        client = ServiceClient()
        request.app.state.service_client = client
    return client


def get_user_repository(client: ServiceClient = Depends(get_client)) -> UserRepository:
    return UserRepository(client)


def get_plan_repository(client: ServiceClient = Depends(get_client)) -> MealPlanRepository:
    return MealPlanRepository(client)


def get_recipe_repository(client: ServiceClient = Depends(get_client)) -> RecipeRepository:
    return RecipeRepository(client)


def upstream_error(error: Exception) -> HTTPException:
    """
    Convert a write-path error into an HTTPException for the caller.

    - PlanHasItemsError -> 409 Conflict
    - ServiceRequestError -> 502 Bad Gateway, detail is the service's own message
    """
    if isinstance(error, PlanHasItemsError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, ServiceRequestError):
        logger.warning("Upstream %s rejected request: %s", error.service, error.message)
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=error.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


def not_found(kind: str, record_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{kind} '{record_id}' not found")
