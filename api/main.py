"""
FastAPI application for the NutriPlan dashboard API.

This module defines the REST API that the dashboard UI consumes:
- GET /dashboard: Aggregated stats across the users, plans and recipes services
- GET /services/status: Health of each upstream service
- GET /health: Liveness of this API
- /users, /plans, /recipes: CRUD screens (see api/routers/)

Reads degrade to sample data when an upstream service is down; responses say so
through `live` flags and the dashboard's `failed` list. Writes report the
upstream error message with HTTP 502.

Run the API with:
    uvicorn api.main:app --reload

Access API documentation at:
    http://localhost:8000/docs (Swagger UI)
    http://localhost:8000/redoc (ReDoc)
"""

# Import config early to load .env file before any other code accesses environment variables
import nutriplan.config  # noqa: F401

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from fastapi import Depends, FastAPI, Query

from nutriplan.client import ServiceClient
from nutriplan.dashboard import load_dashboard
from nutriplan.models import UserRole
from nutriplan.repositories import MealPlanRepository, RecipeRepository, UserRepository

from api.dependencies import get_client, get_plan_repository, get_recipe_repository, get_user_repository
from api.routers import plans, recipes, users
from api.schemas import ActivityOut, DashboardResponse, DashboardStatsOut, ServicesStatusResponse

logger = logging.getLogger(__name__)

# Track app start time for uptime calculation
_APP_START_TIME = time.time()

API_NAME = "NutriPlan Dashboard API"
API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    app.state.service_client = ServiceClient()
    logger.info("Service base URLs: %s", app.state.service_client.base_urls)
    try:
        yield
    finally:
        await app.state.service_client.aclose()


app = FastAPI(
    title=API_NAME,
    description="Dashboard backend over the users, meal plans and recipes microservices",
    version=API_VERSION,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "dashboard", "description": "Aggregated statistics across all services."},
        {"name": "users", "description": "Practitioners and patients."},
        {"name": "plans", "description": "Meal plans and their items."},
        {"name": "recipes", "description": "Recipe library."},
        {"name": "health", "description": "Health check and monitoring endpoints."},
    ],
)

app.include_router(users.router)
app.include_router(plans.router)
app.include_router(recipes.router)


@app.get(
    "/dashboard",
    response_model=DashboardResponse,
    tags=["dashboard"],
    summary="Dashboard statistics",
    description="Loads users, plans and recipes concurrently. A failed service reports 0 for its "
                "metrics and is listed in `failed`; the recent-activity feed is empty if any service failed.",
)
async def dashboard(
    role: UserRole = Query(UserRole.PATIENT, description="Which users the user metrics count"),
    users_repo: UserRepository = Depends(get_user_repository),
    plans_repo: MealPlanRepository = Depends(get_plan_repository),
    recipes_repo: RecipeRepository = Depends(get_recipe_repository),
) -> DashboardResponse:
    summary = await load_dashboard(users_repo, plans_repo, recipes_repo, user_role=role)
    return DashboardResponse(
        failed=summary.failed,
        stats=DashboardStatsOut(**vars(summary.stats)),
        recent_activity=[
            ActivityOut(type=item.type, text=item.text, date=item.date) for item in summary.recent_activity
        ],
    )


@app.get("/services/status", response_model=ServicesStatusResponse, tags=["health"])
async def services_status(client: ServiceClient = Depends(get_client)) -> ServicesStatusResponse:
    """
    Check every upstream service's /health endpoint concurrently.

    Returns:
        Per-service health flags and whether all of them are up. Used by the UI
        to show the "sample data is being displayed" banner.
    """
    statuses = await client.check_all_health()
    return ServicesStatusResponse(services=statuses, all_healthy=all(statuses.values()))


@app.get("/health", tags=["health"])
def health() -> Dict[str, Any]:
    """
    Health check endpoint for monitoring and status checks.

    Returns:
        Dictionary with status, API metadata and uptime information.
        Always returns 200 OK if the endpoint is reachable.
    """
    return {
        "status": "ok",
        "name": API_NAME,
        "version": API_VERSION,
        "uptime_seconds": int(time.time() - _APP_START_TIME),
    }


@app.get("/")
def root() -> Dict[str, Any]:
    return {
        "name": API_NAME,
        "version": API_VERSION,
        "docs": "/docs",
    }
