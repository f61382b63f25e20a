"""
Pydantic schemas for FastAPI request and response models.

This module defines the models used for API request validation and response
serialization that are not plain entity records. Entity records themselves
(User, MealPlan, PlanItem, Recipe) come from nutriplan.models; routes return
them with response_model_by_alias=False so clients always see English field
names, while request bodies accept either the English or the wire names.

The schemas include:
- *ListResponse: records of one list screen plus a `live` flag for the
  "sample data" banner
- DashboardResponse: dashboard stats, degraded sources, recent activity
- ServicesStatusResponse: upstream health checks
- *SummaryResponse: the stat cards of each list screen
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from nutriplan.models import MealPlan, PlanItem, Recipe, User


class ListResponseBase(BaseModel):
    live: bool = Field(True, description="False when the records are fallback sample data")
    error: Optional[str] = Field(None, description="Why live data could not be loaded")


class UserListResponse(ListResponseBase):
    items: List[User]


class MealPlanListResponse(ListResponseBase):
    items: List[MealPlan]


class PlanItemListResponse(ListResponseBase):
    items: List[PlanItem]


class RecipeListResponse(ListResponseBase):
    items: List[Recipe]


class PlanItemInput(BaseModel):
    """Body for adding an item to a plan; the plan comes from the URL."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    time: str = Field(..., alias="horario", description="Free-text schedule label (e.g. '08:00')")
    meal_name: str = Field(..., alias="nome_refeicao")
    description: str = Field("", alias="descricao")


class DashboardStatsOut(BaseModel):
    total_users: int
    new_users_this_month: int
    active_plans: int
    new_plans_this_week: int
    patients_with_active_plan: int
    total_recipes: int
    new_recipes_this_week: int


class ActivityOut(BaseModel):
    type: str = Field(..., description="patient, plan or recipe")
    text: str
    date: datetime


class DashboardResponse(BaseModel):
    failed: List[str] = Field(default_factory=list, description="Sources that could not be loaded live")
    stats: DashboardStatsOut
    recent_activity: List[ActivityOut] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "failed": ["plans"],
                "stats": {
                    "total_users": 2,
                    "new_users_this_month": 1,
                    "active_plans": 0,
                    "new_plans_this_week": 0,
                    "patients_with_active_plan": 0,
                    "total_recipes": 3,
                    "new_recipes_this_week": 1,
                },
                "recent_activity": [],
            }
        }
    )


class ServicesStatusResponse(BaseModel):
    services: Dict[str, bool]
    all_healthy: bool


class PatientSummaryResponse(BaseModel):
    live: bool
    total: int
    new_this_month: int


class PlanSummaryResponse(BaseModel):
    live: bool
    total: int
    active: int
    started_this_month: int


class RecipeSummaryResponse(BaseModel):
    live: bool
    total: int
    quick: int
    categories: int
