"""
Per-entity repositories over the NutriPlan microservices.

This package contains:
- base: BaseRepository with the shared fallback policy and ListResult
- users: UserRepository (users service)
- plans: MealPlanRepository and PlanItemRepository (plans service)
- recipes: RecipeRepository (recipes service)
"""

from .base import BaseRepository, ListResult
from .plans import MealPlanRepository, PlanItemRepository
from .recipes import RecipeRepository
from .users import UserRepository

__all__ = [
    "BaseRepository",
    "ListResult",
    "MealPlanRepository",
    "PlanItemRepository",
    "RecipeRepository",
    "UserRepository",
]
