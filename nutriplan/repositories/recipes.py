"""
Repository for recipes in the recipes service.

Endpoints:
- GET    /api/receitas
- GET    /api/receitas/paciente/{patient_id}
- GET    /api/receitas/nutricionista/{practitioner_id}
- GET    /api/receitas/{id}
- POST   /api/receitas
- PUT    /api/receitas/{id}, DELETE /api/receitas/{id}
"""

from typing import Any, Dict, List, Optional, Tuple

from nutriplan.config import RECIPES
from nutriplan.fallback import default_recipes
from nutriplan.models import Recipe

from .base import BaseRepository, Predicate


class RecipeRepository(BaseRepository[Recipe]):
    service = RECIPES
    model = Recipe

    def default_fallback(self) -> List[Recipe]:
        return default_recipes()

    def collection_path(self) -> str:
        return "/api/receitas"

    def list_request(
        self, patient_id: Optional[str] = None, practitioner_id: Optional[str] = None
    ) -> Tuple[str, Optional[Dict[str, Any]]]:
        if patient_id and practitioner_id:
            raise ValueError("Filter recipes by patient_id or practitioner_id, not both")
        if patient_id:
            return f"{self.collection_path()}/paciente/{patient_id}", None
        if practitioner_id:
            return f"{self.collection_path()}/nutricionista/{practitioner_id}", None
        return self.collection_path(), None

    def fallback_predicate(
        self, patient_id: Optional[str] = None, practitioner_id: Optional[str] = None
    ) -> Optional[Predicate]:
        if patient_id:
            return lambda recipe: recipe.patient_ref == patient_id
        if practitioner_id:
            return lambda recipe: recipe.practitioner_ref == practitioner_id
        return None
