"""
Repository for users (practitioners and patients) in the users service.

Endpoints:
- GET    /api/usuarios[?role=paciente|nutricionista]
- GET    /api/usuarios/{id}
- POST   /api/usuarios
- PUT    /api/usuarios/{id}
- DELETE /api/usuarios/{id}
- GET    /api/nutricionistas/{id}/pacientes
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from nutriplan.config import USERS
from nutriplan.fallback import default_users
from nutriplan.models import User, UserRole

from .base import BaseRepository, ListResult, Predicate


class UserRepository(BaseRepository[User]):
    service = USERS
    model = User

    def default_fallback(self) -> List[User]:
        return default_users()

    def collection_path(self) -> str:
        return "/api/usuarios"

    def list_request(
        self, role: Optional[Union[UserRole, str]] = None
    ) -> Tuple[str, Optional[Dict[str, Any]]]:
        if role is None:
            return self.collection_path(), None
        return self.collection_path(), {"role": UserRole(role).value}

    def fallback_predicate(self, role: Optional[Union[UserRole, str]] = None) -> Optional[Predicate]:
        if role is None:
            return None
        wanted = UserRole(role)
        return lambda user: user.role == wanted

    async def list_patients_of_result(self, practitioner_id: str) -> ListResult[User]:
        return await self._fetch_list(
            f"/api/nutricionistas/{practitioner_id}/pacientes",
            predicate=lambda user: user.role == UserRole.PATIENT and user.practitioner_ref == practitioner_id,
        )

    async def list_patients_of(self, practitioner_id: str) -> List[User]:
        """Patients assigned to a practitioner (fallback patients of that practitioner on failure)."""
        return (await self.list_patients_of_result(practitioner_id)).items
