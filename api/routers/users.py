"""
Users router for the patients / practitioners screens.

This router provides:
- GET    /users                            list users (optional role and search term)
- GET    /users/summary                    stat cards of the patients screen
- GET    /users/{user_id}                  single user
- POST   /users, PUT /users/{user_id}, DELETE /users/{user_id}
- GET    /practitioners/{practitioner_id}/patients

Reads never fail because of the users service: they fall back to sample data
and report live=false. Writes surface the service's error message as a 502.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from nutriplan.errors import ServiceRequestError
from nutriplan.filters import search_users
from nutriplan.models import User, UserCreate, UserRole, UserUpdate
from nutriplan.repositories import UserRepository
from nutriplan.stats import patient_page_summary

from api.dependencies import get_user_repository, not_found, upstream_error
from api.schemas import PatientSummaryResponse, UserListResponse

router = APIRouter(tags=["users"])


@router.get("/users", response_model=UserListResponse, response_model_by_alias=False, summary="List users")
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role: 'paciente' or 'nutricionista'"),
    q: Optional[str] = Query(None, description="Case-insensitive search on name or email"),
    repo: UserRepository = Depends(get_user_repository),
) -> UserListResponse:
    listing = await repo.list_result(role=role)
    return UserListResponse(items=search_users(listing.items, q), live=listing.live, error=listing.error)


@router.get("/users/summary", response_model=PatientSummaryResponse, summary="Patients screen stat cards")
async def users_summary(
    role: UserRole = Query(UserRole.PATIENT),
    repo: UserRepository = Depends(get_user_repository),
) -> PatientSummaryResponse:
    listing = await repo.list_result(role=role)
    summary = patient_page_summary(listing.items)
    return PatientSummaryResponse(live=listing.live, total=summary.total, new_this_month=summary.new_this_month)


@router.get("/users/{user_id}", response_model=User, response_model_by_alias=False)
async def get_user(user_id: str, repo: UserRepository = Depends(get_user_repository)) -> User:
    user = await repo.get_by_id(user_id)
    if user is None:
        raise not_found("User", user_id)
    return user


@router.post(
    "/users",
    response_model=Optional[User],
    response_model_by_alias=False,
    status_code=status.HTTP_201_CREATED,
)
async def create_user(payload: UserCreate, repo: UserRepository = Depends(get_user_repository)) -> Optional[User]:
    try:
        return await repo.create(payload)
    except ServiceRequestError as e:
        raise upstream_error(e) from e


@router.put("/users/{user_id}", response_model=Optional[User], response_model_by_alias=False)
async def update_user(
    user_id: str, payload: UserUpdate, repo: UserRepository = Depends(get_user_repository)
) -> Optional[User]:
    try:
        return await repo.update(user_id, payload)
    except ServiceRequestError as e:
        raise upstream_error(e) from e


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: str, repo: UserRepository = Depends(get_user_repository)) -> Response:
    try:
        await repo.delete(user_id)
    except ServiceRequestError as e:
        raise upstream_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/practitioners/{practitioner_id}/patients",
    response_model=UserListResponse,
    response_model_by_alias=False,
    summary="Patients of a practitioner",
)
async def list_patients_of(
    practitioner_id: str,
    q: Optional[str] = Query(None),
    repo: UserRepository = Depends(get_user_repository),
) -> UserListResponse:
    listing = await repo.list_patients_of_result(practitioner_id)
    return UserListResponse(items=search_users(listing.items, q), live=listing.live, error=listing.error)
