"""
Recipes router for the recipe library screens.

This router provides:
- GET    /recipes                  list recipes (search term, patient or practitioner filter)
- GET    /recipes/summary          stat cards of the recipes screen
- GET    /recipes/{recipe_id}
- POST   /recipes, PUT /recipes/{recipe_id}, DELETE /recipes/{recipe_id}
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from nutriplan.errors import ServiceRequestError
from nutriplan.filters import search_recipes
from nutriplan.models import Recipe, RecipeCreate, RecipeUpdate
from nutriplan.repositories import RecipeRepository
from nutriplan.stats import recipe_page_summary

from api.dependencies import get_recipe_repository, not_found, upstream_error
from api.schemas import RecipeListResponse, RecipeSummaryResponse

router = APIRouter(prefix="/recipes", tags=["recipes"])


@router.get("", response_model=RecipeListResponse, response_model_by_alias=False, summary="List recipes")
async def list_recipes(
    q: Optional[str] = Query(None, description="Case-insensitive search on name or category"),
    patient_id: Optional[str] = Query(None),
    practitioner_id: Optional[str] = Query(None),
    repo: RecipeRepository = Depends(get_recipe_repository),
) -> RecipeListResponse:
    try:
        listing = await repo.list_result(patient_id=patient_id, practitioner_id=practitioner_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return RecipeListResponse(items=search_recipes(listing.items, q), live=listing.live, error=listing.error)


@router.get("/summary", response_model=RecipeSummaryResponse, summary="Recipes screen stat cards")
async def recipes_summary(repo: RecipeRepository = Depends(get_recipe_repository)) -> RecipeSummaryResponse:
    listing = await repo.list_result()
    summary = recipe_page_summary(listing.items)
    return RecipeSummaryResponse(
        live=listing.live,
        total=summary.total,
        quick=summary.quick,
        categories=summary.categories,
    )


@router.get("/{recipe_id}", response_model=Recipe, response_model_by_alias=False)
async def get_recipe(recipe_id: str, repo: RecipeRepository = Depends(get_recipe_repository)) -> Recipe:
    recipe = await repo.get_by_id(recipe_id)
    if recipe is None:
        raise not_found("Recipe", recipe_id)
    return recipe


@router.post(
    "",
    response_model=Optional[Recipe],
    response_model_by_alias=False,
    status_code=status.HTTP_201_CREATED,
)
async def create_recipe(
    payload: RecipeCreate, repo: RecipeRepository = Depends(get_recipe_repository)
) -> Optional[Recipe]:
    try:
        return await repo.create(payload)
    except ServiceRequestError as e:
        raise upstream_error(e) from e


@router.put("/{recipe_id}", response_model=Optional[Recipe], response_model_by_alias=False)
async def update_recipe(
    recipe_id: str, payload: RecipeUpdate, repo: RecipeRepository = Depends(get_recipe_repository)
) -> Optional[Recipe]:
    try:
        return await repo.update(recipe_id, payload)
    except ServiceRequestError as e:
        raise upstream_error(e) from e


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recipe(recipe_id: str, repo: RecipeRepository = Depends(get_recipe_repository)) -> Response:
    try:
        await repo.delete(recipe_id)
    except ServiceRequestError as e:
        raise upstream_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
