from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.app.deps import get_catalog, get_current_user
from src.app.domain.models import Recipe, RecipeDraft, VerifiedIdentity
from src.app.schemas.recipes import RecipeCreate, RecipeEnvelope, RecipeResponse, RecipeUpdate
from src.app.services.catalog_service import RecipeCatalog

router = APIRouter(prefix="/recipes", tags=["recipes"])


def recipe_response(recipe: Recipe) -> RecipeResponse:
    return RecipeResponse(**recipe.to_record())


@router.get("", response_model=list[RecipeResponse])
def list_recipes(
    category: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    catalog: RecipeCatalog = Depends(get_catalog),
) -> list[RecipeResponse]:
    return [recipe_response(recipe) for recipe in catalog.list_recipes(category, search)]


@router.post("", response_model=RecipeEnvelope)
def create_recipe(
    payload: RecipeCreate,
    user: VerifiedIdentity = Depends(get_current_user),
    catalog: RecipeCatalog = Depends(get_catalog),
) -> RecipeEnvelope:
    draft = RecipeDraft(
        title=payload.title,
        description=payload.description,
        price=payload.price,
        category=payload.resolved_category,
        prep_time=payload.prepTime,
        servings=payload.servings,
        ingredients=payload.ingredients,
        instructions=payload.instructions,
        image=payload.image,
    )
    return RecipeEnvelope(recipe=recipe_response(catalog.create_recipe(user, draft)))


# declared before /{recipe_id} so "cook" is not read as a recipe id
@router.get("/cook/{cook_id}", response_model=list[RecipeResponse])
def list_cook_recipes(
    cook_id: str,
    catalog: RecipeCatalog = Depends(get_catalog),
) -> list[RecipeResponse]:
    return [recipe_response(recipe) for recipe in catalog.list_recipes_by_cook(cook_id)]


@router.get("/{recipe_id}", response_model=RecipeResponse)
def get_recipe(
    recipe_id: str,
    catalog: RecipeCatalog = Depends(get_catalog),
) -> RecipeResponse:
    return recipe_response(catalog.get_recipe(recipe_id))


@router.put("/{recipe_id}", response_model=RecipeEnvelope)
def update_recipe(
    recipe_id: str,
    payload: RecipeUpdate,
    user: VerifiedIdentity = Depends(get_current_user),
    catalog: RecipeCatalog = Depends(get_catalog),
) -> RecipeEnvelope:
    recipe = catalog.update_recipe(user, recipe_id, payload.changes())
    return RecipeEnvelope(recipe=recipe_response(recipe))
