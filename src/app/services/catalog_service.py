# src/app/services/catalog_service.py
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Callable, Optional

from src.app.domain.errors import ForbiddenError, NotFoundError, ValidationError
from src.app.domain.ids import new_id
from src.app.domain.models import Recipe, RecipeDraft, Role, VerifiedIdentity, now_utc
from src.app.infra.kv import keys
from src.app.infra.kv.base import KeyValueStore

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All"
DEFAULT_COOK_NAME = "Anonymous Cook"

_EDITABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "price": "price",
    "category": "category",
    "prepTime": "prep_time",
    "servings": "servings",
    "ingredients": "ingredients",
    "instructions": "instructions",
    "image": "image",
    "available": "available",
}


def _clean_lines(values: Optional[list[str]]) -> list[str]:
    return [str(value).strip() for value in values or [] if value and str(value).strip()]


def _validate(recipe: Recipe) -> None:
    if not recipe.title.strip():
        raise ValidationError("Recipe title is required")
    if not recipe.category.strip():
        raise ValidationError("Recipe category is required")
    if not math.isfinite(recipe.price):
        raise ValidationError("Price must be a finite number")
    if recipe.price < 0:
        raise ValidationError("Price cannot be negative")
    if recipe.prep_time <= 0:
        raise ValidationError("Prep time must be a positive number of minutes")
    if recipe.servings <= 0:
        raise ValidationError("Servings must be a positive number")


class RecipeCatalog:
    """Recipes published by cooks. Listing is public; writes are cook-only and owner-only."""

    def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = now_utc):
        self._store = store
        self._clock = clock

    def list_recipes(self, category: Optional[str] = None, search: Optional[str] = None) -> list[Recipe]:
        recipes = self._all_recipes()
        if category and category != ALL_CATEGORIES:
            recipes = [recipe for recipe in recipes if recipe.category == category]
        if search:
            term = search.lower()
            recipes = [
                recipe
                for recipe in recipes
                if term in recipe.title.lower()
                or term in recipe.description.lower()
                or term in recipe.cook_name.lower()
            ]
        return recipes

    def list_recipes_by_cook(self, cook_id: str) -> list[Recipe]:
        # scan instead of cook:{id}:recipes, the scan cannot miss a recipe
        return [recipe for recipe in self._all_recipes() if recipe.cook_id == cook_id]

    def get_recipe(self, recipe_id: str) -> Recipe:
        recipe = self.find_recipe(recipe_id)
        if recipe is None:
            raise NotFoundError("Recipe", recipe_id)
        return recipe

    def find_recipe(self, recipe_id: str) -> Optional[Recipe]:
        record = self._store.get(keys.recipe_key(recipe_id))
        return Recipe.from_record(record) if record else None

    def create_recipe(self, caller: VerifiedIdentity, draft: RecipeDraft) -> Recipe:
        if caller.role != Role.COOK:
            raise ForbiddenError("Only cooks can create recipes")

        now = self._clock()
        recipe = Recipe(
            id=new_id("recipe", now),
            cook_id=caller.id,
            cook_name=self._cook_name(caller),
            title=draft.title.strip(),
            description=(draft.description or "").strip(),
            price=float(draft.price),
            category=(draft.category or "").strip(),
            prep_time=int(draft.prep_time),
            servings=int(draft.servings),
            ingredients=_clean_lines(draft.ingredients),
            instructions=_clean_lines(draft.instructions),
            image=draft.image or "",
            created_at=now,
            updated_at=now,
        )
        _validate(recipe)

        self._store.set(keys.recipe_key(recipe.id), recipe.to_record())
        self._store.append_unique(keys.cook_recipes_key(caller.id), recipe.id)
        logger.info("Recipe created: id=%s cook=%s", recipe.id, caller.id)
        return recipe

    def update_recipe(self, caller: VerifiedIdentity, recipe_id: str, changes: dict[str, Any]) -> Recipe:
        """Partial edit by the owning cook. Setting `available` to False disables the recipe."""
        if caller.role != Role.COOK:
            raise ForbiddenError("Only cooks can edit recipes")

        def _apply(record: Optional[dict[str, Any]]) -> dict[str, Any]:
            if not record:
                raise NotFoundError("Recipe", recipe_id)
            recipe = Recipe.from_record(record)
            if recipe.cook_id != caller.id:
                raise ForbiddenError("Only the cook who created this recipe can edit it")
            for wire_name, attr in _EDITABLE_FIELDS.items():
                if wire_name not in changes or changes[wire_name] is None:
                    continue
                value = changes[wire_name]
                if attr in ("ingredients", "instructions"):
                    value = _clean_lines(value)
                elif attr in ("title", "description", "category"):
                    value = str(value).strip()
                setattr(recipe, attr, value)
            _validate(recipe)
            recipe.updated_at = self._clock()
            return recipe.to_record()

        record = self._store.update(keys.recipe_key(recipe_id), _apply)
        logger.info("Recipe updated: id=%s cook=%s fields=%s", recipe_id, caller.id, sorted(changes))
        return Recipe.from_record(record)

    def record_order(self, recipe_id: str) -> Recipe:
        """Bump the recipe's order counter. Shares the recipe key lock with edits."""

        def _increment(record: Optional[dict[str, Any]]) -> dict[str, Any]:
            if not record:
                raise NotFoundError("Recipe", recipe_id)
            record["totalOrders"] = int(record.get("totalOrders") or 0) + 1
            return record

        return Recipe.from_record(self._store.update(keys.recipe_key(recipe_id), _increment))

    def _all_recipes(self) -> list[Recipe]:
        recipes = [Recipe.from_record(record) for record in self._store.get_by_prefix(keys.RECIPE_PREFIX) if record]
        recipes.sort(key=lambda recipe: (recipe.created_at.isoformat() if recipe.created_at else "", recipe.id), reverse=True)
        return recipes

    def _cook_name(self, caller: VerifiedIdentity) -> str:
        record = self._store.get(keys.user_key(caller.id))
        if record and record.get("name"):
            return str(record["name"])
        return caller.name or DEFAULT_COOK_NAME
