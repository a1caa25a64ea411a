# src/app/services/seed.py
"""
Demo data for local development and tests: the cooks, customer and dishes
shown on the sample screens. Never called in production.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from src.app.domain.models import RecipeDraft, Role, VerifiedIdentity, now_utc
from src.app.infra.kv import keys
from src.app.infra.kv.base import KeyValueStore
from src.app.services.account_service import AccountDirectory
from src.app.services.catalog_service import RecipeCatalog

logger = logging.getLogger(__name__)

DEMO_COOKS = [
    {"id": "demo-cook-fatma", "email": "fatma@demo.baty", "name": "Fatma Hassan", "specialties": ["Egyptian", "Arabic"]},
    {"id": "demo-cook-layla", "email": "layla@demo.baty", "name": "Layla Haddad", "specialties": ["Lebanese", "Syrian"]},
]

DEMO_CUSTOMERS = [
    {"id": "demo-customer-ahmed", "email": "ahmed@demo.baty", "name": "Ahmed Mohamed"},
]

DEMO_RECIPES = [
    (
        "demo-cook-fatma",
        RecipeDraft(
            title="Grilled Kebab",
            description="Fresh grilled kebab with authentic Arabic spices",
            price=5,
            category="Arabic",
            prep_time=30,
            servings=4,
            ingredients=["Minced lamb", "Onion", "Parsley", "Seven spices"],
        ),
        True,
    ),
    (
        "demo-cook-layla",
        RecipeDraft(
            title="Grilled Chicken",
            description="Tender grilled chicken with Mediterranean herbs",
            price=6,
            category="Lebanese",
            prep_time=25,
            servings=3,
            ingredients=["Chicken thighs", "Garlic", "Lemon", "Thyme"],
        ),
        True,
    ),
    (
        "demo-cook-fatma",
        RecipeDraft(
            title="Grilled Fish",
            description="Fresh fish grilled with lemon and spices",
            price=8,
            category="Mediterranean",
            prep_time=20,
            servings=2,
            ingredients=["Sea bream", "Lemon", "Cumin"],
        ),
        False,
    ),
]


def seed_demo_data(store: KeyValueStore, clock: Callable[[], datetime] = now_utc) -> int:
    """Install the demo accounts and recipes. Safe to call twice; returns the number of records added."""
    directory = AccountDirectory(store, clock=clock)
    catalog = RecipeCatalog(store, clock=clock)
    added = 0

    for cook in DEMO_COOKS:
        if store.get(keys.user_key(cook["id"])) is None:
            directory.create_account(cook["email"], cook["name"], Role.COOK, cook["id"])
            directory.update_profile(cook["id"], {"specialties": cook["specialties"]})
            added += 1
    for customer in DEMO_CUSTOMERS:
        if store.get(keys.user_key(customer["id"])) is None:
            directory.create_account(customer["email"], customer["name"], Role.CUSTOMER, customer["id"])
            added += 1

    for cook_id, draft, available in DEMO_RECIPES:
        if any(recipe.title == draft.title for recipe in catalog.list_recipes_by_cook(cook_id)):
            continue
        cook = VerifiedIdentity(id=cook_id, role=Role.COOK)
        recipe = catalog.create_recipe(cook, draft)
        if not available:
            catalog.update_recipe(cook, recipe.id, {"available": False})
        added += 1

    logger.info("Demo data seeded: %d records added", added)
    return added
