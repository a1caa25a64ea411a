from __future__ import annotations

import pytest

from src.app.domain.errors import ForbiddenError, NotFoundError, ValidationError
from src.app.domain.models import RecipeDraft, Role
from src.app.infra.kv.memory import InMemoryKVStore
from src.app.services.account_service import AccountDirectory
from src.app.services.catalog_service import RecipeCatalog


def _draft(**overrides) -> RecipeDraft:
    fields = dict(
        title="Grilled Kebab",
        description="Fresh grilled kebab with authentic Arabic spices",
        price=5,
        category="Arabic",
        prep_time=30,
        servings=4,
        ingredients=["Lamb", " ", "Onion"],
    )
    fields.update(overrides)
    return RecipeDraft(**fields)


@pytest.fixture
def catalog(store: InMemoryKVStore, clock) -> RecipeCatalog:
    return RecipeCatalog(store, clock=clock)


class TestCreateRecipe:
    def test_customer_is_forbidden(self, catalog, customer, store) -> None:
        with pytest.raises(ForbiddenError):
            catalog.create_recipe(customer, _draft())

        assert store.get_by_prefix("recipe:") == []

    def test_cook_creates_recipe_with_defaults(self, catalog, cook_a, store) -> None:
        recipe = catalog.create_recipe(cook_a, _draft())

        assert recipe.id.startswith("recipe_")
        assert recipe.cook_id == "cook-a"
        assert recipe.cook_name == "Fatma"
        assert recipe.available is True
        assert recipe.rating == 5.0
        assert recipe.total_orders == 0
        assert recipe.ingredients == ["Lamb", "Onion"]
        assert store.get("cook:cook-a:recipes") == [recipe.id]

    def test_retrievable_by_listing_and_by_cook(self, catalog, cook_a) -> None:
        recipe = catalog.create_recipe(cook_a, _draft())

        assert [r.id for r in catalog.list_recipes()] == [recipe.id]
        assert [r.id for r in catalog.list_recipes_by_cook("cook-a")] == [recipe.id]
        assert catalog.get_recipe(recipe.id).title == "Grilled Kebab"

    def test_cook_name_comes_from_profile(self, catalog, cook_a, store) -> None:
        AccountDirectory(store).create_account("f@b.co", "Fatma Hassan", Role.COOK, "cook-a")

        assert catalog.create_recipe(cook_a, _draft()).cook_name == "Fatma Hassan"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"title": " "},
            {"price": -1},
            {"price": float("inf")},
            {"price": float("nan")},
            {"prep_time": 0},
            {"servings": 0},
            {"category": ""},
        ],
    )
    def test_invalid_fields(self, catalog, cook_a, overrides) -> None:
        with pytest.raises(ValidationError):
            catalog.create_recipe(cook_a, _draft(**overrides))


class TestListRecipes:
    @pytest.fixture(autouse=True)
    def _recipes(self, catalog, cook_a, cook_b) -> None:
        catalog.create_recipe(cook_a, _draft())
        catalog.create_recipe(cook_b, _draft(title="Grilled Chicken", description="Herbs", category="Lebanese"))
        catalog.create_recipe(cook_b, _draft(title="Fattoush", description="Bread salad", category="Lebanese"))

    def test_category_is_exact_match(self, catalog) -> None:
        assert {r.title for r in catalog.list_recipes(category="Lebanese")} == {"Grilled Chicken", "Fattoush"}
        assert catalog.list_recipes(category="lebanese") == []

    def test_all_category_means_no_filter(self, catalog) -> None:
        assert len(catalog.list_recipes(category="All")) == 3

    def test_search_matches_title_description_or_cook(self, catalog) -> None:
        assert {r.title for r in catalog.list_recipes(search="GRILLED")} == {"Grilled Kebab", "Grilled Chicken"}
        assert {r.title for r in catalog.list_recipes(search="salad")} == {"Fattoush"}
        assert {r.title for r in catalog.list_recipes(search="layla")} == {"Grilled Chicken", "Fattoush"}

    def test_filters_combine(self, catalog) -> None:
        assert [r.title for r in catalog.list_recipes(category="Lebanese", search="grilled")] == ["Grilled Chicken"]

    def test_newest_first(self, catalog) -> None:
        assert [r.title for r in catalog.list_recipes()] == ["Fattoush", "Grilled Chicken", "Grilled Kebab"]

    def test_by_cook_only_returns_owned(self, catalog) -> None:
        assert {r.title for r in catalog.list_recipes_by_cook("cook-b")} == {"Grilled Chicken", "Fattoush"}
        assert catalog.list_recipes_by_cook("nobody") == []


class TestUpdateRecipe:
    def test_owner_can_disable(self, catalog, cook_a) -> None:
        recipe = catalog.create_recipe(cook_a, _draft())

        updated = catalog.update_recipe(cook_a, recipe.id, {"available": False, "price": 6.5})

        assert updated.available is False
        assert updated.price == 6.5
        assert updated.updated_at > recipe.updated_at
        assert updated.created_at == recipe.created_at
        assert catalog.get_recipe(recipe.id).available is False

    def test_other_cook_is_forbidden(self, catalog, cook_a, cook_b) -> None:
        recipe = catalog.create_recipe(cook_a, _draft())

        with pytest.raises(ForbiddenError):
            catalog.update_recipe(cook_b, recipe.id, {"title": "Mine now"})

        assert catalog.get_recipe(recipe.id).title == "Grilled Kebab"

    def test_customer_is_forbidden(self, catalog, cook_a, customer) -> None:
        recipe = catalog.create_recipe(cook_a, _draft())

        with pytest.raises(ForbiddenError):
            catalog.update_recipe(customer, recipe.id, {"available": False})

    def test_unknown_recipe(self, catalog, cook_a) -> None:
        with pytest.raises(NotFoundError):
            catalog.update_recipe(cook_a, "recipe_0_missing", {"available": False})

    def test_non_finite_price_is_rejected(self, catalog, cook_a) -> None:
        recipe = catalog.create_recipe(cook_a, _draft())

        with pytest.raises(ValidationError):
            catalog.update_recipe(cook_a, recipe.id, {"price": float("inf")})

        assert catalog.get_recipe(recipe.id).price == 5

    def test_counter_and_identity_fields_are_not_editable(self, catalog, cook_a) -> None:
        recipe = catalog.create_recipe(cook_a, _draft())

        updated = catalog.update_recipe(cook_a, recipe.id, {"totalOrders": 99, "cookId": "x", "rating": 1})

        assert updated.total_orders == 0
        assert updated.cook_id == "cook-a"
        assert updated.rating == 5.0


class TestRecordOrder:
    def test_counter_only_goes_up(self, catalog, cook_a) -> None:
        recipe = catalog.create_recipe(cook_a, _draft())

        catalog.record_order(recipe.id)
        catalog.record_order(recipe.id)

        assert catalog.get_recipe(recipe.id).total_orders == 2

    def test_missing_recipe(self, catalog, store) -> None:
        with pytest.raises(NotFoundError):
            catalog.record_order("recipe_0_missing")

        assert store.get("recipe:recipe_0_missing") is None
