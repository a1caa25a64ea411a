from __future__ import annotations

from datetime import timedelta

import pytest

from src.app.domain.models import FanoutProgress, LineItem, RecipeDraft
from src.app.services.catalog_service import RecipeCatalog
from src.app.services.index_sweep import IndexSweeper
from src.app.services.order_service import OrderLedger


def _draft(title: str) -> RecipeDraft:
    return RecipeDraft(title=title, description="", price=5, category="Arabic", prep_time=10, servings=1)


@pytest.fixture
def catalog(store, clock) -> RecipeCatalog:
    return RecipeCatalog(store, clock=clock)


@pytest.fixture
def ledger(store, catalog, clock) -> OrderLedger:
    return OrderLedger(store, catalog, clock=clock, delivery_fee=1, delivery_minutes=45)


@pytest.fixture
def sweeper(store, ledger, clock) -> IndexSweeper:
    return IndexSweeper(store, ledger, clock=clock)


class TestIndexSweeper:
    def test_consistent_store_is_left_alone(self, sweeper, ledger, catalog, cook_a, customer) -> None:
        recipe = catalog.create_recipe(cook_a, _draft("Kebab"))
        ledger.create_order(customer, [LineItem(recipe.id, 1)], "X")

        report = sweeper.run()

        assert report.indices_rewritten == []
        assert report.fanouts_completed == []

    def test_lost_index_entries_are_restored(self, sweeper, ledger, catalog, store, cook_a, customer) -> None:
        recipe = catalog.create_recipe(cook_a, _draft("Kebab"))
        first = ledger.create_order(customer, [LineItem(recipe.id, 1)], "X")
        second = ledger.create_order(customer, [LineItem(recipe.id, 1)], "X")
        # a concurrent writer overwrote the lists
        store.set("customer:customer-c:orders", [second.id])
        store.set("cook:cook-a:orders", [])
        store.set("cook:cook-a:recipes", [])

        report = sweeper.run()

        assert store.get("customer:customer-c:orders") == [first.id, second.id]
        assert store.get("cook:cook-a:orders") == [first.id, second.id]
        assert store.get("cook:cook-a:recipes") == [recipe.id]
        assert len(report.indices_rewritten) == 3

    def test_stray_cook_entry_is_removed(self, sweeper, ledger, catalog, store, cook_a, cook_b, customer) -> None:
        recipe = catalog.create_recipe(cook_a, _draft("Kebab"))
        catalog.create_recipe(cook_b, _draft("Chicken"))
        ledger.create_order(customer, [LineItem(recipe.id, 1)], "X")
        other = ledger.create_order(customer, [LineItem(recipe.id, 2)], "X")
        store.append_unique("cook:cook-b:orders", other.id)

        report = sweeper.run()

        assert store.get("cook:cook-b:orders") == []
        assert store.get("cook:cook-a:orders")[-1] == other.id
        assert report.indices_rewritten == ["cook:cook-b:orders"]

    def test_interrupted_fanout_is_finished(self, sweeper, ledger, catalog, store, clock, cook_a, customer) -> None:
        recipe = catalog.create_recipe(cook_a, _draft("Kebab"))
        order = ledger.create_order(customer, [LineItem(recipe.id, 1)], "X")
        # rewind to "order written, nothing fanned out"
        old = clock.current - timedelta(hours=1)
        store.set(f"fanout:{order.id}", FanoutProgress(order_id=order.id, created_at=old).to_record())
        store.set("customer:customer-c:orders", [])
        store.set("cook:cook-a:orders", [])

        report = sweeper.run()

        assert report.fanouts_completed == [order.id]
        assert store.get("customer:customer-c:orders") == [order.id]
        assert store.get("cook:cook-a:orders") == [order.id]
        assert store.get(f"fanout:{order.id}") is None

    def test_stale_fanout_without_order_is_dropped(self, sweeper, store, clock) -> None:
        old = clock.current - timedelta(hours=1)
        store.set("fanout:order_1_gone", FanoutProgress(order_id="order_1_gone", created_at=old).to_record())
        store.set("fanout:order_2_new", FanoutProgress(order_id="order_2_new", created_at=clock.current).to_record())

        report = sweeper.run()

        assert report.stale_fanouts_removed == ["order_1_gone"]
        assert store.get("fanout:order_1_gone") is None
        # may still be in flight
        assert store.get("fanout:order_2_new") is not None

    def test_dangling_entries_are_dropped(self, sweeper, ledger, catalog, store, cook_a, customer) -> None:
        recipe = catalog.create_recipe(cook_a, _draft("Kebab"))
        order = ledger.create_order(customer, [LineItem(recipe.id, 1)], "X")
        store.append_unique("customer:customer-c:orders", "order_9_dangling")

        sweeper.run()

        assert store.get("customer:customer-c:orders") == [order.id]
