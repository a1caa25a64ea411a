# src/app/services/index_sweep.py
"""
Index reconciliation sweep.

The derived lists (`cook:{id}:recipes`, `customer:{id}:orders`,
`cook:{id}:orders`) are rebuilt from the primary recipe and order records.
Interrupted order fan-outs are finished first so their counters and stats
are not applied twice.

Run on a schedule by `workers/index_sweeper` (every SWEEP_INTERVAL_SECONDS),
or once by hand with `scripts/rebuild_indices.py`.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from src.app.domain.models import Order, Recipe, now_utc
from src.app.infra.kv import keys
from src.app.infra.kv.base import KeyValueStore
from src.app.services.order_service import OrderLedger, cook_subtotals

logger = logging.getLogger(__name__)

# younger fan-out records may belong to a create_order call still in progress
STALE_FANOUT_AFTER = timedelta(minutes=5)


@dataclass
class SweepReport:
    fanouts_completed: list[str] = field(default_factory=list)
    stale_fanouts_removed: list[str] = field(default_factory=list)
    indices_rewritten: list[str] = field(default_factory=list)


def _created_key(entity: Order | Recipe) -> tuple[str, str]:
    return (entity.created_at.isoformat() if entity.created_at else "", entity.id)


class IndexSweeper:

    def __init__(
        self,
        store: KeyValueStore,
        ledger: Optional[OrderLedger] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._store = store
        self._ledger = ledger or OrderLedger(store, clock=clock)
        self._clock = clock

    def run(self) -> SweepReport:
        report = SweepReport()
        self._finish_fanouts(report)

        recipes = [Recipe.from_record(r) for r in self._store.get_by_prefix(keys.RECIPE_PREFIX) if r]
        orders = [Order.from_record(r) for r in self._store.get_by_prefix(keys.ORDER_PREFIX) if r]
        recipes_by_id = {recipe.id: recipe for recipe in recipes}

        cook_recipes: dict[str, list[Recipe]] = defaultdict(list)
        for recipe in recipes:
            cook_recipes[recipe.cook_id].append(recipe)

        customer_orders: dict[str, list[Order]] = defaultdict(list)
        cook_orders: dict[str, list[Order]] = defaultdict(list)
        for order in orders:
            customer_orders[order.customer_id].append(order)
            for cook_id in cook_subtotals(order.items, recipes_by_id):
                cook_orders[cook_id].append(order)

        known_recipes = set(recipes_by_id)
        known_orders = {order.id for order in orders}
        for cook_id, owned in cook_recipes.items():
            self._rewrite(keys.cook_recipes_key(cook_id), owned, known_recipes, keys.recipe_key, report)
        for customer_id, placed in customer_orders.items():
            self._rewrite(keys.customer_orders_key(customer_id), placed, known_orders, keys.order_key, report)
        # every cook with a recipe, so entries pointing at orders they have no part in get dropped
        for cook_id in set(cook_recipes) | set(cook_orders):
            self._rewrite(keys.cook_orders_key(cook_id), cook_orders.get(cook_id, []), known_orders, keys.order_key, report)

        logger.info(
            "Index sweep done: fanouts_completed=%d stale_removed=%d rewritten=%d",
            len(report.fanouts_completed),
            len(report.stale_fanouts_removed),
            len(report.indices_rewritten),
        )
        return report

    def _finish_fanouts(self, report: SweepReport) -> None:
        now = self._clock()
        for progress in self._ledger.pending_fanouts():
            if progress.created_at is not None and now - progress.created_at <= STALE_FANOUT_AFTER:
                continue
            if self._ledger.find_order(progress.order_id) is None:
                self._store.delete(keys.fanout_key(progress.order_id))
                report.stale_fanouts_removed.append(progress.order_id)
                continue
            if self._ledger.complete_fanout(progress.order_id):
                report.fanouts_completed.append(progress.order_id)

    def _rewrite(
        self,
        index_key: str,
        entities: list[Any],
        scanned_ids: set[str],
        record_key: Callable[[str], str],
        report: SweepReport,
    ) -> None:
        expected = [entity.id for entity in sorted(entities, key=_created_key)]

        def _merge(current: list[str]) -> list[str]:
            merged = list(expected)
            for entity_id in current:
                # written after our scan: keep it if the record is there now
                if entity_id not in scanned_ids and entity_id not in merged:
                    if self._store.get(record_key(entity_id)) is not None:
                        merged.append(entity_id)
            return merged

        before = self._store.get(index_key)
        after = self._store.update(index_key, _merge, default=[])
        if (before or []) != after:
            report.indices_rewritten.append(index_key)
            logger.info("Index rewritten: key=%s before=%d after=%d", index_key, len(before or []), len(after))
