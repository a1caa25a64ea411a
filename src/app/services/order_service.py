# src/app/services/order_service.py
"""
Order ledger.

Creates orders, fans each new order out to the customer's and the cooks'
order indices, and moves orders through the status state machine.

Fan-out steps are recorded in a `fanout:{order_id}` progress record as they
complete, so an interrupted fan-out can be finished later by
`complete_fanout` without appending or counting twice.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional

from src.app.config import settings
from src.app.domain.errors import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    PartialOrderError,
    StoreError,
    ValidationError,
)
from src.app.domain.ids import new_id
from src.app.domain.models import (
    CookStats,
    FanoutProgress,
    LineItem,
    Order,
    OrderStatus,
    Recipe,
    Role,
    VerifiedIdentity,
    now_utc,
    to_money,
)
from src.app.infra.kv import keys
from src.app.infra.kv.base import KeyValueStore
from src.app.services.catalog_service import RecipeCatalog

logger = logging.getLogger(__name__)

DEFAULT_CUSTOMER_NAME = "Customer"


def order_total(items: Iterable[LineItem], recipes: dict[str, Recipe], delivery_fee: float) -> float:
    """Sum of price x quantity over resolvable items, plus the delivery fee."""
    total = Decimal("0")
    for item in items:
        recipe = recipes.get(item.recipe_id)
        if recipe is None:
            continue
        total += to_money(recipe.price) * item.quantity
    return float(to_money(total + to_money(delivery_fee)))


def cook_subtotals(items: Iterable[LineItem], recipes: dict[str, Recipe]) -> dict[str, Decimal]:
    """Per-cook share of the order, in first-seen cook order."""
    subtotals: dict[str, Decimal] = {}
    for item in items:
        recipe = recipes.get(item.recipe_id)
        if recipe is None:
            continue
        subtotals.setdefault(recipe.cook_id, Decimal("0"))
        subtotals[recipe.cook_id] += to_money(recipe.price) * item.quantity
    return subtotals


class OrderLedger:

    def __init__(
        self,
        store: KeyValueStore,
        catalog: Optional[RecipeCatalog] = None,
        clock: Callable[[], datetime] = now_utc,
        delivery_fee: float = settings.DELIVERY_FEE,
        delivery_minutes: int = settings.ESTIMATED_DELIVERY_MINUTES,
    ):
        self._store = store
        self._catalog = catalog or RecipeCatalog(store, clock=clock)
        self._clock = clock
        self.delivery_fee = delivery_fee
        self.delivery_minutes = delivery_minutes

    def create_order(
        self,
        caller: VerifiedIdentity,
        items: list[LineItem],
        delivery_address: str,
    ) -> Order:
        """
        Persist a new pending order and index it for the customer and every cook involved.

        Line items whose recipe cannot be found are kept on the order but
        contribute nothing to the total and reach no cook.

        Raises:
            ValidationError: empty order, bad quantity, missing address or unavailable recipe
            StoreError: the order record itself could not be written
            PartialOrderError: the order was written but its fan-out did not finish
        """
        if not items:
            raise ValidationError("An order needs at least one item")
        for item in items:
            if not item.recipe_id:
                raise ValidationError("Every item needs a recipeId")
            if item.quantity < 1:
                raise ValidationError("Item quantity must be at least 1")
        address = (delivery_address or "").strip()
        if not address:
            raise ValidationError("Delivery address is required")

        recipes = self._resolve_recipes(items)
        for recipe in recipes.values():
            if not recipe.available:
                raise ValidationError(f"Recipe is not available: {recipe.title}")
        missing = sorted({item.recipe_id for item in items} - set(recipes))
        if missing:
            logger.warning("Order by %s references unknown recipes, skipped in total: %s", caller.id, missing)

        now = self._clock()
        order = Order(
            id=new_id("order", now),
            customer_id=caller.id,
            customer_name=self._customer_name(caller),
            items=[LineItem(recipe_id=item.recipe_id, quantity=item.quantity) for item in items],
            total=order_total(items, recipes, self.delivery_fee),
            delivery_address=address,
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now,
            estimated_delivery=now + timedelta(minutes=self.delivery_minutes),
        )

        # progress first: a crash after the order write still leaves a trail for the sweep
        progress = FanoutProgress(order_id=order.id, created_at=now)
        self._store.set(keys.fanout_key(order.id), progress.to_record())
        self._store.set(keys.order_key(order.id), order.to_record())
        logger.info("Order created: id=%s customer=%s total=%.2f", order.id, caller.id, order.total)

        try:
            self._run_fanout(order, recipes, progress)
        except StoreError as error:
            logger.error("Order fan-out interrupted: id=%s error=%s", order.id, error)
            raise PartialOrderError(order.id, str(error)) from error
        return order

    def complete_fanout(self, order_id: str) -> bool:
        """
        Finish the fan-out of an order whose creation was interrupted.
        Returns True when work was done, False when nothing was pending.
        """
        record = self._store.get(keys.fanout_key(order_id))
        if not record:
            return False
        progress = FanoutProgress.from_record(record)
        if progress.complete:
            self._store.delete(keys.fanout_key(order_id))
            return False
        order = self.find_order(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        self._run_fanout(order, self._resolve_recipes(order.items), progress)
        logger.info("Order fan-out completed on replay: id=%s", order_id)
        return True

    def pending_fanouts(self) -> list[FanoutProgress]:
        return [
            FanoutProgress.from_record(record)
            for record in self._store.get_by_prefix(keys.FANOUT_PREFIX)
            if record
        ]

    def list_orders(self, caller: VerifiedIdentity) -> list[Order]:
        """Orders in the caller's index, newest first. Ids that no longer resolve are skipped."""
        order_ids = self._store.get(keys.orders_index_key(caller.role.value, caller.id)) or []
        orders = []
        for order_id in order_ids:
            order = self.find_order(order_id)
            if order is not None:
                orders.append(order)
        orders.sort(key=lambda order: (order.created_at.isoformat() if order.created_at else "", order.id), reverse=True)
        return orders

    def find_order(self, order_id: str) -> Optional[Order]:
        record = self._store.get(keys.order_key(order_id))
        return Order.from_record(record) if record else None

    def get_order(self, caller: VerifiedIdentity, order_id: str) -> Order:
        order = self.find_order(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        if order.customer_id == caller.id:
            return order
        if caller.role == Role.COOK and caller.id in self.cooks_for(order):
            return order
        raise ForbiddenError("This order belongs to someone else")

    def cooks_for(self, order: Order) -> list[str]:
        """Distinct cooks owning a recipe referenced by the order."""
        return list(cook_subtotals(order.items, self._resolve_recipes(order.items)))

    def update_order_status(self, caller: VerifiedIdentity, order_id: str, new_status: str) -> Order:
        """
        Move an order one step along the lifecycle.

        Raises:
            ForbiddenError: caller is not a cook, or owns no recipe in the order
            ValidationError: unknown status value
            NotFoundError: no such order
            InvalidTransitionError: the status is not a legal next state
        """
        if caller.role != Role.COOK:
            raise ForbiddenError("Only cooks can update order status")
        try:
            target = OrderStatus(new_status)
        except ValueError as exc:
            raise ValidationError(f"Unknown order status: {new_status}") from exc

        order = self.find_order(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        if caller.id not in self.cooks_for(order):
            raise ForbiddenError("Only a cook with a recipe in this order can update it")

        def _transition(record: Optional[dict[str, Any]]) -> dict[str, Any]:
            if not record:
                raise NotFoundError("Order", order_id)
            current = Order.from_record(record)
            if not current.status.can_transition_to(target):
                raise InvalidTransitionError(current.status.value, target.value)
            current.status = target
            current.updated_at = self._clock()
            return current.to_record()

        updated = Order.from_record(self._store.update(keys.order_key(order_id), _transition))
        logger.info("Order %s moved to %s by cook %s", order_id, target.value, caller.id)
        return updated

    def _run_fanout(self, order: Order, recipes: dict[str, Recipe], progress: FanoutProgress) -> None:
        fanout_key = keys.fanout_key(order.id)
        subtotals = cook_subtotals(order.items, recipes)

        if not progress.customer_indexed:
            self._store.append_unique(keys.customer_orders_key(order.customer_id), order.id)
            progress.customer_indexed = True
            self._store.set(fanout_key, progress.to_record())

        for cook_id in subtotals:
            if cook_id in progress.cooks_indexed:
                continue
            self._store.append_unique(keys.cook_orders_key(cook_id), order.id)
            progress.cooks_indexed.append(cook_id)
            self._store.set(fanout_key, progress.to_record())

        for recipe_id in dict.fromkeys(item.recipe_id for item in order.items if item.recipe_id in recipes):
            if recipe_id in progress.recipes_counted:
                continue
            self._catalog.record_order(recipe_id)
            progress.recipes_counted.append(recipe_id)
            self._store.set(fanout_key, progress.to_record())

        for cook_id, subtotal in subtotals.items():
            if cook_id in progress.cooks_credited:
                continue
            self._credit_cook(cook_id, subtotal)
            progress.cooks_credited.append(cook_id)
            self._store.set(fanout_key, progress.to_record())

        progress.complete = True
        self._store.delete(fanout_key)

    def _credit_cook(self, cook_id: str, subtotal: Decimal) -> None:
        def _add(record: Optional[dict[str, Any]]) -> dict[str, Any]:
            stats = CookStats.from_record(record)
            stats.total_orders += 1
            stats.total_sales = float(to_money(to_money(stats.total_sales) + subtotal))
            return stats.to_record()

        self._store.update(keys.cook_stats_key(cook_id), _add, default={})

    def _resolve_recipes(self, items: Iterable[LineItem]) -> dict[str, Recipe]:
        resolved: dict[str, Recipe] = {}
        for item in items:
            if item.recipe_id in resolved:
                continue
            recipe = self._catalog.find_recipe(item.recipe_id)
            if recipe is not None:
                resolved[item.recipe_id] = recipe
        return resolved

    def _customer_name(self, caller: VerifiedIdentity) -> str:
        record = self._store.get(keys.user_key(caller.id))
        if record and record.get("name"):
            return str(record["name"])
        return caller.name or DEFAULT_CUSTOMER_NAME
