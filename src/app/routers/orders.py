from __future__ import annotations

from fastapi import APIRouter, Depends

from src.app.deps import get_current_user, get_ledger
from src.app.domain.models import LineItem, Order, VerifiedIdentity
from src.app.schemas.orders import OrderCreate, OrderEnvelope, OrderResponse, StatusUpdate
from src.app.services.order_service import OrderLedger

router = APIRouter(prefix="/orders", tags=["orders"])


def order_response(order: Order) -> OrderResponse:
    return OrderResponse(**order.to_record())


@router.post("", response_model=OrderEnvelope)
def create_order(
    payload: OrderCreate,
    user: VerifiedIdentity = Depends(get_current_user),
    ledger: OrderLedger = Depends(get_ledger),
) -> OrderEnvelope:
    items = [LineItem(recipe_id=item.recipeId, quantity=item.quantity) for item in payload.items]
    order = ledger.create_order(user, items, payload.deliveryAddress)
    return OrderEnvelope(order=order_response(order))


@router.get("", response_model=list[OrderResponse])
def list_orders(
    user: VerifiedIdentity = Depends(get_current_user),
    ledger: OrderLedger = Depends(get_ledger),
) -> list[OrderResponse]:
    return [order_response(order) for order in ledger.list_orders(user)]


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    user: VerifiedIdentity = Depends(get_current_user),
    ledger: OrderLedger = Depends(get_ledger),
) -> OrderResponse:
    return order_response(ledger.get_order(user, order_id))


@router.put("/{order_id}/status", response_model=OrderEnvelope)
def update_order_status(
    order_id: str,
    payload: StatusUpdate,
    user: VerifiedIdentity = Depends(get_current_user),
    ledger: OrderLedger = Depends(get_ledger),
) -> OrderEnvelope:
    order = ledger.update_order_status(user, order_id, payload.status)
    return OrderEnvelope(order=order_response(order))
