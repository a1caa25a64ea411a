# src/app/schemas/orders.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class OrderItemIn(BaseModel):
    recipeId: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class OrderCreate(BaseModel):
    items: list[OrderItemIn] = Field(..., min_length=1)
    deliveryAddress: str = Field(..., min_length=1, max_length=300)


class StatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)


class OrderItemOut(BaseModel):
    recipeId: str
    quantity: int


class OrderResponse(BaseModel):
    id: str
    customerId: str
    customerName: str
    items: list[OrderItemOut]
    total: float
    deliveryAddress: str
    status: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    estimatedDelivery: Optional[str] = None


class OrderEnvelope(BaseModel):
    success: bool = True
    order: OrderResponse
