# src/app/domain/models.py
"""
Domain models for the marketplace: accounts, recipes and orders.
These are pure data structures with no infrastructure dependencies.
Each record knows how to convert itself to and from the JSON value
stored in the key-value store.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Optional

CENTS = Decimal("0.01")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None

    try:
        normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def format_datetime(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def to_money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


class Role(str, Enum):
    CUSTOMER = "customer"
    COOK = "cook"


class OrderStatus(str, Enum):
    """Order lifecycle. Forward only, cancellation only while pending."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERING = "delivering"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def allowed_next(self) -> frozenset["OrderStatus"]:
        return _TRANSITIONS[self]

    @property
    def is_final(self) -> bool:
        return not _TRANSITIONS[self]

    def can_transition_to(self, target: "OrderStatus") -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.ACCEPTED, OrderStatus.CANCELLED}),
    OrderStatus.ACCEPTED: frozenset({OrderStatus.PREPARING}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERING}),
    OrderStatus.DELIVERING: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


@dataclass
class AccountProfile:
    phone: str = ""
    address: str = ""
    avatar: str = ""
    # cook-only
    rating: Optional[float] = None
    specialties: Optional[list[str]] = None

    def to_record(self) -> dict[str, Any]:
        return {
            "phone": self.phone,
            "address": self.address,
            "avatar": self.avatar,
            "rating": self.rating,
            "specialties": list(self.specialties) if self.specialties is not None else None,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any] | None) -> "AccountProfile":
        record = record or {}
        specialties = record.get("specialties")
        rating = record.get("rating")
        return cls(
            phone=str(record.get("phone") or ""),
            address=str(record.get("address") or ""),
            avatar=str(record.get("avatar") or ""),
            rating=float(rating) if rating is not None else None,
            specialties=list(specialties) if isinstance(specialties, list) else None,
        )


@dataclass
class Account:
    """A customer or cook profile, keyed by the identity provider's user id."""
    id: str
    email: str
    name: str
    role: Role
    profile: AccountProfile = field(default_factory=AccountProfile)
    created_at: Optional[datetime] = None

    @property
    def is_cook(self) -> bool:
        return self.role == Role.COOK

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "userType": self.role.value,
            "profile": self.profile.to_record(),
            "created_at": format_datetime(self.created_at),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Account":
        return cls(
            id=str(record["id"]),
            email=str(record.get("email") or ""),
            name=str(record.get("name") or ""),
            role=Role(str(record.get("userType") or Role.CUSTOMER.value)),
            profile=AccountProfile.from_record(record.get("profile")),
            created_at=parse_datetime(record.get("created_at")),
        )


@dataclass
class CookStats:
    total_sales: float = 0.0
    total_orders: int = 0
    rating: float = 5.0
    review_count: int = 0

    def to_record(self) -> dict[str, Any]:
        return {
            "totalSales": self.total_sales,
            "totalOrders": self.total_orders,
            "rating": self.rating,
            "reviewCount": self.review_count,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any] | None) -> "CookStats":
        record = record or {}
        return cls(
            total_sales=float(record.get("totalSales") or 0),
            total_orders=int(record.get("totalOrders") or 0),
            rating=float(record.get("rating") if record.get("rating") is not None else 5.0),
            review_count=int(record.get("reviewCount") or 0),
        )


@dataclass
class Recipe:
    """A dish published by a cook. `cook_name` is a snapshot taken at creation."""
    id: str
    cook_id: str
    cook_name: str
    title: str
    description: str
    price: float
    category: str
    prep_time: int
    servings: int
    ingredients: list[str] = field(default_factory=list)
    instructions: list[str] = field(default_factory=list)
    image: str = ""
    available: bool = True
    rating: float = 5.0
    total_orders: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "prepTime": self.prep_time,
            "servings": self.servings,
            "ingredients": list(self.ingredients),
            "instructions": list(self.instructions),
            "image": self.image,
            "cookId": self.cook_id,
            "cookName": self.cook_name,
            "rating": self.rating,
            "totalOrders": self.total_orders,
            "available": self.available,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Recipe":
        return cls(
            id=str(record["id"]),
            cook_id=str(record.get("cookId") or ""),
            cook_name=str(record.get("cookName") or ""),
            title=str(record.get("title") or ""),
            description=str(record.get("description") or ""),
            price=float(record.get("price") or 0),
            category=str(record.get("category") or ""),
            prep_time=int(record.get("prepTime") or 0),
            servings=int(record.get("servings") or 0),
            ingredients=list(record.get("ingredients") or []),
            instructions=list(record.get("instructions") or []),
            image=str(record.get("image") or ""),
            available=bool(record.get("available", True)),
            rating=float(record.get("rating") if record.get("rating") is not None else 5.0),
            total_orders=int(record.get("totalOrders") or 0),
            created_at=parse_datetime(record.get("created_at")),
            updated_at=parse_datetime(record.get("updated_at")),
        )


@dataclass
class RecipeDraft:
    """Cook-supplied recipe fields, before id, snapshots and counters are assigned."""
    title: str
    description: str
    price: float
    category: str
    prep_time: int
    servings: int
    ingredients: list[str] = field(default_factory=list)
    instructions: list[str] = field(default_factory=list)
    image: str = ""


@dataclass
class LineItem:
    recipe_id: str
    quantity: int

    def to_record(self) -> dict[str, Any]:
        return {"recipeId": self.recipe_id, "quantity": self.quantity}

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "LineItem":
        return cls(recipe_id=str(record.get("recipeId") or ""), quantity=int(record.get("quantity") or 0))


@dataclass
class Order:
    """
    A customer order. Once created only `status` and `updated_at` change.
    The cooks involved are not stored here; they are derived from the
    line items' recipes and recorded in the cook order indices.
    """
    id: str
    customer_id: str
    customer_name: str
    items: list[LineItem]
    total: float
    delivery_address: str
    status: OrderStatus = OrderStatus.PENDING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    estimated_delivery: Optional[datetime] = None

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "customerId": self.customer_id,
            "customerName": self.customer_name,
            "items": [item.to_record() for item in self.items],
            "total": self.total,
            "deliveryAddress": self.delivery_address,
            "status": self.status.value,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
            "estimatedDelivery": format_datetime(self.estimated_delivery),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Order":
        return cls(
            id=str(record["id"]),
            customer_id=str(record.get("customerId") or ""),
            customer_name=str(record.get("customerName") or ""),
            items=[LineItem.from_record(item) for item in record.get("items") or []],
            total=float(record.get("total") or 0),
            delivery_address=str(record.get("deliveryAddress") or ""),
            status=OrderStatus(str(record.get("status") or OrderStatus.PENDING.value)),
            created_at=parse_datetime(record.get("created_at")),
            updated_at=parse_datetime(record.get("updated_at")),
            estimated_delivery=parse_datetime(record.get("estimatedDelivery")),
        )


@dataclass
class FanoutProgress:
    """
    Bookkeeping for the index/counter updates that follow an order write.
    Every completed step is recorded so the fan-out can be replayed safely.
    """
    order_id: str
    customer_indexed: bool = False
    cooks_indexed: list[str] = field(default_factory=list)
    recipes_counted: list[str] = field(default_factory=list)
    cooks_credited: list[str] = field(default_factory=list)
    complete: bool = False
    created_at: Optional[datetime] = None

    def to_record(self) -> dict[str, Any]:
        return {
            "orderId": self.order_id,
            "created_at": format_datetime(self.created_at),
            "customerIndexed": self.customer_indexed,
            "cooksIndexed": list(self.cooks_indexed),
            "recipesCounted": list(self.recipes_counted),
            "cooksCredited": list(self.cooks_credited),
            "complete": self.complete,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "FanoutProgress":
        return cls(
            order_id=str(record["orderId"]),
            customer_indexed=bool(record.get("customerIndexed")),
            cooks_indexed=list(record.get("cooksIndexed") or []),
            recipes_counted=list(record.get("recipesCounted") or []),
            cooks_credited=list(record.get("cooksCredited") or []),
            complete=bool(record.get("complete")),
            created_at=parse_datetime(record.get("created_at")),
        )


@dataclass
class VerifiedIdentity:
    """What the identity provider tells us about a bearer credential."""
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: Role = Role.CUSTOMER
