# src/app/infra/kv/keys.py
"""Key layout of the marketplace records in the key-value store."""
from __future__ import annotations

USER_PREFIX = "user:"
RECIPE_PREFIX = "recipe:"
ORDER_PREFIX = "order:"
FANOUT_PREFIX = "fanout:"

# logical lock name, not a stored key
SIGNUP_LOCK = "lock:signup"


def user_key(user_id: str) -> str:
    return f"{USER_PREFIX}{user_id}"


def recipe_key(recipe_id: str) -> str:
    return f"{RECIPE_PREFIX}{recipe_id}"


def order_key(order_id: str) -> str:
    return f"{ORDER_PREFIX}{order_id}"


def fanout_key(order_id: str) -> str:
    return f"{FANOUT_PREFIX}{order_id}"


def cook_recipes_key(cook_id: str) -> str:
    return f"cook:{cook_id}:recipes"


def cook_orders_key(cook_id: str) -> str:
    return f"cook:{cook_id}:orders"


def cook_stats_key(cook_id: str) -> str:
    return f"cook:{cook_id}:stats"


def customer_orders_key(customer_id: str) -> str:
    return f"customer:{customer_id}:orders"


def orders_index_key(role: str, user_id: str) -> str:
    return f"{role}:{user_id}:orders"
