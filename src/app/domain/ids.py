# src/app/domain/ids.py
from __future__ import annotations

import secrets
from datetime import datetime


def new_id(kind: str, at: datetime) -> str:
    """Opaque id such as `order_1718000000000_9f2c41ab`: creation millis plus a random suffix."""
    millis = int(at.timestamp() * 1000)
    return f"{kind}_{millis}_{secrets.token_hex(4)}"
