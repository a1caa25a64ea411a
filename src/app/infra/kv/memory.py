# src/app/infra/kv/memory.py
from __future__ import annotations

import json
import logging
import threading
from typing import Any, Optional

from src.app.domain.errors import StoreError
from src.app.infra.kv.base import KeyValueStore

logger = logging.getLogger(__name__)


class InMemoryKVStore(KeyValueStore):
    """Dict-backed store. Values are copied through JSON so callers never share state with it."""

    def __init__(self) -> None:
        super().__init__()
        self._data: dict[str, str] = {}
        self._mutex = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._mutex:
            raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as error:
            raise StoreError("set", key, str(error)) from error
        with self._mutex:
            self._data[key] = raw

    def get_by_prefix(self, prefix: str) -> list[Any]:
        with self._mutex:
            raws = [raw for key, raw in self._data.items() if key.startswith(prefix)]
        return [json.loads(raw) for raw in raws]

    def delete(self, key: str) -> None:
        with self._mutex:
            self._data.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        with self._mutex:
            return [key for key in self._data if key.startswith(prefix)]

    def clear(self) -> None:
        with self._mutex:
            self._data.clear()
        logger.info("In-memory store cleared")
