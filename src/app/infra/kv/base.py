# src/app/infra/kv/base.py
"""
Abstract key-value store used for every marketplace record.

The backing stores offer get / set / prefix-scan only: no transactions and
no compare-and-swap. Read-modify-write sequences on shared keys (index
lists, counters, stats) must go through `update`, which serialises writers
of the same key inside this process.
"""
from __future__ import annotations

import copy
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional


class KeyedLocks:
    """One re-entrant lock per key, created on demand."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.RLock())
        with lock:
            yield


class KeyValueStore(ABC):
    """
    Implementations:
    - SupabaseKVStore: the `kv_store` table in Supabase Postgres
    - InMemoryKVStore: process-local dict, for tests and local development
    """

    def __init__(self) -> None:
        self._locks = KeyedLocks()

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored JSON value, or None when the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """
        Store a JSON-serialisable value under `key`.

        Raises:
            StoreError: if the write did not succeed
        """
        pass

    @abstractmethod
    def get_by_prefix(self, prefix: str) -> list[Any]:
        """Return the values of every key starting with `prefix`, in no particular order."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @contextmanager
    def lock(self, key: str) -> Iterator[None]:
        """Hold the writer lock for `key` (or any logical name) across several calls."""
        with self._locks.hold(key):
            yield

    def update(self, key: str, mutate: Callable[[Any], Any], default: Any = None) -> Any:
        """
        Read `key`, apply `mutate` to the current value (or a copy of
        `default` when absent), write the result back and return it.
        Writers of the same key run one at a time.
        """
        with self._locks.hold(key):
            current = self.get(key)
            if current is None:
                current = copy.deepcopy(default)
            updated = mutate(current)
            self.set(key, updated)
            return updated

    def append_unique(self, key: str, item: str) -> list[str]:
        """Append `item` to the list stored at `key` unless already present."""

        def _append(items: list[str]) -> list[str]:
            if item not in items:
                items.append(item)
            return items

        return self.update(key, _append, default=[])
