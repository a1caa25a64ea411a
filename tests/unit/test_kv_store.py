from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from src.app.domain.errors import NotFoundError, StoreError
from src.app.infra.kv.memory import InMemoryKVStore
from src.app.infra.kv.supabase_kv import SupabaseKVStore


class TestInMemoryKVStore:
    def test_get_missing_key_returns_none(self, store: InMemoryKVStore) -> None:
        assert store.get("user:nobody") is None

    def test_set_then_get(self, store: InMemoryKVStore) -> None:
        store.set("user:1", {"id": "1", "name": "Fatma"})

        assert store.get("user:1") == {"id": "1", "name": "Fatma"}

    def test_values_are_copies(self, store: InMemoryKVStore) -> None:
        value = {"ids": ["a"]}
        store.set("k", value)
        value["ids"].append("b")
        fetched = store.get("k")
        fetched["ids"].append("c")

        assert store.get("k") == {"ids": ["a"]}

    def test_get_by_prefix_only_matches_prefix(self, store: InMemoryKVStore) -> None:
        store.set("recipe:1", {"id": "1"})
        store.set("recipe:2", {"id": "2"})
        store.set("cook:1:recipes", ["1", "2"])

        values = store.get_by_prefix("recipe:")

        assert sorted(v["id"] for v in values) == ["1", "2"]

    def test_non_json_value_is_rejected(self, store: InMemoryKVStore) -> None:
        with pytest.raises(StoreError) as exc_info:
            store.set("bad", {"when": object()})

        assert exc_info.value.operation == "set"
        assert store.get("bad") is None

    def test_delete_and_clear(self, store: InMemoryKVStore) -> None:
        store.set("a", 1)
        store.set("b", 2)
        store.delete("a")
        store.delete("missing")

        assert store.keys() == ["b"]
        store.clear()
        assert store.keys() == []


class TestUpdate:
    def test_update_uses_default_when_absent(self, store: InMemoryKVStore) -> None:
        result = store.update("counter", lambda value: value + 1, default=0)

        assert result == 1
        assert store.get("counter") == 1

    def test_failing_mutation_writes_nothing(self, store: InMemoryKVStore) -> None:
        def _fail(value):
            raise NotFoundError("Recipe", "r1")

        with pytest.raises(NotFoundError):
            store.update("recipe:r1", _fail)

        assert store.get("recipe:r1") is None

    def test_append_unique_ignores_duplicates(self, store: InMemoryKVStore) -> None:
        store.append_unique("cook:1:orders", "o1")
        store.append_unique("cook:1:orders", "o2")
        store.append_unique("cook:1:orders", "o1")

        assert store.get("cook:1:orders") == ["o1", "o2"]

    def test_concurrent_appends_do_not_lose_updates(self, store: InMemoryKVStore) -> None:
        def _worker(start: int) -> None:
            for n in range(start, start + 50):
                store.append_unique("cook:1:orders", f"o{n}")

        threads = [threading.Thread(target=_worker, args=(i * 50,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store.get("cook:1:orders")) == 400

    def test_lock_is_reentrant(self, store: InMemoryKVStore) -> None:
        with store.lock("lock:signup"):
            with store.lock("lock:signup"):
                store.set("x", 1)

        assert store.get("x") == 1


class TestSupabaseKVStore:
    def _store(self) -> tuple[SupabaseKVStore, MagicMock]:
        client = MagicMock()
        return SupabaseKVStore(client=client, table_name="kv_store_test"), client

    def test_get_reads_value_column(self) -> None:
        store, client = self._store()
        table = client.table.return_value
        table.select.return_value.eq.return_value.limit.return_value.execute.return_value = MagicMock(
            data=[{"value": {"id": "1"}}]
        )

        assert store.get("user:1") == {"id": "1"}
        client.table.assert_called_with("kv_store_test")
        table.select.assert_called_with("value")
        table.select.return_value.eq.assert_called_with("key", "user:1")

    def test_get_missing_returns_none(self) -> None:
        store, client = self._store()
        table = client.table.return_value
        table.select.return_value.eq.return_value.limit.return_value.execute.return_value = MagicMock(data=[])

        assert store.get("user:2") is None

    def test_set_upserts_key_and_value(self) -> None:
        store, client = self._store()

        store.set("order:1", {"id": "1"})

        client.table.return_value.upsert.assert_called_with({"key": "order:1", "value": {"id": "1"}})

    def test_prefix_scan_uses_like(self) -> None:
        store, client = self._store()
        table = client.table.return_value
        table.select.return_value.like.return_value.execute.return_value = MagicMock(
            data=[{"key": "recipe:1", "value": {"id": "1"}}, {"key": "recipe:2", "value": None}]
        )

        assert store.get_by_prefix("recipe:") == [{"id": "1"}]
        table.select.return_value.like.assert_called_with("key", "recipe:%")

    def test_network_error_becomes_store_error(self) -> None:
        store, client = self._store()
        client.table.return_value.upsert.return_value.execute.side_effect = ConnectionError("refused")

        with pytest.raises(StoreError) as exc_info:
            store.set("order:1", {})

        assert exc_info.value.key == "order:1"
        assert "refused" in exc_info.value.reason
