# src/app/infra/kv/supabase_kv.py
from __future__ import annotations

import logging
from typing import Any, Optional

from supabase import Client, PostgrestAPIError

from src.app.config import settings
from src.app.domain.errors import StoreError
from src.app.infra.kv.base import KeyValueStore
from src.app.infra.supabase_client import get_supabase_client

logger = logging.getLogger(__name__)

_STORE_ERRORS = (PostgrestAPIError, ConnectionError, TimeoutError)


class SupabaseKVStore(KeyValueStore):
    """Key-value store on a two-column (`key` text, `value` jsonb) Supabase table."""

    def __init__(self, client: Client | None = None, table_name: str | None = None):
        super().__init__()
        self._client = client or get_supabase_client()
        self.table_name = table_name or settings.KV_TABLE
        logger.info("SupabaseKVStore initialized: table=%s", self.table_name)

    def get(self, key: str) -> Optional[Any]:
        try:
            result = (
                self._client.table(self.table_name)
                .select("value")
                .eq("key", key)
                .limit(1)
                .execute()
            )
        except _STORE_ERRORS as error:
            logger.error("KV get failed: key=%s error=%s", key, error)
            raise StoreError("get", key, str(error)) from error

        rows = result.data or []
        if not rows:
            return None
        return rows[0].get("value")

    def set(self, key: str, value: Any) -> None:
        try:
            self._client.table(self.table_name).upsert({"key": key, "value": value}).execute()
        except _STORE_ERRORS as error:
            logger.error("KV set failed: key=%s error=%s", key, error)
            raise StoreError("set", key, str(error)) from error

    def get_by_prefix(self, prefix: str) -> list[Any]:
        try:
            result = (
                self._client.table(self.table_name)
                .select("key, value")
                .like("key", f"{prefix}%")
                .execute()
            )
        except _STORE_ERRORS as error:
            logger.error("KV prefix scan failed: prefix=%s error=%s", prefix, error)
            raise StoreError("get_by_prefix", prefix, str(error)) from error

        return [row.get("value") for row in result.data or [] if row.get("value") is not None]

    def delete(self, key: str) -> None:
        try:
            self._client.table(self.table_name).delete().eq("key", key).execute()
        except _STORE_ERRORS as error:
            logger.error("KV delete failed: key=%s error=%s", key, error)
            raise StoreError("delete", key, str(error)) from error
