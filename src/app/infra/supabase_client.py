# src/app/infra/supabase_client.py
from __future__ import annotations

from supabase import Client, create_client

from src.app.config import settings

_client: Client | None = None


def get_supabase_client() -> Client:
    """Process-wide Supabase client built from settings, created on first use."""
    global _client
    if _client is None:
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY required")
        _client = create_client(str(settings.SUPABASE_URL), settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client
