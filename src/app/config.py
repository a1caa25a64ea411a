from __future__ import annotations

from typing import Literal, Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: Optional[AnyUrl] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    KV_TABLE: str = "kv_store_d3e0b508"
    KV_BACKEND: Literal["supabase", "memory"] = "supabase"
    APP_ENV: str = "local"
    SEED_DEMO_DATA: bool = False

    DELIVERY_FEE: float = 1.0
    ESTIMATED_DELIVERY_MINUTES: int = 45
    FEATURED_COOKS_LIMIT: int = 6

    FRONTEND_CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() in ("prod", "production")


settings = Settings()
