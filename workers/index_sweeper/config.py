from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class SweepWorkerConfig:
    worker_id: str = os.getenv("WORKER_ID", f"sweeper-{os.getpid()}")
    interval_seconds: int = int(os.getenv("SWEEP_INTERVAL_SECONDS", "300"))
    # 0 keeps running until a shutdown signal
    max_runs: int = int(os.getenv("SWEEP_MAX_RUNS", "0"))
    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_key: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

    def validate(self) -> list[str]:
        errors: list[str] = []

        if not self.supabase_url:
            errors.append("SUPABASE_URL is required")

        if not self.supabase_key:
            errors.append("SUPABASE_SERVICE_ROLE_KEY is required")

        if self.interval_seconds <= 0:
            errors.append("SWEEP_INTERVAL_SECONDS must be positive")

        return errors


def get_config() -> SweepWorkerConfig:
    return SweepWorkerConfig()
