from __future__ import annotations

import logging
import signal
import sys
import time
from pathlib import Path
from typing import Callable

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from src.app.domain.errors import StoreError
from src.app.infra.kv.supabase_kv import SupabaseKVStore
from src.app.services.index_sweep import IndexSweeper, SweepReport
from workers.index_sweeper.config import SweepWorkerConfig, get_config

logger = logging.getLogger("index-sweeper")


class IndexSweepWorker:
    """Runs the index sweep every `interval_seconds` until stopped."""

    def __init__(
        self,
        config: SweepWorkerConfig,
        sweeper: IndexSweeper,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.sweeper = sweeper
        self._sleep = sleep
        self.running = False
        self.runs = 0
        self.failed_runs = 0
        self.last_report: SweepReport | None = None

    def start(self) -> None:
        self._setup_signal_handlers()
        logger.info(
            "Starting index sweeper: id=%s, interval=%ds",
            self.config.worker_id,
            self.config.interval_seconds,
        )
        self.running = True
        self._run_main_loop()
        logger.info("Sweeper shutting down: runs=%d failed=%d", self.runs, self.failed_runs)

    def run_once(self) -> SweepReport | None:
        self.runs += 1
        try:
            self.last_report = self.sweeper.run()
        except StoreError as exc:
            # next run retries from the primary records
            self.failed_runs += 1
            logger.error("Index sweep failed: %s", exc)
            return None
        return self.last_report

    def _run_main_loop(self) -> None:
        while self.running:
            self.run_once()
            if self._reached_max_runs():
                break
            self._sleep(float(self.config.interval_seconds))

    def _reached_max_runs(self) -> bool:
        if self.config.max_runs <= 0:
            return False
        if self.runs >= self.config.max_runs:
            logger.info("Reached max runs (%d), shutting down", self.config.max_runs)
            return True
        return False

    def _setup_signal_handlers(self) -> None:
        signal.signal(signal.SIGTERM, self._handle_shutdown_signal)
        signal.signal(signal.SIGINT, self._handle_shutdown_signal)

    def _handle_shutdown_signal(self, signum: int, frame: object) -> None:
        logger.info("Received shutdown signal %d", signum)
        self.running = False


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    config = get_config()
    errors = config.validate()
    if errors:
        raise ValueError(", ".join(errors))
    worker = IndexSweepWorker(config=config, sweeper=IndexSweeper(SupabaseKVStore()))
    worker.start()


if __name__ == "__main__":
    main()
