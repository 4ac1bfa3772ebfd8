"""
The fetch, persist, render cycle.

GasPoller owns the long-lived database session and runs one cycle per call to
run_cycle(). Errors raised anywhere in the cycle are handled once, here, by the
configured error policy:

- "fail": log at CRITICAL, mark the poller as failed and call the fatal hook
  (the application uses it to stop the process).
- "skip": log the error and leave the next cycle to the scheduler.
"""
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import crud
from chart import ChartRenderer
from database import run_transaction
from exceptions import GasPollerError
from utils import get_gas_prices

logger = logging.getLogger(__name__)

CYCLE_JOB_ID = "gas-poller-cycle"


class GasPoller:
    def __init__(self,
                 db: Session,
                 url: str,
                 renderer: ChartRenderer,
                 api_key_name: str = "",
                 fetch_timeout: Optional[float] = None,
                 tx_max_retries: int = 5,
                 error_policy: str = "fail",
                 on_fatal: Optional[Callable[[], None]] = None,
                 clock=time.time,
                 fetch=get_gas_prices):
        self.db = db
        self.url = url
        self.renderer = renderer
        self.api_key_name = api_key_name
        self.fetch_timeout = fetch_timeout
        self.tx_max_retries = tx_max_retries
        self.error_policy = error_policy
        self.on_fatal = on_fatal
        self.failed = False
        self._clock = clock
        self._fetch = fetch
        self._lock = threading.Lock()

    def run_cycle(self) -> bool:
        """Run one cycle. Returns False when skipped or failed."""
        if self.failed:
            return False
        if not self._lock.acquire(blocking=False):
            logger.warning("Previous cycle still running, skipping this one")
            return False
        try:
            self._cycle()
            return True
        except Exception as e:
            try:
                self.db.rollback()
            except SQLAlchemyError as rollback_error:
                logger.error(f"Rollback after failed cycle also failed: {rollback_error}")
            self._handle_error(e)
            return False
        finally:
            self._lock.release()

    def _cycle(self):
        if self.api_key_name:
            # Looked up but not sent: the public endpoint needs no key
            crud.get_api_key(self.db, self.api_key_name)

        sample = self._fetch(self.url, timeout=self.fetch_timeout)

        ts = int(self._clock())
        persisted = run_transaction(self.db,
                                    lambda db: crud.create_sample(db, sample, ts),
                                    max_retries=self.tx_max_retries)
        logger.debug(f"Inserted sample ts={persisted.ts} fast={persisted.fast}")

        series = crud.get_fast_series(self.db)
        # End the read transaction so the next cycle sees fresh rows
        self.db.commit()
        self.renderer.draw(series)

    def _handle_error(self, error: Exception):
        # Tracebacks only for errors outside the known failure modes
        exc_info = not isinstance(error, (GasPollerError, SQLAlchemyError))
        if self.error_policy == "skip":
            logger.error(f"Cycle failed, skipping: {type(error).__name__}: {error}", exc_info=exc_info)
            return

        logger.critical(f"Cycle failed, shutting down: {type(error).__name__}: {error}", exc_info=exc_info)
        self.failed = True
        if self.on_fatal is not None:
            self.on_fatal()


def start_scheduler(poller: GasPoller, interval: float = 1.0) -> BackgroundScheduler:
    """
    Register the poller cycle as a single, non-overlapping interval job.
    """
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        poller.run_cycle,
        "interval",
        seconds=interval,
        id=CYCLE_JOB_ID,
        max_instances=1,
        coalesce=True,
        next_run_time=datetime.now(timezone.utc),
    )
    scheduler.start()
    logger.info(f"Scheduler started, polling every {interval}s")
    return scheduler

