"""
Polling loop that re-runs the sync on a fixed interval until stopped.
"""

import logging
import threading
from collections.abc import Callable

from outlook_google_sync.models import CalendarSyncError
from outlook_google_sync.models import SyncReport

logger = logging.getLogger(__name__)


class SyncScheduler:
    """Runs one sync pass at a time, sleeping ``interval`` seconds in between.

    ``stop()`` may be called from a signal handler or another thread; the loop
    exits at the next wait without interrupting a pass in progress.
    """

    def __init__(self, run_pass: Callable[[], SyncReport], interval: float = 60):
        self.run_pass = run_pass
        self.interval = interval
        self.stop_event = threading.Event()
        self.passes = 0

    def stop(self):
        self.stop_event.set()

    @property
    def stopped(self) -> bool:
        return self.stop_event.is_set()

    def run(self, max_passes: int | None = None):
        """Loop until stopped (or until ``max_passes`` passes have run)."""
        logger.info(f"Sync scheduler started (interval={self.interval}s)")
        while not self.stopped:
            logger.info("Running sync...")
            try:
                report = self.run_pass()
            except CalendarSyncError as e:
                # Bulk read failed; nothing was diffed this pass
                logger.error(f"Sync pass aborted: {e}")
            except Exception:
                logger.exception("Sync pass crashed; retrying at the next interval")
            else:
                if report.failed:
                    logger.warning(f"Sync pass finished with {report.failed} failed event(s)")
            self.passes += 1

            if max_passes is not None and self.passes >= max_passes:
                break

            logger.info(f"Waiting {self.interval} seconds to continue...")
            self.stop_event.wait(self.interval)

        logger.info("Sync scheduler stopped")
