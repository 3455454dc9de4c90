"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scheduler.py
Background hashing worker: one owned thread per catalog that computes
SIZE, QUICK and FULL strictly in that order without blocking the caller.
"""

import logging
import threading
from typing import Callable, Optional

from dupefinder.core.errors import ConcurrentStartRejected
from dupefinder.core.models import HashTier

logger = logging.getLogger(__name__)


class BackgroundHashScheduler:
    """
    Runs the catalog's tier computation on a dedicated thread.

    The worker repeats the SIZE -> QUICK -> FULL sequence until every tier is
    complete, so files discovered while it runs are hashed too. Cancellation is
    cooperative: `stop()` is checked between files, tiers and read chunks, and a
    partially read file is never cached.
    """

    THREAD_NAME = "ProcessHashing"

    def __init__(
        self,
        catalog,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ):
        self.catalog = catalog
        self.progress_callback = progress_callback
        self.error: Optional[BaseException] = None
        # Set by the catalog once FULL is complete and the worker is exiting
        self.idle = False
        self._thread: Optional[threading.Thread] = None
        self._stopped = threading.Event()
        self._lock = threading.Lock()

    def start(self) -> None:
        """
        Launch the worker thread and return immediately.

        Raises:
            ConcurrentStartRejected: the worker is already running.
        """
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                raise ConcurrentStartRejected("Background hashing is already running")
            self._stopped.clear()
            self.error = None
            self.idle = False
            self._thread = threading.Thread(target=self.run, name=self.THREAD_NAME, daemon=True)
            self._thread.start()

    def stop(self) -> None:
        """Sets the stopped flag to signal the worker to terminate gracefully."""
        self._stopped.set()

    def is_stopped(self) -> bool:
        """Returns True if the worker has been requested to stop."""
        return self._stopped.is_set()

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker to exit. Returns True if it is no longer running."""
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return not self.is_running
        thread.join(timeout)
        return not thread.is_alive()

    def safe_progress_emit(self, stage: str, current: int, total=None) -> None:
        """Forwards progress unless stopped; callback errors are logged, not raised."""
        if self.progress_callback is None or self.is_stopped():
            return
        try:
            self.progress_callback(stage, current, total)
        except Exception:
            logger.exception("Error in hashing progress callback")

    def run(self) -> None:
        """Main execution method. Runs on the worker thread."""
        logger.info("Start background hashing")
        try:
            while not self.is_stopped():
                for tier in HashTier.get_all():
                    if self.is_stopped():
                        break
                    if not self.catalog.compute_tier(
                        tier,
                        stopped_flag=self.is_stopped,
                        progress_callback=self.safe_progress_emit
                    ):
                        break

                if self.catalog.mark_worker_idle(self):
                    break
        except Exception as e:
            self.error = e
            logger.exception("Background hashing failed")
            return

        if self.is_stopped():
            logger.info("Background hashing cancelled")
        else:
            logger.info("Background hashing finished")
