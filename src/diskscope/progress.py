"""Thread-safe scan progress reporting."""

import logging
import threading
from typing import Callable

from diskscope.models import ScanProgress

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ScanProgress], None]


class ProgressReporter:
    """
    Progress shared between walkers and an observer.

    Walkers push deltas with advance(); readers take whole snapshots.
    Both sides go through one lock, so a reader never sees a half-applied
    update.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._files = 0
        self._bytes = 0
        self._folder = ""

    def advance(self, files: int, bytes_found: int, current_folder: str | None = None) -> None:
        """Add a batch of aggregated files to the running totals."""
        with self._lock:
            self._files += files
            self._bytes += bytes_found
            if current_folder is not None:
                self._folder = current_folder

    def snapshot(self) -> ScanProgress:
        with self._lock:
            return ScanProgress(
                files_scanned=self._files,
                bytes_found=self._bytes,
                current_folder=self._folder,
            )

    def reset(self) -> None:
        """Zero all counters."""
        with self._lock:
            self._files = 0
            self._bytes = 0
            self._folder = ""


class ProgressObserver(threading.Thread):
    """Polls a reporter on a fixed interval until stopped."""

    def __init__(
        self,
        reporter: ProgressReporter,
        callback: ProgressCallback,
        interval: float = 0.1,
        is_active: Callable[[], bool] | None = None,
    ):
        super().__init__(name="diskscope-progress", daemon=True)
        self.reporter = reporter
        self.callback = callback
        self.interval = interval
        self.is_active = is_active
        self._stop_event = threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    def run(self) -> None:
        while not self._stop_event.wait(self.interval):
            if self.is_active is not None and not self.is_active():
                break
            try:
                self.callback(self.reporter.snapshot())
            except Exception:
                logger.exception("Progress callback failed")
