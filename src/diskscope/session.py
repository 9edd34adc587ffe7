"""Scan lifecycle: one active scan at a time, run on a background thread."""

import logging
import os
import threading
import time
from pathlib import Path
from typing import Callable

from diskscope.config import Settings
from diskscope.models import (
    DisplayItem,
    ScanProgress,
    ScanResult,
    ScanState,
    SortOption,
    TrashResult,
)
from diskscope.mutator import remove_path, trash_and_remove
from diskscope.parallel import ParallelWalker
from diskscope.progress import ProgressCallback, ProgressObserver, ProgressReporter
from diskscope.sorting import sort_tree
from diskscope.trash import TrashFunc, move_to_trash
from diskscope.tree import normalize_root
from diskscope.walker import Walker, WalkResult

logger = logging.getLogger(__name__)

FinishedCallback = Callable[[ScanResult], None]


class ScanSession:
    """
    Owns the lifecycle of scans: Idle -> Scanning -> Completed / Cancelled.

    Starting a scan while one is running is rejected. Cancelling flips the
    state immediately; the walker notices the cancel flag on its next entry
    and its partial tree is still published as the result.
    """

    def __init__(
        self,
        walker: Walker | None = None,
        parallel_walker: ParallelWalker | None = None,
        settings: Settings | None = None,
        on_progress: ProgressCallback | None = None,
        on_finished: FinishedCallback | None = None,
        trash: TrashFunc = move_to_trash,
    ):
        self.settings = settings or Settings()
        self.walker = walker or Walker.from_settings(self.settings)
        self.parallel_walker = parallel_walker or ParallelWalker(
            self.walker, max_workers=self.settings.max_workers
        )
        self.on_progress = on_progress
        self.on_finished = on_finished
        self.trash_func = trash

        self.reporter = ProgressReporter()
        self._lock = threading.RLock()
        self._state = ScanState.IDLE
        self._generation = 0
        self._cancel_event: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self._observer: ProgressObserver | None = None
        self._result: ScanResult | None = None
        self._sorted_cache: dict[SortOption, DisplayItem] = {}
        self.root: str | None = None

    # -- state --------------------------------------------------------------

    @property
    def state(self) -> ScanState:
        with self._lock:
            return self._state

    @property
    def is_scanning(self) -> bool:
        return self.state == ScanState.SCANNING

    @property
    def result(self) -> ScanResult | None:
        with self._lock:
            return self._result

    @property
    def progress(self) -> ScanProgress:
        return self.reporter.snapshot()

    @property
    def status(self) -> str:
        """One-line description of the session for status bars."""
        with self._lock:
            state = self._state
            result = self._result

        if state == ScanState.SCANNING:
            return "Scanning… This may take a while."
        if state == ScanState.CANCELLED:
            return "Scan cancelled."
        if state == ScanState.IDLE or result is None:
            return "Choose a folder or start a scan."
        if not result.top_items:
            return "Scan finished. No data found or no access."
        if result.restricted:
            return (
                f"Scan finished. Items found: {len(result.top_items)}. "
                "Some folders are not accessible."
            )
        return f"Scan finished. Items found: {len(result.top_items)}."

    # -- lifecycle ----------------------------------------------------------

    def start(self, root: str | Path, parallel: bool = False) -> bool:
        """
        Begin scanning ``root`` in the background.

        Returns:
            False if a scan is already running (the request is ignored)
        """
        with self._lock:
            if self._state == ScanState.SCANNING:
                logger.debug("Scan already running, ignoring start(%s)", root)
                return False

            if self._cancel_event is not None:
                self._cancel_event.set()

            self._generation += 1
            generation = self._generation
            cancel_event = threading.Event()
            self._cancel_event = cancel_event
            self.root = normalize_root(str(root))
            self._result = None
            self._sorted_cache = {}
            # Fresh reporter so a superseded walker cannot leak into the new totals
            self.reporter = ProgressReporter()
            self._state = ScanState.SCANNING

            strategy = self.parallel_walker if parallel else self.walker
            self._thread = threading.Thread(
                target=self._run,
                args=(strategy, self.root, cancel_event, self.reporter, generation),
                name="diskscope-scan",
                daemon=True,
            )
            if self.on_progress is not None:
                self._observer = ProgressObserver(
                    self.reporter,
                    self.on_progress,
                    interval=self.settings.observer_interval,
                    is_active=lambda: self.is_scanning,
                )
            else:
                self._observer = None

        logger.info("Scanning %s%s", self.root, " (parallel)" if parallel else "")
        self._thread.start()
        if self._observer is not None:
            self._observer.start()
        return True

    def scan_home(self) -> bool:
        return self.start(Path.home())

    def scan_filesystem_root(self) -> bool:
        root = os.path.abspath(os.sep)
        return self.start(root, parallel=self.settings.parallel_root_scan)

    def cancel(self) -> None:
        """Stop the running scan; its partial tree becomes the result."""
        with self._lock:
            if self._state != ScanState.SCANNING:
                return
            if self._cancel_event is not None:
                self._cancel_event.set()
            self._state = ScanState.CANCELLED
            self._stop_observer()
        logger.info("Scan of %s cancelled", self.root)

    def wait(self, timeout: float | None = None) -> bool:
        """
        Block until the background scan thread exits.

        Returns:
            True if no scan thread is running any more
        """
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def _stop_observer(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer = None

    def _run(
        self,
        strategy: Walker | ParallelWalker,
        root: str,
        cancel_event: threading.Event,
        reporter: ProgressReporter,
        generation: int,
    ) -> None:
        started = time.monotonic()
        try:
            walk = strategy.scan(root, cancel_event, reporter)
        except Exception:
            logger.exception("Scan of %s failed", root)
            walk = None
        self._finish(walk, cancel_event, generation, time.monotonic() - started)

    def _finish(
        self,
        walk: WalkResult | None,
        cancel_event: threading.Event,
        generation: int,
        elapsed: float,
    ) -> None:
        root_item = walk.tree.freeze() if walk is not None else None
        result = ScanResult(
            root=root_item,
            restricted=tuple(sorted(walk.restricted)) if walk is not None else (),
            cancelled=cancel_event.is_set() or (walk is not None and walk.cancelled),
            elapsed_sec=elapsed,
        )

        with self._lock:
            if generation != self._generation:
                logger.debug("Dropping result of superseded scan of %s", self.root)
                return
            self._result = result
            self._sorted_cache = {}
            if self._state == ScanState.SCANNING:
                self._state = ScanState.CANCELLED if result.cancelled else ScanState.COMPLETED
            self._stop_observer()
            self.reporter.reset()

        logger.info(
            "Scan of %s finished in %.1fs: %d bytes, %d restricted",
            self.root,
            elapsed,
            result.total_size,
            len(result.restricted),
        )
        if self.on_finished is not None:
            try:
                self.on_finished(result)
            except Exception:
                logger.exception("Finished callback failed")

    # -- results ------------------------------------------------------------

    def sorted_tree(self, option: SortOption | None = None) -> DisplayItem | None:
        """Current result tree ordered by ``option`` (cached per option)."""
        option = option or self.settings.default_sort
        with self._lock:
            if self._result is None or self._result.root is None:
                return None
            cached = self._sorted_cache.get(option)
            if cached is None:
                cached = sort_tree(self._result.root, option)
                self._sorted_cache[option] = cached
            return cached

    def trash(self, path: str | Path) -> TrashResult:
        """
        Move ``path`` to the trash and remove it from the current result.

        Only paths inside the scanned root are accepted. The stored result
        only changes when the trash call succeeds and no newer scan has
        started in the meantime.
        """
        target = normalize_root(str(path))
        with self._lock:
            if self._state == ScanState.SCANNING:
                return TrashResult(
                    path=target, success=False, error="A scan is in progress."
                )
            result = self._result
            if result is None or result.root is None:
                return TrashResult(path=target, success=False, error="No scan result.")
            prefix = self.root if self.root.endswith(os.sep) else self.root + os.sep
            if target != self.root and not target.startswith(prefix):
                return TrashResult(
                    path=target, success=False, error="Not inside the scanned folder."
                )
            generation = self._generation

        new_root, outcome = trash_and_remove(result.root, target, trash=self.trash_func)
        if not outcome.success:
            return outcome

        with self._lock:
            if generation != self._generation or self._result is None:
                logger.debug("Not storing trash of %s: a newer scan replaced the result", target)
            else:
                if self._result is not result and self._result.root is not None:
                    # Another trash landed first; apply this one on top of it.
                    new_root = remove_path(self._result.root, target)
                self._result = self._result.model_copy(update={"root": new_root})
                self._sorted_cache = {}
        return outcome
