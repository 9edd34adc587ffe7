"""Concurrent scan strategy that fans out over the root's top-level folders."""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed

from diskscope.progress import ProgressReporter
from diskscope.tree import PathTree, normalize_root, top_level_bucket
from diskscope.walker import Walker, WalkResult

logger = logging.getLogger(__name__)

MAX_WORKERS = 4


class ParallelWalker:
    """
    Scan each top-level directory of the root with its own Walker.

    Directories are processed in groups of ``max_workers``; each sub-walker
    owns its subtree and the results are merged by value once the whole group
    has finished. The frozen root lists its children largest first. Files and
    packages sitting directly in the root are counted in-line. If the
    root cannot be listed the plain Walker is used instead.
    """

    def __init__(self, walker: Walker | None = None, max_workers: int = MAX_WORKERS):
        self.walker = walker or Walker()
        self.max_workers = max(1, min(max_workers, MAX_WORKERS))

    def _list_root(
        self,
        root_path: str,
        bucket: str,
        result: WalkResult,
        cancel_event: threading.Event | None,
        reporter: ProgressReporter | None,
    ):
        directories: list[str] = []
        files = 0
        found = 0
        with os.scandir(root_path) as entries:
            for entry in entries:
                if cancel_event is not None and cancel_event.is_set():
                    result.cancelled = True
                    break
                try:
                    if entry.is_symlink() or self.walker.is_hidden(entry.name):
                        continue
                    if entry.is_dir(follow_symlinks=False):
                        if self.walker.is_package(entry.name):
                            size, count = self.walker.package_size(
                                entry.path, result.restricted, bucket, cancel_event
                            )
                            if size > 0 and result.tree.add_file(entry.path, size, is_file=False):
                                files += count
                                found += size
                        else:
                            directories.append(entry.path)
                    elif entry.is_file(follow_symlinks=False):
                        size = self.walker.size_of(entry.stat(follow_symlinks=False))
                        if size > 0 and result.tree.add_file(entry.path, size):
                            files += 1
                            found += size
                except FileNotFoundError:
                    continue
                except OSError as e:
                    result.restricted.add(top_level_bucket(entry.path, bucket))
                    logger.debug("No access to %s: %s", entry.path, e)

        result.files += files
        if reporter is not None and files:
            reporter.advance(files, found, root_path)
        return directories

    def scan(
        self,
        root: str,
        cancel_event: threading.Event | None = None,
        reporter: ProgressReporter | None = None,
        bucket_root: str | None = None,
    ) -> WalkResult:
        """
        Scan ``root`` concurrently.

        Same contract as Walker.scan; cancellation reaches every sub-walker of
        the running group and no further group is started.
        """
        root_path = normalize_root(root)
        bucket = normalize_root(bucket_root) if bucket_root else root_path
        result = WalkResult(tree=PathTree(root_path, largest_first=True))

        try:
            directories = self._list_root(root_path, bucket, result, cancel_event, reporter)
        except OSError as e:
            logger.info("Cannot list %s (%s), falling back to a single walker", root_path, e)
            return self.walker.scan(root_path, cancel_event, reporter, bucket_root)

        groups = 0
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for start in range(0, len(directories), self.max_workers):
                if cancel_event is not None and cancel_event.is_set():
                    result.cancelled = True
                    break

                group = directories[start : start + self.max_workers]
                future_to_dir = {
                    executor.submit(
                        self.walker.scan, path, cancel_event, reporter, bucket
                    ): path
                    for path in group
                }

                finished: list[WalkResult] = []
                for future in as_completed(future_to_dir):
                    path = future_to_dir[future]
                    try:
                        finished.append(future.result())
                    except Exception:
                        logger.exception("Sub-scan of %s failed", path)
                        result.restricted.add(top_level_bucket(path, bucket))

                self._merge(result, finished)
                groups += 1
                if any(sub.cancelled for sub in finished):
                    result.cancelled = True
                    break

        if cancel_event is not None and cancel_event.is_set():
            result.cancelled = True

        logger.debug(
            "Parallel walk of %s: %d directories in %d groups, %d bytes",
            root_path,
            len(directories),
            groups,
            result.tree.size,
        )
        return result

    @staticmethod
    def _merge(result: WalkResult, finished: list[WalkResult]) -> None:
        """Fold a completed group into the overall result, largest first."""
        for sub in sorted(finished, key=lambda s: s.tree.size, reverse=True):
            # A plain walk never creates nodes for directories with no data
            if sub.tree.size > 0:
                result.tree.attach(sub.tree.root)
            result.restricted |= sub.restricted
            result.files += sub.files
