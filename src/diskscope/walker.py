"""Directory walker that builds a PathTree of allocated sizes.

Uses os.scandir with an explicit stack instead of recursion, so deep trees
do not hit the interpreter's recursion limit.
"""

import logging
import os
import sys
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from diskscope.config import Settings
from diskscope.models import SizeMode
from diskscope.progress import ProgressReporter
from diskscope.tree import PathTree, normalize_root, top_level_bucket

logger = logging.getLogger(__name__)

# Bundle directories shown as a single entry (macOS packages)
MACOS_PACKAGE_SUFFIXES = frozenset(
    {
        ".app",
        ".bundle",
        ".framework",
        ".kext",
        ".plugin",
        ".photoslibrary",
        ".musiclibrary",
        ".xcodeproj",
        ".xcworkspace",
        ".rtfd",
        ".pages",
        ".numbers",
        ".key",
    }
)

DEFAULT_PACKAGE_SUFFIXES = MACOS_PACKAGE_SUFFIXES if sys.platform == "darwin" else frozenset()

SizeFunc = Callable[[os.stat_result], int]


def allocated_size(st: os.stat_result) -> int:
    """On-disk size of a file (falls back to st_size without st_blocks)."""
    blocks = getattr(st, "st_blocks", None)
    if blocks is None:
        return st.st_size
    return blocks * 512


def apparent_size(st: os.stat_result) -> int:
    """Logical byte length of a file."""
    return st.st_size


@dataclass
class WalkResult:
    """Outcome of one walk: the tree plus the paths that could not be read."""

    tree: PathTree
    restricted: set[str] = field(default_factory=set)
    cancelled: bool = False
    files: int = 0


class Walker:
    """Full enumeration of one directory subtree."""

    def __init__(
        self,
        size_mode: SizeMode = SizeMode.ALLOCATED,
        skip_hidden: bool = False,
        package_suffixes: frozenset[str] | None = None,
        progress_every_files: int = 500,
        progress_interval: float = 0.5,
        yield_every: int = 50,
        size_of: SizeFunc | None = None,
    ):
        self.size_mode = size_mode
        self.skip_hidden = skip_hidden
        self.package_suffixes = (
            DEFAULT_PACKAGE_SUFFIXES if package_suffixes is None else package_suffixes
        )
        self.progress_every_files = progress_every_files
        self.progress_interval = progress_interval
        self.yield_every = yield_every
        if size_of is None:
            size_of = apparent_size if size_mode == SizeMode.APPARENT else allocated_size
        self.size_of = size_of

    @classmethod
    def from_settings(cls, settings: Settings) -> "Walker":
        return cls(
            size_mode=settings.size_mode,
            skip_hidden=settings.skip_hidden,
            package_suffixes=None if settings.skip_packages else frozenset(),
            progress_every_files=settings.progress_every_files,
            progress_interval=settings.progress_interval,
            yield_every=settings.yield_every,
        )

    def is_hidden(self, name: str) -> bool:
        return self.skip_hidden and name.startswith(".")

    def is_package(self, name: str) -> bool:
        if not self.package_suffixes:
            return False
        return os.path.splitext(name)[1].lower() in self.package_suffixes

    def package_size(
        self,
        path: str,
        restricted: set[str],
        bucket_root: str,
        cancel_event: threading.Event | None = None,
    ) -> tuple[int, int]:
        """
        Total size of a package directory without expanding it in the tree.

        Returns:
            Tuple of (total_bytes, file_count)
        """
        total = 0
        count = 0
        stack = [path]
        while stack:
            if cancel_event is not None and cancel_event.is_set():
                break
            current = stack.pop()
            try:
                with os.scandir(current) as entries:
                    for entry in entries:
                        try:
                            if entry.is_dir(follow_symlinks=False):
                                stack.append(entry.path)
                            elif entry.is_file(follow_symlinks=False):
                                size = self.size_of(entry.stat(follow_symlinks=False))
                                if size > 0:
                                    total += size
                                    count += 1
                        except FileNotFoundError:
                            continue
                        except OSError:
                            restricted.add(top_level_bucket(entry.path, bucket_root))
            except OSError as e:
                restricted.add(top_level_bucket(current, bucket_root))
                logger.debug("No access to %s: %s", current, e)
        return total, count

    def scan(
        self,
        root: str,
        cancel_event: threading.Event | None = None,
        reporter: ProgressReporter | None = None,
        bucket_root: str | None = None,
    ) -> WalkResult:
        """
        Walk ``root`` and aggregate every regular file into a PathTree.

        Permission and I/O errors never abort the walk: the affected path's
        top-level bucket is recorded and the walk moves on. When
        ``cancel_event`` is set the walk stops after the current entry and
        returns the partial tree.

        Args:
            root: Directory to scan
            cancel_event: Optional event checked after every entry
            reporter: Optional progress sink, fed in throttled batches
            bucket_root: Root used to group restricted paths (defaults to root)

        Returns:
            WalkResult with the tree and the restricted top-level paths
        """
        root_path = normalize_root(root)
        bucket_base = normalize_root(bucket_root) if bucket_root else root_path
        result = WalkResult(tree=PathTree(root_path))
        tree = result.tree
        restricted = result.restricted

        pending_files = 0
        pending_bytes = 0
        last_flush = time.monotonic()
        processed = 0
        folder = root_path

        def flush() -> None:
            nonlocal pending_files, pending_bytes, last_flush
            if reporter is not None:
                reporter.advance(pending_files, pending_bytes, folder)
            pending_files = 0
            pending_bytes = 0
            last_flush = time.monotonic()

        def cancelled() -> bool:
            return cancel_event is not None and cancel_event.is_set()

        stack = [root_path]
        while stack:
            if cancelled():
                result.cancelled = True
                break
            folder = stack.pop()
            try:
                with os.scandir(folder) as entries:
                    for entry in entries:
                        try:
                            if entry.is_symlink() or self.is_hidden(entry.name):
                                pass
                            elif entry.is_dir(follow_symlinks=False):
                                if self.is_package(entry.name):
                                    size, count = self.package_size(
                                        entry.path, restricted, bucket_base, cancel_event
                                    )
                                    if size > 0 and tree.add_file(entry.path, size, is_file=False):
                                        result.files += count
                                        pending_files += count
                                        pending_bytes += size
                                else:
                                    stack.append(entry.path)
                            elif entry.is_file(follow_symlinks=False):
                                size = self.size_of(entry.stat(follow_symlinks=False))
                                if size > 0 and tree.add_file(entry.path, size):
                                    result.files += 1
                                    pending_files += 1
                                    pending_bytes += size
                        except FileNotFoundError:
                            pass
                        except OSError as e:
                            restricted.add(top_level_bucket(entry.path, bucket_base))
                            logger.debug("No access to %s: %s", entry.path, e)

                        processed += 1
                        if processed % self.yield_every == 0:
                            time.sleep(0)
                        if pending_files and (
                            pending_files >= self.progress_every_files
                            or time.monotonic() - last_flush >= self.progress_interval
                        ):
                            flush()
                        if cancelled():
                            result.cancelled = True
                            break
            except OSError as e:
                restricted.add(top_level_bucket(folder, bucket_base))
                logger.debug("No access to %s: %s", folder, e)

            if result.cancelled:
                break

        flush()
        logger.debug(
            "Walked %s: %d files, %d bytes, %d restricted%s",
            root_path,
            result.files,
            tree.size,
            len(restricted),
            " (cancelled)" if result.cancelled else "",
        )
        return result
