"""Data models for diskscope."""

import os
from enum import Enum
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field

SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_bytes(size_bytes: int) -> str:
    """Format bytes to a human-readable string (binary units, one decimal)."""
    value = float(size_bytes)
    i = 0
    while value > 1024 and i < len(SIZE_UNITS) - 1:
        value /= 1024
        i += 1
    return f"{value:.1f} {SIZE_UNITS[i]}"


def format_percent(part: int, total: int) -> str:
    """Format part/total as a percentage string."""
    if total <= 0 or part <= 0:
        return "0.0 %"
    return f"{part / total * 100:.1f} %"


class SortOption(str, Enum):
    """Ordering applied to siblings when presenting a tree."""

    SIZE_DESC = "size-desc"
    SIZE_ASC = "size-asc"
    NAME = "name"


class ScanState(str, Enum):
    """Lifecycle state of a scan session."""

    IDLE = "idle"
    SCANNING = "scanning"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SizeMode(str, Enum):
    """Which per-file size is aggregated."""

    ALLOCATED = "allocated"  # on-disk blocks
    APPARENT = "apparent"  # logical byte length


class DisplayItem(BaseModel):
    """Immutable snapshot of one node of a finished scan."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Absolute, normalized path")
    size: int = Field(0, description="Aggregated size in bytes")
    is_file: bool = Field(False, description="Whether this node is a regular file")
    children: tuple["DisplayItem", ...] = Field(
        default_factory=tuple, description="Ordered child items"
    )

    @property
    def name(self) -> str:
        """Last path segment (the path itself for a filesystem root)."""
        stripped = self.path.rstrip("/\\")
        if not stripped:
            return self.path
        tail = stripped.replace("\\", "/").rsplit("/", 1)[-1]
        return tail or self.path

    @property
    def size_human(self) -> str:
        """Human-readable size string."""
        return format_bytes(self.size)

    def percent_of(self, total: int) -> str:
        """Share of ``total`` taken by this item."""
        return format_percent(self.size, total)

    def walk(self) -> Iterator["DisplayItem"]:
        """Yield this item and every descendant, depth-first."""
        stack = [self]
        while stack:
            item = stack.pop()
            yield item
            stack.extend(reversed(item.children))

    def find(self, path: str) -> Optional["DisplayItem"]:
        """Return the item at ``path``, or None if it is not in this tree."""
        item = self
        while item.path != path:
            for child in item.children:
                if path == child.path or path.startswith(child.path.rstrip(os.sep) + os.sep):
                    item = child
                    break
            else:
                return None
        return item


class ScanProgress(BaseModel):
    """Point-in-time progress of a running scan."""

    model_config = ConfigDict(frozen=True)

    files_scanned: int = Field(0, description="Regular files aggregated so far")
    bytes_found: int = Field(0, description="Bytes aggregated so far")
    current_folder: str = Field("", description="Folder currently being processed")

    @property
    def bytes_human(self) -> str:
        return format_bytes(self.bytes_found)


class ScanResult(BaseModel):
    """Terminal artifact of one scan."""

    model_config = ConfigDict(frozen=True)

    root: Optional[DisplayItem] = Field(None, description="Root of the scanned tree")
    restricted: tuple[str, ...] = Field(
        default_factory=tuple, description="Top-level paths that could not be read"
    )
    cancelled: bool = Field(False, description="Whether the scan was cancelled early")
    elapsed_sec: float = Field(0.0, description="Wall-clock duration of the scan")

    @property
    def total_size(self) -> int:
        """Size of the whole scanned tree."""
        return self.root.size if self.root is not None else 0

    @property
    def top_items(self) -> tuple[DisplayItem, ...]:
        """Immediate children of the scan root."""
        return self.root.children if self.root is not None else ()


class TrashResult(BaseModel):
    """Result of moving a scanned item to the trash."""

    path: str = Field(..., description="Path that was trashed")
    bytes_freed: int = Field(0, description="Size removed from the tree")
    success: bool = Field(True, description="Whether the move succeeded")
    error: Optional[str] = Field(None, description="Error message if failed")
