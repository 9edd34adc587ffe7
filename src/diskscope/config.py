"""User configuration for diskscope."""

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from diskscope.models import SizeMode, SortOption

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(os.path.expanduser("~/.diskscope"))
CONFIG_FILE = CONFIG_DIR / "config.json"


class Settings(BaseModel):
    """Tunable scan and presentation settings."""

    size_mode: SizeMode = Field(SizeMode.ALLOCATED, description="Size aggregated per file")
    skip_hidden: bool = Field(False, description="Ignore entries whose name starts with '.'")
    skip_packages: bool = Field(True, description="Treat bundle directories as single entries")
    parallel_root_scan: bool = Field(
        True, description="Use the parallel walker when scanning the filesystem root"
    )
    max_workers: int = Field(4, ge=1, le=4, description="Concurrent sub-walkers")
    progress_every_files: int = Field(500, ge=1, description="Flush progress every N files")
    progress_interval: float = Field(0.5, gt=0, description="Flush progress every N seconds")
    observer_interval: float = Field(0.1, gt=0, description="Progress polling interval")
    yield_every: int = Field(50, ge=1, description="Yield the GIL every N entries")
    confirm_delete: bool = Field(True, description="Ask before moving items to the trash")
    default_sort: SortOption = Field(SortOption.SIZE_DESC, description="Initial sort order")


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from disk, falling back to defaults."""
    config_file = path or CONFIG_FILE
    if not config_file.exists():
        return Settings()

    try:
        with open(config_file) as f:
            return Settings.model_validate(json.load(f))
    except (json.JSONDecodeError, OSError, ValidationError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_file, e)
        return Settings()


def save_settings(settings: Settings, path: Path | None = None) -> bool:
    """Save settings to disk."""
    config_file = path or CONFIG_FILE
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, "w") as f:
            json.dump(settings.model_dump(mode="json"), f, indent=2)
        return True
    except OSError:
        return False
