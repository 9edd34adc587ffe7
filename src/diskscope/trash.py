"""Move-to-trash primitive used after a user deletes an item."""

import logging
from typing import Callable

from send2trash import send2trash

logger = logging.getLogger(__name__)

# (path) -> (success, error message)
TrashFunc = Callable[[str], tuple[bool, str | None]]


def move_to_trash(path: str) -> tuple[bool, str | None]:
    """
    Move a file or directory to the system trash / recycle bin.

    Returns:
        Tuple of (success, error_message)
    """
    try:
        send2trash(path)
    except OSError as e:
        logger.warning("Could not move %s to trash: %s", path, e)
        return False, str(e)
    return True, None
