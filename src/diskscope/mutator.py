"""In-place tree surgery after an item has been deleted.

Removing a node subtracts its size from every ancestor, so the tree stays
consistent without rescanning the disk.
"""

import os

from diskscope.models import DisplayItem, TrashResult
from diskscope.trash import TrashFunc, move_to_trash


def _contains(item: DisplayItem, target: str) -> bool:
    if item.path == target:
        return True
    prefix = item.path if item.path.endswith(os.sep) else item.path + os.sep
    return target.startswith(prefix)


def _remove(item: DisplayItem, target: str) -> tuple[DisplayItem | None, int]:
    if item.path == target:
        return None, item.size

    for index, child in enumerate(item.children):
        if not _contains(child, target):
            continue
        new_child, removed = _remove(child, target)
        if not removed and new_child is child:
            continue
        if new_child is None:
            children = item.children[:index] + item.children[index + 1 :]
        else:
            children = item.children[:index] + (new_child,) + item.children[index + 1 :]
        return item.model_copy(update={"children": children, "size": item.size - removed}), removed

    return item, 0


def remove_path(tree: DisplayItem, target: str) -> DisplayItem | None:
    """
    Return a copy of ``tree`` without the node at ``target``.

    Every ancestor of the removed node shrinks by the node's size. Returns
    None when ``target`` is the tree's own root, and ``tree`` itself when no
    node matches.
    """
    new_tree, _ = _remove(tree, target)
    return new_tree


def trash_and_remove(
    tree: DisplayItem,
    target: str,
    trash: TrashFunc = move_to_trash,
) -> tuple[DisplayItem | None, TrashResult]:
    """
    Move ``target`` to the trash and drop it from the tree.

    Targets outside the tree are refused without touching the disk. If the
    trash call fails the original tree is returned untouched along with the
    underlying error message.
    """
    if not _contains(tree, target):
        return tree, TrashResult(
            path=target, success=False, error="Not inside the scanned folder."
        )

    success, error = trash(target)
    if not success:
        return tree, TrashResult(path=target, bytes_freed=0, success=False, error=error)

    new_tree, removed = _remove(tree, target)
    return new_tree, TrashResult(path=target, bytes_freed=removed)
