"""Sibling ordering for display trees."""

import locale

from diskscope.models import DisplayItem, SortOption


def path_key(item: DisplayItem) -> tuple[str, str]:
    """Case-insensitive, locale-aware path key (raw path breaks exact ties)."""
    return locale.strxfrm(item.path.casefold()), item.path


def compare_key(option: SortOption):
    """Return a sort key function for ``option``."""
    if option == SortOption.SIZE_DESC:
        return lambda item: (-item.size, path_key(item))
    if option == SortOption.SIZE_ASC:
        return lambda item: (item.size, path_key(item))
    return path_key


def sort_children(items, option: SortOption) -> tuple[DisplayItem, ...]:
    """Order one level of siblings."""
    return tuple(sorted(items, key=compare_key(option)))


def sort_tree(item: DisplayItem, option: SortOption = SortOption.SIZE_DESC) -> DisplayItem:
    """
    Return a copy of ``item`` with every level ordered by ``option``.

    The input tree is left untouched; size ties fall back to the
    case-insensitive path so equal siblings keep a stable order.
    """
    if not item.children:
        return item
    children = sort_children((sort_tree(child, option) for child in item.children), option)
    return item.model_copy(update={"children": children})
