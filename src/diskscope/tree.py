"""Mutable path-keyed size tree built during a scan.

Sizes are accumulated on every ancestor as each file is added, so a
directory's size always equals the sum of its children without a separate
aggregation pass.
"""

import os

from diskscope.models import DisplayItem


def _join(parent: str, name: str) -> str:
    if parent.endswith(os.sep):
        return parent + name
    return parent + os.sep + name


def normalize_root(path: str) -> str:
    """Absolute, lexically normalized form of a scan root."""
    return os.path.abspath(os.path.expanduser(str(path)))


def top_level_bucket(path: str, root: str) -> str:
    """
    Map a path to the immediate child of ``root`` that contains it.

    Returns ``root`` itself when ``path`` is the root or lies outside it.
    """
    if path == root:
        return root
    prefix = root if root.endswith(os.sep) else root + os.sep
    if not path.startswith(prefix):
        return root
    first = path[len(prefix):].split(os.sep, 1)[0]
    return _join(root, first) if first else root


class Node:
    """A directory or file in the scan-time tree."""

    __slots__ = ("path", "is_file", "size", "children")

    def __init__(self, path: str, is_file: bool = False, size: int = 0):
        self.path = path
        self.is_file = is_file
        self.size = size
        self.children: dict[str, Node] = {}

    def __repr__(self) -> str:
        return f"Node({self.path!r}, size={self.size}, children={len(self.children)})"

    def child(self, name: str) -> "Node":
        """Return the directory child ``name``, creating it if needed."""
        node = self.children.get(name)
        if node is None:
            node = Node(_join(self.path, name))
            self.children[name] = node
        return node

    def freeze(self, key=None) -> DisplayItem:
        """
        Convert this subtree to an immutable DisplayItem.

        Children are ordered by path, or by ``key`` (a Node sort key) at this
        level only when one is given.
        """
        if key is None:
            ordered = [self.children[name] for name in sorted(self.children)]
        else:
            ordered = sorted(self.children.values(), key=key)
        kids = tuple(child.freeze() for child in ordered)
        return DisplayItem.model_construct(
            path=self.path, size=self.size, is_file=self.is_file, children=kids
        )


class PathTree:
    """
    Size tree rooted at one scan root.

    With ``largest_first`` the root's children freeze in size-descending
    order instead of path order.
    """

    def __init__(self, root_path: str, largest_first: bool = False):
        self.root_path = root_path
        self.root = Node(root_path)
        self.largest_first = largest_first

    @property
    def size(self) -> int:
        return self.root.size

    def _relative_parts(self, folder: str) -> list[str] | None:
        if folder == self.root_path:
            return []
        prefix = self.root_path if self.root_path.endswith(os.sep) else self.root_path + os.sep
        if not folder.startswith(prefix):
            return None
        return [part for part in folder[len(prefix):].split(os.sep) if part]

    def _descend(self, parts: list[str]) -> list[Node]:
        chain = [self.root]
        current = self.root
        for part in parts:
            current = current.child(part)
            chain.append(current)
        return chain

    def add_file(self, file_path: str, size: int, is_file: bool = True) -> bool:
        """
        Add a sized leaf at ``file_path`` and credit every ancestor.

        Args:
            file_path: Absolute path of the leaf, under the root
            size: Bytes to aggregate
            is_file: False for opaque leaves such as packages

        Returns:
            False if the leaf does not lie under the root (it is discarded)
        """
        folder, name = os.path.split(file_path)
        parts = self._relative_parts(folder)
        if parts is None or not name:
            return False

        chain = self._descend(parts)
        parent = chain[-1]
        existing = parent.children.get(name)
        if existing is not None:
            # Same path seen twice: the latest size wins.
            delta = size - existing.size
            existing.size = size
        else:
            parent.children[name] = Node(file_path, is_file=is_file, size=size)
            delta = size

        if delta:
            for node in chain:
                node.size += delta
        return True

    def attach(self, subtree: Node) -> bool:
        """
        Graft a finished subtree under the root and credit its size.

        The subtree's path must be an immediate child of the root.
        """
        folder, name = os.path.split(subtree.path)
        if folder != self.root_path.rstrip(os.sep) and folder != self.root_path:
            return False
        previous = self.root.children.get(name)
        if previous is not None:
            self.root.size -= previous.size
        self.root.children[name] = subtree
        self.root.size += subtree.size
        return True

    def freeze(self) -> DisplayItem:
        if self.largest_first:
            return self.root.freeze(key=lambda node: (-node.size, node.path))
        return self.root.freeze()
