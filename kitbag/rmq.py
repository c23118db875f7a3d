"""An ordered map kept as an AVL tree that answers range-minimum queries.

Each entry has a key, which orders the tree, and a value. ``rmq(lo, hi)``
finds the entry with the smallest value among all keys in the closed
interval ``[lo, hi]``. Ties between equal values go to the smallest key.
Lookups, updates and range queries all take logarithmic time.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

__all__ = ["RmqTree"]


class _Node:
    __slots__ = ("key", "value", "left", "right", "height", "size", "min")

    def __init__(self, key: Any, value: Any) -> None:
        self.key = key
        self.value = value
        self.left: _Node | None = None
        self.right: _Node | None = None
        self.height = 1
        self.size = 1
        self.min: _Node = self


def _less(a: _Node, b: _Node) -> bool:
    """Order used for minima: by value, then by key."""
    if a.value < b.value:
        return True
    if b.value < a.value:
        return False
    return a.key < b.key


def _height(node: _Node | None) -> int:
    return node.height if node is not None else 0


def _size(node: _Node | None) -> int:
    return node.size if node is not None else 0


def _update(node: _Node) -> None:
    left, right = node.left, node.right
    node.height = 1 + max(_height(left), _height(right))
    node.size = 1 + _size(left) + _size(right)
    best = node
    if left is not None and _less(left.min, best):
        best = left.min
    if right is not None and _less(right.min, best):
        best = right.min
    node.min = best


def _rotate_right(node: _Node) -> _Node:
    pivot = node.left
    assert pivot is not None
    node.left = pivot.right
    pivot.right = node
    _update(node)
    _update(pivot)
    return pivot


def _rotate_left(node: _Node) -> _Node:
    pivot = node.right
    assert pivot is not None
    node.right = pivot.left
    pivot.left = node
    _update(node)
    _update(pivot)
    return pivot


def _balance(node: _Node) -> _Node:
    _update(node)
    factor = _height(node.left) - _height(node.right)
    if factor > 1:
        left = node.left
        assert left is not None
        if _height(left.left) < _height(left.right):
            node.left = _rotate_left(left)
        return _rotate_right(node)
    if factor < -1:
        right = node.right
        assert right is not None
        if _height(right.right) < _height(right.left):
            node.right = _rotate_right(right)
        return _rotate_left(node)
    return node


def _insert(node: _Node | None, key: Any, value: Any) -> _Node:
    if node is None:
        return _Node(key, value)
    if key < node.key:
        node.left = _insert(node.left, key, value)
    else:
        node.right = _insert(node.right, key, value)
    return _balance(node)


def _pop_min(node: _Node) -> tuple[_Node | None, _Node]:
    if node.left is None:
        return node.right, node
    node.left, smallest = _pop_min(node.left)
    return _balance(node), smallest


def _delete(node: _Node, key: Any) -> tuple[_Node | None, Any]:
    if key < node.key:
        assert node.left is not None
        node.left, value = _delete(node.left, key)
    elif node.key < key:
        assert node.right is not None
        node.right, value = _delete(node.right, key)
    else:
        value = node.value
        if node.left is None:
            return node.right, value
        if node.right is None:
            return node.left, value
        node.right, successor = _pop_min(node.right)
        node.key, node.value = successor.key, successor.value
    return _balance(node), value


def _range_min(
    node: _Node | None, lo: Any, hi: Any, above_lo: bool, below_hi: bool
) -> _Node | None:
    """Minimum node in ``node``'s subtree with ``lo <= key <= hi``."""
    while node is not None:
        if above_lo and below_hi:
            return node.min
        if not above_lo and node.key < lo:
            node = node.right
        elif not below_hi and hi < node.key:
            node = node.left
        else:
            break
    if node is None:
        return None
    best = node
    for candidate in (
        _range_min(node.left, lo, hi, above_lo, True),
        _range_min(node.right, lo, hi, True, below_hi),
    ):
        if candidate is not None and _less(candidate, best):
            best = candidate
    return best


class RmqTree:
    """A sorted map from keys to values with range-minimum queries over values."""

    def __init__(self, items: Iterable[tuple[Any, Any]] | None = None) -> None:
        self._root: _Node | None = None
        for key, value in items or ():
            self.insert(key, value)

    def _lookup(self, key: Any) -> _Node | None:
        node = self._root
        while node is not None:
            if key < node.key:
                node = node.left
            elif node.key < key:
                node = node.right
            else:
                return node
        return None

    @property
    def height(self) -> int:
        """Height of the tree; 0 when empty."""
        return _height(self._root)

    def insert(self, key: Any, value: Any) -> bool:
        """Add ``key`` with ``value``; return False, keeping the old value, if present."""
        if self._lookup(key) is not None:
            return False
        self._root = _insert(self._root, key, value)
        return True

    def find(self, key: Any) -> Any:
        """The value stored for ``key``, or None when absent."""
        node = self._lookup(key)
        return node.value if node is not None else None

    def rank(self, key: Any) -> int:
        """Number of keys smaller than or equal to ``key``."""
        count = 0
        node = self._root
        while node is not None:
            if not key < node.key:
                count += _size(node.left) + 1
            if key < node.key:
                node = node.left
            elif node.key < key:
                node = node.right
            else:
                break
        return count

    def interval(self, key: Any) -> tuple[Any, Any]:
        """Largest key <= ``key`` and smallest key >= ``key``; None where there is none."""
        lower: _Node | None = None
        upper: _Node | None = None
        node = self._root
        while node is not None:
            if key < node.key:
                upper, node = node, node.left
            elif node.key < key:
                lower, node = node, node.right
            else:
                lower = upper = node
                break
        return (
            lower.key if lower is not None else None,
            upper.key if upper is not None else None,
        )

    def rmq(self, lo: Any, hi: Any) -> tuple[Any, Any] | None:
        """``(key, value)`` with the smallest value among keys in ``[lo, hi]``; None if empty."""
        if hi < lo:
            return None
        best = _range_min(self._root, lo, hi, False, False)
        return (best.key, best.value) if best is not None else None

    def erase(self, key: Any) -> Any:
        """Remove ``key`` and return its value; KeyError when absent."""
        if self._root is None or self._lookup(key) is None:
            raise KeyError(key)
        self._root, value = _delete(self._root, key)
        return value

    def erase_first(self) -> tuple[Any, Any]:
        """Remove and return the ``(key, value)`` with the smallest key; KeyError when empty."""
        if self._root is None:
            raise KeyError("erase_first from an empty tree")
        self._root, smallest = _pop_min(self._root)
        return smallest.key, smallest.value

    def items(self) -> Iterator[tuple[Any, Any]]:
        """``(key, value)`` pairs in key order."""
        for node in self._walk(self._root, forward=True):
            yield node.key, node.value

    @staticmethod
    def _walk(root: _Node | None, forward: bool) -> Iterator[_Node]:
        stack: list[_Node] = []
        node = root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left if forward else node.right
            node = stack.pop()
            yield node
            node = node.right if forward else node.left

    def iter_from(self, key: Any) -> Iterator[Any]:
        """Keys greater than or equal to ``key``, in order."""
        stack: list[_Node] = []
        node = self._root
        while node is not None:
            if node.key < key:
                node = node.right
            else:
                stack.append(node)
                node = node.left
        while stack:
            node = stack.pop()
            yield node.key
            child = node.right
            while child is not None:
                stack.append(child)
                child = child.left

    def __iter__(self) -> Iterator[Any]:
        return (node.key for node in self._walk(self._root, forward=True))

    def __reversed__(self) -> Iterator[Any]:
        return (node.key for node in self._walk(self._root, forward=False))

    def __len__(self) -> int:
        return _size(self._root)

    def __contains__(self, key: Any) -> bool:
        return self._lookup(key) is not None