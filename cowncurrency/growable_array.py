"""Growable array of atomic slots, organised as a tree of fixed-size segments.

The root segment has a height. A segment of height 0 holds element slots; a
segment of greater height holds slots pointing to child segments one level
lower. When an index does not fit under the current root, a new root is put on
top with the old root as its first child, so existing slots never move.
"""

from __future__ import annotations

import threading
from typing import Any, List, Optional, Tuple

SEGMENT_LOGSIZE = 10
SEGMENT_SIZE = 1 << SEGMENT_LOGSIZE
_OFFSET_MASK = SEGMENT_SIZE - 1
_INDEX_BITS = 64

_CAS_LOCK = threading.Lock()


class AtomicSlot:
    """A cell whose contents can be swapped by compare-and-swap on identity."""

    __slots__ = ("_value",)

    def __init__(self, value: Any = None) -> None:
        self._value = value

    def load(self) -> Any:
        """Return the current contents."""
        return self._value

    def store(self, value: Any) -> None:
        """Replace the contents."""
        self._value = value

    def compare_exchange(self, current: Any, new: Any) -> bool:
        """Set the contents to ``new`` if they are ``current``; return whether it did."""
        with _CAS_LOCK:
            if self._value is not current:
                return False
            self._value = new
            return True

    def __repr__(self) -> str:
        return f"AtomicSlot({self._value!r})"


Segment = List[AtomicSlot]


def _new_segment() -> Segment:
    return [AtomicSlot() for _ in range(SEGMENT_SIZE)]


def _height_for(index: int) -> int:
    height = 0
    while index >> (SEGMENT_LOGSIZE * (height + 1)):
        height += 1
    return height


class GrowableArray:
    """An unbounded array of ``AtomicSlot``s, allocated on demand.

    Indices range over ``0 .. 2**64 - 1``.
    """

    def __init__(self) -> None:
        root: Tuple[Segment, int] = (_new_segment(), 0)
        self._root = AtomicSlot(root)

    def height(self) -> int:
        """Return the height of the root segment."""
        return self._root.load()[1]

    def get(self, index: int) -> AtomicSlot:
        """Return the slot at ``index``, allocating segments as needed."""
        if index < 0 or index >= 1 << _INDEX_BITS:
            raise IndexError(f"index out of range: {index}")
        height = _height_for(index)

        while True:
            root = self._root.load()
            segment, tag = root
            if tag >= height:
                break
            grown = _new_segment()
            grown[0].store(segment)
            self._root.compare_exchange(root, (grown, tag + 1))

        segment, tag = self._root.load()
        for layer in range(tag, 0, -1):
            slot = segment[(index >> (SEGMENT_LOGSIZE * layer)) & _OFFSET_MASK]
            child: Optional[Segment] = slot.load()
            if child is None:
                slot.compare_exchange(None, _new_segment())
                child = slot.load()
            segment = child
        return segment[index & _OFFSET_MASK]