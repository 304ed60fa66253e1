"""Shared ownership of a value with an explicit reference count."""

from __future__ import annotations

import copy
import threading
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class _ArcInner:
    __slots__ = ("count", "data", "lock")

    def __init__(self, data: Any) -> None:
        self.count = 1
        self.data = data
        self.lock = threading.Lock()


class Arc(Generic[T]):
    """A counted handle to a shared value.

    ``clone`` makes another handle to the same allocation and ``release``
    gives a handle up. When the last handle is released the value is dropped.
    A released handle may not be used again.
    """

    __slots__ = ("_inner",)

    def __init__(self, data: T) -> None:
        self._inner: Optional[_ArcInner] = _ArcInner(data)

    def _live(self) -> _ArcInner:
        inner = self._inner
        if inner is None:
            raise ValueError("Arc has been released")
        return inner

    def clone(self) -> "Arc[T]":
        """Return another handle to the same allocation."""
        inner = self._live()
        with inner.lock:
            inner.count += 1
        other = Arc.__new__(Arc)
        other._inner = inner
        return other

    def release(self) -> None:
        """Give up this handle; drop the value if it was the last one."""
        inner = self._live()
        self._inner = None
        with inner.lock:
            inner.count -= 1
            if inner.count == 0:
                inner.data = None

    def count(self) -> int:
        """Return how many handles share this allocation."""
        inner = self._live()
        with inner.lock:
            return inner.count

    def get(self) -> T:
        """Return the shared value."""
        return self._live().data

    def _is_unique(self) -> bool:
        inner = self._live()
        with inner.lock:
            return inner.count == 1

    def get_mut(self) -> Optional[T]:
        """Return the value if this is the only handle, otherwise ``None``."""
        if self._is_unique():
            return self._live().data
        return None

    def set_unique(self, value: T) -> bool:
        """Replace the value if this is the only handle; return whether it was replaced."""
        inner = self._live()
        with inner.lock:
            if inner.count != 1:
                return False
            inner.data = value
            return True

    def make_mut(self) -> T:
        """Return a value owned by this handle alone, copying it if shared."""
        inner = self._live()
        with inner.lock:
            if inner.count == 1:
                return inner.data
            data = inner.data
            inner.count -= 1
        fresh = _ArcInner(copy.deepcopy(data))
        self._inner = fresh
        return fresh.data

    def ptr_eq(self, other: "Arc[T]") -> bool:
        """Return whether both handles share one allocation."""
        return self._live() is other._live()

    def try_unwrap(self) -> T:
        """Take the value out if this is the only handle.

        Raises ``ValueError`` if other handles exist; this handle then stays usable.
        """
        inner = self._live()
        with inner.lock:
            if inner.count != 1:
                raise ValueError("Arc is shared")
            inner.count = 0
            data = inner.data
            inner.data = None
        self._inner = None
        return data

    def __str__(self) -> str:
        return str(self.get())

    def __repr__(self) -> str:
        return repr(self.get())