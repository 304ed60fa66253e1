"""Thread-safe cache that computes each key's value once."""

from __future__ import annotations

import threading
from typing import Callable, Dict, Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class _Slot:
    __slots__ = ("ready", "value", "failed")

    def __init__(self) -> None:
        self.ready = threading.Event()
        self.value = None
        self.failed = False


class Cache(Generic[K, V]):
    """Remembers the result computed for each key.

    Computations for different keys run concurrently; concurrent requests for
    the same key wait for a single computation.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._slots: Dict[K, _Slot] = {}

    def get_or_insert_with(self, key: K, f: Callable[[K], V]) -> V:
        """Return the cached value for ``key``, computing it with ``f`` if needed."""
        while True:
            with self._lock:
                slot = self._slots.get(key)
                owner = slot is None
                if owner:
                    slot = self._slots[key] = _Slot()
            if owner:
                return self._fill(key, slot, f)
            slot.ready.wait()
            if not slot.failed:
                return slot.value

    def replace_with(self, key: K, f: Callable[[K], V]) -> V:
        """Recompute the value for ``key`` with ``f`` and store it."""
        slot = _Slot()
        with self._lock:
            self._slots[key] = slot
        return self._fill(key, slot, f)

    def _fill(self, key: K, slot: _Slot, f: Callable[[K], V]) -> V:
        try:
            value = f(key)
        except BaseException:
            with self._lock:
                if self._slots.get(key) is slot:
                    del self._slots[key]
            slot.failed = True
            slot.ready.set()
            raise
        slot.value = value
        slot.ready.set()
        return value