"""Elimination-backoff stack.

Pushes and pops that lose a race on the inner stack meet in a small array of
exchange slots: a pusher parks its request in a random slot for a moment, and
a popper that finds it there takes the value directly.
"""

from __future__ import annotations

import random
import threading
import time
from typing import Any, List, Optional, TypeVar

from .stack import CasFailed, Node, Stack, TreiberStack

T = TypeVar("T")

ELIM_SIZE = 16
ELIM_DELAY = 0.010


class _Slots:
    """Fixed array of exchange slots updated by compare-and-swap."""

    def __init__(self, size: int) -> None:
        self._slots: List[Optional[Node[Any]]] = [None] * size
        self._lock = threading.Lock()

    def load(self, index: int) -> Optional[Node[Any]]:
        return self._slots[index]

    def compare_exchange(
        self, index: int, current: Optional[Node[Any]], new: Optional[Node[Any]]
    ) -> bool:
        with self._lock:
            if self._slots[index] is not current:
                return False
            self._slots[index] = new
            return True


def _random_elim_index() -> int:
    return random.randrange(ELIM_SIZE)


class ElimStack(Stack[T]):
    """A stack that falls back to elimination when the inner stack is contended."""

    def __init__(self, inner: Optional[Stack[T]] = None) -> None:
        self.inner: Stack[T] = inner if inner is not None else TreiberStack()
        self._slots = _Slots(ELIM_SIZE)

    def try_push(self, req: Node[T]) -> None:
        try:
            self.inner.try_push(req)
            return
        except CasFailed:
            pass

        index = _random_elim_index()
        if not self._slots.compare_exchange(index, None, req):
            # Slot occupied: one more attempt on the inner stack.
            self.inner.try_push(req)
            return

        time.sleep(ELIM_DELAY)

        if not self._slots.compare_exchange(index, req, None):
            # A popper took the request.
            return

        self.inner.try_push(req)

    def try_pop(self) -> T:
        try:
            return self.inner.try_pop()
        except CasFailed:
            pass

        index = _random_elim_index()
        slot = self._slots.load(index)
        if slot is None:
            time.sleep(ELIM_DELAY)
            slot = self._slots.load(index)
            if slot is None:
                return self.inner.try_pop()

        if self._slots.compare_exchange(index, slot, None):
            return slot.data

        return self.inner.try_pop()

    def is_empty(self) -> bool:
        return self.inner.is_empty()