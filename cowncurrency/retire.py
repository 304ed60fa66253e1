"""Deferred reclamation of retired pointers guarded by hazard pointers."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, List, Optional, Tuple

from .hazard import HAZARDS, HazardBag

Free = Callable[[Any], object]


class RetiredSet:
    """A thread's list of retired pointers waiting to be freed.

    ``free`` callbacks run only once no shield of the bag publishes the pointer.
    """

    THRESHOLD = 64
    """Number of retired pointers that triggers a collection."""

    def __init__(self, hazards: Optional[HazardBag] = None) -> None:
        self.hazards = hazards if hazards is not None else HAZARDS
        self._retired: List[Tuple[Any, Free]] = []

    def __len__(self) -> int:
        return len(self._retired)

    def retire(self, pointer: Any, free: Free) -> None:
        """Schedule ``free(pointer)``; collect once ``THRESHOLD`` are pending.

        ``pointer`` must already be unreachable from shared state and retired once.
        """
        self._retired.append((pointer, free))
        if len(self._retired) >= self.THRESHOLD:
            self.collect()

    def collect(self) -> int:
        """Free every retired pointer no shield protects; return how many were freed."""
        protected = self.hazards.all_hazards()
        kept: List[Tuple[Any, Free]] = []
        freed = 0
        pending = self._retired
        self._retired = kept
        for index, (pointer, free) in enumerate(pending):
            if pointer in protected:
                kept.append((pointer, free))
                continue
            try:
                free(pointer)
            except BaseException:
                kept.extend(pending[index + 1:])
                raise
            freed += 1
        return freed

    def drain(self) -> None:
        """Collect repeatedly until every retired pointer has been freed."""
        while self._retired:
            self.collect()
            if self._retired:
                time.sleep(0)

    def __repr__(self) -> str:
        return f"RetiredSet(pending={len(self._retired)})"


_local = threading.local()


def _retired_set() -> RetiredSet:
    retired = getattr(_local, "retired", None)
    if retired is None:
        retired = _local.retired = RetiredSet()
    return retired


def retire(pointer: Any, free: Free) -> None:
    """Retire ``pointer`` on the current thread's list, guarded by the global bag."""
    _retired_set().retire(pointer, free)


def collect() -> int:
    """Free the current thread's retired pointers that no shield protects."""
    return _retired_set().collect()