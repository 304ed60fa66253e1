"""Hazard pointers: announce which objects a thread is about to use.

A ``Shield`` owns one slot in a ``HazardBag`` and publishes a pointer in it.
Anyone reclaiming retired objects first asks the bag for every published
pointer and keeps those objects alive.

Pointers are arbitrary hashable values and are compared by equality.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, List, Optional, Set


class ProtectionFailed(Exception):
    """The source no longer holds the pointer being protected."""

    def __init__(self, current: Any) -> None:
        super().__init__("source no longer holds the pointer")
        self.current = current


class AtomicPointer:
    """A shared cell holding a pointer."""

    __slots__ = ("_value",)

    def __init__(self, value: Any = None) -> None:
        self._value = value

    def load(self) -> Any:
        """Return the current pointer."""
        return self._value

    def store(self, value: Any) -> None:
        """Replace the pointer."""
        self._value = value

    def __repr__(self) -> str:
        return f"AtomicPointer({self._value!r})"


@dataclass(eq=False)
class _HazardSlot:
    active: bool = False
    hazard: Any = None


class HazardBag:
    """Grow-only collection of hazard slots shared by many shields.

    Slots are never removed; a released slot is reused by the next shield.
    """

    def __init__(self) -> None:
        self._slots: List[_HazardSlot] = []
        self._lock = threading.Lock()

    def _acquire_slot(self) -> _HazardSlot:
        with self._lock:
            for slot in self._slots:
                if not slot.active:
                    slot.active = True
                    return slot
            slot = _HazardSlot(active=True)
            self._slots.append(slot)
            return slot

    def _release_slot(self, slot: _HazardSlot) -> None:
        slot.hazard = None
        with self._lock:
            slot.active = False

    def all_hazards(self) -> Set[Any]:
        """Return every non-null pointer currently published by an active slot."""
        return {
            slot.hazard
            for slot in tuple(self._slots)
            if slot.active and slot.hazard is not None
        }

    def slot_count(self) -> int:
        """Return how many slots have ever been allocated."""
        with self._lock:
            return len(self._slots)

    def __repr__(self) -> str:
        return f"HazardBag(slots={self.slot_count()})"


HAZARDS = HazardBag()
"""Default process-wide hazard bag."""


class Shield:
    """Ownership of one hazard slot, used to protect one pointer at a time."""

    def __init__(self, hazards: Optional[HazardBag] = None) -> None:
        self._bag = hazards if hazards is not None else HAZARDS
        self._slot: Optional[_HazardSlot] = self._bag._acquire_slot()

    def _live_slot(self) -> _HazardSlot:
        if self._slot is None:
            raise ValueError("shield has been released")
        return self._slot

    def set(self, pointer: Any) -> None:
        """Publish ``pointer`` in this shield's slot."""
        self._live_slot().hazard = pointer

    def clear(self) -> None:
        """Publish nothing."""
        self.set(None)

    @staticmethod
    def validate(pointer: Any, src: AtomicPointer) -> None:
        """Check that ``src`` still holds ``pointer``.

        Raises ``ProtectionFailed`` carrying the current value otherwise.
        """
        current = src.load()
        if current is not pointer and current != pointer:
            raise ProtectionFailed(current)

    def try_protect(self, pointer: Any, src: AtomicPointer) -> None:
        """Publish ``pointer`` read from ``src`` and check it is still there.

        On failure the slot is cleared and ``ProtectionFailed`` is raised.
        """
        self.set(pointer)
        try:
            self.validate(pointer, src)
        except ProtectionFailed:
            self.clear()
            raise

    def protect(self, src: AtomicPointer) -> Any:
        """Return a pointer read from ``src`` that is published by this shield."""
        pointer = src.load()
        while True:
            try:
                self.try_protect(pointer, src)
                return pointer
            except ProtectionFailed as failure:
                pointer = failure.current

    def release(self) -> None:
        """Clear the slot and give it back to the bag."""
        slot, self._slot = self._slot, None
        if slot is not None:
            self._bag._release_slot(slot)

    def __enter__(self) -> "Shield":
        return self

    def __exit__(self, *args) -> None:
        self.release()

    def __repr__(self) -> str:
        slot = self._slot
        if slot is None:
            return "Shield(released)"
        return f"Shield(hazard={slot.hazard!r})"