"""Behaviour-oriented concurrency: run closures once they own a set of cowns.

A cown ("concurrent owner") wraps a value. A behaviour names the cowns it
needs and a body. Behaviours that share a cown run one at a time, in the
order they were scheduled. Behaviours with no cown in common may run in
parallel on the shared thread pool.

Each body receives handles with a mutable ``value`` attribute, one for each
requested cown and in the order the cowns were given.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, List, Optional, Sequence

from .thread_pool import global_pool


class _Cown:
    """The shared state behind every clone of a ``CownPtr``."""

    __slots__ = ("value", "_last", "_lock")

    def __init__(self, value: Any) -> None:
        self.value = value
        self._last: Optional[_Request] = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Cown(value={self.value!r})"


class CownPtr:
    """A handle to a cown; its value is reachable only inside a behaviour."""

    __slots__ = ("_cown",)

    def __init__(self, value: Any) -> None:
        self._cown = _Cown(value)

    def clone(self) -> "CownPtr":
        """Return another handle to the same cown."""
        other = CownPtr.__new__(CownPtr)
        other._cown = self._cown
        return other

    def __repr__(self) -> str:
        return f"CownPtr(at=0x{id(self._cown):x})"


class _Request:
    """One behaviour's place in the queue of a single cown."""

    __slots__ = ("target", "next", "_scheduled", "_linked")

    def __init__(self, target: _Cown) -> None:
        self.target = target
        self.next: Optional[_Behavior] = None
        self._scheduled = threading.Event()
        self._linked = threading.Event()

    def start_enqueue(self, behavior: "_Behavior") -> None:
        """Append this request to the cown's queue (first phase of 2PL)."""
        with self.target._lock:
            previous = self.target._last
            self.target._last = self
        if previous is None:
            behavior.resolve_one()
            return
        previous._scheduled.wait()
        previous.next = behavior
        previous._linked.set()

    def finish_enqueue(self) -> None:
        """Let later behaviours link behind this request (second phase of 2PL)."""
        self._scheduled.set()

    def release(self) -> None:
        """Hand the cown to the next waiting behaviour, if there is one."""
        if not self._linked.is_set():
            with self.target._lock:
                if self.target._last is self:
                    self.target._last = None
                    return
            self._linked.wait()
        assert self.next is not None
        self.next.resolve_one()


class _Behavior:
    """A body together with the requests it must hold before it runs."""

    def __init__(self, cowns: Sequence[_Cown], thunk: Callable[[], Any]) -> None:
        self.thunk = thunk
        self.requests = sorted((_Request(c) for c in cowns), key=lambda r: id(r.target))
        self._count = len(self.requests) + 1
        self._lock = threading.Lock()

    def schedule(self) -> None:
        """Enqueue every request atomically with respect to other behaviours."""
        for request in self.requests:
            request.start_enqueue(self)
        for request in self.requests:
            request.finish_enqueue()
        self.resolve_one()

    def resolve_one(self) -> None:
        """Account for one satisfied request; run the body when none remain."""
        with self._lock:
            self._count -= 1
            ready = self._count == 0
        if ready:
            global_pool().execute(self._run)

    def _run(self) -> None:
        try:
            self.thunk()
        finally:
            for request in self.requests:
                request.release()


def run_when(cowns: Sequence[CownPtr], f: Callable[[List[_Cown]], Any]) -> None:
    """Schedule ``f`` to run once it owns every cown in ``cowns``.

    ``f`` is called with a list of handles, in the order of ``cowns``; assign
    to a handle's ``value`` to change the cown's value.
    """
    pointers = list(cowns)
    for pointer in pointers:
        if not isinstance(pointer, CownPtr):
            raise TypeError(f"expected CownPtr, got {type(pointer).__name__}")
    targets = [pointer._cown for pointer in pointers]
    if len({id(t) for t in targets}) != len(targets):
        raise ValueError("a cown may appear only once in a behaviour")
    _Behavior(targets, lambda: f(list(targets))).schedule()


def when(*cowns: CownPtr) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator form of ``run_when``: the body takes one handle per cown.

    >>> counter = CownPtr(0)
    >>> @when(counter)
    ... def _(c):
    ...     c.value += 1
    """

    def decorator(f: Callable[..., Any]) -> Callable[..., Any]:
        run_when(cowns, lambda refs: f(*refs))
        return f

    return decorator