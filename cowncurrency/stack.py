"""Concurrent stack interface and Treiber's stack."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class CasFailed(Exception):
    """A compare-and-swap lost a race; the operation may be retried."""


class Node(Generic[T]):
    """A push request: a value and the node below it."""

    __slots__ = ("data", "next")

    def __init__(self, data: T) -> None:
        self.data = data
        self.next: Optional[Node[T]] = None

    def __repr__(self) -> str:
        return f"Node({self.data!r})"


class Stack(ABC, Generic[T]):
    """A stack that may be used from many threads at once."""

    @abstractmethod
    def try_push(self, req: Node[T]) -> None:
        """Try to push ``req`` once; raise ``CasFailed`` on contention."""

    @abstractmethod
    def try_pop(self) -> T:
        """Try to pop once.

        Raises ``IndexError`` if the stack is empty and ``CasFailed`` on contention.
        """

    @abstractmethod
    def is_empty(self) -> bool:
        """Return whether the stack is empty."""

    def push(self, value: T) -> None:
        """Push ``value``, retrying until it succeeds."""
        req = Node(value)
        while True:
            try:
                self.try_push(req)
                return
            except CasFailed:
                continue

    def pop(self) -> T:
        """Pop the top value; raise ``IndexError`` if the stack is empty."""
        while True:
            try:
                return self.try_pop()
            except CasFailed:
                continue


class TreiberStack(Stack[T]):
    """Treiber's stack: a linked list whose head is swapped by compare-and-swap."""

    def __init__(self) -> None:
        self._head: Optional[Node[T]] = None
        self._cas_lock = threading.Lock()

    def _compare_exchange(self, current: Optional[Node[T]], new: Optional[Node[T]]) -> None:
        with self._cas_lock:
            if self._head is not current:
                raise CasFailed()
            self._head = new

    def try_push(self, req: Node[T]) -> None:
        head = self._head
        req.next = head
        self._compare_exchange(head, req)

    def try_pop(self) -> Any:
        head = self._head
        if head is None:
            raise IndexError("pop from empty stack")
        self._compare_exchange(head, head.next)
        return head.data

    def is_empty(self) -> bool:
        return self._head is None