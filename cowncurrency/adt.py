"""Abstract interfaces for concurrent maps and sets."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")
T = TypeVar("T", bound=Hashable)


class ConcurrentMap(ABC, Generic[K, V]):
    """A key-value map that may be used from many threads at once."""

    @abstractmethod
    def lookup(self, key: K) -> V:
        """Return the value stored for ``key``; raise ``KeyError`` if absent."""

    @abstractmethod
    def insert(self, key: K, value: V) -> bool:
        """Store ``value`` under ``key`` unless present; return whether it was stored."""

    @abstractmethod
    def delete(self, key: K) -> V:
        """Remove ``key`` and return its value; raise ``KeyError`` if absent."""


class ConcurrentSet(ABC, Generic[T]):
    """A set that may be used from many threads at once."""

    @abstractmethod
    def contains(self, value: T) -> bool:
        """Return whether the set holds ``value``."""

    @abstractmethod
    def insert(self, value: T) -> bool:
        """Add ``value``; return whether it was newly added."""

    @abstractmethod
    def remove(self, value: T) -> bool:
        """Remove ``value``; return whether it was present."""


class SetAsMap(ConcurrentMap[T, None]):
    """View of a concurrent set as a map whose values are all ``None``."""

    def __init__(self, inner: ConcurrentSet[T]) -> None:
        self.inner = inner

    def lookup(self, key: T) -> None:
        if not self.inner.contains(key):
            raise KeyError(key)
        return None

    def insert(self, key: T, value: None = None) -> bool:
        return self.inner.insert(key)

    def delete(self, key: T) -> None:
        if not self.inner.remove(key):
            raise KeyError(key)
        return None