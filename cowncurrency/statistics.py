"""Per-key statistics gathered from handled requests."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Report:
    """Outcome of one request; ``key`` is ``None`` for an invalid request."""

    id: int
    key: Optional[str]


@dataclass
class Statistics:
    """Counts of requests per key."""

    hits: Counter = field(default_factory=Counter)

    def add_report(self, report: Report) -> None:
        """Count one more hit for the report's key."""
        self.hits[report.key] += 1

    def hits_for(self, key: Optional[str]) -> int:
        """Return how many reports carried ``key``."""
        return self.hits[key]