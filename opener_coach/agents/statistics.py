"""
Opener Coach - Opener Statistics
Per-opener usage counters and the generation-tagged snapshot the analyzer
and recommendation engine read from.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class OpenerStatistics:
    """Cumulative results for one opener.

    success_rate is always derived from the two counters so it cannot drift.
    """
    opener_id: str
    total_uses: int = 0
    successful_uses: int = 0
    last_used: Optional[datetime] = None

    def __post_init__(self):
        if self.total_uses < 0 or self.successful_uses < 0:
            raise ValueError(f"Usage counters must be non-negative for '{self.opener_id}'")
        if self.successful_uses > self.total_uses:
            raise ValueError(
                f"successful_uses ({self.successful_uses}) exceeds total_uses "
                f"({self.total_uses}) for '{self.opener_id}'")

    @property
    def success_rate(self) -> float:
        return _safe_rate(self.successful_uses, self.total_uses)

    def record(self, outcome: str, when: datetime = None) -> "OpenerStatistics":
        """Return a copy with one more completed session applied."""
        return replace(
            self,
            total_uses=self.total_uses + 1,
            successful_uses=self.successful_uses + (1 if outcome == "stayed" else 0),
            last_used=when or datetime.now(timezone.utc),
        )

    def to_dict(self) -> dict:
        return {
            "opener_id": self.opener_id,
            "total_uses": self.total_uses,
            "successful_uses": self.successful_uses,
            "success_rate": self.success_rate,
            "last_used": self.last_used.isoformat() if self.last_used else None,
        }

    @classmethod
    def from_row(cls, row) -> "OpenerStatistics":
        """Build from a database row / dict."""
        row = dict(row)
        last_used = row.get("last_used")
        if isinstance(last_used, str) and last_used:
            last_used = datetime.fromisoformat(last_used)
        return cls(
            opener_id=row["opener_id"],
            total_uses=int(row.get("total_uses") or 0),
            successful_uses=int(row.get("successful_uses") or 0),
            last_used=last_used or None,
        )


def _safe_rate(numerator: int, denominator: int) -> float:
    """Compute a rate, returning 0.0 if denominator is zero."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


@dataclass(frozen=True)
class StatisticsSnapshot:
    """An immutable read of the statistics store.

    `generation` increases every time the store changes. Anything derived from
    a snapshot can be cached against it: a newer generation means a new
    snapshot object, never a mutated one.
    """
    statistics: Tuple[OpenerStatistics, ...] = ()
    generation: int = 0
    _derived: dict = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def of(cls, statistics: Iterable[OpenerStatistics], generation: int = 0) -> "StatisticsSnapshot":
        return cls(statistics=tuple(statistics), generation=generation)

    def by_id(self) -> dict:
        """opener_id -> statistics. The first record wins if an id repeats."""
        return self.derive("by_id", _index_by_id)

    def get(self, opener_id: str) -> Optional[OpenerStatistics]:
        return self.by_id().get(opener_id)

    def derive(self, key: str, compute):
        """Memoize compute(statistics) for the lifetime of this snapshot."""
        if key not in self._derived:
            self._derived[key] = compute(self.statistics)
        return self._derived[key]

    def __iter__(self):
        return iter(self.statistics)

    def __len__(self):
        return len(self.statistics)


def _index_by_id(statistics: Iterable[OpenerStatistics]) -> dict:
    index = {}
    for stat in statistics:
        index.setdefault(stat.opener_id, stat)
    return index
