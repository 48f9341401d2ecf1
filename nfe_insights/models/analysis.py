from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any

"""Result shapes produced by the aggregation layer.

Every ranking is a list of small frozen records so callers can slice it
(e.g. ranks 1-5 vs 6-10) without touching the computed ranking itself.
"""

__all__ = [
    "AnalysisEntry",
    "MonthBucket",
    "MonthTotal",
    "ShiftDayTypeBreakdown",
    "OffenderSummary",
    "KeyTotal",
    "DateRange",
]


@dataclass(frozen=True)
class AnalysisEntry:
    """A label and how many rows fell into it."""
    label: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MonthBucket:
    """Monthly rejection volume split by actor class."""
    key: str  # MM-YYYY
    total: int
    bot_count: int
    human_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MonthTotal:
    """Monthly correction volume."""
    key: str  # MM-YYYY
    total: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ShiftDayTypeBreakdown:
    """Counts for one shift split into weekday / Saturday / Sunday."""
    shift: str
    week: int = 0
    saturday: int = 0
    sunday: int = 0

    @property
    def total(self) -> int:
        return self.week + self.saturday + self.sunday

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class OffenderSummary:
    tax_id: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class KeyTotal:
    key: str
    total: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DateRange:
    """Inclusive filter window; either bound may be open (None)."""
    start: date | None = None
    end: date | None = None

    @property
    def is_open(self) -> bool:
        return self.start is None and self.end is None

    def contains(self, value: date) -> bool:
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True
