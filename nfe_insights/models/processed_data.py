from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Load-pipeline state for the two spreadsheet exports.

The pipeline moves through: idle → loading → (success | failed), and any
finished run is followed by a return to idle so a new load can start.
"""

__all__ = [
    "LoadStatus",
    "ProcessedData",
    "LoadResult",
    "RawRow",
]

RawRow = dict[str, Any]


class LoadStatus(Enum):
    """Status of one load run.

    - IDLE: nothing loaded yet, or ready for another attempt
    - LOADING: workbooks are being read and ingested
    - SUCCESS: both sheets ingested and the error-code map built
    - FAILED: a structural or resource error aborted the run
    """
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_finished(self) -> bool:
        return self in (LoadStatus.SUCCESS, LoadStatus.FAILED)


@dataclass(frozen=True)
class ProcessedData:
    """Rows held for the session; never mutated after ingestion."""
    rejections: tuple[RawRow, ...] = ()
    corrections: tuple[RawRow, ...] = ()
    error_codes: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.rejections and not self.corrections


@dataclass(frozen=True)
class LoadResult:
    status: LoadStatus
    data: ProcessedData = field(default_factory=ProcessedData)
    error: str | None = None  # user-facing banner message when FAILED
    elapsed_seconds: float = 0.0
