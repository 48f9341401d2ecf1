from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum

"""User-facing activity log for the load pipeline.

Entries are kept in memory, newest first, for display next to the progress
bar ("Lendo arquivos...", "Dicionário com N códigos de erro criado.").
Each entry is also forwarded to the package logger. Nothing is written to
disk.
"""

__all__ = [
    "ActivityKind",
    "ActivityEntry",
    "ActivityLog",
]

logger = logging.getLogger("nfe_insights.activity")

TIMESTAMP_FMT = "%H:%M:%S"


class ActivityKind(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    ActivityKind.INFO: logging.INFO,
    ActivityKind.SUCCESS: logging.INFO,
    ActivityKind.WARNING: logging.WARNING,
    ActivityKind.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class ActivityEntry:
    timestamp: str  # local wall-clock HH:MM:SS
    message: str
    kind: str  # ActivityKind value

    @staticmethod
    def create(message: str, kind: ActivityKind = ActivityKind.INFO) -> ActivityEntry:
        return ActivityEntry(
            timestamp=datetime.now().strftime(TIMESTAMP_FMT),
            message=message,
            kind=kind.value,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)


class ActivityLog:
    """In-memory buffer of activity entries (single writer, no locking)."""

    def __init__(self) -> None:
        self._entries: list[ActivityEntry] = []

    def add(self, message: str, kind: ActivityKind = ActivityKind.INFO) -> ActivityEntry:
        entry = ActivityEntry.create(message, kind)
        self._entries.insert(0, entry)
        logger.log(_LOG_LEVELS[kind], message)
        return entry

    def info(self, message: str) -> ActivityEntry:
        return self.add(message, ActivityKind.INFO)

    def success(self, message: str) -> ActivityEntry:
        return self.add(message, ActivityKind.SUCCESS)

    def warning(self, message: str) -> ActivityEntry:
        return self.add(message, ActivityKind.WARNING)

    def error(self, message: str) -> ActivityEntry:
        return self.add(message, ActivityKind.ERROR)

    @property
    def entries(self) -> list[ActivityEntry]:
        """Entries, newest first (a copy)."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._entries)
