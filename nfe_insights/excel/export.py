from __future__ import annotations

import importlib.util
import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import asdict, is_dataclass
from datetime import date
from pathlib import Path
from typing import Any

import pandas as pd

"""Export of the current dashboard view set to a multi-sheet workbook.

One sheet per non-empty table. Sheet names come from the table key
("topCancelReasons" -> "Top Cancel Reasons"), cut to Excel's 31 character
limit. The file name carries the export date.
"""

__all__ = [
    "SHEET_NAME_LIMIT",
    "DEFAULT_FILE_PREFIX",
    "ExportUnavailableError",
    "export_available",
    "sheet_name_for_key",
    "export_analysis",
]

logger = logging.getLogger(__name__)

SHEET_NAME_LIMIT = 31
DEFAULT_FILE_PREFIX = "Relatorio_Dashboard"
WRITER_ENGINE = "openpyxl"

_CAPITAL = re.compile(r"([A-Z])")


class ExportUnavailableError(Exception):
    """Raised when the workbook writer engine cannot be loaded."""


def export_available() -> bool:
    """True when the xlsx writer engine is importable."""
    return importlib.util.find_spec(WRITER_ENGINE) is not None


def sheet_name_for_key(key: str) -> str:
    """'topCancelReasons' -> 'Top Cancel Reasons' (max 31 chars)."""
    spaced = _CAPITAL.sub(r" \1", key)
    if spaced:
        spaced = spaced[0].upper() + spaced[1:]
    return spaced[:SHEET_NAME_LIMIT]


def _record(item: Any) -> dict[str, Any]:
    if hasattr(item, "to_dict"):
        return item.to_dict()
    if is_dataclass(item) and not isinstance(item, type):
        return asdict(item)
    if isinstance(item, Mapping):
        return dict(item)
    return {"value": item}


def export_analysis(
    tables: Mapping[str, Sequence[Any]],
    directory: Path,
    *,
    today: date | None = None,
    prefix: str = DEFAULT_FILE_PREFIX,
) -> Path:
    """Write every non-empty table to its own sheet and return the file path.

    Args:
        tables: Table key -> list of result records (dataclasses or dicts)
        directory: Destination directory (created if missing)
        today: Date stamped in the file name (defaults to the current date)
        prefix: File name prefix

    Raises:
        ExportUnavailableError: If the xlsx writer engine is not installed
    """
    if not export_available():
        raise ExportUnavailableError("Biblioteca de Excel não carregada.")

    stamp = (today or date.today()).isoformat()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{prefix}_{stamp}.xlsx"

    written = 0
    with pd.ExcelWriter(path, engine=WRITER_ENGINE) as writer:
        for key, value in tables.items():
            if not value:
                continue
            frame = pd.DataFrame([_record(item) for item in value])
            frame.to_excel(writer, sheet_name=sheet_name_for_key(key), index=False)
            written += 1
        if written == 0:
            # openpyxl refuses to save a workbook without sheets
            pd.DataFrame().to_excel(writer, sheet_name="Vazio", index=False)

    logger.info("exported %d table(s) to %s", written, path)
    return path
