from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from ..analysis.fields import text_value

"""Workbook reading for the rejections / corrections exports.

Row extraction contract:
- first row of a sheet is the header; repeated header labels get `__N` suffixes
- blank rows are dropped
- missing cells become ""
- numbers are rendered as text (integral floats without ".0")
- date cells are kept as `datetime` objects
"""

__all__ = [
    "ACCEPTED_SUFFIXES",
    "InputValidationError",
    "InvalidFileTypeError",
    "MissingInputError",
    "SheetNotFoundError",
    "validate_upload",
    "read_workbook",
    "require_sheet",
    "sheet_rows",
    "build_error_code_map",
]

ACCEPTED_SUFFIXES = {".xlsx", ".xls"}


class InputValidationError(Exception):
    """Raised before any processing when the selected inputs are unusable."""


class InvalidFileTypeError(InputValidationError):
    """Raised when a selected file is not an .xlsx / .xls workbook."""


class MissingInputError(InputValidationError):
    """Raised when one of the two required files was not supplied."""


class SheetNotFoundError(Exception):
    """Raised when a required sheet is absent from a workbook."""


def validate_upload(path: Path | None, label: str) -> Path:
    """Check that a selected file exists and is a spreadsheet workbook.

    Args:
        path: Selected file (None when nothing was selected)
        label: Human-readable name of the input, used in the error message

    Returns:
        The same path, for chaining.
    """
    if path is None:
        raise MissingInputError("Por favor, carregue ambos os arquivos.")
    if path.suffix.lower() not in ACCEPTED_SUFFIXES:
        raise InvalidFileTypeError(
            f"Tipo de arquivo inválido para {label}. Por favor, use .xlsx ou .xls."
        )
    if not path.exists():
        raise MissingInputError(f"Arquivo não encontrado: {path}")
    return path


def read_workbook(path: Path) -> dict[str, pd.DataFrame]:
    """Read every sheet of a workbook as a header-less raw DataFrame.

    Parameters
    ----------
    path: .xlsx (openpyxl) or .xls (xlrd) file
    """
    dfs: dict[str, pd.DataFrame] = {}
    with pd.ExcelFile(path) as xls:
        for name in xls.sheet_names:
            # header=None: the header row is resolved later by sheet_rows
            dfs[str(name)] = xls.parse(name, header=None, keep_default_na=False, na_values=[""])
    return dfs


def require_sheet(workbook: Mapping[str, pd.DataFrame], sheet_name: str) -> pd.DataFrame:
    try:
        return workbook[sheet_name]
    except KeyError:
        raise SheetNotFoundError(f"Aba '{sheet_name}' não encontrada.") from None


def _cell(value: Any) -> Any:
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, pd.Timestamp):
        return "" if pd.isna(value) else value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    if isinstance(value, float) and value != value:  # NaN
        return ""
    if isinstance(value, str):
        return value.strip()
    return text_value(value)


def _unique_headers(raw: list[Any]) -> list[str]:
    seen: dict[str, int] = {}
    columns: list[str] = []
    for position, value in enumerate(raw):
        label = text_value(_cell(value)) or f"__EMPTY_{position}"
        if label in seen:
            seen[label] += 1
            label = f"{label}__{seen[label]}"
        else:
            seen[label] = 0
        columns.append(label)
    return columns


def sheet_rows(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a raw sheet (header in the first row) into row dicts."""
    if df.shape[0] == 0:
        return []
    columns = _unique_headers(df.iloc[0].tolist())
    rows: list[dict[str, Any]] = []
    for raw in df.iloc[1:].itertuples(index=False, name=None):
        values = [_cell(v) for v in raw]
        if all(v == "" for v in values):
            continue
        rows.append(dict(zip(columns, values, strict=False)))
    return rows


def build_error_code_map(df: pd.DataFrame) -> dict[str, str]:
    """Build the status-code → description lookup from a header-less two-column sheet.

    Keys and values are trimmed text; a repeated code keeps the last description.
    """
    mapping: dict[str, str] = {}
    if df.shape[1] < 2:
        return mapping
    for code, description in df.iloc[:, :2].itertuples(index=False, name=None):
        key = text_value(_cell(code))
        if not key:
            continue
        mapping[key] = text_value(_cell(description))
    return mapping
