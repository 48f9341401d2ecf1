from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

"""Column alias resolution for raw spreadsheet rows.

Exports from different systems label the same logical field differently
(accents, spacing, duplicated headers). Every aggregation resolves fields
through the alias tuples below, trying each candidate in order.
"""

__all__ = [
    "text_value",
    "first_present",
    "MODIFIED_AT",
    "MODIFIED_BY",
    "SHIFT",
    "DAY_TYPE",
    "STATUS_CODE",
    "REJECTION_REASONS",
    "CORRECTION_DATE",
    "PLANT",
    "TAX_ID",
    "CORRECTION_REASON",
    "STANDARD_REASON",
    "RECIPIENT_TAX_ID",
    "NOT_AVAILABLE",
]

# Rejections sheet
MODIFIED_AT = ("Data de modificação",)
MODIFIED_BY = ("Modificado por",)
SHIFT = ("Turno",)
DAY_TYPE = ("Tipo Semana",)
STATUS_CODE = ("Código status",)
# The export repeats the reason header; the reader suffixes repeats with __N
REJECTION_REASONS = (
    "Motivo para estorno/não utilização",
    "Motivo para estorno/não utilização__1",
    "Motivo para estorno/não utilização__2",
    "Motivo para estorno/não utilização__3",
    "Motivo para estorno/não utilização__4",
)

# Corrections sheet
CORRECTION_DATE = ("Data",)
PLANT = ("Planta", "planta", "Plant", "PLANTA")
TAX_ID = ("CNPJ",)
CORRECTION_REASON = ("Texto/ Motivo", "Texto/Motivo", "Motivo", "motivo")
STANDARD_REASON = ("Motivo Padronizado", "motivo", "Motivo")
RECIPIENT_TAX_ID = ("CNPJ Destinatário", "CNPJ do Destinatário", "CNPJ", "Destinatário", "H")

NOT_AVAILABLE = "N/A"


def text_value(value: Any) -> str:
    """Render a cell as trimmed text ("" for empty cells).

    Integral floats lose their trailing ".0" so numeric codes read from a
    sheet match the keys of the error-code map.
    """
    if value is None:
        return ""
    if isinstance(value, float):
        if value != value:  # NaN
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def first_present(
    row: Mapping[str, Any],
    aliases: Sequence[str],
    *,
    skip: Sequence[str] = (),
) -> str:
    """Return the first non-empty value among the aliased columns.

    Values listed in `skip` (compared after trimming) are treated as empty.
    Returns "" when nothing matches.
    """
    for key in aliases:
        text = text_value(row.get(key))
        if text and text not in skip:
            return text
    return ""
