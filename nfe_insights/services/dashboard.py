from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

import pandas as pd

from ..analysis import aggregations, dates, fields
from ..analysis.aggregations import correction_month_key
from ..config.loader import FilterDefaults
from ..models.analysis import (
    AnalysisEntry,
    DateRange,
    KeyTotal,
    MonthBucket,
    MonthTotal,
    ShiftDayTypeBreakdown,
)

logger = logging.getLogger(__name__)

"""Dashboard views over the ingested rows.

A view is the full set of aggregations one dashboard shows for a date
range. Views are recomputed from scratch whenever the rows or the range
change; nothing is cached between calls.

Drill-downs narrow a view further (one shift, one plant, one month, one tax
ID) and return the top five reasons or recipients for that slice.
"""

__all__ = [
    "DRILL_DOWN_LIMIT",
    "default_rejections_range",
    "default_corrections_range",
    "default_ranges",
    "rejection_month_key",
    "correction_month_key",
    "filter_by_range",
    "filter_by_month",
    "RejectionsView",
    "CorrectionsView",
    "build_rejections_view",
    "build_corrections_view",
    "reasons_for_shift",
    "reasons_for_shift_day_type",
    "recipients_for_plant",
    "reasons_for_month",
    "reasons_for_tax_id",
]

Row = Mapping[str, Any]
MonthKey = Callable[[Row], Optional[str]]

DRILL_DOWN_LIMIT = 5
REJECTIONS_DEFAULT_MONTHS = 4
CORRECTIONS_DEFAULT_MONTHS = 3


def default_rejections_range(today: date | None = None, months: int = REJECTIONS_DEFAULT_MONTHS) -> DateRange:
    """`months` back from today through today."""
    today = today or date.today()
    start = (pd.Timestamp(today) - pd.DateOffset(months=months)).date()
    return DateRange(start=start, end=today)


def default_corrections_range(today: date | None = None, months: int = CORRECTIONS_DEFAULT_MONTHS) -> DateRange:
    """First day of the month `months` back through the last day of the current month."""
    today = today or date.today()
    current = pd.Timestamp(today).replace(day=1)
    start = (current - pd.DateOffset(months=months)).date()
    end = (current + pd.offsets.MonthEnd(0)).date()
    return DateRange(start=start, end=end)


def default_ranges(filters: FilterDefaults, today: date | None = None) -> tuple[DateRange, DateRange]:
    """(rejections, corrections) default windows using the configured widths."""
    return (
        default_rejections_range(today, filters.rejections_months),
        default_corrections_range(today, filters.corrections_months),
    )


def rejection_month_key(row: Row) -> str | None:
    """MM-YYYY key derived from the row's modification date."""
    parsed = dates.parse(row.get(fields.MODIFIED_AT[0]))
    return dates.bucket_key(parsed) if parsed is not None else None


def filter_by_range(rows: Iterable[Row], date_range: DateRange | None, month_key: MonthKey) -> list[Row]:
    """Keep rows whose month (as its first day) falls inside the range.

    An open range keeps every row. With an active range, rows without a
    month key are dropped.
    """
    rows = list(rows)
    if date_range is None or date_range.is_open:
        return rows
    kept = []
    for row in rows:
        start = dates.month_start(month_key(row) or "")
        if start is not None and date_range.contains(start):
            kept.append(row)
    return kept


def filter_by_month(rows: Iterable[Row], month: str | None, month_key: MonthKey) -> list[Row]:
    """Keep rows in one MM-YYYY month; None keeps everything."""
    if not month:
        return list(rows)
    return [row for row in rows if month_key(row) == month]


def _dicts(items: Iterable[Any]) -> list[dict[str, Any]]:
    return [item.to_dict() for item in items]


@dataclass(frozen=True)
class RejectionsView:
    total: int
    top_reasons: list[AnalysisEntry]
    actor_split: list[AnalysisEntry]
    automation_rate: float
    monthly_volume: list[MonthBucket]
    shift_distribution: list[AnalysisEntry]
    shift_by_day_type: list[ShiftDayTypeBreakdown]
    rows: Sequence[Row] = field(default=(), repr=False)

    def export_tables(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "topCancelReasons": _dicts(self.top_reasons),
            "botVsAnalysts": _dicts(self.actor_split),
            "monthlyVolume": _dicts(self.monthly_volume),
            "shiftDistribution": _dicts(self.shift_distribution),
            "rejectionsByDayTypeAndShift": _dicts(self.shift_by_day_type),
        }


@dataclass(frozen=True)
class CorrectionsView:
    total: int
    plant_count: int
    by_plant: list[AnalysisEntry]
    top_reasons: list[AnalysisEntry]
    monthly_volume: list[MonthTotal]
    shift_by_day_type: list[ShiftDayTypeBreakdown]
    top_recipients: list[KeyTotal]
    rows: Sequence[Row] = field(default=(), repr=False)

    def export_tables(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "correctionsByPlant": _dicts(self.by_plant),
            "topCorrectionReasons": _dicts(self.top_reasons),
            "monthlyVolume": _dicts(self.monthly_volume),
            "correctionsByDayTypeAndShift": _dicts(self.shift_by_day_type),
            "topRecipients": _dicts(self.top_recipients),
        }


def build_rejections_view(
    rows: Iterable[Row],
    error_codes: Mapping[str, str],
    date_range: DateRange | None = None,
) -> RejectionsView:
    filtered = tuple(filter_by_range(rows, date_range, rejection_month_key))
    split = aggregations.actor_class_split(filtered)
    logger.debug("rejections view: %d rows in range", len(filtered))
    return RejectionsView(
        total=len(filtered),
        top_reasons=aggregations.top_reasons_from_codes(filtered, error_codes),
        actor_split=split,
        automation_rate=aggregations.automation_rate(split),
        monthly_volume=aggregations.monthly_volume(filtered),
        shift_distribution=aggregations.shift_distribution(filtered),
        shift_by_day_type=aggregations.shift_by_day_type(filtered),
        rows=filtered,
    )


def build_corrections_view(rows: Iterable[Row], date_range: DateRange | None = None) -> CorrectionsView:
    filtered = tuple(filter_by_range(rows, date_range, correction_month_key))
    by_plant = aggregations.corrections_by_plant(filtered)
    logger.debug("corrections view: %d rows in range", len(filtered))
    return CorrectionsView(
        total=len(filtered),
        plant_count=len(by_plant),
        by_plant=by_plant,
        top_reasons=aggregations.correction_reasons(filtered),
        monthly_volume=aggregations.monthly_volume_corrections(filtered),
        shift_by_day_type=aggregations.shift_by_day_type(filtered),
        top_recipients=aggregations.top_recipients(filtered),
        rows=filtered,
    )


# ---------------------------------------------------------------------------
# Drill-downs
# ---------------------------------------------------------------------------

def reasons_for_shift(
    rows: Iterable[Row],
    error_codes: Mapping[str, str],
    shift: str,
    month: str | None = None,
    limit: int = DRILL_DOWN_LIMIT,
) -> list[AnalysisEntry]:
    """Top rejection reasons for one shift, optionally within one month."""
    scoped = filter_by_month(rows, month, rejection_month_key)
    return aggregations.top_reasons_from_codes(
        [row for row in scoped if row.get(fields.SHIFT[0]) == shift], error_codes, limit
    )


def reasons_for_shift_day_type(
    rows: Iterable[Row],
    error_codes: Mapping[str, str],
    shift: str,
    day_type: str,
    limit: int = DRILL_DOWN_LIMIT,
) -> list[AnalysisEntry]:
    """Top rejection reasons for one shift on one day type (either spelling)."""
    wanted = aggregations.day_type(day_type)
    if wanted is None:
        return []
    selected = [
        row
        for row in rows
        if row.get(fields.SHIFT[0]) == shift and aggregations.day_type(row.get(fields.DAY_TYPE[0])) == wanted
    ]
    return aggregations.top_reasons_from_codes(selected, error_codes, limit)


def recipients_for_plant(rows: Iterable[Row], plant: str, limit: int = DRILL_DOWN_LIMIT) -> list[KeyTotal]:
    selected = [row for row in rows if fields.first_present(row, fields.PLANT) == plant]
    return aggregations.top_recipients(selected, limit)


def reasons_for_month(rows: Iterable[Row], month: str, limit: int = DRILL_DOWN_LIMIT) -> list[AnalysisEntry]:
    """Top correction reasons within one MM-YYYY month."""
    return aggregations.correction_reasons(filter_by_month(rows, month, correction_month_key), limit)


def reasons_for_tax_id(
    rows: Iterable[Row],
    tax_id: str,
    month: str | None = None,
    limit: int = DRILL_DOWN_LIMIT,
) -> list[AnalysisEntry]:
    """Top correction reasons for one tax ID, optionally within one month."""
    scoped = filter_by_month(rows, month, correction_month_key)
    selected = [row for row in scoped if fields.first_present(row, fields.TAX_ID) == tax_id]
    return aggregations.correction_reasons(selected, limit)
