from __future__ import annotations

import re
from collections import Counter
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from ..models.analysis import (
    AnalysisEntry,
    KeyTotal,
    MonthBucket,
    MonthTotal,
    OffenderSummary,
    ShiftDayTypeBreakdown,
)
from . import dates, fields, reasons, tax_id

"""Aggregations behind the rejections / corrections dashboards.

Every function here is pure: it reads an immutable row sequence (plus the
error-code map where relevant) and builds a fresh result. Malformed or missing
fields exclude a row from that particular grouping; nothing raises.

Rankings are sorted by descending count. Ties keep the order in which labels
were first encountered (Counter preserves insertion order and `most_common`
sorts stably).
"""

__all__ = [
    "BOT_LABEL",
    "WAR_ROOM_LABEL",
    "OTHER_LABEL",
    "SHIFTS",
    "actor_class",
    "is_bot",
    "rejection_reason",
    "top_reasons_from_codes",
    "actor_class_split",
    "automation_rate",
    "monthly_volume",
    "monthly_volume_corrections",
    "correction_month_key",
    "shift_distribution",
    "day_type",
    "shift_by_day_type",
    "corrections_by_plant",
    "correction_reasons",
    "top_reasons_by_plant",
    "top_offenders_by_plant",
    "offender_stats",
    "top_n_by_key",
    "recipient_tax_id",
    "top_recipients",
]

Row = Mapping[str, Any]

TOP_REASONS_LIMIT = 10
TOP_RECIPIENTS_LIMIT = 5

BOT_LABEL = "Bot (Automação)"
WAR_ROOM_LABEL = "Sala de Guerra"
OTHER_LABEL = "Outros"

BOT_KEYWORDS = ("NFERPABRAZIL", "S_RF_DFE", "RPA")
WAR_ROOM_KEYWORDS = ("KATIANE", "CAROLAINE", "SOUZA")

SHIFTS = ("T1", "T2", "T3")

WEEK = "week"
SATURDAY = "saturday"
SUNDAY = "sunday"
_DAY_TYPE_SPELLINGS = {
    "week": WEEK,
    "semana": WEEK,
    "saturday": SATURDAY,
    "sábado": SATURDAY,
    "sunday": SUNDAY,
    "domingo": SUNDAY,
}

_REJECTION_LABEL_PREFIX = re.compile(r"^rejei[cç][ãa]o:\s*", re.IGNORECASE)
_MONTH_YEAR = re.compile(r"^\s*(\d{1,2})-(\d{4})\b")


def _ranked(counts: Counter[str], limit: int | None = None) -> list[AnalysisEntry]:
    return [AnalysisEntry(label, count) for label, count in counts.most_common(limit)]


# ---------------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------------

def _modified_by(row: Row) -> str:
    return fields.first_present(row, fields.MODIFIED_BY).upper()


def is_bot(row: Row) -> bool:
    actor = _modified_by(row)
    return any(k in actor for k in BOT_KEYWORDS)


def actor_class(row: Row) -> str:
    """Classify the modifying actor of a rejection row."""
    actor = _modified_by(row)
    if any(k in actor for k in BOT_KEYWORDS):
        return BOT_LABEL
    if any(k in actor for k in WAR_ROOM_KEYWORDS):
        return WAR_ROOM_LABEL
    return OTHER_LABEL


def rejection_reason(row: Row, error_codes: Mapping[str, str]) -> str | None:
    """Resolve the reason label for one rejection row.

    A status code present in the error-code map wins over the free-text
    columns. Returns None when the row has neither.
    """
    code = fields.first_present(row, fields.STATUS_CODE)
    if code and code in error_codes:
        description = _REJECTION_LABEL_PREFIX.sub("", error_codes[code])
        return f"Rejeição: {description}"
    text = fields.first_present(row, fields.REJECTION_REASONS, skip=(fields.NOT_AVAILABLE,))
    if not text:
        return None
    return reasons.standardize(text)


def top_reasons_from_codes(
    rows: Iterable[Row],
    error_codes: Mapping[str, str],
    limit: int | None = TOP_REASONS_LIMIT,
) -> list[AnalysisEntry]:
    counts: Counter[str] = Counter()
    for row in rows:
        label = rejection_reason(row, error_codes)
        if label is not None:
            counts[label] += 1
    return _ranked(counts, limit)


def actor_class_split(rows: Iterable[Row]) -> list[AnalysisEntry]:
    """Bot / war room / other split; always three entries in that order."""
    counts: Counter[str] = Counter({BOT_LABEL: 0, WAR_ROOM_LABEL: 0, OTHER_LABEL: 0})
    for row in rows:
        counts[actor_class(row)] += 1
    return [AnalysisEntry(label, counts[label]) for label in (BOT_LABEL, WAR_ROOM_LABEL, OTHER_LABEL)]


def automation_rate(split: Iterable[AnalysisEntry]) -> float:
    """Percentage of rows handled by automation (0.0 for an empty split)."""
    entries = list(split)
    total = sum(e.count for e in entries)
    if total == 0:
        return 0.0
    bots = sum(e.count for e in entries if e.label == BOT_LABEL)
    return bots / total * 100


def monthly_volume(rows: Iterable[Row]) -> list[MonthBucket]:
    """Rejections per month (chronological), split into bot vs human."""
    totals: Counter[str] = Counter()
    bots: Counter[str] = Counter()
    for row in rows:
        parsed = dates.parse(row.get(fields.MODIFIED_AT[0]))
        if parsed is None:
            continue
        key = dates.bucket_key(parsed)
        totals[key] += 1
        if is_bot(row):
            bots[key] += 1
    return [
        MonthBucket(key=key, total=totals[key], bot_count=bots[key], human_count=totals[key] - bots[key])
        for key in sorted(totals, key=dates.month_sort_key)
    ]


def shift_distribution(rows: Iterable[Row]) -> list[AnalysisEntry]:
    """Rows per shift code; exact T1/T2/T3 matches only, always three entries."""
    counts: Counter[str] = Counter({s: 0 for s in SHIFTS})
    for row in rows:
        shift = row.get(fields.SHIFT[0])
        if shift in SHIFTS:
            counts[shift] += 1
    return [AnalysisEntry(s, counts[s]) for s in SHIFTS]


def day_type(value: Any) -> str | None:
    """Canonical day type ('week' / 'saturday' / 'sunday') for either spelling."""
    return _DAY_TYPE_SPELLINGS.get(fields.text_value(value).lower())


def _shift_code(value: Any) -> str | None:
    code = fields.text_value(value).upper()
    return code if code in SHIFTS else None


def shift_by_day_type(rows: Iterable[Row]) -> list[ShiftDayTypeBreakdown]:
    """Shift × day-type matrix; rows with unknown shift or day type are skipped."""
    counts: dict[str, Counter[str]] = {s: Counter() for s in SHIFTS}
    for row in rows:
        shift = _shift_code(row.get(fields.SHIFT[0]))
        kind = day_type(row.get(fields.DAY_TYPE[0]))
        if shift is None or kind is None:
            continue
        counts[shift][kind] += 1
    return [
        ShiftDayTypeBreakdown(
            shift=s,
            week=counts[s][WEEK],
            saturday=counts[s][SATURDAY],
            sunday=counts[s][SUNDAY],
        )
        for s in SHIFTS
    ]


# ---------------------------------------------------------------------------
# Corrections
# ---------------------------------------------------------------------------

def correction_month_key(row: Row) -> str | None:
    """MM-YYYY key for a correction row's `Data` cell.

    Accepts "M-YYYY"/"MM-YYYY" text or anything the date parser understands.
    """
    raw = row.get(fields.CORRECTION_DATE[0])
    if isinstance(raw, str):
        m = _MONTH_YEAR.match(raw)
        if m:
            return f"{int(m.group(1)):02d}-{m.group(2)}"
    parsed = dates.parse(raw)
    return dates.bucket_key(parsed) if parsed is not None else None


def monthly_volume_corrections(rows: Iterable[Row]) -> list[MonthTotal]:
    totals: Counter[str] = Counter()
    for row in rows:
        key = correction_month_key(row)
        if key is not None:
            totals[key] += 1
    return [MonthTotal(key, totals[key]) for key in sorted(totals, key=dates.month_sort_key)]


def corrections_by_plant(rows: Iterable[Row]) -> list[AnalysisEntry]:
    counts: Counter[str] = Counter()
    for row in rows:
        plant = fields.first_present(row, fields.PLANT)
        if plant:
            counts[plant] += 1
    return _ranked(counts)


def correction_reasons(rows: Iterable[Row], limit: int | None = TOP_REASONS_LIMIT) -> list[AnalysisEntry]:
    counts: Counter[str] = Counter()
    for row in rows:
        text = fields.first_present(row, fields.CORRECTION_REASON)
        if not text:
            continue
        label = reasons.classify_correction_reason(text)
        if label:
            counts[label] += 1
    return _ranked(counts, limit)


def top_reasons_by_plant(
    rows: Iterable[Row], limit: int | None = TOP_REASONS_LIMIT
) -> dict[str, list[AnalysisEntry]]:
    """Per-plant ranking of an already standardized reason column."""
    per_plant: dict[str, Counter[str]] = {}
    for row in rows:
        plant = fields.first_present(row, fields.PLANT)
        reason = fields.first_present(row, fields.STANDARD_REASON)
        if not plant or not reason:
            continue
        per_plant.setdefault(plant, Counter())[reason] += 1
    return {plant: _ranked(counts, limit) for plant, counts in per_plant.items()}


def top_offenders_by_plant(rows: Iterable[Row], plant: str) -> list[OffenderSummary]:
    """Tax IDs with the most corrections at one plant; invalid tax IDs are ignored."""
    counts: Counter[str] = Counter()
    for row in rows:
        if fields.first_present(row, fields.PLANT) != plant:
            continue
        cnpj = fields.first_present(row, fields.TAX_ID)
        if not tax_id.is_valid(cnpj):
            continue
        counts[cnpj] += 1
    return [OffenderSummary(cnpj, count) for cnpj, count in counts.most_common()]


def offender_stats(rows: Iterable[Row]) -> dict[str, Any]:
    """Totals over every plant's offender ranking plus each plant's top offender."""
    rows = list(rows)
    plants: list[str] = []
    for row in rows:
        plant = fields.first_present(row, fields.PLANT)
        if plant and plant not in plants:
            plants.append(plant)
    rankings = {plant: top_offenders_by_plant(rows, plant) for plant in plants}
    rankings = {plant: ranking for plant, ranking in rankings.items() if ranking}
    return {
        "total_plants": len(rankings),
        "total_tax_ids": sum(len(r) for r in rankings.values()),
        "top_offenders": {plant: ranking[0] for plant, ranking in rankings.items()},
    }


def top_n_by_key(
    rows: Iterable[Row],
    key_extractor: Callable[[Row], str | None],
    n: int | None,
) -> list[KeyTotal]:
    counts: Counter[str] = Counter()
    for row in rows:
        key = key_extractor(row)
        if key:
            counts[key] += 1
    return [KeyTotal(key, total) for key, total in counts.most_common(n)]


def recipient_tax_id(row: Row) -> str:
    return fields.first_present(row, fields.RECIPIENT_TAX_ID)


def top_recipients(rows: Iterable[Row], n: int | None = TOP_RECIPIENTS_LIMIT) -> list[KeyTotal]:
    return top_n_by_key(rows, recipient_tax_id, n)