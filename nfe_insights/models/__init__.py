"""Domain models for the NF-e rejections / corrections insights library.

This package contains the result shapes of the aggregation layer and the
state objects of the workbook load pipeline.
"""

from .analysis import (
    AnalysisEntry,
    DateRange,
    KeyTotal,
    MonthBucket,
    MonthTotal,
    OffenderSummary,
    ShiftDayTypeBreakdown,
)
from .processed_data import LoadResult, LoadStatus, ProcessedData, RawRow

__all__ = [
    # Aggregation results
    "AnalysisEntry",
    "MonthBucket",
    "MonthTotal",
    "ShiftDayTypeBreakdown",
    "OffenderSummary",
    "KeyTotal",
    "DateRange",
    # Load pipeline
    "LoadStatus",
    "ProcessedData",
    "LoadResult",
    "RawRow",
]
