from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Union

import pandas as pd

from ..excel import reader
from ..models.processed_data import RawRow

"""Chunked, cooperative ingestion of sheet rows.

Rows are copied into a fresh accumulator `chunk_size` at a time. After each
slice the progress callback receives `min(100, processed / total * 100)` and
control is handed back to the event loop, so a host loop (UI refresh, progress
bar) keeps running during large loads.

Slices run strictly in order and every run owns its accumulator, so an
abandoned run can simply be discarded.
"""

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "ChunkedIngestor",
    "ingest",
    "ingest_sheet",
]

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 500

ProgressCallback = Callable[[float], None]
YieldControl = Callable[[], Awaitable[None]]
RowSource = Union[Sequence[RawRow], Callable[[], Sequence[RawRow]]]


async def _default_yield() -> None:
    await asyncio.sleep(0)


async def ingest(
    sheet_rows: RowSource,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    on_progress: ProgressCallback | None = None,
    *,
    yield_control: YieldControl | None = None,
) -> list[RawRow]:
    """Copy rows into a new list in bounded slices, yielding between slices.

    Args:
        sheet_rows: The rows, or a zero-argument callable that extracts them.
            Extraction errors propagate unchanged to the awaiting caller.
        chunk_size: Rows per slice (must be positive)
        on_progress: Receives percentages after each slice (100 once for empty input)
        yield_control: Awaited between slices; defaults to `asyncio.sleep(0)`

    Returns:
        A new list holding every row in the original order.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    pause = yield_control or _default_yield
    report = on_progress or (lambda _p: None)

    rows = sheet_rows() if callable(sheet_rows) else sheet_rows
    total = len(rows)
    if total == 0:
        report(100.0)
        return []

    accumulated: list[RawRow] = []
    index = 0
    while True:
        accumulated.extend(rows[index:index + chunk_size])
        index += chunk_size
        report(min(100.0, index / total * 100))
        if index >= total:
            break
        await pause()

    logger.debug("ingested %d rows in %d-row slices", total, chunk_size)
    return accumulated


async def ingest_sheet(
    workbook: Mapping[str, pd.DataFrame],
    sheet_name: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    on_progress: ProgressCallback | None = None,
    *,
    yield_control: YieldControl | None = None,
) -> list[RawRow]:
    """Ingest a named sheet of a workbook read by `excel.reader.read_workbook`.

    Raises:
        SheetNotFoundError: If the workbook has no sheet called `sheet_name`
    """
    def extract() -> list[RawRow]:
        return reader.sheet_rows(reader.require_sheet(workbook, sheet_name))

    return await ingest(extract, chunk_size, on_progress, yield_control=yield_control)


class ChunkedIngestor:
    """Holds the slice size and yield primitive shared by several ingestions."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        *,
        yield_control: YieldControl | None = None,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.chunk_size = chunk_size
        self.yield_control = yield_control

    async def ingest(self, sheet_rows: RowSource, on_progress: ProgressCallback | None = None) -> list[RawRow]:
        return await ingest(sheet_rows, self.chunk_size, on_progress, yield_control=self.yield_control)

    async def ingest_sheet(
        self,
        workbook: Mapping[str, pd.DataFrame],
        sheet_name: str,
        on_progress: ProgressCallback | None = None,
    ) -> list[RawRow]:
        return await ingest_sheet(
            workbook, sheet_name, self.chunk_size, on_progress, yield_control=self.yield_control
        )

    def run(self, sheet_rows: RowSource, on_progress: ProgressCallback | None = None) -> list[RawRow]:
        """Synchronous entry point for callers without a running event loop."""
        return asyncio.run(self.ingest(sheet_rows, on_progress))

    def __repr__(self) -> str:  # pragma: no cover (trivial)
        return f"ChunkedIngestor(chunk_size={self.chunk_size})"
