from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from pathlib import Path

from ..config.loader import AppConfig
from ..excel.reader import (
    build_error_code_map,
    read_workbook,
    require_sheet,
    validate_upload,
)
from ..logging.activity_log import ActivityLog
from ..logging.init import log_summary
from ..models.processed_data import LoadResult, LoadStatus, ProcessedData
from .ingest import ChunkedIngestor, YieldControl
from .progress import ProgressTracker
from .summary import render_summary_line

logger = logging.getLogger(__name__)

"""Load pipeline for the rejections and corrections workbooks.

This module coordinates one load run:
1. Validate both inputs (raises before any work starts)
2. Read both workbooks
3. Build the SEFAZ error-code map from the rejections workbook
4. Ingest the rejections and corrections sheets in chunks
5. Return a LoadResult and emit a SUMMARY line

Overall progress: 5 reading → 10 parsed → 20 error map → 20-55 rejections
→ 55-95 corrections → 100 done.
"""

REJECTIONS_LABEL = "rejeições"
CORRECTIONS_LABEL = "correções"

_REJECTIONS_BASE, _REJECTIONS_SPAN = 20.0, 0.35
_CORRECTIONS_BASE, _CORRECTIONS_SPAN = 55.0, 0.40


class ProcessingError(Exception):
    """Raised when a load cannot be started."""


def failure_message(error: BaseException) -> str:
    """User-facing banner text for a failed load."""
    return f"Erro no processamento: {error}. Verifique os nomes das abas."


async def load_workbooks(
    rejections_path: Path | None,
    corrections_path: Path | None,
    config: AppConfig | None = None,
    *,
    on_progress: Callable[[float], None] | None = None,
    activity: ActivityLog | None = None,
    yield_control: YieldControl | None = None,
) -> LoadResult:
    """Read both workbooks and ingest their sheets.

    Args:
        rejections_path: Rejections export (.xlsx/.xls) holding the error-code
            sheet and the rejections detail sheet
        corrections_path: Corrections export holding the corrections sheet
        config: Sheet names and chunk size (defaults when None)
        on_progress: Receives overall progress percentages
        activity: Activity log to record user-facing messages into
        yield_control: Awaited between ingestion slices

    Returns:
        LoadResult with SUCCESS and the ingested data, or FAILED with a
        user-facing error message. Structural and library errors never escape.

    Raises:
        InputValidationError: If a file is missing or is not a workbook
    """
    config = config or AppConfig()
    validate_upload(rejections_path, REJECTIONS_LABEL)
    validate_upload(corrections_path, CORRECTIONS_LABEL)

    activity = activity if activity is not None else ActivityLog()
    activity.clear()
    ingestor = ChunkedIngestor(config.chunk_size, yield_control=yield_control)
    start = time.perf_counter()

    with ProgressTracker() as tracker:
        def report(percent: float) -> None:
            tracker.update_to(percent)
            if on_progress is not None:
                on_progress(percent)

        try:
            activity.info("Iniciando leitura dos arquivos...")
            report(5)
            rejections_wb = read_workbook(rejections_path)
            corrections_wb = read_workbook(corrections_path)

            activity.info("Analisando estrutura dos arquivos...")
            report(10)

            activity.info("Criando dicionário de erros SEFAZ...")
            error_codes = build_error_code_map(require_sheet(rejections_wb, config.sheets.error_codes))
            activity.info(f"Dicionário com {len(error_codes)} códigos de erro criado.")
            report(20)

            activity.info("Processando dados de Rejeições...")
            tracker.set_stage("rejeições")
            rejections = await ingestor.ingest_sheet(
                rejections_wb,
                config.sheets.rejections,
                lambda p: report(_REJECTIONS_BASE + p * _REJECTIONS_SPAN),
            )

            activity.info("Processando dados de Correções...")
            tracker.set_stage("correções")
            corrections = await ingestor.ingest_sheet(
                corrections_wb,
                config.sheets.corrections,
                lambda p: report(_CORRECTIONS_BASE + p * _CORRECTIONS_SPAN),
            )
        except Exception as e:
            logger.debug("load failed", exc_info=True)
            activity.error(f"ERRO: {e}")
            result = LoadResult(
                status=LoadStatus.FAILED,
                error=failure_message(e),
                elapsed_seconds=time.perf_counter() - start,
            )
        else:
            activity.success(
                f"Processamento concluído: {len(rejections)} rejeições e {len(corrections)} correções."
            )
            report(100)
            activity.success("Análise completa! Dados prontos para visualização.")
            result = LoadResult(
                status=LoadStatus.SUCCESS,
                data=ProcessedData(
                    rejections=tuple(rejections),
                    corrections=tuple(corrections),
                    error_codes=error_codes,
                ),
                elapsed_seconds=time.perf_counter() - start,
            )

    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(result).removeprefix("SUMMARY "))
    return result


def process_files(
    rejections_path: Path | None,
    corrections_path: Path | None,
    config: AppConfig | None = None,
    *,
    on_progress: Callable[[float], None] | None = None,
    activity: ActivityLog | None = None,
) -> LoadResult:
    """Synchronous wrapper around `load_workbooks` for callers without an event loop."""
    return asyncio.run(
        load_workbooks(
            rejections_path,
            corrections_path,
            config,
            on_progress=on_progress,
            activity=activity,
        )
    )


class LoadSession:
    """Tracks the load state: idle → loading → (success | failed) → idle.

    `status` is LOADING only while a run is in flight; afterwards it returns
    to IDLE and the outcome is kept in `last_result`. There is no
    cancellation: a caller that no longer wants a run discards its result.
    """

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or AppConfig()
        self.status = LoadStatus.IDLE
        self.last_result: LoadResult | None = None
        self.activity = ActivityLog()

    @property
    def data(self) -> ProcessedData:
        if self.last_result is None or self.last_result.status is not LoadStatus.SUCCESS:
            return ProcessedData()
        return self.last_result.data

    async def load(
        self,
        rejections_path: Path | None,
        corrections_path: Path | None,
        *,
        on_progress: Callable[[float], None] | None = None,
        yield_control: YieldControl | None = None,
    ) -> LoadResult:
        if self.status is LoadStatus.LOADING:
            raise ProcessingError("a load is already in progress")
        self.status = LoadStatus.LOADING
        try:
            result = await load_workbooks(
                rejections_path,
                corrections_path,
                self.config,
                on_progress=on_progress,
                activity=self.activity,
                yield_control=yield_control,
            )
        finally:
            self.status = LoadStatus.IDLE
        self.last_result = result
        return result
