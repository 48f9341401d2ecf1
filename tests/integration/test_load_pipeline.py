from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from nfe_insights.config.loader import AppConfig, SheetNames, load_config
from nfe_insights.excel.reader import InvalidFileTypeError, MissingInputError
from nfe_insights.logging.activity_log import ActivityLog
from nfe_insights.models import LoadStatus
from nfe_insights.services.orchestrator import LoadSession, ProcessingError, load_workbooks, process_files

"""End-to-end load of a rejections workbook and a corrections workbook.

Uses the workbooks built by the `rejections_workbook` / `corrections_workbook`
fixtures: 5 rejection rows (one blank row dropped), 3 correction rows and a
2-entry error-code sheet.
"""


def test_process_files_success(rejections_workbook: Path, corrections_workbook: Path, capsys):
    calls: list[float] = []
    activity = ActivityLog()

    result = process_files(rejections_workbook, corrections_workbook, on_progress=calls.append, activity=activity)

    assert result.status is LoadStatus.SUCCESS
    assert result.error is None
    assert len(result.data.rejections) == 5
    assert len(result.data.corrections) == 3
    assert result.data.error_codes == {
        "539": "Rejeição: Duplicidade de NF-e",
        "204": "Duplicidade de NF-e com diferença na chave",
    }
    assert result.data.rejections[0]["Modificado por"] == "NFERPABRAZIL"
    assert result.data.corrections[2]["Planta"] == "P2"

    assert calls == pytest.approx([5, 10, 20, 55, 95, 100])

    messages = [e.message for e in activity.entries]
    assert messages[0] == "Análise completa! Dados prontos para visualização."
    assert "Dicionário com 2 códigos de erro criado." in messages
    assert "Processamento concluído: 5 rejeições e 3 correções." in messages
    assert messages[-1] == "Iniciando leitura dos arquivos..."

    out = capsys.readouterr().out
    assert "SUMMARY status=success rejections=5 corrections=3 error_codes=2" in out


def test_progress_is_weighted_per_stage(rejections_workbook: Path, corrections_workbook: Path, write_config: Path):
    calls: list[float] = []
    config = load_config(write_config)  # chunk_size: 2

    result = process_files(rejections_workbook, corrections_workbook, config, on_progress=calls.append)

    assert result.status is LoadStatus.SUCCESS
    assert calls == pytest.approx(
        [5, 10, 20, 20 + 40 * 0.35, 20 + 80 * 0.35, 55, 55 + (200 / 3) * 0.40, 95, 100]
    )
    assert calls == sorted(calls)


def test_missing_sheet_fails_with_banner_message(rejections_workbook: Path, corrections_workbook: Path, capsys):
    config = AppConfig(sheets=SheetNames(corrections="Eventos"))
    activity = ActivityLog()

    result = process_files(rejections_workbook, corrections_workbook, config, activity=activity)

    assert result.status is LoadStatus.FAILED
    assert result.error == "Erro no processamento: Aba 'Eventos' não encontrada.. Verifique os nomes das abas."
    assert result.data.is_empty
    assert activity.entries[0].kind == "error"
    assert "SUMMARY status=failed" in capsys.readouterr().out


def test_missing_error_code_sheet_fails(corrections_workbook: Path):
    # the corrections workbook has no "Lista Erros Sefaz" sheet
    result = process_files(corrections_workbook, corrections_workbook)
    assert result.status is LoadStatus.FAILED
    assert "Aba 'Lista Erros Sefaz' não encontrada." in result.error


def test_corrupt_workbook_fails_without_raising(temp_workdir: Path, corrections_workbook: Path):
    broken = temp_workdir / "data" / "quebrado.xlsx"
    broken.write_bytes(b"not a zip file")
    result = process_files(broken, corrections_workbook)
    assert result.status is LoadStatus.FAILED
    assert result.error.startswith("Erro no processamento: ")


def test_input_validation_raises_before_any_work(temp_workdir: Path, rejections_workbook: Path):
    calls: list[float] = []
    csv = temp_workdir / "data" / "correcoes.csv"
    csv.write_text("a;b", encoding="utf-8")

    with pytest.raises(InvalidFileTypeError, match="correções"):
        process_files(rejections_workbook, csv, on_progress=calls.append)
    with pytest.raises(MissingInputError):
        process_files(rejections_workbook, None, on_progress=calls.append)
    assert calls == []


def test_load_session_returns_to_idle(rejections_workbook: Path, corrections_workbook: Path):
    session = LoadSession()
    assert session.data.is_empty

    result = asyncio.run(session.load(rejections_workbook, corrections_workbook))

    assert result.status is LoadStatus.SUCCESS
    assert session.status is LoadStatus.IDLE
    assert session.last_result is result
    assert len(session.data.rejections) == 5
    assert len(session.activity) > 0


def test_load_session_rejects_concurrent_load(rejections_workbook: Path, corrections_workbook: Path):
    session = LoadSession()
    session.status = LoadStatus.LOADING
    with pytest.raises(ProcessingError):
        asyncio.run(session.load(rejections_workbook, corrections_workbook))


def test_load_session_failed_load_keeps_no_data(rejections_workbook: Path, corrections_workbook: Path):
    session = LoadSession(AppConfig(sheets=SheetNames(rejections="Outra")))
    result = asyncio.run(session.load(rejections_workbook, corrections_workbook))
    assert result.status is LoadStatus.FAILED
    assert session.status is LoadStatus.IDLE
    assert session.data.is_empty


def test_load_workbooks_yields_between_slices(rejections_workbook: Path, corrections_workbook: Path):
    ticks = 0

    async def tick() -> None:
        nonlocal ticks
        ticks += 1

    config = AppConfig(chunk_size=2)
    result = asyncio.run(
        load_workbooks(rejections_workbook, corrections_workbook, config, yield_control=tick)
    )
    assert result.status is LoadStatus.SUCCESS
    # 5 rows -> 3 slices, 3 rows -> 2 slices; no pause after the last slice
    assert ticks == 2 + 1
