from __future__ import annotations

import asyncio
from pathlib import Path

import pandas as pd
import pytest

from nfe_insights.excel.reader import SheetNotFoundError, read_workbook
from nfe_insights.services.ingest import ChunkedIngestor, ingest, ingest_sheet


def _make_excel(tmp_path: Path, name: str, sheets: dict[str, list[list[object]]]) -> Path:
    p = tmp_path / name
    with pd.ExcelWriter(p) as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return p


def _rows(n: int) -> list[dict]:
    return [{"id": str(i)} for i in range(n)]


def test_ingest_empty_reports_100_once():
    calls: list[float] = []
    result = asyncio.run(ingest([], 500, calls.append))
    assert result == []
    assert calls == [100.0]


def test_ingest_1200_rows_in_500_row_slices():
    calls: list[float] = []
    source = _rows(1200)
    result = asyncio.run(ingest(source, 500, calls.append))

    assert result == source
    assert result is not source
    assert calls == pytest.approx([500 / 1200 * 100, 1000 / 1200 * 100, 100.0])
    assert calls == sorted(calls)
    assert calls[-1] == 100.0


def test_ingest_yields_between_slices_only():
    pauses = 0

    async def tick() -> None:
        nonlocal pauses
        pauses += 1

    asyncio.run(ingest(_rows(1200), 500, yield_control=tick))
    assert pauses == 2


def test_ingest_exact_multiple_of_chunk_size():
    calls: list[float] = []
    asyncio.run(ingest(_rows(1000), 500, calls.append))
    assert calls == [50.0, 100.0]


def test_ingest_accepts_callable_source():
    result = asyncio.run(ingest(lambda: _rows(3), 2))
    assert [r["id"] for r in result] == ["0", "1", "2"]


def test_ingest_propagates_extraction_errors():
    def broken() -> list[dict]:
        raise SheetNotFoundError("Aba 'X' não encontrada.")

    with pytest.raises(SheetNotFoundError, match="Aba 'X'"):
        asyncio.run(ingest(broken, 10))


@pytest.mark.parametrize("size", [0, -1])
def test_ingest_rejects_non_positive_chunk_size(size: int):
    with pytest.raises(ValueError):
        asyncio.run(ingest([], size))
    with pytest.raises(ValueError):
        ChunkedIngestor(size)


def test_chunked_ingestor_run_is_synchronous():
    calls: list[float] = []
    ingestor = ChunkedIngestor(2)
    assert ingestor.run(_rows(5), calls.append) == _rows(5)
    assert calls == pytest.approx([40.0, 80.0, 100.0])


def test_ingest_sheet_reads_named_sheet(temp_workdir: Path):
    path = _make_excel(temp_workdir, "book.xlsx", {"Dados": [["Planta", "CNPJ"], ["P1", "11444777000161"]]})
    workbook = read_workbook(path)
    rows = asyncio.run(ingest_sheet(workbook, "Dados", 500))
    assert rows == [{"Planta": "P1", "CNPJ": "11444777000161"}]


def test_ingest_sheet_missing_sheet(temp_workdir: Path):
    path = _make_excel(temp_workdir, "book.xlsx", {"Dados": [["Planta"], ["P1"]]})
    workbook = read_workbook(path)
    with pytest.raises(SheetNotFoundError, match="Aba 'Outra' não encontrada."):
        asyncio.run(ChunkedIngestor().ingest_sheet(workbook, "Outra"))
