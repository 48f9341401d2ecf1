# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path
import pandas as pd
import pytest

from nfe_insights.logging import init as logging_init


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "exports").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _fresh_logging():
    logging_init.reset_logging()
    yield
    logging_init.reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """sheets:
  error_codes: Lista Erros Sefaz
  rejections: Base Consolidado
  corrections: Listagem de Eventos
chunk_size: 2
filters:
  rejections_months: 6
export:
  directory: ./exports
  file_prefix: Relatorio_Teste
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "dashboard.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def make_excel(directory: Path, name: str, sheets: dict[str, list[list[object]]]) -> Path:
    """Write a workbook whose sheets hold `rows` verbatim (no pandas header row)."""
    p = directory / name
    with pd.ExcelWriter(p, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return p


REJECTIONS_HEADER = [
    "Data de modificação",
    "Modificado por",
    "Turno",
    "Tipo Semana",
    "Código status",
    "Motivo para estorno/não utilização",
]

CORRECTIONS_HEADER = ["Data", "Planta", "CNPJ", "Texto/ Motivo", "Turno", "Tipo Semana", "CNPJ Destinatário"]


@pytest.fixture()
def rejections_workbook(temp_workdir: Path) -> Path:
    return make_excel(
        temp_workdir / "data",
        "rejeicoes.xlsx",
        {
            "Lista Erros Sefaz": [
                [539, "Rejeição: Duplicidade de NF-e"],
                [204, "Duplicidade de NF-e com diferença na chave"],
            ],
            "Base Consolidado": [
                REJECTIONS_HEADER,
                ["2024-01-10", "NFERPABRAZIL", "T1", "semana", 539, ""],
                ["2024-01-22", "katiane.souza", "T2", "sábado", "", "Falha de comunicação com a SEFAZ"],
                ["2024-02-05", "joao", "T1", "week", 204, ""],
                ["2024-02-06", "rpa_user", "T3", "domingo", 539, ""],
                [None, None, None, None, None, None],
                ["2024-03-01", "maria", "T2", "semana", "", ""],
            ],
        },
    )


@pytest.fixture()
def corrections_workbook(temp_workdir: Path) -> Path:
    return make_excel(
        temp_workdir / "data",
        "correcoes.xlsx",
        {
            "Listagem de Eventos": [
                CORRECTIONS_HEADER,
                ["01-2024", "P1", "11444777000161", "Correção: peso bruto 1200", "T1", "semana", "11222333000181"],
                ["01-2024", "P1", "11444777000161", "quantidade de pallets", "T2", "sábado", "11222333000181"],
                ["02-2024", "P2", "11222333000181", "placa do veículo", "T1", "semana", "11444777000161"],
            ],
        },
    )
