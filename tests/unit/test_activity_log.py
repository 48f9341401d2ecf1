from __future__ import annotations

import json
import logging
import re

from nfe_insights.logging.activity_log import ActivityEntry, ActivityKind, ActivityLog


def test_entries_are_newest_first():
    log = ActivityLog()
    log.info("Iniciando leitura dos arquivos...")
    log.success("Dicionário com 2 códigos de erro criado.")
    log.error("ERRO: Aba 'X' não encontrada.")

    messages = [e.message for e in log.entries]
    assert messages == [
        "ERRO: Aba 'X' não encontrada.",
        "Dicionário com 2 códigos de erro criado.",
        "Iniciando leitura dos arquivos...",
    ]
    assert [e.kind for e in log.entries] == ["error", "success", "info"]
    assert len(log) == 3


def test_entry_timestamp_format():
    entry = ActivityEntry.create("x", ActivityKind.WARNING)
    assert re.fullmatch(r"\d{2}:\d{2}:\d{2}", entry.timestamp)
    assert entry.kind == "warning"


def test_entries_returns_copy_and_clear():
    log = ActivityLog()
    log.info("a")
    snapshot = log.entries
    snapshot.clear()
    assert len(log.entries) == 1
    log.clear()
    assert log.entries == []


def test_to_json_line_keeps_accents():
    entry = ActivityEntry(timestamp="10:00:00", message="Análise completa!", kind="success")
    line = entry.to_json_line()
    assert "Análise completa!" in line
    assert json.loads(line) == {"timestamp": "10:00:00", "message": "Análise completa!", "kind": "success"}


def test_entries_are_forwarded_to_logger(caplog):
    log = ActivityLog()
    with caplog.at_level(logging.INFO, logger="nfe_insights.activity"):
        log.info("Processando dados de Rejeições...")
        log.warning("Nenhuma linha encontrada")
    records = [(r.levelno, r.getMessage()) for r in caplog.records]
    assert (logging.INFO, "Processando dados de Rejeições...") in records
    assert (logging.WARNING, "Nenhuma linha encontrada") in records
