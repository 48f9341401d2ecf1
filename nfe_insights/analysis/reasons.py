from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

"""Free-text reason classification.

Two independent classifiers:

- `standardize` normalizes SEFAZ rejection messages via an ordered rule list
  (first match wins, so rule order matters).
- `classify_correction_reason` buckets correction-letter texts into a handful
  of coarse categories by keyword.
"""

__all__ = [
    "ReasonRule",
    "REJECTION_RULES",
    "NOT_SPECIFIED",
    "standardize",
    "classify_correction_reason",
]

NOT_SPECIFIED = "Motivo não especificado"
MAX_REASON_LENGTH = 100
ELLIPSIS = "..."


@dataclass(frozen=True)
class ReasonRule:
    """A pattern plus either a literal label or a function of the match."""
    pattern: re.Pattern[str]
    replacement: str | Callable[[re.Match[str]], str]

    def apply(self, message: str) -> str | None:
        match = self.pattern.search(message)
        if match is None:
            return None
        if callable(self.replacement):
            return self.replacement(match)
        return self.replacement


REJECTION_RULES: tuple[ReasonRule, ...] = (
    ReasonRule(
        re.compile(r"tipo de emissão\s*alterado", re.IGNORECASE),
        "Erro: Alteração do tipo de emissão da NF-e",
    ),
    ReasonRule(
        re.compile(r"o valor '.*?' do campo '(.*?)' é inválido", re.IGNORECASE),
        lambda m: f"Erro: Valor inválido no campo '{m.group(1)}'",
    ),
    ReasonRule(
        re.compile(r"rejeição:\s*(.*)", re.IGNORECASE),
        lambda m: f"Rejeição SEFAZ: {m.group(1).split('.')[0]}",
    ),
    ReasonRule(
        re.compile(r"o status da nf-e.*?foi alterado para erro", re.IGNORECASE),
        "Status da NF-e alterado para Erro na SEFAZ",
    ),
    ReasonRule(re.compile(r"<|>"), "Erro de formatação (HTML/XML na mensagem)"),
    ReasonRule(
        re.compile(r"line number|column number", re.IGNORECASE),
        "Erro de estrutura do arquivo (Linha/Coluna)",
    ),
    ReasonRule(re.compile(r"sefaz", re.IGNORECASE), "Erro de comunicação com a SEFAZ"),
)


def standardize(message: Any, rules: tuple[ReasonRule, ...] = REJECTION_RULES) -> str:
    """Map a rejection message to a standardized label.

    Falls back to the first 100 characters of the message (with "..." when
    truncated) if no rule matches.
    """
    if not isinstance(message, str) or not message.strip():
        return NOT_SPECIFIED
    for rule in rules:
        label = rule.apply(message)
        if label is not None:
            return label
    if len(message) > MAX_REASON_LENGTH:
        return message[:MAX_REASON_LENGTH] + ELLIPSIS
    return message


_CORRECTION_PREFIX = re.compile(r"^Correção:\s*", re.IGNORECASE)

# Checked in order; the first group that matches names the category.
CORRECTION_CATEGORIES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"peso.*?(\d+)", re.IGNORECASE), "Correção de Peso"),
    (re.compile(r"pall?et", re.IGNORECASE), "Correção de Quantidade de Pallets"),
    (re.compile(r"nfe|nota fiscal", re.IGNORECASE), "Correção de Documentação Fiscal"),
    (re.compile(r"transportadora|placa", re.IGNORECASE), "Correção de Transporte"),
    (re.compile(r"container|local de entrega", re.IGNORECASE), "Correção de Local/Container"),
)


def classify_correction_reason(message: Any) -> str:
    """Return the coarse category for a correction text, or the cleaned text itself."""
    if not isinstance(message, str):
        return ""
    cleaned = _CORRECTION_PREFIX.sub("", message.strip()).strip()
    for pattern, category in CORRECTION_CATEGORIES:
        if pattern.search(cleaned):
            return category
    return cleaned
