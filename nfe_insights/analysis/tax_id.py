from __future__ import annotations

import re
from typing import Any

"""CNPJ (Brazilian company tax ID) validation and display formatting.

A CNPJ has 12 base digits followed by two check digits. Each check digit is
`11 - (weighted_sum % 11)`, with results above 9 folded to 0.
"""

__all__ = [
    "is_valid",
    "format",
    "digits_only",
]

CNPJ_LENGTH = 14

_FIRST_WEIGHTS = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_SECOND_WEIGHTS = (6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_NON_DIGITS = re.compile(r"\D")
_MASK = re.compile(r"^(\d{2})(\d{3})(\d{3})(\d{4})(\d{2})$")


def digits_only(value: Any) -> str:
    """Return only the digit characters of value ("" for non-strings)."""
    if not isinstance(value, str):
        return ""
    return _NON_DIGITS.sub("", value)


def _check_digit(digits: str, weights: tuple[int, ...]) -> int:
    total = sum(int(d) * w for d, w in zip(digits, weights, strict=True))
    digit = 11 - (total % 11)
    return 0 if digit > 9 else digit


def is_valid(value: Any) -> bool:
    """Validate a CNPJ, ignoring punctuation.

    Examples:
        >>> is_valid("11.444.777/0001-61")
        True
        >>> is_valid("11444777000162")
        False
    """
    digits = digits_only(value)
    if len(digits) != CNPJ_LENGTH:
        return False
    if _check_digit(digits[:12], _FIRST_WEIGHTS) != int(digits[12]):
        return False
    return _check_digit(digits[:13], _SECOND_WEIGHTS) == int(digits[13])


def format(value: str) -> str:  # noqa: A001 - mirrors the validator API
    """Format as NN.NNN.NNN/NNNN-NN; anything that is not 14 digits is returned as-is."""
    digits = digits_only(value)
    if len(digits) != CNPJ_LENGTH:
        return value
    return _MASK.sub(r"\1.\2.\3/\4-\5", digits)
