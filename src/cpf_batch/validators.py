"""CPF cleaning, padding, check-digit validation and formatting."""
from __future__ import annotations

import re
from typing import Any

CPF_LENGTH = 11
NON_DIGIT_RE = re.compile(r"[^0-9]")
CPF_DIGITS_RE = re.compile(r"[0-9]{11}")
CPF_GROUPS_RE = re.compile(r"([0-9]{3})([0-9]{3})([0-9]{3})([0-9]{2})")


def cell_to_text(value: Any) -> str:
    """Render a spreadsheet cell as text, dropping the ``.0`` of integral floats."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def clean_cpf(value: Any) -> str:
    return NON_DIGIT_RE.sub("", cell_to_text(value))


def pad_cpf(digits: str) -> str:
    """Restore leading zeros lost when the spreadsheet stored the CPF as a number."""
    return digits.rjust(CPF_LENGTH, "0")


def _check_digit(digits: str) -> int:
    weight = len(digits) + 1
    total = sum(int(digit) * (weight - idx) for idx, digit in enumerate(digits))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def has_valid_check_digits(digits: str) -> bool:
    if not CPF_DIGITS_RE.fullmatch(digits):
        return False
    # Repeated sequences pass the weighted sum but are never issued.
    if digits == digits[0] * CPF_LENGTH:
        return False
    if int(digits[9]) != _check_digit(digits[:9]):
        return False
    return int(digits[10]) == _check_digit(digits[:10])


def format_cpf(digits: str) -> str:
    match = CPF_GROUPS_RE.fullmatch(digits)
    if not match:
        return digits
    return "{}.{}.{}-{}".format(*match.groups())


def is_valid_cpf(value: Any) -> bool:
    return has_valid_check_digits(clean_cpf(value))
