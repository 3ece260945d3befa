"""Helper utilities for SQL generation."""

from __future__ import annotations

from typing import Iterable


def comma_separated(values: Iterable[str]) -> str:
    return ", ".join(values)


def quote_identifier(identifier: str, quote_char: str = '"', name_sep: str = ".") -> str:
    if not quote_char or identifier == "*":
        return identifier
    parts = identifier.split(name_sep) if name_sep else [identifier]
    quoted = [
        part if part == "*" else f"{quote_char}{part.replace(quote_char, quote_char * 2)}{quote_char}"
        for part in parts
    ]
    return name_sep.join(quoted)


def sql_case(keywords: str, case: str = "upper") -> str:
    return keywords.lower() if case == "lower" else keywords.upper()
