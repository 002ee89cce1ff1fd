from __future__ import annotations

from decimal import Decimal


def dec_to_str(value: Decimal) -> str:
    return str(value)


def dec_to_str_or_none(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None
