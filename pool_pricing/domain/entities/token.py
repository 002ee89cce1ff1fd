from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


def normalize_address(value: str) -> str:
    return value.strip().lower()


@dataclass(frozen=True)
class Token:
    id: str
    address: str
    decimals: int
    is_reference_asset: bool = False
    price_usd: Decimal | None = None
    price_updated_at: datetime | None = None
    price_as_of_block: int | None = None
