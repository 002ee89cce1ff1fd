from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class GetTokenPriceInput:
    token_id: str


@dataclass(frozen=True)
class GetTokenPriceOutput:
    token_id: str
    price_usd: Decimal
    price_updated_at: datetime | None
    price_as_of_block: int | None
    is_reference_asset: bool
    stale: bool
