from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from pool_pricing.domain.entities.price_snapshot import PricePoint


@dataclass(frozen=True)
class GetPriceHistoryInput:
    pool_id: str
    timeframe: str = "1d"
    invert: bool = False


@dataclass(frozen=True)
class GetPriceHistoryOutput:
    pool_id: str
    timeframe: str
    tier: str
    inverted: bool
    min_price: Decimal | None
    max_price: Decimal | None
    avg_price: Decimal | None
    latest_price: Decimal | None
    change_pct: Decimal | None
    series: list[PricePoint]
