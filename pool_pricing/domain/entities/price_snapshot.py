from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class SnapshotTier:
    name: str
    granularity_seconds: int
    retention_seconds: int | None


@dataclass(frozen=True)
class PriceSnapshot:
    pool_id: str
    tier: str
    timestamp: int
    exchange_rate0: int
    exchange_rate1: int
    block_number: int


@dataclass(frozen=True)
class PricePoint:
    timestamp: int
    price: Decimal


@dataclass(frozen=True)
class PriceStats:
    min_price: Decimal | None
    max_price: Decimal | None
    avg_price: Decimal | None
