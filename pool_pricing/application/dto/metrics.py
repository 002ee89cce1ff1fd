from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class GetPoolMetricsInput:
    pool_id: str


@dataclass(frozen=True)
class GetPoolMetricsOutput:
    pool_id: str
    tvl_usd: Decimal
    price0_usd: Decimal | None
    price1_usd: Decimal | None
    volume_1h_usd: Decimal
    volume_24h_usd: Decimal
    volume_7d_usd: Decimal
    volume_30d_usd: Decimal
    previous_volume_24h_usd: Decimal
    volume_change_24h_pct: Decimal | None
    volume_tvl_ratio: Decimal | None
    fee_apr_pct: Decimal | None


@dataclass(frozen=True)
class GetProtocolMetricsOutput:
    total_tvl_usd: Decimal
    volume_24h_usd: Decimal
    previous_volume_24h_usd: Decimal
    volume_change_24h_pct: Decimal | None
    pool_count: int
    token_count: int


@dataclass(frozen=True)
class GetTokenMetricsInput:
    token_id: str


@dataclass(frozen=True)
class GetTokenMetricsOutput:
    token_id: str
    price_usd: Decimal | None
    tvl_usd: Decimal
    volume_24h_usd: Decimal
    previous_volume_24h_usd: Decimal
    volume_change_24h_pct: Decimal | None
    price_change_1h_pct: Decimal | None
    price_change_24h_pct: Decimal | None
    price_change_7d_pct: Decimal | None
    pool_count: int
