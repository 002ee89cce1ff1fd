from __future__ import annotations

from pydantic import BaseModel, Field


class PoolReservesResponse(BaseModel):
    pool_id: str
    token0_id: str
    token1_id: str
    reserve0: str = Field(..., description="Raw reserve in token0 smallest units.")
    reserve1: str = Field(..., description="Raw reserve in token1 smallest units.")
    last_synced_block: int | None = None


class PricePointResponse(BaseModel):
    timestamp: int
    price: str


class PriceHistoryStatsResponse(BaseModel):
    min: str | None = Field(None, description="Min price in the timeframe.")
    max: str | None = Field(None, description="Max price in the timeframe.")
    avg: str | None = Field(None, description="Avg price in the timeframe.")
    price: str | None = Field(None, description="Latest price in the timeframe.")
    change_pct: str | None = Field(None, description="Change from first to latest point, in percent.")


class PriceHistoryResponse(BaseModel):
    pool_id: str
    timeframe: str
    tier: str
    inverted: bool
    stats: PriceHistoryStatsResponse
    series: list[PricePointResponse]


class PoolMetricsResponse(BaseModel):
    pool_id: str
    tvl_usd: str
    price0_usd: str | None = None
    price1_usd: str | None = None
    volume_1h_usd: str
    volume_24h_usd: str
    volume_7d_usd: str
    volume_30d_usd: str
    previous_volume_24h_usd: str
    volume_change_24h_pct: str | None = None
    volume_tvl_ratio: str | None = None
    fee_apr_pct: str | None = Field(None, description="Estimated APR at a 0.3% swap fee.")
