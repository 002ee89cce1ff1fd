from __future__ import annotations

from pydantic import BaseModel, Field


class TokenPriceResponse(BaseModel):
    token_id: str
    price_usd: str = Field(..., description="Last derived USD price.")
    price_updated_at: str | None = None
    price_as_of_block: int | None = None
    is_reference_asset: bool
    stale: bool = Field(..., description="True when the price is older than the staleness limit.")


class TokenMetricsResponse(BaseModel):
    token_id: str
    price_usd: str | None = None
    tvl_usd: str = Field(..., description="USD value of the token's reserves across its pools.")
    volume_24h_usd: str
    previous_volume_24h_usd: str
    volume_change_24h_pct: str | None = None
    price_change_1h_pct: str | None = None
    price_change_24h_pct: str | None = None
    price_change_7d_pct: str | None = None
    pool_count: int
