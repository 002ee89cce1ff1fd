from __future__ import annotations

from pydantic import BaseModel


class ProtocolMetricsResponse(BaseModel):
    total_tvl_usd: str
    volume_24h_usd: str
    previous_volume_24h_usd: str
    volume_change_24h_pct: str | None = None
    pool_count: int
    token_count: int
