from __future__ import annotations

from pydantic import BaseModel


class VolumeResponse(BaseModel):
    entity_id: str
    entity_type: str
    window: str
    volume_usd: str
    volume_token_units: str
    volume_counterpart_units: str | None = None
    window_start: int
    window_end: int
    swap_count: int
    unpriced_swap_count: int
