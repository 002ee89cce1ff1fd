from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

WindowKind = Literal["1h", "24h", "7d", "30d"]

WINDOW_SECONDS: dict[str, int] = {
    "1h": 3600,
    "24h": 86400,
    "7d": 7 * 86400,
    "30d": 30 * 86400,
}


@dataclass(frozen=True)
class SwapContribution:
    """One side of one swap, as seen from a single token or pool ledger."""

    timestamp: int
    token_units: Decimal
    usd: Decimal
    priced: bool
    counterpart_units: Decimal | None = None


@dataclass(frozen=True)
class VolumeWindow:
    entity_id: str
    window_kind: str
    volume_token_units: Decimal
    volume_usd: Decimal
    window_start: int
    window_end: int
    swap_count: int
    unpriced_swap_count: int
    volume_counterpart_units: Decimal | None = None
