from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

from pool_pricing.domain.entities.price_snapshot import SnapshotTier

ReferenceMode = Literal["pinned", "derived"]


@dataclass(frozen=True)
class ReferenceAsset:
    address: str
    mode: str
    pinned_price: Decimal | None = None

    @property
    def is_pinned(self) -> bool:
        return self.mode == "pinned"


@dataclass(frozen=True)
class PricingConfig:
    reference_assets: dict[str, ReferenceAsset]
    snapshot_tiers: tuple[SnapshotTier, ...]
    notification_change_threshold: Decimal
    max_route_depth: int
    snapshot_reciprocal_tolerance: Decimal
    volume_ledger_retention_seconds: int

    def reference_for(self, address: str) -> ReferenceAsset | None:
        return self.reference_assets.get(address.lower())
