from __future__ import annotations

from typing import Protocol

from pool_pricing.domain.entities.price_snapshot import PriceSnapshot


class PriceSnapshotPort(Protocol):
    def upsert(self, snapshot: PriceSnapshot) -> bool:
        """Store the snapshot; returns True when it replaced an existing bucket."""
        ...

    def get(self, *, pool_id: str, tier: str, timestamp: int) -> PriceSnapshot | None:
        ...

    def list_range(
        self,
        *,
        pool_id: str,
        tier: str,
        start: int,
        end: int,
    ) -> list[PriceSnapshot]:
        ...

    def delete_before(self, *, tier: str, cutoff: int) -> int:
        ...
