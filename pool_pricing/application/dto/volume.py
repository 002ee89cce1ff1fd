from __future__ import annotations

from dataclasses import dataclass

from pool_pricing.domain.entities.volume import VolumeWindow


@dataclass(frozen=True)
class GetVolumeInput:
    entity_id: str
    window: str = "24h"


@dataclass(frozen=True)
class GetVolumeOutput:
    entity_type: str
    window: VolumeWindow
