from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

EntityType = Literal["token", "pool", "protocol"]
MetricKind = Literal["price", "volume", "tvl", "state"]

ENTITY_TYPES = ("token", "pool", "protocol")
NUMERIC_METRICS = ("price", "volume", "tvl")
DISCRETE_METRICS = ("state",)

PROTOCOL_ENTITY_ID = "protocol"


@dataclass(frozen=True)
class ChangeNotification:
    entity_type: str
    entity_id: str
    metric_kind: str
    timestamp: int
    value: Decimal | str | None = None

    @property
    def key(self) -> tuple[str, str, str]:
        return self.entity_type, self.entity_id, self.metric_kind
