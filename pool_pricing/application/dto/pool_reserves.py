from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GetPoolReservesInput:
    pool_id: str


@dataclass(frozen=True)
class GetPoolReservesOutput:
    pool_id: str
    token0_id: str
    token1_id: str
    reserve0: int
    reserve1: int
    last_synced_block: int | None
