from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PoolCreatedEvent:
    pool_address: str
    token0_address: str
    token1_address: str
    token0_decimals: int
    token1_decimals: int
    block_number: int
    timestamp: int


@dataclass(frozen=True)
class SyncEvent:
    pool_address: str
    reserve0: int
    reserve1: int
    block_number: int
    timestamp: int


@dataclass(frozen=True)
class SwapEvent:
    pool_address: str
    amount_in0: int
    amount_in1: int
    amount_out0: int
    amount_out1: int
    timestamp: int
    block_number: int


PoolEvent = PoolCreatedEvent | SyncEvent | SwapEvent
