from __future__ import annotations

from pydantic import BaseModel, Field


class PoolCreatedRequest(BaseModel):
    pool_address: str = Field(..., min_length=1)
    token0_address: str = Field(..., min_length=1)
    token1_address: str = Field(..., min_length=1)
    token0_decimals: int = Field(..., ge=0)
    token1_decimals: int = Field(..., ge=0)
    block_number: int = Field(..., ge=0)
    timestamp: int = Field(..., ge=0)


class SyncRequest(BaseModel):
    pool_address: str = Field(..., min_length=1)
    reserve0: int = Field(..., ge=0)
    reserve1: int = Field(..., ge=0)
    block_number: int = Field(..., ge=0)
    timestamp: int = Field(..., ge=0)


class SwapRequest(BaseModel):
    pool_address: str = Field(..., min_length=1)
    amount_in0: int = Field(0, ge=0)
    amount_in1: int = Field(0, ge=0)
    amount_out0: int = Field(0, ge=0)
    amount_out1: int = Field(0, ge=0)
    block_number: int = Field(..., ge=0)
    timestamp: int = Field(..., ge=0)


class PoolCreatedResponse(BaseModel):
    pool_id: str
    token0_id: str
    token1_id: str


class SyncResponse(BaseModel):
    pool_id: str
    applied: bool
    reason: str | None = None
    prices: dict[str, str] = Field(default_factory=dict)
    unpriced: list[str] = Field(default_factory=list)
    snapshots_written: int = 0


class SwapResponse(BaseModel):
    pool_id: str
    token0_units: str
    token1_units: str
    volume_usd: str
    priced: bool
