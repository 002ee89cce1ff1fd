from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Pool:
    id: str
    address: str
    token0_id: str
    token1_id: str
    reserve0: int = 0
    reserve1: int = 0
    last_synced_block: int | None = None
    created_at: datetime | None = None

    def token_ids(self) -> tuple[str, str]:
        return self.token0_id, self.token1_id

    def has_token(self, token_id: str) -> bool:
        return token_id in (self.token0_id, self.token1_id)

    def counterpart_of(self, token_id: str) -> str:
        if token_id == self.token0_id:
            return self.token1_id
        if token_id == self.token1_id:
            return self.token0_id
        raise ValueError(f"token {token_id} is not part of pool {self.id}.")

    def reserve_of(self, token_id: str) -> int:
        if token_id == self.token0_id:
            return self.reserve0
        if token_id == self.token1_id:
            return self.reserve1
        raise ValueError(f"token {token_id} is not part of pool {self.id}.")


@dataclass(frozen=True)
class PoolReserves:
    pool_id: str
    reserve0: int
    reserve1: int
    last_synced_block: int | None


@dataclass(frozen=True)
class SyncResult:
    pool_id: str
    applied: bool
    reserves: PoolReserves
    reason: str | None = None
