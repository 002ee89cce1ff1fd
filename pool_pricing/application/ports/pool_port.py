from __future__ import annotations

from typing import Protocol

from pool_pricing.domain.entities.pool import Pool


class PoolPort(Protocol):
    def get(self, pool_id: str) -> Pool | None:
        ...

    def get_by_address(self, address: str) -> Pool | None:
        ...

    def add(self, pool: Pool) -> Pool:
        ...

    def save_reserves(
        self,
        *,
        pool_id: str,
        reserve0: int,
        reserve1: int,
        block_number: int,
    ) -> None:
        ...

    def list_by_token(self, token_id: str) -> list[Pool]:
        ...

    def list_all(self) -> list[Pool]:
        ...
