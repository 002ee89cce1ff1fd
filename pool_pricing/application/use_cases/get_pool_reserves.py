from __future__ import annotations

from pool_pricing.application.components.reserve_store import ReserveStore
from pool_pricing.application.dto.pool_reserves import GetPoolReservesInput, GetPoolReservesOutput
from pool_pricing.domain.entities.token import normalize_address


class GetPoolReservesUseCase:
    def __init__(self, *, reserve_store: ReserveStore):
        self._reserve_store = reserve_store

    def execute(self, command: GetPoolReservesInput) -> GetPoolReservesOutput:
        pool = self._reserve_store.get_pool(normalize_address(command.pool_id))
        return GetPoolReservesOutput(
            pool_id=pool.id,
            token0_id=pool.token0_id,
            token1_id=pool.token1_id,
            reserve0=pool.reserve0,
            reserve1=pool.reserve1,
            last_synced_block=pool.last_synced_block,
        )
