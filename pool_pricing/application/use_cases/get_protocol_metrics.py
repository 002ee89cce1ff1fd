from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
import time

from pool_pricing.application.components.volume_aggregator import VolumeAggregator
from pool_pricing.application.dto.metrics import GetProtocolMetricsOutput
from pool_pricing.application.ports.pool_port import PoolPort
from pool_pricing.application.ports.token_port import TokenPort
from pool_pricing.domain.services.pool_metrics import percent_change, pool_tvl_usd


class GetProtocolMetricsUseCase:
    def __init__(
        self,
        *,
        pool_port: PoolPort,
        token_port: TokenPort,
        volume_aggregator: VolumeAggregator,
        clock: Callable[[], float] = time.time,
    ):
        self._pool_port = pool_port
        self._token_port = token_port
        self._volume_aggregator = volume_aggregator
        self._clock = clock

    def execute(self) -> GetProtocolMetricsOutput:
        tokens = {token.id: token for token in self._token_port.list_all()}
        pools = self._pool_port.list_all()
        total_tvl = Decimal("0")
        for pool in pools:
            token0 = tokens.get(pool.token0_id)
            token1 = tokens.get(pool.token1_id)
            if token0 is None or token1 is None:
                continue
            total_tvl += pool_tvl_usd(
                reserve0=pool.reserve0,
                reserve1=pool.reserve1,
                decimals0=token0.decimals,
                decimals1=token1.decimals,
                price0_usd=token0.price_usd,
                price1_usd=token1.price_usd,
            )

        now = int(self._clock())
        volume_24h = self._volume_aggregator.total_pool_volume("24h", now=now)
        previous_24h = self._volume_aggregator.total_previous_window_usd("24h", now=now)
        return GetProtocolMetricsOutput(
            total_tvl_usd=total_tvl,
            volume_24h_usd=volume_24h,
            previous_volume_24h_usd=previous_24h,
            volume_change_24h_pct=percent_change(previous=previous_24h, current=volume_24h),
            pool_count=len(pools),
            token_count=len(tokens),
        )
