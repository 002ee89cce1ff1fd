from __future__ import annotations

from collections.abc import Callable
import time

from pool_pricing.application.components.volume_aggregator import VolumeAggregator
from pool_pricing.application.dto.metrics import GetPoolMetricsInput, GetPoolMetricsOutput
from pool_pricing.application.ports.pool_port import PoolPort
from pool_pricing.application.ports.token_port import TokenPort
from pool_pricing.domain.entities.token import normalize_address
from pool_pricing.domain.exceptions import PoolNotFoundError, TokenNotFoundError
from pool_pricing.domain.services.pool_metrics import (
    fee_apr_pct,
    percent_change,
    pool_tvl_usd,
    volume_tvl_ratio,
)


class GetPoolMetricsUseCase:
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

    def execute(self, command: GetPoolMetricsInput) -> GetPoolMetricsOutput:
        pool_id = normalize_address(command.pool_id)
        pool = self._pool_port.get(pool_id)
        if pool is None:
            raise PoolNotFoundError("Pool not found.")
        token0 = self._token_port.get(pool.token0_id)
        token1 = self._token_port.get(pool.token1_id)
        if token0 is None or token1 is None:
            raise TokenNotFoundError("Pool tokens not found.")

        now = int(self._clock())
        tvl = pool_tvl_usd(
            reserve0=pool.reserve0,
            reserve1=pool.reserve1,
            decimals0=token0.decimals,
            decimals1=token1.decimals,
            price0_usd=token0.price_usd,
            price1_usd=token1.price_usd,
        )
        volumes = {
            kind: self._volume_aggregator.get_volume(pool.id, kind, now=now)
            for kind in ("1h", "24h", "7d", "30d")
        }
        previous_24h = self._volume_aggregator.previous_window_usd(pool.id, "24h", now=now)

        return GetPoolMetricsOutput(
            pool_id=pool.id,
            tvl_usd=tvl,
            price0_usd=token0.price_usd,
            price1_usd=token1.price_usd,
            volume_1h_usd=volumes["1h"],
            volume_24h_usd=volumes["24h"],
            volume_7d_usd=volumes["7d"],
            volume_30d_usd=volumes["30d"],
            previous_volume_24h_usd=previous_24h,
            volume_change_24h_pct=percent_change(previous=previous_24h, current=volumes["24h"]),
            volume_tvl_ratio=volume_tvl_ratio(volume_usd=volumes["24h"], tvl_usd=tvl),
            fee_apr_pct=fee_apr_pct(volume_24h_usd=volumes["24h"], tvl_usd=tvl),
        )
