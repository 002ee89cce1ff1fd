from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
import time

from pool_pricing.application.components.price_oracle import PriceOracle
from pool_pricing.application.components.snapshot_recorder import SnapshotRecorder
from pool_pricing.application.components.volume_aggregator import VolumeAggregator
from pool_pricing.application.dto.metrics import GetTokenMetricsInput, GetTokenMetricsOutput
from pool_pricing.application.ports.pool_port import PoolPort
from pool_pricing.application.ports.token_port import TokenPort
from pool_pricing.domain.entities.token import Token, normalize_address
from pool_pricing.domain.exceptions import NoPriceRouteError, TokenNotFoundError
from pool_pricing.domain.services.pool_metrics import percent_change
from pool_pricing.domain.services.price_math import exchange_rate_to_price, to_human_units

PRICE_CHANGE_WINDOWS = {"1h": 3600, "24h": 86400, "7d": 7 * 86400}


class GetTokenMetricsUseCase:
    """TVL, volume and price movement of one token across all of its pools."""

    def __init__(
        self,
        *,
        token_port: TokenPort,
        pool_port: PoolPort,
        oracle: PriceOracle,
        snapshot_recorder: SnapshotRecorder,
        volume_aggregator: VolumeAggregator,
        clock: Callable[[], float] = time.time,
    ):
        self._token_port = token_port
        self._pool_port = pool_port
        self._oracle = oracle
        self._snapshot_recorder = snapshot_recorder
        self._volume_aggregator = volume_aggregator
        self._clock = clock

    def execute(self, command: GetTokenMetricsInput) -> GetTokenMetricsOutput:
        token_id = normalize_address(command.token_id)
        token = self._token_port.get(token_id)
        if token is None:
            raise TokenNotFoundError("Token not found.")

        now = int(self._clock())
        pools = self._pool_port.list_by_token(token.id)
        locked = sum(
            (
                to_human_units(pool.reserve0 if pool.token0_id == token.id else pool.reserve1, token.decimals)
                for pool in pools
            ),
            Decimal("0"),
        )
        tvl = locked * token.price_usd if token.price_usd is not None else Decimal("0")

        volume_24h = self._volume_aggregator.get_volume(token.id, "24h", now=now)
        previous_24h = self._volume_aggregator.previous_window_usd(token.id, "24h", now=now)
        changes = {
            kind: self._price_change(token, timeframe_seconds=seconds, now=now)
            for kind, seconds in PRICE_CHANGE_WINDOWS.items()
        }

        return GetTokenMetricsOutput(
            token_id=token.id,
            price_usd=token.price_usd,
            tvl_usd=tvl,
            volume_24h_usd=volume_24h,
            previous_volume_24h_usd=previous_24h,
            volume_change_24h_pct=percent_change(previous=previous_24h, current=volume_24h),
            price_change_1h_pct=changes["1h"],
            price_change_24h_pct=changes["24h"],
            price_change_7d_pct=changes["7d"],
            pool_count=len(pools),
        )

    def _price_change(self, token: Token, *, timeframe_seconds: int, now: int) -> Decimal | None:
        # Measured on the pool the price is currently routed through, valued at
        # the counterpart's current USD price.
        if token.price_usd is None:
            return None
        try:
            route = self._oracle.quote(token.id)
        except NoPriceRouteError:
            return None
        if route.pool_id is None:
            return Decimal("0")
        pool = self._pool_port.get(route.pool_id)
        if pool is None:
            return None
        counterpart = self._token_port.get(pool.counterpart_of(token.id))
        if counterpart is None or counterpart.price_usd is None:
            return None

        _, rows = self._snapshot_recorder.history(pool.id, timeframe_seconds=timeframe_seconds, now=now)
        if not rows:
            return None
        first = rows[0]
        rate = first.exchange_rate0 if pool.token0_id == token.id else first.exchange_rate1
        previous = exchange_rate_to_price(rate) * counterpart.price_usd
        return percent_change(previous=previous, current=token.price_usd)
