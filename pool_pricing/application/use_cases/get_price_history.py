from __future__ import annotations

from collections.abc import Callable
import logging
import time

from pool_pricing.application.components.pipeline import price_history_cache_prefix
from pool_pricing.application.components.snapshot_recorder import SnapshotRecorder
from pool_pricing.application.dto.price_history import GetPriceHistoryInput, GetPriceHistoryOutput
from pool_pricing.application.ports.cache_port import CachePort
from pool_pricing.application.ports.pool_port import PoolPort
from pool_pricing.domain.entities.price_snapshot import PricePoint
from pool_pricing.domain.entities.token import normalize_address
from pool_pricing.domain.exceptions import PoolNotFoundError, QueryInputError
from pool_pricing.domain.services.pair_orientation import invert_series, series_stats
from pool_pricing.domain.services.pool_metrics import percent_change
from pool_pricing.domain.services.price_math import exchange_rate_to_price
from pool_pricing.domain.services.snapshot_buckets import TIMEFRAME_SECONDS

logger = logging.getLogger(__name__)


class GetPriceHistoryUseCase:
    """Ordered (timestamp, price) series of token0 priced in token1 units."""

    def __init__(
        self,
        *,
        snapshot_recorder: SnapshotRecorder,
        pool_port: PoolPort,
        cache: CachePort | None = None,
        cache_ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._snapshot_recorder = snapshot_recorder
        self._pool_port = pool_port
        self._cache = cache
        self._cache_ttl_seconds = cache_ttl_seconds
        self._clock = clock

    def execute(self, command: GetPriceHistoryInput) -> GetPriceHistoryOutput:
        timeframe_seconds = TIMEFRAME_SECONDS.get(command.timeframe)
        if timeframe_seconds is None:
            raise QueryInputError(
                f"timeframe must be one of {', '.join(TIMEFRAME_SECONDS)}."
            )
        pool_id = normalize_address(command.pool_id)
        if self._pool_port.get(pool_id) is None:
            raise PoolNotFoundError("Pool not found.")

        cache_key = f"{price_history_cache_prefix(pool_id)}{command.timeframe}:{int(command.invert)}"
        if self._cache is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.debug("price_history: cache_hit key=%s", cache_key)
                return cached

        tier, snapshots = self._snapshot_recorder.history(
            pool_id,
            timeframe_seconds=timeframe_seconds,
            now=int(self._clock()),
        )
        series = [
            PricePoint(timestamp=row.timestamp, price=exchange_rate_to_price(row.exchange_rate0))
            for row in snapshots
        ]
        if command.invert:
            try:
                series = invert_series(series)
            except ValueError as exc:
                raise QueryInputError(str(exc)) from exc

        stats = series_stats(series)
        result = GetPriceHistoryOutput(
            pool_id=pool_id,
            timeframe=command.timeframe,
            tier=tier.name,
            inverted=command.invert,
            min_price=stats.min_price,
            max_price=stats.max_price,
            avg_price=stats.avg_price,
            latest_price=series[-1].price if series else None,
            change_pct=(
                percent_change(previous=series[0].price, current=series[-1].price)
                if series
                else None
            ),
            series=series,
        )
        if self._cache is not None:
            self._cache.set(cache_key, result, ttl_seconds=self._cache_ttl_seconds)
        return result
