from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException

from pool_pricing.application.components.pipeline import PricingPipeline
from pool_pricing.application.use_cases.get_pool_metrics import GetPoolMetricsUseCase
from pool_pricing.application.use_cases.get_pool_reserves import GetPoolReservesUseCase
from pool_pricing.application.use_cases.get_price_history import GetPriceHistoryUseCase
from pool_pricing.application.use_cases.get_protocol_metrics import GetProtocolMetricsUseCase
from pool_pricing.application.use_cases.get_token_metrics import GetTokenMetricsUseCase
from pool_pricing.application.use_cases.get_token_price import GetTokenPriceUseCase
from pool_pricing.application.use_cases.get_volume import GetVolumeUseCase
from pool_pricing.domain.exceptions import ConfigurationError
from pool_pricing.infrastructure.runtime import PricingRuntime, build_runtime
from pool_pricing.shared.config import get_settings


@lru_cache(maxsize=1)
def get_runtime() -> PricingRuntime:
    return build_runtime(get_settings())


def _runtime() -> PricingRuntime:
    try:
        return get_runtime()
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def get_pipeline() -> PricingPipeline:
    return _runtime().pipeline


def get_token_price_use_case() -> GetTokenPriceUseCase:
    runtime = _runtime()
    return GetTokenPriceUseCase(
        token_port=runtime.stores.tokens,
        stale_after_seconds=runtime.settings.price_stale_after_seconds,
    )


def get_pool_reserves_use_case() -> GetPoolReservesUseCase:
    return GetPoolReservesUseCase(reserve_store=_runtime().pipeline.reserve_store)


def get_price_history_use_case() -> GetPriceHistoryUseCase:
    runtime = _runtime()
    return GetPriceHistoryUseCase(
        snapshot_recorder=runtime.pipeline.snapshot_recorder,
        pool_port=runtime.stores.pools,
        cache=runtime.cache,
        cache_ttl_seconds=runtime.settings.query_cache_ttl_seconds,
    )


def get_volume_use_case() -> GetVolumeUseCase:
    runtime = _runtime()
    return GetVolumeUseCase(
        volume_aggregator=runtime.pipeline.volume_aggregator,
        pool_port=runtime.stores.pools,
        token_port=runtime.stores.tokens,
    )


def get_pool_metrics_use_case() -> GetPoolMetricsUseCase:
    runtime = _runtime()
    return GetPoolMetricsUseCase(
        pool_port=runtime.stores.pools,
        token_port=runtime.stores.tokens,
        volume_aggregator=runtime.pipeline.volume_aggregator,
    )


def get_protocol_metrics_use_case() -> GetProtocolMetricsUseCase:
    runtime = _runtime()
    return GetProtocolMetricsUseCase(
        pool_port=runtime.stores.pools,
        token_port=runtime.stores.tokens,
        volume_aggregator=runtime.pipeline.volume_aggregator,
    )


def get_token_metrics_use_case() -> GetTokenMetricsUseCase:
    runtime = _runtime()
    return GetTokenMetricsUseCase(
        token_port=runtime.stores.tokens,
        pool_port=runtime.stores.pools,
        oracle=runtime.pipeline.oracle,
        snapshot_recorder=runtime.pipeline.snapshot_recorder,
        volume_aggregator=runtime.pipeline.volume_aggregator,
    )
