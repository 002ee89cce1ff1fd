from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import pytest

from pool_pricing.application.dto.metrics import GetPoolMetricsInput, GetTokenMetricsInput
from pool_pricing.application.dto.pool_reserves import GetPoolReservesInput
from pool_pricing.application.dto.price_history import GetPriceHistoryInput
from pool_pricing.application.dto.token_price import GetTokenPriceInput
from pool_pricing.application.dto.volume import GetVolumeInput
from pool_pricing.application.use_cases.get_pool_metrics import GetPoolMetricsUseCase
from pool_pricing.application.use_cases.get_pool_reserves import GetPoolReservesUseCase
from pool_pricing.application.use_cases.get_price_history import GetPriceHistoryUseCase
from pool_pricing.application.use_cases.get_protocol_metrics import GetProtocolMetricsUseCase
from pool_pricing.application.use_cases.get_token_metrics import GetTokenMetricsUseCase
from pool_pricing.application.use_cases.get_token_price import GetTokenPriceUseCase
from pool_pricing.application.use_cases.get_volume import GetVolumeUseCase
from pool_pricing.domain.entities.events import PoolCreatedEvent, SwapEvent, SyncEvent
from pool_pricing.domain.exceptions import (
    EntityNotFoundError,
    NoPriceRouteError,
    PoolNotFoundError,
    QueryInputError,
    TokenNotFoundError,
)

USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
TOKEN_X = "0x1000000000000000000000000000000000000001"
TOKEN_Y = "0x2000000000000000000000000000000000000002"
POOL = "0x9000000000000000000000000000000000000001"
POOL_Y = "0x9000000000000000000000000000000000000002"
E18 = 10**18
T0 = 1_700_000_000


@pytest.fixture
def seeded(pipeline):
    pipeline.handle(
        PoolCreatedEvent(
            pool_address=POOL,
            token0_address=TOKEN_X,
            token1_address=USDC,
            token0_decimals=18,
            token1_decimals=6,
            block_number=1,
            timestamp=T0 - 100,
        )
    )
    pipeline.handle(SyncEvent(pool_address=POOL, reserve0=500 * E18, reserve1=1_000 * 10**6, block_number=10, timestamp=T0))
    return pipeline


def _minute_snapshot(stores):
    return stores.snapshots.get(pool_id=POOL, tier="minute", timestamp=T0 - T0 % 60)


def _history_use_case(pipeline, stores, cache=None, now=T0 + 130):
    return GetPriceHistoryUseCase(
        snapshot_recorder=pipeline.snapshot_recorder,
        pool_port=stores.pools,
        cache=cache,
        cache_ttl_seconds=60,
        clock=lambda: now,
    )


def test_price_history_series_stats_and_inversion(seeded, stores):
    seeded.handle(SyncEvent(pool_address=POOL, reserve0=400 * E18, reserve1=1_000 * 10**6, block_number=11, timestamp=T0 + 120))
    use_case = _history_use_case(seeded, stores)

    result = use_case.execute(GetPriceHistoryInput(pool_id=POOL, timeframe="1h"))

    assert result.tier == "minute"
    assert [row.price for row in result.series] == [Decimal("2"), Decimal("2.5")]
    assert result.min_price == Decimal("2")
    assert result.max_price == Decimal("2.5")
    assert result.avg_price == Decimal("2.25")
    assert result.latest_price == Decimal("2.5")
    assert result.change_pct == Decimal("25")

    inverted = use_case.execute(GetPriceHistoryInput(pool_id=POOL, timeframe="1h", invert=True))
    assert inverted.inverted is True
    assert [row.price for row in inverted.series] == [Decimal("0.5"), Decimal("0.4")]


def test_price_history_is_cached_until_a_snapshot_lands(seeded, stores, cache):
    use_case = _history_use_case(seeded, stores, cache=cache)
    first = use_case.execute(GetPriceHistoryInput(pool_id=POOL, timeframe="1d"))

    # bypass the pipeline: the cache must still answer
    stores.snapshots.upsert(replace(_minute_snapshot(stores), timestamp=T0 + 40, exchange_rate0=3 * E18))
    assert use_case.execute(GetPriceHistoryInput(pool_id=POOL, timeframe="1d")) is first

    seeded.handle(SyncEvent(pool_address=POOL, reserve0=400 * E18, reserve1=1_000 * 10**6, block_number=12, timestamp=T0 + 120))
    refreshed = use_case.execute(GetPriceHistoryInput(pool_id=POOL, timeframe="1d"))
    assert refreshed is not first
    assert refreshed.latest_price == Decimal("2.5")


def test_price_history_rejects_bad_input(seeded, stores):
    use_case = _history_use_case(seeded, stores)
    with pytest.raises(QueryInputError):
        use_case.execute(GetPriceHistoryInput(pool_id=POOL, timeframe="2d"))
    with pytest.raises(PoolNotFoundError):
        use_case.execute(GetPriceHistoryInput(pool_id="0xmissing"))


def test_token_price_staleness(seeded, stores):
    fresh = GetTokenPriceUseCase(token_port=stores.tokens, stale_after_seconds=3600, clock=lambda: T0 + 10)
    old = GetTokenPriceUseCase(token_port=stores.tokens, stale_after_seconds=3600, clock=lambda: T0 + 3601)

    result = fresh.execute(GetTokenPriceInput(token_id=TOKEN_X))
    assert result.price_usd == Decimal("2")
    assert result.price_as_of_block == 10
    assert result.stale is False
    assert old.execute(GetTokenPriceInput(token_id=TOKEN_X)).stale is True
    assert fresh.execute(GetTokenPriceInput(token_id=USDC)).is_reference_asset is True
    with pytest.raises(TokenNotFoundError):
        fresh.execute(GetTokenPriceInput(token_id="0xmissing"))


def test_token_without_price_route(seeded, stores):
    seeded.handle(
        PoolCreatedEvent(
            pool_address=POOL_Y,
            token0_address=TOKEN_Y,
            token1_address=TOKEN_X,
            token0_decimals=18,
            token1_decimals=18,
            block_number=2,
            timestamp=T0,
        )
    )
    use_case = GetTokenPriceUseCase(token_port=stores.tokens, stale_after_seconds=3600, clock=lambda: T0)

    with pytest.raises(NoPriceRouteError):
        use_case.execute(GetTokenPriceInput(token_id=TOKEN_Y))


def test_pool_reserves(seeded):
    use_case = GetPoolReservesUseCase(reserve_store=seeded.reserve_store)

    result = use_case.execute(GetPoolReservesInput(pool_id=POOL))

    assert (result.token0_id, result.token1_id) == (TOKEN_X, USDC)
    assert result.reserve0 == 500 * E18
    assert result.last_synced_block == 10
    with pytest.raises(PoolNotFoundError):
        use_case.execute(GetPoolReservesInput(pool_id="0xmissing"))


def _swap(pipeline, timestamp=T0 + 30):
    pipeline.handle(
        SwapEvent(
            pool_address=POOL,
            amount_in0=10 * E18,
            amount_in1=0,
            amount_out0=0,
            amount_out1=20 * 10**6,
            timestamp=timestamp,
            block_number=11,
        )
    )


def test_volume_for_protocol_pool_and_token(seeded, stores):
    _swap(seeded)
    use_case = GetVolumeUseCase(
        volume_aggregator=seeded.volume_aggregator,
        pool_port=stores.pools,
        token_port=stores.tokens,
        clock=lambda: T0 + 60,
    )

    protocol = use_case.execute(GetVolumeInput(entity_id="protocol"))
    pool = use_case.execute(GetVolumeInput(entity_id=POOL, window="1h"))
    token = use_case.execute(GetVolumeInput(entity_id=TOKEN_X, window="7d"))

    assert (protocol.entity_type, protocol.window.volume_usd) == ("protocol", Decimal("20"))
    assert (pool.entity_type, pool.window.volume_token_units) == ("pool", Decimal("10"))
    assert pool.window.volume_counterpart_units == Decimal("20")
    assert (token.entity_type, token.window.volume_usd) == ("token", Decimal("20"))
    with pytest.raises(EntityNotFoundError):
        use_case.execute(GetVolumeInput(entity_id="0xmissing"))
    with pytest.raises(QueryInputError):
        use_case.execute(GetVolumeInput(entity_id=POOL, window="90d"))


def test_pool_and_protocol_metrics(seeded, stores):
    _swap(seeded)
    pool_metrics = GetPoolMetricsUseCase(
        pool_port=stores.pools,
        token_port=stores.tokens,
        volume_aggregator=seeded.volume_aggregator,
        clock=lambda: T0 + 60,
    ).execute(GetPoolMetricsInput(pool_id=POOL))
    protocol = GetProtocolMetricsUseCase(
        pool_port=stores.pools,
        token_port=stores.tokens,
        volume_aggregator=seeded.volume_aggregator,
        clock=lambda: T0 + 60,
    ).execute()

    assert pool_metrics.tvl_usd == Decimal("2000")
    assert pool_metrics.volume_24h_usd == Decimal("20")
    assert pool_metrics.volume_tvl_ratio == Decimal("0.01")
    assert pool_metrics.fee_apr_pct == Decimal("1.095")
    assert pool_metrics.volume_change_24h_pct is None
    assert protocol.total_tvl_usd == Decimal("2000")
    assert protocol.volume_24h_usd == Decimal("20")
    assert (protocol.pool_count, protocol.token_count) == (1, 2)


def _token_metrics_use_case(pipeline, stores, now):
    return GetTokenMetricsUseCase(
        token_port=stores.tokens,
        pool_port=stores.pools,
        oracle=pipeline.oracle,
        snapshot_recorder=pipeline.snapshot_recorder,
        volume_aggregator=pipeline.volume_aggregator,
        clock=lambda: now,
    )


def test_token_metrics_tvl_volume_and_price_change(seeded, stores):
    seeded.handle(SyncEvent(pool_address=POOL, reserve0=400 * E18, reserve1=1_000 * 10**6, block_number=12, timestamp=T0 + 3_000))
    _swap(seeded, timestamp=T0 + 3_050)
    use_case = _token_metrics_use_case(seeded, stores, now=T0 + 3_100)

    metrics = use_case.execute(GetTokenMetricsInput(token_id=TOKEN_X.upper()))

    assert metrics.token_id == TOKEN_X
    assert metrics.price_usd == Decimal("2.5")
    assert metrics.tvl_usd == Decimal("1000")
    assert metrics.volume_24h_usd == Decimal("25")
    assert metrics.volume_change_24h_pct is None
    assert metrics.price_change_1h_pct == Decimal("25")
    assert metrics.price_change_24h_pct == Decimal("25")
    assert metrics.price_change_7d_pct == Decimal("25")
    assert metrics.pool_count == 1


def test_token_metrics_for_pinned_and_unknown_tokens(seeded, stores):
    use_case = _token_metrics_use_case(seeded, stores, now=T0 + 60)

    usdc = use_case.execute(GetTokenMetricsInput(token_id=USDC))

    assert usdc.price_usd == Decimal("1")
    assert usdc.tvl_usd == Decimal("1000")
    assert usdc.price_change_24h_pct == Decimal("0")
    with pytest.raises(TokenNotFoundError):
        use_case.execute(GetTokenMetricsInput(token_id="0xmissing"))


def test_token_metrics_without_history_or_price(seeded, stores):
    seeded.handle(
        PoolCreatedEvent(
            pool_address=POOL_Y,
            token0_address=TOKEN_Y,
            token1_address=TOKEN_X,
            token0_decimals=18,
            token1_decimals=18,
            block_number=2,
            timestamp=T0,
        )
    )
    use_case = _token_metrics_use_case(seeded, stores, now=T0 + 60)

    unpriced = use_case.execute(GetTokenMetricsInput(token_id=TOKEN_Y))
    # no snapshot falls inside the last hour
    later = _token_metrics_use_case(seeded, stores, now=T0 + 30 * 86400).execute(
        GetTokenMetricsInput(token_id=TOKEN_X)
    )

    assert unpriced.price_usd is None
    assert unpriced.tvl_usd == Decimal("0")
    assert unpriced.price_change_1h_pct is None
    assert later.price_change_1h_pct is None
    assert later.pool_count == 2
