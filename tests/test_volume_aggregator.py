from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import pytest

from pool_pricing.application.components.reserve_store import ReserveStore
from pool_pricing.application.components.volume_aggregator import VolumeAggregator
from pool_pricing.domain.exceptions import PoolNotFoundError, QueryInputError

USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
TOKEN_X = "0x1000000000000000000000000000000000000001"
TOKEN_Y = "0x2000000000000000000000000000000000000002"
POOL_X = "0x9000000000000000000000000000000000000001"
POOL_Y = "0x9000000000000000000000000000000000000002"
E18 = 10**18
T0 = 1_700_000_000


@pytest.fixture
def aggregator(stores):
    store = ReserveStore(pool_port=stores.pools, token_port=stores.tokens)
    for pool, token in ((POOL_X, TOKEN_X), (POOL_Y, TOKEN_Y)):
        store.register_pool(
            pool_address=pool,
            token0_address=token,
            token1_address=USDC,
            token0_decimals=18,
            token1_decimals=6,
        )
    stores.tokens.save(replace(stores.tokens.get(TOKEN_X), price_usd=Decimal("2")))
    stores.tokens.save(replace(stores.tokens.get(USDC), price_usd=Decimal("1")))
    return VolumeAggregator(pool_port=stores.pools, token_port=stores.tokens, retention_seconds=30 * 86400)


def test_swap_counts_both_legs_per_token(aggregator):
    # 10 X in, 19 USDC out
    volume = aggregator.record_swap(POOL_X, 10 * E18, 0, 0, 19 * 10**6, T0)

    assert volume.token0_units == Decimal("10")
    assert volume.token1_units == Decimal("19")
    assert volume.volume_usd == Decimal("20")
    assert volume.priced is True

    pool_window = aggregator.volume_window(POOL_X, "24h", now=T0)
    assert pool_window.volume_usd == Decimal("20")
    assert pool_window.volume_token_units == Decimal("10")
    assert pool_window.volume_counterpart_units == Decimal("19")
    assert aggregator.get_volume(TOKEN_X, "24h", now=T0) == Decimal("20")
    assert aggregator.get_volume(USDC, "24h", now=T0) == Decimal("19")


def test_swaps_in_both_directions_are_summed_not_netted(aggregator):
    aggregator.record_swap(POOL_X, 10 * E18, 0, 0, 20 * 10**6, T0)
    aggregator.record_swap(POOL_X, 0, 20 * 10**6, 10 * E18, 0, T0 + 1)

    window = aggregator.volume_window(TOKEN_X, "1h", now=T0 + 1)

    assert window.volume_token_units == Decimal("20")
    assert window.swap_count == 2


def test_unpriced_swap_keeps_token_units(aggregator):
    # Y has no price; the pool falls back to the USDC leg
    volume = aggregator.record_swap(POOL_Y, 5 * E18, 0, 0, 3 * 10**6, T0)

    assert volume.volume_usd == Decimal("3")
    token_window = aggregator.volume_window(TOKEN_Y, "24h", now=T0)
    assert token_window.volume_token_units == Decimal("5")
    assert token_window.volume_usd == Decimal("0")
    assert token_window.unpriced_swap_count == 1
    assert token_window.swap_count == 1


def test_rolling_windows_drop_old_swaps(aggregator):
    aggregator.record_swap(POOL_X, E18, 0, 0, 2 * 10**6, T0)
    aggregator.record_swap(POOL_X, E18, 0, 0, 2 * 10**6, T0 + 7200)
    now = T0 + 7200

    assert aggregator.get_volume(POOL_X, "1h", now=now) == Decimal("2")
    assert aggregator.get_volume(POOL_X, "24h", now=now) == Decimal("4")
    window = aggregator.volume_window(POOL_X, "24h", now=now)
    assert window.window_end - window.window_start == 86400
    assert aggregator.get_volume(POOL_X, "24h", now=T0 + 2 * 86400) == Decimal("0")


def test_previous_window_and_protocol_totals(aggregator):
    aggregator.record_swap(POOL_X, E18, 0, 0, 2 * 10**6, T0)
    aggregator.record_swap(POOL_Y, 5 * E18, 0, 0, 3 * 10**6, T0 + 86400 + 10)
    now = T0 + 86400 + 20

    assert aggregator.previous_window_usd(POOL_X, "24h", now=now) == Decimal("2")
    assert aggregator.get_volume(POOL_X, "24h", now=now) == Decimal("0")
    assert aggregator.total_pool_volume("24h", now=now) == Decimal("3")
    assert aggregator.total_previous_window_usd("24h", now=now) == Decimal("2")
    protocol = aggregator.protocol_window("7d", now=now)
    assert protocol.volume_usd == Decimal("5")
    assert protocol.swap_count == 2


def test_decay_removes_entries_past_retention(aggregator):
    aggregator.record_swap(POOL_X, E18, 0, 0, 2 * 10**6, T0)

    removed = aggregator.decay(T0 + 31 * 86400)

    assert removed == 3
    assert aggregator.volume_window(POOL_X, "30d", now=T0 + 31 * 86400).swap_count == 0


def test_unknown_pool_and_window(aggregator):
    with pytest.raises(PoolNotFoundError):
        aggregator.record_swap("0xmissing", 1, 0, 0, 1, T0)
    with pytest.raises(QueryInputError):
        aggregator.volume_window(POOL_X, "2h", now=T0)
    with pytest.raises(ValueError):
        aggregator.record_swap(POOL_X, -1, 0, 0, 1, T0)
