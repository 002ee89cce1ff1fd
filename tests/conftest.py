from __future__ import annotations

from decimal import Decimal

import pytest

from pool_pricing.domain.entities.pricing_config import PricingConfig, ReferenceAsset
from pool_pricing.domain.services.snapshot_buckets import DEFAULT_SNAPSHOT_TIERS
from pool_pricing.infrastructure.cache.ttl_cache import TtlCache
from pool_pricing.infrastructure.memory.repositories import (
    InMemoryPoolRepository,
    InMemoryPriceSnapshotRepository,
    InMemoryTokenRepository,
)
from pool_pricing.infrastructure.notifications.dispatcher import NotificationDispatcher
from pool_pricing.infrastructure.runtime import Stores, build_pipeline
from pool_pricing.shared.config import Settings

USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
USDT = "0xdac17f958d2ee523a2206206994597c13d831ec7"
WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        postgres_dsn="",
        reference_assets={
            USDC: {"mode": "pinned", "price": "1"},
            USDT: {"mode": "pinned", "price": "1"},
            WETH: {"mode": "derived"},
        },
        snapshot_tiers=None,
        notification_change_threshold="0.0001",
        price_max_route_depth="2",
        snapshot_reciprocal_tolerance="0.000001",
        volume_ledger_retention_seconds=str(30 * 86400),
        query_cache_ttl_seconds=60.0,
        price_stale_after_seconds=3600.0,
        notification_webhook_url="",
        webhook_timeout_seconds=5.0,
        log_level="INFO",
    )


@pytest.fixture
def config() -> PricingConfig:
    return PricingConfig(
        reference_assets={
            USDC: ReferenceAsset(address=USDC, mode="pinned", pinned_price=Decimal("1")),
            USDT: ReferenceAsset(address=USDT, mode="pinned", pinned_price=Decimal("1")),
            WETH: ReferenceAsset(address=WETH, mode="derived"),
        },
        snapshot_tiers=DEFAULT_SNAPSHOT_TIERS,
        notification_change_threshold=Decimal("0.0001"),
        max_route_depth=2,
        snapshot_reciprocal_tolerance=Decimal("0.000001"),
        volume_ledger_retention_seconds=30 * 86400,
    )


@pytest.fixture
def stores() -> Stores:
    return Stores(
        tokens=InMemoryTokenRepository(),
        pools=InMemoryPoolRepository(),
        snapshots=InMemoryPriceSnapshotRepository(),
    )


@pytest.fixture
def dispatcher():
    dispatcher = NotificationDispatcher()
    yield dispatcher
    dispatcher.shutdown(timeout=1.0)


@pytest.fixture
def cache() -> TtlCache:
    return TtlCache(default_ttl_seconds=60.0)


@pytest.fixture
def pipeline(config, stores, dispatcher, cache):
    return build_pipeline(config=config, stores=stores, dispatcher=dispatcher, cache=cache)
