from __future__ import annotations

from dataclasses import dataclass
import logging

from pool_pricing.application.components.pipeline import PricingPipeline
from pool_pricing.application.components.price_oracle import PriceOracle
from pool_pricing.application.components.reserve_store import ReserveStore
from pool_pricing.application.components.snapshot_recorder import SnapshotRecorder
from pool_pricing.application.components.update_notifier import UpdateNotifier
from pool_pricing.application.components.volume_aggregator import VolumeAggregator
from pool_pricing.application.ports.pool_port import PoolPort
from pool_pricing.application.ports.price_snapshot_port import PriceSnapshotPort
from pool_pricing.application.ports.token_port import TokenPort
from pool_pricing.domain.entities.pricing_config import PricingConfig
from pool_pricing.infrastructure.cache.ttl_cache import TtlCache
from pool_pricing.infrastructure.clients.webhook_subscriber import WebhookSubscriber
from pool_pricing.infrastructure.db.engine import get_engine
from pool_pricing.infrastructure.db.repositories.pool_repository import SqlPoolRepository
from pool_pricing.infrastructure.db.repositories.price_snapshot_repository import (
    SqlPriceSnapshotRepository,
)
from pool_pricing.infrastructure.db.repositories.token_repository import SqlTokenRepository
from pool_pricing.infrastructure.memory.repositories import (
    InMemoryPoolRepository,
    InMemoryPriceSnapshotRepository,
    InMemoryTokenRepository,
)
from pool_pricing.infrastructure.notifications.dispatcher import NotificationDispatcher
from pool_pricing.shared.config import Settings, build_pricing_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stores:
    tokens: TokenPort
    pools: PoolPort
    snapshots: PriceSnapshotPort


@dataclass
class PricingRuntime:
    """Everything one process needs, built once at startup."""

    settings: Settings
    config: PricingConfig
    stores: Stores
    cache: TtlCache
    dispatcher: NotificationDispatcher
    pipeline: PricingPipeline
    webhook: WebhookSubscriber | None = None

    def start(self) -> None:
        self.dispatcher.start()

    def shutdown(self) -> None:
        self.dispatcher.shutdown()
        if self.webhook is not None:
            self.webhook.close()


def build_stores(settings: Settings) -> Stores:
    if not settings.postgres_dsn:
        logger.info("runtime: using in-memory stores")
        return Stores(
            tokens=InMemoryTokenRepository(),
            pools=InMemoryPoolRepository(),
            snapshots=InMemoryPriceSnapshotRepository(),
        )
    engine = get_engine(settings.postgres_dsn)
    return Stores(
        tokens=SqlTokenRepository(engine),
        pools=SqlPoolRepository(engine),
        snapshots=SqlPriceSnapshotRepository(engine),
    )


def build_pipeline(
    *,
    config: PricingConfig,
    stores: Stores,
    dispatcher: NotificationDispatcher,
    cache: TtlCache | None = None,
) -> PricingPipeline:
    return PricingPipeline(
        reserve_store=ReserveStore(
            pool_port=stores.pools,
            token_port=stores.tokens,
            reference_addresses=config.reference_assets.keys(),
        ),
        oracle=PriceOracle(token_port=stores.tokens, pool_port=stores.pools, config=config),
        snapshot_recorder=SnapshotRecorder(
            snapshot_port=stores.snapshots,
            pool_port=stores.pools,
            token_port=stores.tokens,
            config=config,
        ),
        volume_aggregator=VolumeAggregator(
            pool_port=stores.pools,
            token_port=stores.tokens,
            retention_seconds=config.volume_ledger_retention_seconds,
        ),
        notifier=UpdateNotifier(
            publisher=dispatcher,
            threshold=config.notification_change_threshold,
        ),
        config=config,
        cache=cache,
    )


def build_runtime(settings: Settings, *, stores: Stores | None = None) -> PricingRuntime:
    """Raises ConfigurationError before anything is started."""
    config = build_pricing_config(settings)
    stores = stores or build_stores(settings)
    cache = TtlCache(default_ttl_seconds=settings.query_cache_ttl_seconds)
    dispatcher = NotificationDispatcher()
    pipeline = build_pipeline(config=config, stores=stores, dispatcher=dispatcher, cache=cache)

    webhook = None
    if settings.notification_webhook_url:
        webhook = WebhookSubscriber(
            url=settings.notification_webhook_url,
            timeout_seconds=settings.webhook_timeout_seconds,
        )
        dispatcher.subscribe(None, None, None, webhook)

    logger.info(
        "runtime: built reference_assets=%s tiers=%s max_route_depth=%s",
        len(config.reference_assets),
        ",".join(tier.name for tier in config.snapshot_tiers),
        config.max_route_depth,
    )
    return PricingRuntime(
        settings=settings,
        config=config,
        stores=stores,
        cache=cache,
        dispatcher=dispatcher,
        pipeline=pipeline,
        webhook=webhook,
    )
