from __future__ import annotations

from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
import logging
from threading import Lock

from pool_pricing.application.components.price_oracle import PriceOracle
from pool_pricing.application.components.reserve_store import ReserveStore
from pool_pricing.application.components.snapshot_recorder import SnapshotRecorder
from pool_pricing.application.components.update_notifier import UpdateNotifier
from pool_pricing.application.components.volume_aggregator import SwapVolume, VolumeAggregator
from pool_pricing.application.ports.cache_port import CachePort
from pool_pricing.domain.entities.events import PoolCreatedEvent, PoolEvent, SwapEvent, SyncEvent
from pool_pricing.domain.entities.notification import PROTOCOL_ENTITY_ID
from pool_pricing.domain.entities.pool import Pool, SyncResult
from pool_pricing.domain.entities.price_snapshot import PriceSnapshot
from pool_pricing.domain.entities.pricing_config import PricingConfig
from pool_pricing.domain.entities.token import normalize_address
from pool_pricing.domain.exceptions import DomainError, NoPriceRouteError
from pool_pricing.domain.services.pool_metrics import pool_tvl_usd
from pool_pricing.domain.services.price_math import exchange_rate_to_price

logger = logging.getLogger(__name__)

PRICE_HISTORY_CACHE_PREFIX = "price-history"


def price_history_cache_prefix(pool_id: str) -> str:
    return f"{PRICE_HISTORY_CACHE_PREFIX}:{pool_id}:"


@dataclass(frozen=True)
class SyncOutcome:
    sync: SyncResult
    prices: dict[str, Decimal] = field(default_factory=dict)
    unpriced: tuple[str, ...] = ()
    snapshots: tuple[PriceSnapshot, ...] = ()


@dataclass
class BatchReport:
    applied: int = 0
    skipped: int = 0
    failed: int = 0


class PricingPipeline:
    """Event entry point: reserves, prices, snapshots, volume and notifications."""

    def __init__(
        self,
        *,
        reserve_store: ReserveStore,
        oracle: PriceOracle,
        snapshot_recorder: SnapshotRecorder,
        volume_aggregator: VolumeAggregator,
        notifier: UpdateNotifier,
        config: PricingConfig,
        cache: CachePort | None = None,
        decay_interval_seconds: int = 3600,
    ):
        self.reserve_store = reserve_store
        self.oracle = oracle
        self.snapshot_recorder = snapshot_recorder
        self.volume_aggregator = volume_aggregator
        self.notifier = notifier
        self._config = config
        self._cache = cache
        self._decay_interval_seconds = decay_interval_seconds
        self._last_decay: int | None = None
        self._decay_lock = Lock()

    def handle(self, event: PoolEvent):
        if isinstance(event, PoolCreatedEvent):
            return self.handle_pool_created(event)
        if isinstance(event, SyncEvent):
            return self.handle_sync(event)
        if isinstance(event, SwapEvent):
            return self.handle_swap(event)
        raise TypeError(f"unsupported event type {type(event).__name__}.")

    def handle_pool_created(self, event: PoolCreatedEvent) -> Pool:
        pool, created = self.reserve_store.register_pool(
            pool_address=event.pool_address,
            token0_address=event.token0_address,
            token1_address=event.token1_address,
            token0_decimals=event.token0_decimals,
            token1_decimals=event.token1_decimals,
            created_at=datetime.fromtimestamp(event.timestamp, tz=timezone.utc),
        )
        if created:
            self.notifier.check_and_notify(
                "pool",
                pool.id,
                "state",
                "created",
                timestamp=event.timestamp,
            )
        return pool

    def handle_sync(self, event: SyncEvent) -> SyncOutcome:
        pool = self.reserve_store.get_pool_by_address(event.pool_address)
        result = self.reserve_store.apply_sync(
            pool.id,
            event.reserve0,
            event.reserve1,
            event.block_number,
        )
        if not result.applied:
            return SyncOutcome(sync=result)

        prices, unpriced = self._reprice(pool, event)

        try:
            snapshots = self.snapshot_recorder.record_if_due(
                pool.id,
                event.reserve0,
                event.reserve1,
                event.timestamp,
                event.block_number,
            )
        except Exception:
            logger.exception(
                "pricing_pipeline: snapshot_failed pool=%s block=%s",
                pool.id,
                event.block_number,
            )
            snapshots = []
        if snapshots:
            if self._cache is not None:
                self._cache.delete_prefix(price_history_cache_prefix(pool.id))
            self.notifier.check_and_notify(
                "pool",
                pool.id,
                "price",
                exchange_rate_to_price(snapshots[0].exchange_rate0),
                timestamp=event.timestamp,
            )

        try:
            self._notify_tvl(pool.id, timestamp=event.timestamp)
        except Exception:
            logger.exception("pricing_pipeline: tvl_failed pool=%s block=%s", pool.id, event.block_number)
        self._maybe_decay(event.timestamp)
        return SyncOutcome(
            sync=result,
            prices=prices,
            unpriced=tuple(unpriced),
            snapshots=tuple(snapshots),
        )

    def handle_swap(self, event: SwapEvent) -> SwapVolume:
        pool = self.reserve_store.get_pool_by_address(event.pool_address)
        volume = self.volume_aggregator.record_swap(
            pool.id,
            event.amount_in0,
            event.amount_in1,
            event.amount_out0,
            event.amount_out1,
            event.timestamp,
        )
        now = event.timestamp
        for entity_type, entity_id in (
            ("pool", pool.id),
            ("token", pool.token0_id),
            ("token", pool.token1_id),
        ):
            self.notifier.check_and_notify(
                entity_type,
                entity_id,
                "volume",
                self.volume_aggregator.get_volume(entity_id, "24h", now=now),
                timestamp=now,
            )
        self.notifier.check_and_notify(
            "protocol",
            PROTOCOL_ENTITY_ID,
            "volume",
            self.volume_aggregator.total_pool_volume("24h", now=now),
            timestamp=now,
        )
        self._maybe_decay(now)
        return volume

    def _reprice(self, pool: Pool, event: SyncEvent) -> tuple[dict[str, Decimal], list[str]]:
        prices: dict[str, Decimal] = {}
        unpriced: list[str] = []
        updated_at = datetime.fromtimestamp(event.timestamp, tz=timezone.utc)
        for token_id in self.affected_tokens(pool):
            try:
                price = self.oracle.derive_token_price_usd(
                    token_id,
                    as_of_block=event.block_number,
                    updated_at=updated_at,
                )
            except NoPriceRouteError:
                unpriced.append(token_id)
                continue
            except Exception:
                logger.exception(
                    "pricing_pipeline: reprice_failed token=%s pool=%s block=%s",
                    token_id,
                    pool.id,
                    event.block_number,
                )
                unpriced.append(token_id)
                continue
            prices[token_id] = price
            self.notifier.check_and_notify(
                "token",
                token_id,
                "price",
                price,
                timestamp=event.timestamp,
            )
        return prices, unpriced

    def _maybe_decay(self, now: int) -> None:
        """Drop expired swap contributions from every ledger at most once per interval."""
        with self._decay_lock:
            if self._last_decay is not None and now - self._last_decay < self._decay_interval_seconds:
                return
            self._last_decay = now
        try:
            self.volume_aggregator.decay(now)
        except Exception:
            logger.exception("pricing_pipeline: decay_failed now=%s", now)

    def affected_tokens(self, pool: Pool) -> list[str]:
        """Pool tokens plus every token that may route its price through them."""
        seen: list[str] = list(pool.token_ids())
        frontier = list(seen)
        for _ in range(self._config.max_route_depth):
            next_frontier: list[str] = []
            for token_id in frontier:
                for neighbor_pool in self.reserve_store.pools_for_token(token_id):
                    counterpart = neighbor_pool.counterpart_of(token_id)
                    if counterpart not in seen:
                        seen.append(counterpart)
                        next_frontier.append(counterpart)
            frontier = next_frontier
            if not frontier:
                break
        return seen

    def _notify_tvl(self, pool_id: str, *, timestamp: int) -> None:
        total = Decimal("0")
        for pool in self.reserve_store.list_pools():
            tvl = self.pool_tvl(pool)
            total += tvl
            if pool.id == pool_id:
                self.notifier.check_and_notify("pool", pool.id, "tvl", tvl, timestamp=timestamp)
        self.notifier.check_and_notify(
            "protocol",
            PROTOCOL_ENTITY_ID,
            "tvl",
            total,
            timestamp=timestamp,
        )

    def pool_tvl(self, pool: Pool) -> Decimal:
        token0 = self.oracle.get_token(pool.token0_id)
        token1 = self.oracle.get_token(pool.token1_id)
        return pool_tvl_usd(
            reserve0=pool.reserve0,
            reserve1=pool.reserve1,
            decimals0=token0.decimals,
            decimals1=token1.decimals,
            price0_usd=token0.price_usd,
            price1_usd=token1.price_usd,
        )

    def process(self, events: Iterable[PoolEvent]) -> BatchReport:
        report = BatchReport()
        for event in events:
            self._process_one(event, report)
        return report

    def process_batch(self, events: Sequence[PoolEvent], *, max_workers: int = 4) -> BatchReport:
        """Process events with per-pool ordering, different pools in parallel."""
        groups: dict[str, list[PoolEvent]] = {}
        for event in events:
            groups.setdefault(normalize_address(event.pool_address), []).append(event)
        if not groups:
            return BatchReport()

        reports: list[BatchReport] = []
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            for report in executor.map(self.process, groups.values()):
                reports.append(report)
        return BatchReport(
            applied=sum(row.applied for row in reports),
            skipped=sum(row.skipped for row in reports),
            failed=sum(row.failed for row in reports),
        )

    def _process_one(self, event: PoolEvent, report: BatchReport) -> None:
        try:
            outcome = self.handle(event)
        except DomainError as exc:
            report.failed += 1
            logger.warning(
                "pricing_pipeline: event_rejected type=%s pool=%s block=%s error=%s",
                type(event).__name__,
                event.pool_address,
                event.block_number,
                exc,
            )
            return
        except Exception:
            report.failed += 1
            logger.exception(
                "pricing_pipeline: event_failed type=%s pool=%s block=%s",
                type(event).__name__,
                event.pool_address,
                event.block_number,
            )
            return
        if isinstance(outcome, SyncOutcome) and not outcome.sync.applied:
            report.skipped += 1
        else:
            report.applied += 1
