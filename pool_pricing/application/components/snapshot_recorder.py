from __future__ import annotations

import logging

from pool_pricing.application.ports.pool_port import PoolPort
from pool_pricing.application.ports.price_snapshot_port import PriceSnapshotPort
from pool_pricing.application.ports.token_port import TokenPort
from pool_pricing.domain.entities.price_snapshot import PriceSnapshot, SnapshotTier
from pool_pricing.domain.entities.pricing_config import PricingConfig
from pool_pricing.domain.exceptions import (
    MalformedSnapshotError,
    PoolNotFoundError,
    TokenNotFoundError,
    ZeroReserveError,
)
from pool_pricing.domain.services.price_math import check_reciprocal, compute_exchange_rates
from pool_pricing.domain.services.snapshot_buckets import bucket_start, retention_cutoff, select_tier

logger = logging.getLogger(__name__)


class SnapshotRecorder:
    def __init__(
        self,
        *,
        snapshot_port: PriceSnapshotPort,
        pool_port: PoolPort,
        token_port: TokenPort,
        config: PricingConfig,
    ):
        self._snapshots = snapshot_port
        self._pools = pool_port
        self._tokens = token_port
        self._config = config

    @property
    def tiers(self) -> tuple[SnapshotTier, ...]:
        return self._config.snapshot_tiers

    def _decimals(self, pool_id: str) -> tuple[int, int]:
        pool = self._pools.get(pool_id)
        if pool is None:
            raise PoolNotFoundError(f"pool {pool_id} not found.")
        token0 = self._tokens.get(pool.token0_id)
        token1 = self._tokens.get(pool.token1_id)
        if token0 is None or token1 is None:
            raise TokenNotFoundError(f"tokens of pool {pool_id} not found.")
        return token0.decimals, token1.decimals

    def record_if_due(
        self,
        pool_id: str,
        reserve0: int,
        reserve1: int,
        timestamp: int,
        block_number: int,
    ) -> list[PriceSnapshot]:
        decimals0, decimals1 = self._decimals(pool_id)
        try:
            exchange_rate0, exchange_rate1 = compute_exchange_rates(
                reserve0=reserve0,
                reserve1=reserve1,
                decimals0=decimals0,
                decimals1=decimals1,
            )
        except ZeroReserveError:
            logger.debug("snapshot_recorder: zero_reserve_skipped pool=%s block=%s", pool_id, block_number)
            return []
        try:
            check_reciprocal(
                exchange_rate0,
                exchange_rate1,
                tolerance=self._config.snapshot_reciprocal_tolerance,
            )
        except MalformedSnapshotError as exc:
            logger.warning(
                "snapshot_recorder: malformed_snapshot_skipped pool=%s block=%s reason=%s",
                pool_id,
                block_number,
                exc,
            )
            return []

        written: list[PriceSnapshot] = []
        for tier in self.tiers:
            bucket = bucket_start(timestamp, tier.granularity_seconds)
            existing = self._snapshots.get(pool_id=pool_id, tier=tier.name, timestamp=bucket)
            if existing is not None and existing.block_number > block_number:
                continue
            snapshot = PriceSnapshot(
                pool_id=pool_id,
                tier=tier.name,
                timestamp=bucket,
                exchange_rate0=exchange_rate0,
                exchange_rate1=exchange_rate1,
                block_number=block_number,
            )
            self._snapshots.upsert(snapshot)
            written.append(snapshot)
        return written

    def history(
        self,
        pool_id: str,
        *,
        timeframe_seconds: int,
        now: int,
    ) -> tuple[SnapshotTier, list[PriceSnapshot]]:
        tier = select_tier(timeframe_seconds, self.tiers)
        rows = self._snapshots.list_range(
            pool_id=pool_id,
            tier=tier.name,
            start=now - timeframe_seconds,
            end=now,
        )
        return tier, sorted(rows, key=lambda row: row.timestamp)

    def prune_expired(self, now: int) -> dict[str, int]:
        removed: dict[str, int] = {}
        for tier in self.tiers:
            cutoff = retention_cutoff(now, tier)
            if cutoff is None:
                continue
            removed[tier.name] = self._snapshots.delete_before(tier=tier.name, cutoff=cutoff)
        logger.info("snapshot_recorder: pruned now=%s removed=%s", now, removed)
        return removed
