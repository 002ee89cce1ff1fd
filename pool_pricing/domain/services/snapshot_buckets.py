from __future__ import annotations

from collections.abc import Sequence

from pool_pricing.domain.entities.price_snapshot import SnapshotTier

TIMEFRAME_SECONDS: dict[str, int] = {
    "1h": 3600,
    "1d": 86400,
    "1w": 7 * 86400,
    "1m": 30 * 86400,
    "1y": 365 * 86400,
}

DEFAULT_SNAPSHOT_TIERS: tuple[SnapshotTier, ...] = (
    SnapshotTier(name="minute", granularity_seconds=60, retention_seconds=86400),
    SnapshotTier(name="hour", granularity_seconds=3600, retention_seconds=30 * 86400),
    SnapshotTier(name="day", granularity_seconds=86400, retention_seconds=None),
)


def bucket_start(timestamp: int, granularity_seconds: int) -> int:
    if granularity_seconds <= 0:
        raise ValueError("granularity_seconds must be positive.")
    return timestamp - (timestamp % granularity_seconds)


def select_tier(timeframe_seconds: int, tiers: Sequence[SnapshotTier]) -> SnapshotTier:
    """Finest tier whose retention still covers the whole timeframe."""
    if not tiers:
        raise ValueError("at least one snapshot tier is required.")
    ordered = sorted(tiers, key=lambda tier: tier.granularity_seconds)
    for tier in ordered:
        if tier.retention_seconds is None or tier.retention_seconds >= timeframe_seconds:
            return tier
    return ordered[-1]


def retention_cutoff(now: int, tier: SnapshotTier) -> int | None:
    if tier.retention_seconds is None:
        return None
    return now - tier.retention_seconds
