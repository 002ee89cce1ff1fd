from __future__ import annotations

import json
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

from pool_pricing.domain.entities.price_snapshot import SnapshotTier
from pool_pricing.domain.entities.pricing_config import PricingConfig, ReferenceAsset
from pool_pricing.domain.entities.token import normalize_address
from pool_pricing.domain.exceptions import ConfigurationError
from pool_pricing.domain.services.snapshot_buckets import DEFAULT_SNAPSHOT_TIERS


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _json(name: str, default):
    value = _env(name)
    if not value:
        return default
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{name} is not valid JSON: {exc}.") from exc


@dataclass(frozen=True)
class Settings:
    postgres_dsn: str
    reference_assets: dict
    snapshot_tiers: list | None
    notification_change_threshold: str
    price_max_route_depth: str
    snapshot_reciprocal_tolerance: str
    volume_ledger_retention_seconds: str
    query_cache_ttl_seconds: float
    price_stale_after_seconds: float
    notification_webhook_url: str
    webhook_timeout_seconds: float
    log_level: str


def get_settings() -> Settings:
    return Settings(
        postgres_dsn=_env("POSTGRES_DSN", ""),
        reference_assets=_json("REFERENCE_ASSETS", {}),
        snapshot_tiers=_json("SNAPSHOT_TIERS", None),
        notification_change_threshold=_env("NOTIFICATION_CHANGE_THRESHOLD", "0.0001"),
        price_max_route_depth=_env("PRICE_MAX_ROUTE_DEPTH", "2"),
        snapshot_reciprocal_tolerance=_env("SNAPSHOT_RECIPROCAL_TOLERANCE", "0.000001"),
        volume_ledger_retention_seconds=_env("VOLUME_LEDGER_RETENTION_SECONDS", str(30 * 86400)),
        query_cache_ttl_seconds=float(_env("QUERY_CACHE_TTL_SECONDS", "60")),
        price_stale_after_seconds=float(_env("PRICE_STALE_AFTER_SECONDS", "3600")),
        notification_webhook_url=_env("NOTIFICATION_WEBHOOK_URL", ""),
        webhook_timeout_seconds=float(_env("WEBHOOK_TIMEOUT_SECONDS", "5")),
        log_level=_env("LOG_LEVEL", "INFO"),
    )


def _decimal(name: str, value, *, minimum: Decimal = Decimal("0")) -> Decimal:
    try:
        parsed = Decimal(str(value))
    except InvalidOperation as exc:
        raise ConfigurationError(f"{name} must be a decimal, got {value!r}.") from exc
    if not parsed.is_finite() or parsed < minimum:
        raise ConfigurationError(f"{name} must be a finite decimal >= {minimum}.")
    return parsed


def _integer(name: str, value, *, minimum: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}.") from exc
    if parsed < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}.")
    return parsed


def _reference_assets(raw: dict) -> dict[str, ReferenceAsset]:
    if not isinstance(raw, dict) or not raw:
        raise ConfigurationError("REFERENCE_ASSETS must name at least one reference asset.")
    assets: dict[str, ReferenceAsset] = {}
    for address, entry in raw.items():
        normalized = normalize_address(address)
        if not normalized:
            raise ConfigurationError("reference asset address must not be empty.")
        if not isinstance(entry, dict):
            raise ConfigurationError(f"reference asset {normalized} must be an object.")
        mode = entry.get("mode", "pinned")
        if mode == "pinned":
            price = _decimal(
                f"reference asset {normalized} price",
                entry.get("price", "1"),
                minimum=Decimal("0"),
            )
            if price <= 0:
                raise ConfigurationError(f"reference asset {normalized} price must be positive.")
            assets[normalized] = ReferenceAsset(address=normalized, mode=mode, pinned_price=price)
        elif mode == "derived":
            assets[normalized] = ReferenceAsset(address=normalized, mode=mode)
        else:
            raise ConfigurationError(f"reference asset {normalized} has unknown mode {mode!r}.")
    if not any(asset.is_pinned for asset in assets.values()):
        raise ConfigurationError("at least one reference asset must be pinned.")
    return assets


def _snapshot_tiers(raw: list | None) -> tuple[SnapshotTier, ...]:
    if raw is None:
        return DEFAULT_SNAPSHOT_TIERS
    if not isinstance(raw, list) or not raw:
        raise ConfigurationError("SNAPSHOT_TIERS must be a non-empty list.")
    tiers: list[SnapshotTier] = []
    for entry in raw:
        if not isinstance(entry, dict) or not entry.get("name"):
            raise ConfigurationError("each snapshot tier needs a name.")
        retention = entry.get("retention_seconds")
        tiers.append(
            SnapshotTier(
                name=str(entry["name"]),
                granularity_seconds=_integer(
                    f"tier {entry['name']} granularity_seconds",
                    entry.get("granularity_seconds"),
                    minimum=1,
                ),
                retention_seconds=(
                    None
                    if retention is None
                    else _integer(f"tier {entry['name']} retention_seconds", retention, minimum=1)
                ),
            )
        )
    names = [tier.name for tier in tiers]
    if len(set(names)) != len(names):
        raise ConfigurationError("snapshot tier names must be unique.")
    return tuple(sorted(tiers, key=lambda tier: tier.granularity_seconds))


def build_pricing_config(settings: Settings) -> PricingConfig:
    """Validate settings into the immutable runtime configuration."""
    return PricingConfig(
        reference_assets=_reference_assets(settings.reference_assets),
        snapshot_tiers=_snapshot_tiers(settings.snapshot_tiers),
        notification_change_threshold=_decimal(
            "NOTIFICATION_CHANGE_THRESHOLD",
            settings.notification_change_threshold,
        ),
        max_route_depth=_integer("PRICE_MAX_ROUTE_DEPTH", settings.price_max_route_depth, minimum=1),
        snapshot_reciprocal_tolerance=_decimal(
            "SNAPSHOT_RECIPROCAL_TOLERANCE",
            settings.snapshot_reciprocal_tolerance,
        ),
        volume_ledger_retention_seconds=_integer(
            "VOLUME_LEDGER_RETENTION_SECONDS",
            settings.volume_ledger_retention_seconds,
            minimum=1,
        ),
    )
