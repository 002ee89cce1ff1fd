from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from pool_pricing.domain.entities.pool import Pool
from pool_pricing.domain.entities.price_snapshot import PriceSnapshot
from pool_pricing.domain.entities.token import Token
from pool_pricing.infrastructure.db.models.pricing import PoolModel, PriceSnapshotModel, TokenModel


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on the way back.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def map_model_to_token(row: TokenModel) -> Token:
    return Token(
        id=row.id,
        address=row.address,
        decimals=int(row.decimals),
        is_reference_asset=bool(row.is_reference_asset),
        price_usd=Decimal(row.price_usd) if row.price_usd is not None else None,
        price_updated_at=_as_utc(row.price_updated_at),
        price_as_of_block=row.price_as_of_block,
    )


def apply_token_to_model(token: Token, row: TokenModel) -> TokenModel:
    row.id = token.id
    row.address = token.address
    row.decimals = token.decimals
    row.is_reference_asset = token.is_reference_asset
    row.price_usd = str(token.price_usd) if token.price_usd is not None else None
    row.price_updated_at = token.price_updated_at
    row.price_as_of_block = token.price_as_of_block
    return row


def map_model_to_pool(row: PoolModel) -> Pool:
    return Pool(
        id=row.id,
        address=row.address,
        token0_id=row.token0_id,
        token1_id=row.token1_id,
        reserve0=int(row.reserve0),
        reserve1=int(row.reserve1),
        last_synced_block=row.last_synced_block,
        created_at=_as_utc(row.created_at),
    )


def map_pool_to_model(pool: Pool) -> PoolModel:
    return PoolModel(
        id=pool.id,
        address=pool.address,
        token0_id=pool.token0_id,
        token1_id=pool.token1_id,
        reserve0=str(pool.reserve0),
        reserve1=str(pool.reserve1),
        last_synced_block=pool.last_synced_block,
        created_at=pool.created_at,
    )


def map_model_to_snapshot(row: PriceSnapshotModel) -> PriceSnapshot:
    return PriceSnapshot(
        pool_id=row.pool_id,
        tier=row.tier,
        timestamp=int(row.bucket_start),
        exchange_rate0=int(row.exchange_rate0),
        exchange_rate1=int(row.exchange_rate1),
        block_number=int(row.block_number),
    )
