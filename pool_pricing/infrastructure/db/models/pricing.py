from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from pool_pricing.infrastructure.db.engine import Base

# Reserves and exchange rates exceed 64 bits and USD prices need exact
# decimals, so both are stored as text and converted in the mappers.


class TokenModel(Base):
    __tablename__ = "tokens"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    address: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    decimals: Mapped[int] = mapped_column(Integer, nullable=False)
    is_reference_asset: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    price_usd: Mapped[str | None] = mapped_column(Text, nullable=True)
    price_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    price_as_of_block: Mapped[int | None] = mapped_column(BigInteger, nullable=True)


class PoolModel(Base):
    __tablename__ = "pools"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    address: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    token0_id: Mapped[str] = mapped_column(Text, ForeignKey("tokens.id"), nullable=False, index=True)
    token1_id: Mapped[str] = mapped_column(Text, ForeignKey("tokens.id"), nullable=False, index=True)
    reserve0: Mapped[str] = mapped_column(Text, nullable=False, default="0")
    reserve1: Mapped[str] = mapped_column(Text, nullable=False, default="0")
    last_synced_block: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class PriceSnapshotModel(Base):
    __tablename__ = "price_snapshots"

    pool_id: Mapped[str] = mapped_column(Text, ForeignKey("pools.id"), primary_key=True)
    tier: Mapped[str] = mapped_column(Text, primary_key=True)
    bucket_start: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    exchange_rate0: Mapped[str] = mapped_column(Text, nullable=False)
    exchange_rate1: Mapped[str] = mapped_column(Text, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
