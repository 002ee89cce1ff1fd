from __future__ import annotations

from sqlalchemy import delete, select

from pool_pricing.application.ports.price_snapshot_port import PriceSnapshotPort
from pool_pricing.domain.entities.price_snapshot import PriceSnapshot
from pool_pricing.infrastructure.db.engine import session_factory_for
from pool_pricing.infrastructure.db.mappers.pricing_mapper import map_model_to_snapshot
from pool_pricing.infrastructure.db.models.pricing import PriceSnapshotModel


class SqlPriceSnapshotRepository(PriceSnapshotPort):
    def __init__(self, engine):
        self._sessions = session_factory_for(engine)

    def upsert(self, snapshot: PriceSnapshot) -> bool:
        with self._sessions.begin() as session:
            row = session.get(
                PriceSnapshotModel,
                (snapshot.pool_id, snapshot.tier, snapshot.timestamp),
            )
            replaced = row is not None
            if row is None:
                row = PriceSnapshotModel(
                    pool_id=snapshot.pool_id,
                    tier=snapshot.tier,
                    bucket_start=snapshot.timestamp,
                )
                session.add(row)
            row.exchange_rate0 = str(snapshot.exchange_rate0)
            row.exchange_rate1 = str(snapshot.exchange_rate1)
            row.block_number = snapshot.block_number
        return replaced

    def get(self, *, pool_id: str, tier: str, timestamp: int) -> PriceSnapshot | None:
        with self._sessions() as session:
            row = session.get(PriceSnapshotModel, (pool_id, tier, timestamp))
            return map_model_to_snapshot(row) if row is not None else None

    def list_range(
        self,
        *,
        pool_id: str,
        tier: str,
        start: int,
        end: int,
    ) -> list[PriceSnapshot]:
        stmt = (
            select(PriceSnapshotModel)
            .where(
                PriceSnapshotModel.pool_id == pool_id,
                PriceSnapshotModel.tier == tier,
                PriceSnapshotModel.bucket_start >= start,
                PriceSnapshotModel.bucket_start <= end,
            )
            .order_by(PriceSnapshotModel.bucket_start)
        )
        with self._sessions() as session:
            return [map_model_to_snapshot(row) for row in session.execute(stmt).scalars().all()]

    def delete_before(self, *, tier: str, cutoff: int) -> int:
        with self._sessions.begin() as session:
            result = session.execute(
                delete(PriceSnapshotModel).where(
                    PriceSnapshotModel.tier == tier,
                    PriceSnapshotModel.bucket_start < cutoff,
                )
            )
            return int(result.rowcount or 0)
