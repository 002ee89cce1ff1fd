from __future__ import annotations

from sqlalchemy import or_, select

from pool_pricing.application.ports.pool_port import PoolPort
from pool_pricing.domain.entities.pool import Pool
from pool_pricing.domain.exceptions import PoolNotFoundError
from pool_pricing.infrastructure.db.engine import session_factory_for
from pool_pricing.infrastructure.db.mappers.pricing_mapper import map_model_to_pool, map_pool_to_model
from pool_pricing.infrastructure.db.models.pricing import PoolModel


class SqlPoolRepository(PoolPort):
    def __init__(self, engine):
        self._sessions = session_factory_for(engine)

    def get(self, pool_id: str) -> Pool | None:
        with self._sessions() as session:
            row = session.get(PoolModel, pool_id)
            return map_model_to_pool(row) if row is not None else None

    def get_by_address(self, address: str) -> Pool | None:
        with self._sessions() as session:
            row = session.execute(
                select(PoolModel).where(PoolModel.address == address).limit(1)
            ).scalar_one_or_none()
            return map_model_to_pool(row) if row is not None else None

    def add(self, pool: Pool) -> Pool:
        with self._sessions.begin() as session:
            session.add(map_pool_to_model(pool))
        return pool

    def save_reserves(
        self,
        *,
        pool_id: str,
        reserve0: int,
        reserve1: int,
        block_number: int,
    ) -> None:
        with self._sessions.begin() as session:
            row = session.get(PoolModel, pool_id)
            if row is None:
                raise PoolNotFoundError(f"pool {pool_id} not found.")
            row.reserve0 = str(reserve0)
            row.reserve1 = str(reserve1)
            row.last_synced_block = block_number

    def list_by_token(self, token_id: str) -> list[Pool]:
        with self._sessions() as session:
            rows = session.execute(
                select(PoolModel)
                .where(or_(PoolModel.token0_id == token_id, PoolModel.token1_id == token_id))
                .order_by(PoolModel.id)
            ).scalars().all()
            return [map_model_to_pool(row) for row in rows]

    def list_all(self) -> list[Pool]:
        with self._sessions() as session:
            rows = session.execute(select(PoolModel).order_by(PoolModel.id)).scalars().all()
            return [map_model_to_pool(row) for row in rows]
