from __future__ import annotations

from collections.abc import Collection
from datetime import datetime, timezone
import logging
from threading import Lock

from pool_pricing.application.ports.pool_port import PoolPort
from pool_pricing.application.ports.token_port import TokenPort
from pool_pricing.domain.entities.pool import Pool, PoolReserves, SyncResult
from pool_pricing.domain.entities.token import Token, normalize_address
from pool_pricing.domain.exceptions import (
    DecimalsMismatchError,
    InvalidPoolError,
    PoolNotFoundError,
)

logger = logging.getLogger(__name__)


def _reserves_of(pool: Pool) -> PoolReserves:
    return PoolReserves(
        pool_id=pool.id,
        reserve0=pool.reserve0,
        reserve1=pool.reserve1,
        last_synced_block=pool.last_synced_block,
    )


class ReserveStore:
    """Owner of pool reserves. Nothing else writes them."""

    def __init__(
        self,
        *,
        pool_port: PoolPort,
        token_port: TokenPort,
        reference_addresses: Collection[str] = (),
    ):
        self._pools = pool_port
        self._tokens = token_port
        self._reference_addresses = frozenset(normalize_address(a) for a in reference_addresses)
        self._locks: dict[str, Lock] = {}
        self._locks_guard = Lock()
        self._registration_lock = Lock()

    def _lock_for(self, pool_id: str) -> Lock:
        with self._locks_guard:
            lock = self._locks.get(pool_id)
            if lock is None:
                lock = Lock()
                self._locks[pool_id] = lock
            return lock

    def ensure_token(self, *, address: str, decimals: int) -> Token:
        if decimals < 0:
            raise InvalidPoolError("token decimals must be non-negative.")
        normalized = normalize_address(address)
        existing = self._tokens.get_by_address(normalized)
        if existing is not None:
            if existing.decimals != decimals:
                raise DecimalsMismatchError(
                    f"token {normalized} has decimals {existing.decimals}, got {decimals}."
                )
            return existing
        token = Token(
            id=normalized,
            address=normalized,
            decimals=decimals,
            is_reference_asset=normalized in self._reference_addresses,
        )
        logger.info(
            "reserve_store: token_created token=%s decimals=%s reference=%s",
            token.id,
            decimals,
            token.is_reference_asset,
        )
        return self._tokens.add(token)

    def register_pool(
        self,
        *,
        pool_address: str,
        token0_address: str,
        token1_address: str,
        token0_decimals: int,
        token1_decimals: int,
        created_at: datetime | None = None,
    ) -> tuple[Pool, bool]:
        address = normalize_address(pool_address)
        first = (normalize_address(token0_address), token0_decimals)
        second = (normalize_address(token1_address), token1_decimals)
        if first[0] == second[0]:
            raise InvalidPoolError(f"pool {address} uses the same token on both sides.")
        if second[0] < first[0]:
            first, second = second, first

        with self._registration_lock:
            existing = self._pools.get_by_address(address)
            if existing is not None:
                return existing, False
            token0 = self.ensure_token(address=first[0], decimals=first[1])
            token1 = self.ensure_token(address=second[0], decimals=second[1])
            pool = self._pools.add(
                Pool(
                    id=address,
                    address=address,
                    token0_id=token0.id,
                    token1_id=token1.id,
                    created_at=created_at or datetime.now(timezone.utc),
                )
            )
        logger.info(
            "reserve_store: pool_created pool=%s token0=%s token1=%s",
            pool.id,
            pool.token0_id,
            pool.token1_id,
        )
        return pool, True

    def apply_sync(
        self,
        pool_id: str,
        reserve0: int,
        reserve1: int,
        block_number: int,
    ) -> SyncResult:
        if reserve0 < 0 or reserve1 < 0:
            raise ValueError("reserves must be non-negative.")
        with self._lock_for(pool_id):
            pool = self._pools.get(pool_id)
            if pool is None:
                raise PoolNotFoundError(f"pool {pool_id} not found.")
            if pool.last_synced_block is not None and block_number <= pool.last_synced_block:
                logger.debug(
                    "reserve_store: stale_sync_ignored pool=%s block=%s last_synced_block=%s",
                    pool_id,
                    block_number,
                    pool.last_synced_block,
                )
                return SyncResult(
                    pool_id=pool_id,
                    applied=False,
                    reserves=_reserves_of(pool),
                    reason="stale",
                )
            self._pools.save_reserves(
                pool_id=pool_id,
                reserve0=reserve0,
                reserve1=reserve1,
                block_number=block_number,
            )
        return SyncResult(
            pool_id=pool_id,
            applied=True,
            reserves=PoolReserves(
                pool_id=pool_id,
                reserve0=reserve0,
                reserve1=reserve1,
                last_synced_block=block_number,
            ),
        )

    def get_reserves(self, pool_id: str) -> PoolReserves:
        return _reserves_of(self.get_pool(pool_id))

    def get_pool(self, pool_id: str) -> Pool:
        pool = self._pools.get(pool_id)
        if pool is None:
            raise PoolNotFoundError(f"pool {pool_id} not found.")
        return pool

    def get_pool_by_address(self, address: str) -> Pool:
        pool = self._pools.get_by_address(normalize_address(address))
        if pool is None:
            raise PoolNotFoundError(f"pool {address} not found.")
        return pool

    def pools_for_token(self, token_id: str) -> list[Pool]:
        return self._pools.list_by_token(token_id)

    def list_pools(self) -> list[Pool]:
        return self._pools.list_all()
