from __future__ import annotations

from dataclasses import replace
from threading import Lock

from pool_pricing.application.ports.pool_port import PoolPort
from pool_pricing.application.ports.price_snapshot_port import PriceSnapshotPort
from pool_pricing.application.ports.token_port import TokenPort
from pool_pricing.domain.entities.pool import Pool
from pool_pricing.domain.entities.price_snapshot import PriceSnapshot
from pool_pricing.domain.entities.token import Token
from pool_pricing.domain.exceptions import PoolNotFoundError


class InMemoryTokenRepository(TokenPort):
    def __init__(self):
        self._rows: dict[str, Token] = {}
        self._lock = Lock()

    def get(self, token_id: str) -> Token | None:
        with self._lock:
            return self._rows.get(token_id)

    def get_by_address(self, address: str) -> Token | None:
        with self._lock:
            return next((row for row in self._rows.values() if row.address == address), None)

    def add(self, token: Token) -> Token:
        with self._lock:
            self._rows[token.id] = token
        return token

    def save(self, token: Token) -> None:
        with self._lock:
            self._rows[token.id] = token

    def list_all(self) -> list[Token]:
        with self._lock:
            return sorted(self._rows.values(), key=lambda row: row.id)


class InMemoryPoolRepository(PoolPort):
    def __init__(self):
        self._rows: dict[str, Pool] = {}
        self._by_token: dict[str, set[str]] = {}
        self._lock = Lock()

    def get(self, pool_id: str) -> Pool | None:
        with self._lock:
            return self._rows.get(pool_id)

    def get_by_address(self, address: str) -> Pool | None:
        with self._lock:
            return next((row for row in self._rows.values() if row.address == address), None)

    def add(self, pool: Pool) -> Pool:
        with self._lock:
            self._rows[pool.id] = pool
            for token_id in pool.token_ids():
                self._by_token.setdefault(token_id, set()).add(pool.id)
        return pool

    def save_reserves(
        self,
        *,
        pool_id: str,
        reserve0: int,
        reserve1: int,
        block_number: int,
    ) -> None:
        with self._lock:
            pool = self._rows.get(pool_id)
            if pool is None:
                raise PoolNotFoundError(f"pool {pool_id} not found.")
            self._rows[pool_id] = replace(
                pool,
                reserve0=reserve0,
                reserve1=reserve1,
                last_synced_block=block_number,
            )

    def list_by_token(self, token_id: str) -> list[Pool]:
        with self._lock:
            ids = sorted(self._by_token.get(token_id, ()))
            return [self._rows[pool_id] for pool_id in ids]

    def list_all(self) -> list[Pool]:
        with self._lock:
            return sorted(self._rows.values(), key=lambda row: row.id)


class InMemoryPriceSnapshotRepository(PriceSnapshotPort):
    def __init__(self):
        self._rows: dict[tuple[str, str, int], PriceSnapshot] = {}
        self._lock = Lock()

    def upsert(self, snapshot: PriceSnapshot) -> bool:
        key = (snapshot.pool_id, snapshot.tier, snapshot.timestamp)
        with self._lock:
            replaced = key in self._rows
            self._rows[key] = snapshot
        return replaced

    def get(self, *, pool_id: str, tier: str, timestamp: int) -> PriceSnapshot | None:
        with self._lock:
            return self._rows.get((pool_id, tier, timestamp))

    def list_range(
        self,
        *,
        pool_id: str,
        tier: str,
        start: int,
        end: int,
    ) -> list[PriceSnapshot]:
        with self._lock:
            rows = [
                row
                for (row_pool, row_tier, bucket), row in self._rows.items()
                if row_pool == pool_id and row_tier == tier and start <= bucket <= end
            ]
        return sorted(rows, key=lambda row: row.timestamp)

    def delete_before(self, *, tier: str, cutoff: int) -> int:
        with self._lock:
            expired = [key for key in self._rows if key[1] == tier and key[2] < cutoff]
            for key in expired:
                del self._rows[key]
        return len(expired)
