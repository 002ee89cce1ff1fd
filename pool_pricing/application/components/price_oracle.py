from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
import logging
from threading import Lock

from pool_pricing.application.ports.pool_port import PoolPort
from pool_pricing.application.ports.token_port import TokenPort
from pool_pricing.domain.entities.pool import Pool
from pool_pricing.domain.entities.pricing_config import PricingConfig
from pool_pricing.domain.entities.token import Token
from pool_pricing.domain.exceptions import NoPriceRouteError, TokenNotFoundError
from pool_pricing.domain.services.price_routing import PriceRoute, resolve_token_price

logger = logging.getLogger(__name__)


class _TokenLookup:
    def __init__(self, token_port: TokenPort):
        self._port = token_port
        self._seen: dict[str, Token | None] = {}

    def get(self, token_id: str, default=None):
        if token_id not in self._seen:
            self._seen[token_id] = self._port.get(token_id)
        value = self._seen[token_id]
        return value if value is not None else default


class _PoolLookup:
    def __init__(self, pool_port: PoolPort):
        self._port = pool_port
        self._seen: dict[str, list[Pool]] = {}

    def get(self, token_id: str, default=()):
        if token_id not in self._seen:
            self._seen[token_id] = self._port.list_by_token(token_id)
        return self._seen[token_id] or default


class PriceOracle:
    def __init__(self, *, token_port: TokenPort, pool_port: PoolPort, config: PricingConfig):
        self._tokens = token_port
        self._pools = pool_port
        self._config = config
        self._locks: dict[str, Lock] = {}
        self._locks_guard = Lock()

    def _lock_for(self, token_id: str) -> Lock:
        with self._locks_guard:
            lock = self._locks.get(token_id)
            if lock is None:
                lock = Lock()
                self._locks[token_id] = lock
            return lock

    def quote(self, token_id: str) -> PriceRoute:
        """Resolve a price without storing it."""
        return resolve_token_price(
            token_id,
            tokens=_TokenLookup(self._tokens),
            pools_by_token=_PoolLookup(self._pools),
            reference_assets=self._config.reference_assets,
            max_depth=self._config.max_route_depth,
        )

    def derive_token_price_usd(
        self,
        token_id: str,
        *,
        as_of_block: int | None = None,
        updated_at: datetime | None = None,
    ) -> Decimal:
        """Quote and store a token price.

        Reading reserves and writing the price happen under the token lock, so
        the stored price always comes from the most recent read, whatever the
        block numbers of the syncs that triggered the computations.
        """
        with self._lock_for(token_id):
            current = self._tokens.get(token_id)
            if current is None:
                raise TokenNotFoundError(f"token {token_id} not found.")
            try:
                route = self.quote(token_id)
            except NoPriceRouteError:
                logger.info("price_oracle: no_price_route token=%s", token_id)
                raise
            blocks = [b for b in (as_of_block, current.price_as_of_block) if b is not None]
            self._tokens.save(
                replace(
                    current,
                    price_usd=route.price_usd,
                    price_updated_at=updated_at or datetime.now(timezone.utc),
                    price_as_of_block=max(blocks) if blocks else None,
                )
            )
        logger.debug(
            "price_oracle: price_updated token=%s price=%s pool=%s hops=%s",
            token_id,
            route.price_usd,
            route.pool_id,
            route.hops,
        )
        return route.price_usd

    def get_token(self, token_id: str) -> Token:
        token = self._tokens.get(token_id)
        if token is None:
            raise TokenNotFoundError(f"token {token_id} not found.")
        return token
