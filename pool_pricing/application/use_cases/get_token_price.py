from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
import time

from pool_pricing.application.dto.token_price import GetTokenPriceInput, GetTokenPriceOutput
from pool_pricing.application.ports.token_port import TokenPort
from pool_pricing.domain.entities.token import normalize_address
from pool_pricing.domain.exceptions import NoPriceRouteError, TokenNotFoundError


class GetTokenPriceUseCase:
    """Last derived USD price; a price is never cleared, only marked stale."""

    def __init__(
        self,
        *,
        token_port: TokenPort,
        stale_after_seconds: float,
        clock: Callable[[], float] = time.time,
    ):
        self._token_port = token_port
        self._stale_after_seconds = stale_after_seconds
        self._clock = clock

    def execute(self, command: GetTokenPriceInput) -> GetTokenPriceOutput:
        token_id = normalize_address(command.token_id)
        token = self._token_port.get(token_id)
        if token is None:
            raise TokenNotFoundError("Token not found.")
        if token.price_usd is None:
            raise NoPriceRouteError("Price unavailable.")

        stale = True
        if token.price_updated_at is not None:
            now = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
            age = (now - token.price_updated_at).total_seconds()
            stale = age > self._stale_after_seconds

        return GetTokenPriceOutput(
            token_id=token.id,
            price_usd=token.price_usd,
            price_updated_at=token.price_updated_at,
            price_as_of_block=token.price_as_of_block,
            is_reference_asset=token.is_reference_asset,
            stale=stale,
        )
