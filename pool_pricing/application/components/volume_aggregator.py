from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
import logging
from threading import Lock

from pool_pricing.application.ports.pool_port import PoolPort
from pool_pricing.application.ports.token_port import TokenPort
from pool_pricing.domain.entities.notification import PROTOCOL_ENTITY_ID
from pool_pricing.domain.entities.volume import SwapContribution, VolumeWindow
from pool_pricing.domain.exceptions import PoolNotFoundError, TokenNotFoundError
from pool_pricing.domain.services.volume_windows import (
    gross_side_units,
    pool_swap_usd,
    sum_usd_between,
    summarize_window,
    usd_value,
    window_seconds,
)
from pool_pricing.domain.services.price_math import to_human_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapVolume:
    pool_id: str
    token0_units: Decimal
    token1_units: Decimal
    volume_usd: Decimal
    priced: bool


class _Ledger:
    def __init__(self, *, is_pool: bool):
        self.is_pool = is_pool
        self.lock = Lock()
        self.entries: list[SwapContribution] = []

    def append(self, entry: SwapContribution, *, cutoff: int) -> None:
        with self.lock:
            self.entries.append(entry)
            if self.entries and self.entries[0].timestamp <= cutoff:
                self.entries = [row for row in self.entries if row.timestamp > cutoff]

    def snapshot(self) -> list[SwapContribution]:
        with self.lock:
            return list(self.entries)

    def drop_before(self, cutoff: int) -> int:
        with self.lock:
            before = len(self.entries)
            self.entries = [row for row in self.entries if row.timestamp > cutoff]
            return before - len(self.entries)


class VolumeAggregator:
    """Rolling traded volume per pool and per token.

    Every swap side is kept with its timestamp; window totals are summed over
    the entries inside the window at query time.
    """

    def __init__(
        self,
        *,
        pool_port: PoolPort,
        token_port: TokenPort,
        retention_seconds: int,
    ):
        self._pools = pool_port
        self._tokens = token_port
        self._retention_seconds = retention_seconds
        self._ledgers: dict[str, _Ledger] = {}
        self._ledgers_guard = Lock()

    def _ledger(self, entity_id: str, *, is_pool: bool) -> _Ledger:
        with self._ledgers_guard:
            ledger = self._ledgers.get(entity_id)
            if ledger is None:
                ledger = _Ledger(is_pool=is_pool)
                self._ledgers[entity_id] = ledger
            return ledger

    def record_swap(
        self,
        pool_id: str,
        amount_in0: int,
        amount_in1: int,
        amount_out0: int,
        amount_out1: int,
        timestamp: int,
    ) -> SwapVolume:
        if min(amount_in0, amount_in1, amount_out0, amount_out1) < 0:
            raise ValueError("swap amounts must be non-negative.")
        pool = self._pools.get(pool_id)
        if pool is None:
            raise PoolNotFoundError(f"pool {pool_id} not found.")
        token0 = self._tokens.get(pool.token0_id)
        token1 = self._tokens.get(pool.token1_id)
        if token0 is None or token1 is None:
            raise TokenNotFoundError(f"tokens of pool {pool_id} not found.")

        units0 = gross_side_units(amount_in=amount_in0, amount_out=amount_out0, decimals=token0.decimals)
        units1 = gross_side_units(amount_in=amount_in1, amount_out=amount_out1, decimals=token1.decimals)
        usd0, priced0 = usd_value(units0, token0.price_usd)
        usd1, priced1 = usd_value(units1, token1.price_usd)
        pool_usd, pool_priced = pool_swap_usd(
            paid_in0=to_human_units(amount_in0, token0.decimals),
            paid_in1=to_human_units(amount_in1, token1.decimals),
            received0=to_human_units(amount_out0, token0.decimals),
            received1=to_human_units(amount_out1, token1.decimals),
            price0_usd=token0.price_usd,
            price1_usd=token1.price_usd,
        )
        if not pool_priced:
            logger.info(
                "volume_aggregator: swap_without_price pool=%s timestamp=%s",
                pool_id,
                timestamp,
            )

        cutoff = timestamp - self._retention_seconds
        self._ledger(pool_id, is_pool=True).append(
            SwapContribution(
                timestamp=timestamp,
                token_units=units0,
                usd=pool_usd,
                priced=pool_priced,
                counterpart_units=units1,
            ),
            cutoff=cutoff,
        )
        self._ledger(token0.id, is_pool=False).append(
            SwapContribution(timestamp=timestamp, token_units=units0, usd=usd0, priced=priced0),
            cutoff=cutoff,
        )
        self._ledger(token1.id, is_pool=False).append(
            SwapContribution(timestamp=timestamp, token_units=units1, usd=usd1, priced=priced1),
            cutoff=cutoff,
        )
        return SwapVolume(
            pool_id=pool_id,
            token0_units=units0,
            token1_units=units1,
            volume_usd=pool_usd,
            priced=pool_priced,
        )

    def volume_window(self, entity_id: str, window_kind: str, *, now: int) -> VolumeWindow:
        window_seconds(window_kind)
        with self._ledgers_guard:
            ledger = self._ledgers.get(entity_id)
        entries = ledger.snapshot() if ledger is not None else []
        is_pool = ledger.is_pool if ledger is not None else self._pools.get(entity_id) is not None
        return summarize_window(
            entity_id=entity_id,
            window_kind=window_kind,
            contributions=entries,
            now=now,
            include_counterpart=is_pool,
        )

    def get_volume(self, entity_id: str, window_kind: str, *, now: int) -> Decimal:
        return self.volume_window(entity_id, window_kind, now=now).volume_usd

    def previous_window_usd(self, entity_id: str, window_kind: str, *, now: int) -> Decimal:
        """USD volume of the window immediately before the current one."""
        length = window_seconds(window_kind)
        with self._ledgers_guard:
            ledger = self._ledgers.get(entity_id)
        if ledger is None:
            return Decimal("0")
        return sum_usd_between(ledger.snapshot(), start=now - 2 * length, end=now - length)

    def _pool_ledgers(self) -> list[tuple[str, _Ledger]]:
        with self._ledgers_guard:
            return [
                (entity_id, ledger) for entity_id, ledger in self._ledgers.items() if ledger.is_pool
            ]

    def protocol_window(self, window_kind: str, *, now: int) -> VolumeWindow:
        """Sum of all pool windows.

        Token units of different pools are not comparable, so only USD and
        swap counts are summed; ``volume_token_units`` is always zero.
        """
        length = window_seconds(window_kind)
        total_usd = Decimal("0")
        swaps = 0
        unpriced = 0
        for entity_id, ledger in self._pool_ledgers():
            window = summarize_window(
                entity_id=entity_id,
                window_kind=window_kind,
                contributions=ledger.snapshot(),
                now=now,
            )
            total_usd += window.volume_usd
            swaps += window.swap_count
            unpriced += window.unpriced_swap_count
        return VolumeWindow(
            entity_id=PROTOCOL_ENTITY_ID,
            window_kind=window_kind,
            volume_token_units=Decimal("0"),
            volume_usd=total_usd,
            window_start=now - length,
            window_end=now,
            swap_count=swaps,
            unpriced_swap_count=unpriced,
        )

    def total_pool_volume(self, window_kind: str, *, now: int) -> Decimal:
        return self.protocol_window(window_kind, now=now).volume_usd

    def total_previous_window_usd(self, window_kind: str, *, now: int) -> Decimal:
        length = window_seconds(window_kind)
        return sum(
            (
                sum_usd_between(ledger.snapshot(), start=now - 2 * length, end=now - length)
                for _, ledger in self._pool_ledgers()
            ),
            Decimal("0"),
        )

    def decay(self, now: int) -> int:
        cutoff = now - self._retention_seconds
        with self._ledgers_guard:
            ledgers = list(self._ledgers.values())
        removed = sum(ledger.drop_before(cutoff) for ledger in ledgers)
        if removed:
            logger.debug("volume_aggregator: decayed removed=%s cutoff=%s", removed, cutoff)
        return removed
