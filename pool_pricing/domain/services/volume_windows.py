from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from pool_pricing.domain.entities.volume import WINDOW_SECONDS, SwapContribution, VolumeWindow
from pool_pricing.domain.exceptions import QueryInputError
from pool_pricing.domain.services.price_math import to_human_units


def window_seconds(window_kind: str) -> int:
    seconds = WINDOW_SECONDS.get(window_kind)
    if seconds is None:
        raise QueryInputError(
            f"window must be one of {', '.join(WINDOW_SECONDS)}."
        )
    return seconds


def gross_side_units(*, amount_in: int, amount_out: int, decimals: int) -> Decimal:
    # paid-in and received legs both count; they are never netted
    return to_human_units(amount_in + amount_out, decimals)


def usd_value(units: Decimal, price_usd: Decimal | None) -> tuple[Decimal, bool]:
    if price_usd is None:
        return Decimal("0"), False
    return units * price_usd, True


def pool_swap_usd(
    *,
    paid_in0: Decimal,
    paid_in1: Decimal,
    received0: Decimal,
    received1: Decimal,
    price0_usd: Decimal | None,
    price1_usd: Decimal | None,
) -> tuple[Decimal, bool]:
    """USD size of one swap for the pool ledger.

    Valued on the paid-in legs; falls back to the received legs when the
    paid-in token has no price.
    """
    paid_in_value = Decimal("0")
    priced_in = True
    for amount, price in ((paid_in0, price0_usd), (paid_in1, price1_usd)):
        if amount == 0:
            continue
        if price is None:
            priced_in = False
            break
        paid_in_value += amount * price
    if priced_in:
        return paid_in_value, True

    received_value = Decimal("0")
    for amount, price in ((received0, price0_usd), (received1, price1_usd)):
        if amount == 0:
            continue
        if price is None:
            return Decimal("0"), False
        received_value += amount * price
    return received_value, True


def summarize_window(
    *,
    entity_id: str,
    window_kind: str,
    contributions: Iterable[SwapContribution],
    now: int,
    include_counterpart: bool = False,
) -> VolumeWindow:
    window_start = now - window_seconds(window_kind)
    token_units = Decimal("0")
    counterpart_units = Decimal("0")
    usd = Decimal("0")
    swap_count = 0
    unpriced = 0
    for item in contributions:
        if item.timestamp <= window_start or item.timestamp > now:
            continue
        swap_count += 1
        token_units += item.token_units
        usd += item.usd
        if item.counterpart_units is not None:
            counterpart_units += item.counterpart_units
        if not item.priced:
            unpriced += 1
    return VolumeWindow(
        entity_id=entity_id,
        window_kind=window_kind,
        volume_token_units=token_units,
        volume_usd=usd,
        window_start=window_start,
        window_end=now,
        swap_count=swap_count,
        unpriced_swap_count=unpriced,
        volume_counterpart_units=counterpart_units if include_counterpart else None,
    )


def sum_usd_between(contributions: Iterable[SwapContribution], *, start: int, end: int) -> Decimal:
    return sum(
        (item.usd for item in contributions if start < item.timestamp <= end),
        Decimal("0"),
    )
