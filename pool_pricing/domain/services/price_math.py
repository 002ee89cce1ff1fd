from __future__ import annotations

from decimal import Decimal, localcontext

from pool_pricing.domain.exceptions import MalformedSnapshotError, ZeroReserveError

EXCHANGE_RATE_SCALE = 10**18
RECIPROCAL_TARGET = EXCHANGE_RATE_SCALE * EXCHANGE_RATE_SCALE

# uint256 needs 78 digits; keep headroom for the division that follows.
PRICE_PRECISION = 90


def to_human_units(raw_amount: int, decimals: int) -> Decimal:
    if decimals < 0:
        raise ValueError("decimals must be non-negative.")
    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        return Decimal(int(raw_amount)).scaleb(-decimals)


def direct_route_price(
    *,
    token_reserve: int,
    token_decimals: int,
    counterpart_reserve: int,
    counterpart_decimals: int,
    counterpart_price_usd: Decimal,
) -> Decimal:
    """USD price of a token from a pool against a priced counterpart.

    Both reserves are normalized to human units before dividing.
    """
    if token_reserve <= 0 or counterpart_reserve <= 0:
        raise ZeroReserveError("pool has a zero reserve.")
    token_amount = to_human_units(token_reserve, token_decimals)
    counterpart_amount = to_human_units(counterpart_reserve, counterpart_decimals)
    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        return counterpart_amount / token_amount * counterpart_price_usd


def compute_exchange_rates(
    *,
    reserve0: int,
    reserve1: int,
    decimals0: int,
    decimals1: int,
) -> tuple[int, int]:
    """Price of token0 in token1 units and its reciprocal, scaled by 10**18.

    Integer arithmetic only; decimals are folded into the ratio.
    """
    if reserve0 <= 0 or reserve1 <= 0:
        raise ZeroReserveError("pool has a zero reserve.")
    scale0 = 10**decimals0
    scale1 = 10**decimals1
    exchange_rate0 = reserve1 * EXCHANGE_RATE_SCALE * scale0 // (reserve0 * scale1)
    exchange_rate1 = reserve0 * EXCHANGE_RATE_SCALE * scale1 // (reserve1 * scale0)
    return exchange_rate0, exchange_rate1


def check_reciprocal(exchange_rate0: int, exchange_rate1: int, *, tolerance: Decimal) -> None:
    """Reject rate pairs whose product strays from 10**36.

    Both rates are floored, which alone can move the product down by up to
    exchange_rate0 + exchange_rate1 + 1; that slack is always allowed.
    """
    if exchange_rate0 <= 0 or exchange_rate1 <= 0:
        raise MalformedSnapshotError("exchange rates must be positive.")
    deviation = abs(exchange_rate0 * exchange_rate1 - RECIPROCAL_TARGET)
    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        allowed = tolerance * Decimal(RECIPROCAL_TARGET) + exchange_rate0 + exchange_rate1 + 1
        if Decimal(deviation) > allowed:
            raise MalformedSnapshotError(
                f"exchange rates {exchange_rate0} and {exchange_rate1} are not reciprocal."
            )


def exchange_rate_to_price(exchange_rate: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        return Decimal(exchange_rate).scaleb(-18)
