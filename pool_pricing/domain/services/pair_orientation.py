from __future__ import annotations

from decimal import Decimal, localcontext

from pool_pricing.domain.entities.price_snapshot import PricePoint, PriceStats
from pool_pricing.domain.services.price_math import PRICE_PRECISION


def invert_decimal_price(price: Decimal, *, field_name: str = "price") -> Decimal:
    if price <= 0:
        raise ValueError(f"{field_name} must be positive.")
    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        return Decimal("1") / price


def invert_series(points: list[PricePoint]) -> list[PricePoint]:
    return [
        PricePoint(
            timestamp=row.timestamp,
            price=invert_decimal_price(row.price, field_name="series.price"),
        )
        for row in points
    ]


def series_stats(points: list[PricePoint]) -> PriceStats:
    if not points:
        return PriceStats(min_price=None, max_price=None, avg_price=None)
    prices = [row.price for row in points]
    return PriceStats(
        min_price=min(prices),
        max_price=max(prices),
        avg_price=sum(prices, Decimal("0")) / Decimal(len(prices)),
    )
