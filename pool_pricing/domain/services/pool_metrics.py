from __future__ import annotations

from decimal import Decimal

from pool_pricing.domain.services.price_math import to_human_units

DEFAULT_SWAP_FEE_RATE = Decimal("0.003")


def pool_tvl_usd(
    *,
    reserve0: int,
    reserve1: int,
    decimals0: int,
    decimals1: int,
    price0_usd: Decimal | None,
    price1_usd: Decimal | None,
) -> Decimal:
    tvl = Decimal("0")
    if price0_usd is not None:
        tvl += to_human_units(reserve0, decimals0) * price0_usd
    if price1_usd is not None:
        tvl += to_human_units(reserve1, decimals1) * price1_usd
    return tvl


def percent_change(*, previous: Decimal | None, current: Decimal | None) -> Decimal | None:
    if previous is None or current is None:
        return None
    if previous == 0:
        return None
    return ((current - previous) / previous) * Decimal("100")


def volume_tvl_ratio(*, volume_usd: Decimal, tvl_usd: Decimal) -> Decimal | None:
    if tvl_usd <= 0:
        return None
    return volume_usd / tvl_usd


def fee_apr_pct(
    *,
    volume_24h_usd: Decimal,
    tvl_usd: Decimal,
    fee_rate: Decimal = DEFAULT_SWAP_FEE_RATE,
) -> Decimal | None:
    if tvl_usd <= 0:
        return None
    daily_fees = volume_24h_usd * fee_rate
    return (daily_fees / tvl_usd) * Decimal("365") * Decimal("100")
