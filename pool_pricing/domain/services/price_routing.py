"""Token USD price resolution over pool reserves.

This is the one place where a token price is derived from reserves. The live
pipeline, maintenance scripts and tests all go through
:func:`resolve_token_price`.

Rules:

* pinned reference assets return their configured price;
* derived reference assets are priced only against pinned reference assets;
* any other token prefers pools whose counterpart is a reference asset
  (direct route) and only falls back to routing through a non-reference
  intermediate (indirect route) when no direct route resolves;
* among candidate routes the one with the deepest counterpart side (in USD)
  wins; routes are never averaged;
* routes longer than ``max_depth`` hops and pools with a zero reserve are
  never used.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
import logging

from pool_pricing.domain.entities.pool import Pool
from pool_pricing.domain.entities.pricing_config import ReferenceAsset
from pool_pricing.domain.entities.token import Token
from pool_pricing.domain.exceptions import NoPriceRouteError
from pool_pricing.domain.services.price_math import direct_route_price, to_human_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceRoute:
    token_id: str
    price_usd: Decimal
    pool_id: str | None
    via_token_id: str | None
    hops: int
    depth_usd: Decimal | None = None


@dataclass(frozen=True)
class _Candidate:
    pool: Pool
    counterpart: Token


def resolve_token_price(
    token_id: str,
    *,
    tokens: Mapping[str, Token],
    pools_by_token: Mapping[str, Sequence[Pool]],
    reference_assets: Mapping[str, ReferenceAsset],
    max_depth: int = 2,
) -> PriceRoute:
    return _resolve(
        token_id,
        depth=max_depth,
        tokens=tokens,
        pools_by_token=pools_by_token,
        reference_assets=reference_assets,
        visiting=frozenset(),
    )


def _resolve(
    token_id: str,
    *,
    depth: int,
    tokens: Mapping[str, Token],
    pools_by_token: Mapping[str, Sequence[Pool]],
    reference_assets: Mapping[str, ReferenceAsset],
    visiting: frozenset[str],
) -> PriceRoute:
    token = tokens.get(token_id)
    if token is None:
        raise NoPriceRouteError(f"token {token_id} is unknown.")

    reference = reference_assets.get(token.address)
    if reference is not None and reference.is_pinned:
        return PriceRoute(
            token_id=token_id,
            price_usd=reference.pinned_price if reference.pinned_price is not None else Decimal("1"),
            pool_id=None,
            via_token_id=None,
            hops=0,
        )
    if depth <= 0:
        raise NoPriceRouteError(f"route depth exhausted for token {token_id}.")

    visiting = visiting | {token_id}
    direct: list[_Candidate] = []
    indirect: list[_Candidate] = []
    for pool in sorted(pools_by_token.get(token_id, ()), key=lambda row: row.id):
        counterpart_id = pool.counterpart_of(token_id)
        if counterpart_id in visiting:
            continue
        counterpart = tokens.get(counterpart_id)
        if counterpart is None:
            continue
        if pool.reserve0 == 0 or pool.reserve1 == 0:
            logger.debug("price_routing: zero_reserve_skipped pool=%s token=%s", pool.id, token_id)
            continue
        counterpart_reference = reference_assets.get(counterpart.address)
        if reference is not None:
            # derived reference assets anchor only on pinned ones
            if counterpart_reference is not None and counterpart_reference.is_pinned:
                direct.append(_Candidate(pool=pool, counterpart=counterpart))
            continue
        if counterpart_reference is not None:
            direct.append(_Candidate(pool=pool, counterpart=counterpart))
        else:
            indirect.append(_Candidate(pool=pool, counterpart=counterpart))

    kwargs = {
        "tokens": tokens,
        "pools_by_token": pools_by_token,
        "reference_assets": reference_assets,
        "visiting": visiting,
    }
    best = _deepest(token, direct, counterpart_depth=1, **kwargs)
    if best is None and depth >= 2:
        best = _deepest(token, indirect, counterpart_depth=depth - 1, **kwargs)
    if best is None:
        raise NoPriceRouteError(f"no price route for token {token_id}.")
    return best


def _deepest(
    token: Token,
    candidates: list[_Candidate],
    *,
    counterpart_depth: int,
    tokens: Mapping[str, Token],
    pools_by_token: Mapping[str, Sequence[Pool]],
    reference_assets: Mapping[str, ReferenceAsset],
    visiting: frozenset[str],
) -> PriceRoute | None:
    best: PriceRoute | None = None
    for candidate in candidates:
        try:
            counterpart_route = _resolve(
                candidate.counterpart.id,
                depth=counterpart_depth,
                tokens=tokens,
                pools_by_token=pools_by_token,
                reference_assets=reference_assets,
                visiting=visiting,
            )
        except NoPriceRouteError:
            continue
        pool = candidate.pool
        counterpart_reserve = pool.reserve_of(candidate.counterpart.id)
        price = direct_route_price(
            token_reserve=pool.reserve_of(token.id),
            token_decimals=token.decimals,
            counterpart_reserve=counterpart_reserve,
            counterpart_decimals=candidate.counterpart.decimals,
            counterpart_price_usd=counterpart_route.price_usd,
        )
        depth_usd = (
            to_human_units(counterpart_reserve, candidate.counterpart.decimals)
            * counterpart_route.price_usd
        )
        if best is None or (best.depth_usd is not None and depth_usd > best.depth_usd):
            best = PriceRoute(
                token_id=token.id,
                price_usd=price,
                pool_id=pool.id,
                via_token_id=candidate.counterpart.id,
                hops=counterpart_route.hops + 1,
                depth_usd=depth_usd,
            )
    return best
