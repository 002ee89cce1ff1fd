from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from pool_pricing.api.deps import get_token_metrics_use_case, get_token_price_use_case
from pool_pricing.api.routers.formatting import dec_to_str, dec_to_str_or_none
from pool_pricing.api.schemas.tokens import TokenMetricsResponse, TokenPriceResponse
from pool_pricing.application.dto.metrics import GetTokenMetricsInput
from pool_pricing.application.dto.token_price import GetTokenPriceInput
from pool_pricing.application.use_cases.get_token_metrics import GetTokenMetricsUseCase
from pool_pricing.application.use_cases.get_token_price import GetTokenPriceUseCase
from pool_pricing.domain.exceptions import NoPriceRouteError, TokenNotFoundError

router = APIRouter()


@router.get("/v1/tokens/{token_id}/price", response_model=TokenPriceResponse)
def get_token_price(
    token_id: str,
    use_case: GetTokenPriceUseCase = Depends(get_token_price_use_case),
):
    try:
        result = use_case.execute(GetTokenPriceInput(token_id=token_id))
    except TokenNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except NoPriceRouteError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return TokenPriceResponse(
        token_id=result.token_id,
        price_usd=dec_to_str(result.price_usd),
        price_updated_at=(
            result.price_updated_at.isoformat() if result.price_updated_at is not None else None
        ),
        price_as_of_block=result.price_as_of_block,
        is_reference_asset=result.is_reference_asset,
        stale=result.stale,
    )


@router.get("/v1/tokens/{token_id}/metrics", response_model=TokenMetricsResponse)
def get_token_metrics(
    token_id: str,
    use_case: GetTokenMetricsUseCase = Depends(get_token_metrics_use_case),
):
    try:
        result = use_case.execute(GetTokenMetricsInput(token_id=token_id))
    except TokenNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return TokenMetricsResponse(
        token_id=result.token_id,
        price_usd=dec_to_str_or_none(result.price_usd),
        tvl_usd=dec_to_str(result.tvl_usd),
        volume_24h_usd=dec_to_str(result.volume_24h_usd),
        previous_volume_24h_usd=dec_to_str(result.previous_volume_24h_usd),
        volume_change_24h_pct=dec_to_str_or_none(result.volume_change_24h_pct),
        price_change_1h_pct=dec_to_str_or_none(result.price_change_1h_pct),
        price_change_24h_pct=dec_to_str_or_none(result.price_change_24h_pct),
        price_change_7d_pct=dec_to_str_or_none(result.price_change_7d_pct),
        pool_count=result.pool_count,
    )
