from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from pool_pricing.api.deps import (
    get_pool_metrics_use_case,
    get_pool_reserves_use_case,
    get_price_history_use_case,
)
from pool_pricing.api.routers.formatting import dec_to_str, dec_to_str_or_none
from pool_pricing.api.schemas.pools import (
    PoolMetricsResponse,
    PoolReservesResponse,
    PriceHistoryResponse,
    PriceHistoryStatsResponse,
    PricePointResponse,
)
from pool_pricing.application.dto.metrics import GetPoolMetricsInput
from pool_pricing.application.dto.pool_reserves import GetPoolReservesInput
from pool_pricing.application.dto.price_history import GetPriceHistoryInput
from pool_pricing.application.use_cases.get_pool_metrics import GetPoolMetricsUseCase
from pool_pricing.application.use_cases.get_pool_reserves import GetPoolReservesUseCase
from pool_pricing.application.use_cases.get_price_history import GetPriceHistoryUseCase
from pool_pricing.domain.exceptions import PoolNotFoundError, QueryInputError, TokenNotFoundError

router = APIRouter()


@router.get("/v1/pools/{pool_id}/reserves", response_model=PoolReservesResponse)
def get_pool_reserves(
    pool_id: str,
    use_case: GetPoolReservesUseCase = Depends(get_pool_reserves_use_case),
):
    try:
        result = use_case.execute(GetPoolReservesInput(pool_id=pool_id))
    except PoolNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return PoolReservesResponse(
        pool_id=result.pool_id,
        token0_id=result.token0_id,
        token1_id=result.token1_id,
        reserve0=str(result.reserve0),
        reserve1=str(result.reserve1),
        last_synced_block=result.last_synced_block,
    )


@router.get("/v1/pools/{pool_id}/price-history", response_model=PriceHistoryResponse)
def get_price_history(
    pool_id: str,
    timeframe: str = "1d",
    invert: bool = False,
    use_case: GetPriceHistoryUseCase = Depends(get_price_history_use_case),
):
    try:
        result = use_case.execute(
            GetPriceHistoryInput(pool_id=pool_id, timeframe=timeframe, invert=invert)
        )
    except PoolNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except QueryInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return PriceHistoryResponse(
        pool_id=result.pool_id,
        timeframe=result.timeframe,
        tier=result.tier,
        inverted=result.inverted,
        stats=PriceHistoryStatsResponse(
            min=dec_to_str_or_none(result.min_price),
            max=dec_to_str_or_none(result.max_price),
            avg=dec_to_str_or_none(result.avg_price),
            price=dec_to_str_or_none(result.latest_price),
            change_pct=dec_to_str_or_none(result.change_pct),
        ),
        series=[
            PricePointResponse(timestamp=row.timestamp, price=dec_to_str(row.price))
            for row in result.series
        ],
    )


@router.get("/v1/pools/{pool_id}/metrics", response_model=PoolMetricsResponse)
def get_pool_metrics(
    pool_id: str,
    use_case: GetPoolMetricsUseCase = Depends(get_pool_metrics_use_case),
):
    try:
        result = use_case.execute(GetPoolMetricsInput(pool_id=pool_id))
    except (PoolNotFoundError, TokenNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return PoolMetricsResponse(
        pool_id=result.pool_id,
        tvl_usd=dec_to_str(result.tvl_usd),
        price0_usd=dec_to_str_or_none(result.price0_usd),
        price1_usd=dec_to_str_or_none(result.price1_usd),
        volume_1h_usd=dec_to_str(result.volume_1h_usd),
        volume_24h_usd=dec_to_str(result.volume_24h_usd),
        volume_7d_usd=dec_to_str(result.volume_7d_usd),
        volume_30d_usd=dec_to_str(result.volume_30d_usd),
        previous_volume_24h_usd=dec_to_str(result.previous_volume_24h_usd),
        volume_change_24h_pct=dec_to_str_or_none(result.volume_change_24h_pct),
        volume_tvl_ratio=dec_to_str_or_none(result.volume_tvl_ratio),
        fee_apr_pct=dec_to_str_or_none(result.fee_apr_pct),
    )
