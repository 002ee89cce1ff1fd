from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from pool_pricing.api.deps import get_pipeline
from pool_pricing.api.routers.formatting import dec_to_str
from pool_pricing.api.schemas.events import (
    PoolCreatedRequest,
    PoolCreatedResponse,
    SwapRequest,
    SwapResponse,
    SyncRequest,
    SyncResponse,
)
from pool_pricing.application.components.pipeline import PricingPipeline
from pool_pricing.domain.entities.events import PoolCreatedEvent, SwapEvent, SyncEvent
from pool_pricing.domain.exceptions import (
    DecimalsMismatchError,
    InvalidPoolError,
    PoolNotFoundError,
    TokenNotFoundError,
)

router = APIRouter()


@router.post("/v1/events/pool-created", response_model=PoolCreatedResponse)
def ingest_pool_created(
    req: PoolCreatedRequest,
    pipeline: PricingPipeline = Depends(get_pipeline),
):
    try:
        pool = pipeline.handle_pool_created(PoolCreatedEvent(**req.model_dump()))
    except (InvalidPoolError, DecimalsMismatchError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return PoolCreatedResponse(pool_id=pool.id, token0_id=pool.token0_id, token1_id=pool.token1_id)


@router.post("/v1/events/sync", response_model=SyncResponse)
def ingest_sync(
    req: SyncRequest,
    pipeline: PricingPipeline = Depends(get_pipeline),
):
    try:
        outcome = pipeline.handle_sync(SyncEvent(**req.model_dump()))
    except (PoolNotFoundError, TokenNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return SyncResponse(
        pool_id=outcome.sync.pool_id,
        applied=outcome.sync.applied,
        reason=outcome.sync.reason,
        prices={token_id: dec_to_str(price) for token_id, price in outcome.prices.items()},
        unpriced=list(outcome.unpriced),
        snapshots_written=len(outcome.snapshots),
    )


@router.post("/v1/events/swap", response_model=SwapResponse)
def ingest_swap(
    req: SwapRequest,
    pipeline: PricingPipeline = Depends(get_pipeline),
):
    try:
        volume = pipeline.handle_swap(SwapEvent(**req.model_dump()))
    except (PoolNotFoundError, TokenNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return SwapResponse(
        pool_id=volume.pool_id,
        token0_units=dec_to_str(volume.token0_units),
        token1_units=dec_to_str(volume.token1_units),
        volume_usd=dec_to_str(volume.volume_usd),
        priced=volume.priced,
    )
