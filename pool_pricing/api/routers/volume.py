from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from pool_pricing.api.deps import get_volume_use_case
from pool_pricing.api.routers.formatting import dec_to_str, dec_to_str_or_none
from pool_pricing.api.schemas.volume import VolumeResponse
from pool_pricing.application.dto.volume import GetVolumeInput
from pool_pricing.application.use_cases.get_volume import GetVolumeUseCase
from pool_pricing.domain.exceptions import EntityNotFoundError, QueryInputError

router = APIRouter()


@router.get("/v1/volume/{entity_id}", response_model=VolumeResponse)
def get_volume(
    entity_id: str,
    window: str = "24h",
    use_case: GetVolumeUseCase = Depends(get_volume_use_case),
):
    try:
        result = use_case.execute(GetVolumeInput(entity_id=entity_id, window=window))
    except EntityNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except QueryInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    row = result.window
    return VolumeResponse(
        entity_id=row.entity_id,
        entity_type=result.entity_type,
        window=row.window_kind,
        volume_usd=dec_to_str(row.volume_usd),
        volume_token_units=dec_to_str(row.volume_token_units),
        volume_counterpart_units=dec_to_str_or_none(row.volume_counterpart_units),
        window_start=row.window_start,
        window_end=row.window_end,
        swap_count=row.swap_count,
        unpriced_swap_count=row.unpriced_swap_count,
    )
