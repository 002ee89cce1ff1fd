from __future__ import annotations

from fastapi import APIRouter, Depends

from pool_pricing.api.deps import get_protocol_metrics_use_case
from pool_pricing.api.routers.formatting import dec_to_str, dec_to_str_or_none
from pool_pricing.api.schemas.protocol import ProtocolMetricsResponse
from pool_pricing.application.use_cases.get_protocol_metrics import GetProtocolMetricsUseCase

router = APIRouter()


@router.get("/v1/protocol/metrics", response_model=ProtocolMetricsResponse)
def get_protocol_metrics(
    use_case: GetProtocolMetricsUseCase = Depends(get_protocol_metrics_use_case),
):
    result = use_case.execute()
    return ProtocolMetricsResponse(
        total_tvl_usd=dec_to_str(result.total_tvl_usd),
        volume_24h_usd=dec_to_str(result.volume_24h_usd),
        previous_volume_24h_usd=dec_to_str(result.previous_volume_24h_usd),
        volume_change_24h_pct=dec_to_str_or_none(result.volume_change_24h_pct),
        pool_count=result.pool_count,
        token_count=result.token_count,
    )
