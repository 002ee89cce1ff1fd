from __future__ import annotations

from collections.abc import Callable
import time

from pool_pricing.application.components.volume_aggregator import VolumeAggregator
from pool_pricing.application.dto.volume import GetVolumeInput, GetVolumeOutput
from pool_pricing.application.ports.pool_port import PoolPort
from pool_pricing.application.ports.token_port import TokenPort
from pool_pricing.domain.entities.notification import PROTOCOL_ENTITY_ID
from pool_pricing.domain.entities.token import normalize_address
from pool_pricing.domain.exceptions import EntityNotFoundError
from pool_pricing.domain.services.volume_windows import window_seconds


class GetVolumeUseCase:
    def __init__(
        self,
        *,
        volume_aggregator: VolumeAggregator,
        pool_port: PoolPort,
        token_port: TokenPort,
        clock: Callable[[], float] = time.time,
    ):
        self._volume_aggregator = volume_aggregator
        self._pool_port = pool_port
        self._token_port = token_port
        self._clock = clock

    def execute(self, command: GetVolumeInput) -> GetVolumeOutput:
        window_seconds(command.window)
        now = int(self._clock())

        if command.entity_id == PROTOCOL_ENTITY_ID:
            return GetVolumeOutput(
                entity_type="protocol",
                window=self._volume_aggregator.protocol_window(command.window, now=now),
            )

        entity_id = normalize_address(command.entity_id)
        if self._pool_port.get(entity_id) is not None:
            entity_type = "pool"
        elif self._token_port.get(entity_id) is not None:
            entity_type = "token"
        else:
            raise EntityNotFoundError(f"No pool or token with id {entity_id}.")
        return GetVolumeOutput(
            entity_type=entity_type,
            window=self._volume_aggregator.volume_window(entity_id, command.window, now=now),
        )
