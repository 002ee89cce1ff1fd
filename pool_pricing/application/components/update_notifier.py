from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
import logging
from threading import Lock
import time
from typing import Any

from pool_pricing.application.ports.notification_port import (
    NotificationCallback,
    NotificationPublisherPort,
)
from pool_pricing.domain.entities.notification import (
    DISCRETE_METRICS,
    ENTITY_TYPES,
    NUMERIC_METRICS,
    ChangeNotification,
)
from pool_pricing.domain.services.change_detection import is_material_change

logger = logging.getLogger(__name__)

DEFAULT_CHANGE_THRESHOLD = Decimal("0.0001")


class UpdateNotifier:
    """Emits a change notification when a derived metric moves materially.

    The comparison is against the last *notified* value, so slow drifts
    below the threshold still fire once they accumulate past it.
    """

    def __init__(
        self,
        *,
        publisher: NotificationPublisherPort,
        threshold: Decimal = DEFAULT_CHANGE_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ):
        if threshold < 0:
            raise ValueError("threshold must be non-negative.")
        self._publisher = publisher
        self._threshold = threshold
        self._clock = clock
        self._last_notified: dict[tuple[str, str, str], Decimal | str | None] = {}
        self._lock = Lock()

    def check_and_notify(
        self,
        entity_type: str,
        entity_id: str,
        metric_kind: str,
        new_value: Decimal | str | None,
        *,
        timestamp: int | None = None,
    ) -> ChangeNotification | None:
        if entity_type not in ENTITY_TYPES:
            raise ValueError(f"unknown entity_type {entity_type}.")
        if metric_kind not in NUMERIC_METRICS and metric_kind not in DISCRETE_METRICS:
            raise ValueError(f"unknown metric_kind {metric_kind}.")

        key = (entity_type, entity_id, metric_kind)
        with self._lock:
            if metric_kind in NUMERIC_METRICS:
                previous = self._last_notified.get(key)
                if not is_material_change(previous, new_value, threshold=self._threshold):
                    return None
            self._last_notified[key] = new_value

        notification = ChangeNotification(
            entity_type=entity_type,
            entity_id=entity_id,
            metric_kind=metric_kind,
            timestamp=timestamp if timestamp is not None else int(self._clock()),
            value=new_value,
        )
        self._publisher.publish(notification)
        return notification

    def last_notified(self, entity_type: str, entity_id: str, metric_kind: str):
        with self._lock:
            return self._last_notified.get((entity_type, entity_id, metric_kind))

    def subscribe(
        self,
        entity_type: str | None,
        entity_id: str | None,
        metric_kind: str | None,
        callback: NotificationCallback,
    ) -> Any:
        return self._publisher.subscribe(entity_type, entity_id, metric_kind, callback)

    def unsubscribe(self, subscription: Any) -> bool:
        return self._publisher.unsubscribe(subscription)
