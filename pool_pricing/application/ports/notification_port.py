from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

from pool_pricing.domain.entities.notification import ChangeNotification

NotificationCallback = Callable[[ChangeNotification], None]


class NotificationPublisherPort(Protocol):
    def publish(self, notification: ChangeNotification) -> None:
        """Hand off for delivery; must not block on subscribers."""
        ...

    def subscribe(
        self,
        entity_type: str | None,
        entity_id: str | None,
        metric_kind: str | None,
        callback: NotificationCallback,
    ) -> Any:
        ...

    def unsubscribe(self, subscription: Any) -> bool:
        ...
