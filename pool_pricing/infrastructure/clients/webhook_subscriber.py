from __future__ import annotations

from decimal import Decimal
import logging

import httpx

from pool_pricing.domain.entities.notification import ChangeNotification

logger = logging.getLogger(__name__)


def notification_payload(notification: ChangeNotification) -> dict:
    value = notification.value
    return {
        "entity_type": notification.entity_type,
        "entity_id": notification.entity_id,
        "metric_kind": notification.metric_kind,
        "timestamp": notification.timestamp,
        "value": str(value) if isinstance(value, Decimal) else value,
    }


class WebhookSubscriber:
    """Subscriber callback that forwards notifications to an HTTP endpoint.

    Runs on the dispatcher thread; failures are logged and dropped, the
    receiver is expected to reconcile with a full read.
    """

    def __init__(self, *, url: str, timeout_seconds: float, client: httpx.Client | None = None):
        self.url = url
        self.timeout = timeout_seconds
        self._client = client or httpx.Client(timeout=timeout_seconds)

    def __call__(self, notification: ChangeNotification) -> None:
        try:
            response = self._client.post(self.url, json=notification_payload(notification))
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning(
                "webhook_subscriber: delivery_failed url=%s key=%s error=%s",
                self.url,
                notification.key,
                exc,
            )

    def close(self) -> None:
        self._client.close()
