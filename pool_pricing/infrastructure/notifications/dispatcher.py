from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from itertools import count
import logging
from threading import Condition, Lock, Thread
import time

from pool_pricing.application.ports.notification_port import (
    NotificationCallback,
    NotificationPublisherPort,
)
from pool_pricing.domain.entities.notification import ChangeNotification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Subscription:
    id: int
    entity_type: str | None
    entity_id: str | None
    metric_kind: str | None
    callback: NotificationCallback

    def matches(self, notification: ChangeNotification) -> bool:
        return (
            (self.entity_type is None or self.entity_type == notification.entity_type)
            and (self.entity_id is None or self.entity_id == notification.entity_id)
            and (self.metric_kind is None or self.metric_kind == notification.metric_kind)
        )


class NotificationDispatcher(NotificationPublisherPort):
    """Delivers notifications to subscribers off the publishing thread.

    Pending notifications are keyed by (entity_type, entity_id, metric_kind);
    a newer one replaces an undelivered older one for the same key. Delivery
    is at most once and a failing callback never affects other subscribers.
    """

    def __init__(self, *, name: str = "notification-dispatcher"):
        self._name = name
        self._subscriptions: dict[int, Subscription] = {}
        self._subscriptions_lock = Lock()
        self._ids = count(1)
        self._pending: OrderedDict[tuple[str, str, str], ChangeNotification] = OrderedDict()
        self._cond = Condition()
        self._delivering = 0
        self._running = False
        self._thread: Thread | None = None
        self.coalesced = 0
        self.delivered = 0

    def subscribe(
        self,
        entity_type: str | None,
        entity_id: str | None,
        metric_kind: str | None,
        callback: NotificationCallback,
    ) -> Subscription:
        subscription = Subscription(
            id=next(self._ids),
            entity_type=entity_type,
            entity_id=entity_id,
            metric_kind=metric_kind,
            callback=callback,
        )
        with self._subscriptions_lock:
            self._subscriptions[subscription.id] = subscription
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        with self._subscriptions_lock:
            return self._subscriptions.pop(subscription.id, None) is not None

    def publish(self, notification: ChangeNotification) -> None:
        with self._cond:
            if notification.key in self._pending:
                self.coalesced += 1
                del self._pending[notification.key]
            self._pending[notification.key] = notification
            self._cond.notify_all()

    def pending_count(self) -> int:
        with self._cond:
            return len(self._pending)

    def deliver_pending(self) -> int:
        """Deliver everything queued so far on the calling thread."""
        with self._cond:
            batch = list(self._pending.values())
            self._pending.clear()
            self._delivering += 1
        try:
            for notification in batch:
                self._deliver(notification)
        finally:
            with self._cond:
                self._delivering -= 1
                self._cond.notify_all()
        return len(batch)

    def _deliver(self, notification: ChangeNotification) -> None:
        with self._subscriptions_lock:
            targets = [sub for sub in self._subscriptions.values() if sub.matches(notification)]
        for subscription in targets:
            try:
                subscription.callback(notification)
            except Exception:
                logger.exception(
                    "notification_dispatcher: subscriber_failed subscription=%s key=%s",
                    subscription.id,
                    notification.key,
                )
            else:
                self.delivered += 1

    def start(self) -> None:
        with self._cond:
            if self._running:
                return
            self._running = True
        self._thread = Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        logger.info("notification_dispatcher: started name=%s", self._name)

    def _run(self) -> None:
        while True:
            with self._cond:
                while self._running and not self._pending:
                    self._cond.wait()
                if not self._running and not self._pending:
                    return
            self.deliver_pending()

    def shutdown(self, timeout: float | None = 5.0) -> None:
        with self._cond:
            self._running = False
            self._cond.notify_all()
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
        self._thread = None
        logger.info("notification_dispatcher: stopped name=%s", self._name)

    def wait_until_idle(self, timeout: float = 5.0) -> bool:
        deadline = time.monotonic() + timeout
        with self._cond:
            while self._pending or self._delivering:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._cond.wait(remaining)
        return True
