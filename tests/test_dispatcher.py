from __future__ import annotations

from decimal import Decimal
import threading

from pool_pricing.domain.entities.notification import ChangeNotification
from pool_pricing.infrastructure.notifications.dispatcher import NotificationDispatcher


def _notification(entity_id: str = "0xa", value: str = "1", metric_kind: str = "price") -> ChangeNotification:
    return ChangeNotification(
        entity_type="token",
        entity_id=entity_id,
        metric_kind=metric_kind,
        timestamp=1,
        value=Decimal(value),
    )


def test_pending_notifications_for_same_key_are_coalesced(dispatcher):
    received = []
    dispatcher.subscribe("token", "0xa", "price", received.append)

    dispatcher.publish(_notification(value="1"))
    dispatcher.publish(_notification(value="2"))

    assert dispatcher.pending_count() == 1
    assert dispatcher.deliver_pending() == 1
    assert [row.value for row in received] == [Decimal("2")]
    assert dispatcher.coalesced == 1


def test_failing_subscriber_does_not_block_others(dispatcher):
    received = []

    def broken(_notification):
        raise RuntimeError("boom")

    dispatcher.subscribe(None, None, None, broken)
    dispatcher.subscribe(None, None, None, received.append)

    dispatcher.publish(_notification())
    dispatcher.deliver_pending()

    assert len(received) == 1
    assert dispatcher.delivered == 1


def test_subscription_filters_and_wildcards(dispatcher):
    exact, by_type, everything = [], [], []
    dispatcher.subscribe("token", "0xa", "price", exact.append)
    dispatcher.subscribe("token", None, None, by_type.append)
    dispatcher.subscribe(None, None, None, everything.append)

    dispatcher.publish(_notification("0xa"))
    dispatcher.publish(_notification("0xb"))
    dispatcher.publish(_notification("0xa", metric_kind="volume"))
    dispatcher.publish(
        ChangeNotification(entity_type="pool", entity_id="0xp", metric_kind="tvl", timestamp=1, value=Decimal("5"))
    )
    dispatcher.deliver_pending()

    assert len(exact) == 1
    assert len(by_type) == 3
    assert len(everything) == 4


def test_unsubscribe_stops_delivery(dispatcher):
    received = []
    subscription = dispatcher.subscribe(None, None, None, received.append)

    assert dispatcher.unsubscribe(subscription) is True
    assert dispatcher.unsubscribe(subscription) is False

    dispatcher.publish(_notification())
    dispatcher.deliver_pending()
    assert received == []


def test_background_thread_delivers_off_the_publishing_thread(dispatcher):
    threads = []
    dispatcher.subscribe(None, None, None, lambda _n: threads.append(threading.current_thread().name))
    dispatcher.start()

    dispatcher.publish(_notification())

    assert dispatcher.wait_until_idle(timeout=2.0) is True
    assert threads == ["notification-dispatcher"]


def test_shutdown_without_start_is_safe():
    dispatcher = NotificationDispatcher(name="idle")
    dispatcher.shutdown(timeout=0.1)
    assert dispatcher.pending_count() == 0
