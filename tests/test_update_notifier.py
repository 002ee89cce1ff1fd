from __future__ import annotations

from decimal import Decimal

import pytest

from pool_pricing.application.components.update_notifier import UpdateNotifier
from pool_pricing.domain.services.change_detection import is_material_change


class FakePublisher:
    def __init__(self):
        self.published = []
        self.subscriptions = []

    def publish(self, notification) -> None:
        self.published.append(notification)

    def subscribe(self, entity_type, entity_id, metric_kind, callback):
        self.subscriptions.append((entity_type, entity_id, metric_kind, callback))
        return len(self.subscriptions)

    def unsubscribe(self, subscription) -> bool:
        return subscription <= len(self.subscriptions)


def _notifier(publisher: FakePublisher) -> UpdateNotifier:
    return UpdateNotifier(publisher=publisher, clock=lambda: 1234.0)


def test_first_value_always_notifies():
    publisher = FakePublisher()
    notification = _notifier(publisher).check_and_notify("token", "0xa", "price", Decimal("100"))

    assert notification is not None
    assert notification.timestamp == 1234
    assert publisher.published == [notification]


def test_sub_threshold_change_is_suppressed_and_one_percent_emits_once():
    publisher = FakePublisher()
    notifier = _notifier(publisher)
    notifier.check_and_notify("token", "0xa", "price", Decimal("100"))
    publisher.published.clear()

    assert notifier.check_and_notify("token", "0xa", "price", Decimal("100.001")) is None
    assert publisher.published == []

    emitted = notifier.check_and_notify("token", "0xa", "price", Decimal("101"))
    assert emitted is not None
    assert len(publisher.published) == 1
    assert publisher.published[0].key == ("token", "0xa", "price")
    assert publisher.published[0].value == Decimal("101")


def test_drift_is_measured_against_last_notified_value():
    publisher = FakePublisher()
    notifier = _notifier(publisher)
    notifier.check_and_notify("pool", "0xp", "tvl", Decimal("1000"))

    for value in ("1000.05", "1000.09", "1000.11"):
        notifier.check_and_notify("pool", "0xp", "tvl", Decimal(value))

    assert [row.value for row in publisher.published] == [Decimal("1000"), Decimal("1000.11")]
    assert notifier.last_notified("pool", "0xp", "tvl") == Decimal("1000.11")


def test_keys_are_independent():
    publisher = FakePublisher()
    notifier = _notifier(publisher)
    notifier.check_and_notify("token", "0xa", "price", Decimal("1"))
    notifier.check_and_notify("token", "0xb", "price", Decimal("1"))
    notifier.check_and_notify("token", "0xa", "volume", Decimal("1"))

    assert len(publisher.published) == 3


def test_discrete_metric_always_emits():
    publisher = FakePublisher()
    notifier = _notifier(publisher)
    notifier.check_and_notify("pool", "0xp", "state", "created")
    notifier.check_and_notify("pool", "0xp", "state", "created")

    assert len(publisher.published) == 2


def test_unknown_entity_or_metric_is_rejected():
    notifier = _notifier(FakePublisher())
    with pytest.raises(ValueError):
        notifier.check_and_notify("user", "0xa", "price", Decimal("1"))
    with pytest.raises(ValueError):
        notifier.check_and_notify("token", "0xa", "apr", Decimal("1"))


def test_subscribe_is_delegated_to_publisher():
    publisher = FakePublisher()
    notifier = _notifier(publisher)

    handle = notifier.subscribe("token", None, "price", lambda _n: None)

    assert publisher.subscriptions[0][:3] == ("token", None, "price")
    assert notifier.unsubscribe(handle) is True


def test_is_material_change_edges():
    threshold = Decimal("0.0001")
    assert is_material_change(None, Decimal("1"), threshold=threshold) is True
    assert is_material_change(Decimal("0"), Decimal("0"), threshold=threshold) is False
    assert is_material_change(Decimal("0"), Decimal("1"), threshold=threshold) is True
    assert is_material_change(Decimal("1"), None, threshold=threshold) is False
    assert is_material_change(Decimal("1"), Decimal("1.0001"), threshold=threshold) is False
    assert is_material_change(Decimal("1"), Decimal("0.9998"), threshold=threshold) is True
