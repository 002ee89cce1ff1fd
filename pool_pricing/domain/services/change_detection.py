from __future__ import annotations

from decimal import Decimal


def relative_change(previous: Decimal, current: Decimal) -> Decimal | None:
    if previous == 0:
        return None
    return abs(current - previous) / abs(previous)


def is_material_change(
    previous: Decimal | None,
    current: Decimal | None,
    *,
    threshold: Decimal,
) -> bool:
    if previous is None:
        return current is not None
    if current is None:
        return False
    if previous == 0:
        return current != 0
    change = relative_change(previous, current)
    return change is not None and change > threshold
