"""
Order Status State Machine

    PLACED → PREPARING → READY → SHIPPED | DELIVERED → COMPLETED
    CANCELLED is reachable from PLACED or PREPARING only.

The transition table is intentionally permissive: apart from the
cancellation restriction, any status may move to any other status,
including backward jumps such as COMPLETED → PLACED. Requesting the
status an order already has is always rejected.
"""

from restaurant_ops.core.exceptions import InvalidOperationError, InvalidValueError
from restaurant_ops.models import OrderStatus

CANCELLABLE_STATUSES = frozenset({OrderStatus.PLACED, OrderStatus.PREPARING})
TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


def _build_transitions() -> dict[OrderStatus, frozenset[OrderStatus]]:
    transitions = {}
    for source in OrderStatus:
        targets = set(OrderStatus) - {source}
        if source not in CANCELLABLE_STATUSES:
            targets.discard(OrderStatus.CANCELLED)
        transitions[source] = frozenset(targets)
    return transitions


TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = _build_transitions()


def parse_status(value: str) -> OrderStatus:
    """
    Parse a status name, ignoring case and surrounding whitespace.

    Raises:
        InvalidValueError: If the name is not a known status
    """
    if value is None:
        raise InvalidValueError("Order", "status", value)
    try:
        return OrderStatus(value.strip().upper())
    except ValueError:
        raise InvalidValueError("Order", "status", value)


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in TRANSITIONS[current]


def ensure_transition(current: OrderStatus, target: OrderStatus) -> None:
    """
    Validate a status change.

    Raises:
        InvalidOperationError: If target equals current or the table forbids it
    """
    if current == target:
        raise InvalidOperationError(f"Order is already {current.value}")
    if not can_transition(current, target):
        raise InvalidOperationError(
            f"Order cannot move from {current.value} to {target.value}"
        )
