"""
Order Engine package.

Usage:
    from restaurant_ops.services.orders import OrderEngine, OrderLine

    engine = OrderEngine(session)
    result = await engine.place_order(customer_id, [OrderLine("Burger", 2)])
"""

from restaurant_ops.services.orders.engine import OrderEngine
from restaurant_ops.services.orders.results import (
    OrderLine,
    PlacementResult,
    SkippedLine,
    SkipReason,
)
from restaurant_ops.services.orders.state_machine import (
    CANCELLABLE_STATUSES,
    TERMINAL_STATUSES,
    TRANSITIONS,
    can_transition,
    ensure_transition,
    parse_status,
)

__all__ = [
    "OrderEngine",
    "OrderLine",
    "PlacementResult",
    "SkippedLine",
    "SkipReason",
    "CANCELLABLE_STATUSES",
    "TERMINAL_STATUSES",
    "TRANSITIONS",
    "can_transition",
    "ensure_transition",
    "parse_status",
]
