"""
Order Engine input and result types.

Placement never fails because of a single unresolvable line; such
lines are returned as SkippedLine entries next to the created order.
"""

import enum
from dataclasses import dataclass, field
from typing import Optional

from restaurant_ops.models import Order


@dataclass(frozen=True)
class OrderLine:
    """One requested line: a food name, a quantity and an optional note."""
    food_name: str
    quantity: int
    note: Optional[str] = None


class SkipReason(str, enum.Enum):
    """Why a requested line did not become an order item."""
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class SkippedLine:
    food_name: str
    quantity: int
    reason: SkipReason

    @property
    def message(self) -> str:
        if self.reason == SkipReason.TIMEOUT:
            return f"Catalog did not answer for {self.food_name!r}; line skipped"
        return f"Food item {self.food_name!r} not found; line skipped"


@dataclass
class PlacementResult:
    """
    Outcome of placing an order.

    Attributes:
        order: The persisted order
        skipped_lines: Requested lines that were left out
        notices: Other non-fatal adjustments (dropped address or table)
    """
    order: Order
    skipped_lines: list[SkippedLine] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        return [line.message for line in self.skipped_lines] + list(self.notices)
