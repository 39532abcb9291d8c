"""
Dashboard metric types.

Plain dataclasses returned by the aggregator; the API layer validates
them into response schemas and the report exporter flattens them into
spreadsheet rows.
"""

from dataclasses import asdict, dataclass
from decimal import Decimal

from restaurant_ops.core.money import ZERO

WEEK_ORDER = (
    "MONDAY",
    "TUESDAY",
    "WEDNESDAY",
    "THURSDAY",
    "FRIDAY",
    "SATURDAY",
    "SUNDAY",
)

UNCATEGORIZED = "Uncategorized"


@dataclass
class DashboardStats:
    """
    Headline numbers for a date range.

    Attributes:
        total_revenue: Sum of completed order totals
        total_orders: Number of completed orders
        average_order_value: Revenue / orders, 2 dp half up, 0 without orders
        new_customers: Customers whose first ever completed order is in range
    """
    total_revenue: Decimal = ZERO
    total_orders: int = 0
    average_order_value: Decimal = ZERO
    new_customers: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RevenueDataPoint:
    label: str
    revenue: Decimal


@dataclass
class TopItem:
    food_name: str
    quantity_sold: int
    total_revenue: Decimal


@dataclass
class TopCategory:
    category_name: str
    total_revenue: Decimal


@dataclass
class BusiestTable:
    table_number: str
    order_count: int


@dataclass
class HeatmapPoint:
    day_of_week: str
    hour_of_day: int
    revenue: Decimal
