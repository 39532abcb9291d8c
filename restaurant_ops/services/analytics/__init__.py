"""
Analytics package.

Usage:
    from restaurant_ops.services.analytics import AnalyticsAggregator

    aggregator = AnalyticsAggregator(session)
    stats = await aggregator.get_dashboard_stats(start, end)
"""

from restaurant_ops.services.analytics.aggregator import (
    AnalyticsAggregator,
    uses_hourly_buckets,
)
from restaurant_ops.services.analytics.metrics import (
    UNCATEGORIZED,
    WEEK_ORDER,
    BusiestTable,
    DashboardStats,
    HeatmapPoint,
    RevenueDataPoint,
    TopCategory,
    TopItem,
)

__all__ = [
    "AnalyticsAggregator",
    "uses_hourly_buckets",
    "UNCATEGORIZED",
    "WEEK_ORDER",
    "BusiestTable",
    "DashboardStats",
    "HeatmapPoint",
    "RevenueDataPoint",
    "TopCategory",
    "TopItem",
]
