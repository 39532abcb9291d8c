"""
Analytics Aggregator

Read-only metrics over COMPLETED orders whose order time falls in a
business-day window (see business_day.business_window). Nothing is
cached: every call scans the orders again, so results always reflect
the current database contents, including merges.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_ops.core.config import Settings, get_settings
from restaurant_ops.core.money import ZERO, split_evenly, to_money
from restaurant_ops.models import Order, OrderStatus
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
from restaurant_ops.services.business_day import business_window
from restaurant_ops.services.paging import Page, paginate

logger = logging.getLogger(__name__)

HOURLY_LABEL = "%Y-%m-%d %H:00"
DAILY_LABEL = "%Y-%m-%d"

# Ranges covering fewer calendar-day steps than this are bucketed by hour
HOURLY_BUCKET_MAX_SPAN_DAYS = 3


class AnalyticsAggregator:
    """Computes dashboard metrics from the order history."""

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or get_settings()

    async def _completed_orders(self, start_date: date, end_date: date) -> list[Order]:
        lower, upper = business_window(start_date, end_date, self.settings)
        result = await self.session.execute(
            select(Order)
            .where(
                Order.status == OrderStatus.COMPLETED,
                Order.order_time >= lower,
                Order.order_time <= upper,
            )
            .order_by(Order.order_time.asc(), Order.id.asc())
        )
        orders = list(result.scalars().all())
        logger.debug(f"{len(orders)} completed order(s) between {lower} and {upper}")
        return orders

    # =========================================================================
    # SUMMARY
    # =========================================================================

    async def get_dashboard_stats(self, start_date: date, end_date: date) -> DashboardStats:
        orders = await self._completed_orders(start_date, end_date)
        if not orders:
            return DashboardStats()

        total_revenue = to_money(sum((Decimal(o.total_price) for o in orders), ZERO))
        total_orders = len(orders)
        average = to_money(total_revenue / total_orders)

        return DashboardStats(
            total_revenue=total_revenue,
            total_orders=total_orders,
            average_order_value=average,
            new_customers=await self._count_new_customers(orders, start_date, end_date),
        )

    async def _count_new_customers(
        self,
        orders: list[Order],
        start_date: date,
        end_date: date,
    ) -> int:
        customer_ids = {o.customer_id for o in orders if o.customer_id is not None}
        if not customer_ids:
            return 0

        result = await self.session.execute(
            select(Order.customer_id, func.min(Order.order_time))
            .where(
                Order.status == OrderStatus.COMPLETED,
                Order.customer_id.in_(customer_ids),
            )
            .group_by(Order.customer_id)
        )
        lower, upper = business_window(start_date, end_date, self.settings)
        return sum(1 for _, first in result.all() if first is not None and lower <= first <= upper)

    # =========================================================================
    # TIME SERIES
    # =========================================================================

    async def get_revenue_chart(self, start_date: date, end_date: date) -> list[RevenueDataPoint]:
        """
        Revenue per hour for ranges spanning up to three calendar days,
        per day otherwise. Sorted by label.
        """
        orders = await self._completed_orders(start_date, end_date)
        label_format = HOURLY_LABEL if uses_hourly_buckets(start_date, end_date) else DAILY_LABEL

        buckets: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for order in orders:
            buckets[order.order_time.strftime(label_format)] += Decimal(order.total_price)

        return [
            RevenueDataPoint(label=label, revenue=to_money(revenue))
            for label, revenue in sorted(buckets.items())
        ]

    async def get_revenue_heatmap(self, start_date: date, end_date: date) -> list[HeatmapPoint]:
        orders = await self._completed_orders(start_date, end_date)

        cells: dict[tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
        for order in orders:
            key = (order.order_time.weekday(), order.order_time.hour)
            cells[key] += Decimal(order.total_price)

        return [
            HeatmapPoint(day_of_week=WEEK_ORDER[day], hour_of_day=hour, revenue=to_money(revenue))
            for (day, hour), revenue in sorted(cells.items())
        ]

    # =========================================================================
    # RANKINGS
    # =========================================================================

    async def rank_items(self, start_date: date, end_date: date) -> list[TopItem]:
        orders = await self._completed_orders(start_date, end_date)

        quantities: dict[str, int] = defaultdict(int)
        revenue: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for order in orders:
            for item in order.items:
                name = item.food_name
                quantities[name] += item.quantity
                revenue[name] += Decimal(item.total_price)

        ranked = [
            TopItem(food_name=name, quantity_sold=quantities[name], total_revenue=to_money(revenue[name]))
            for name in revenue
        ]
        ranked.sort(key=lambda r: (-r.total_revenue, r.food_name))
        return ranked

    async def rank_categories(self, start_date: date, end_date: date) -> list[TopCategory]:
        """
        Item revenue is split evenly over the item's categories, each
        share rounded half up to cents; items without a category count
        towards "Uncategorized".
        """
        orders = await self._completed_orders(start_date, end_date)

        revenue: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for order in orders:
            for item in order.items:
                item_revenue = Decimal(item.total_price)
                categories = item.food_item.categories if item.food_item is not None else []
                if not categories:
                    revenue[UNCATEGORIZED] += item_revenue
                    continue
                share = split_evenly(item_revenue, len(categories))
                for category in categories:
                    revenue[category.name] += share

        ranked = [
            TopCategory(category_name=name, total_revenue=to_money(total))
            for name, total in revenue.items()
        ]
        ranked.sort(key=lambda r: (-r.total_revenue, r.category_name))
        return ranked

    async def rank_tables(self, start_date: date, end_date: date) -> list[BusiestTable]:
        orders = await self._completed_orders(start_date, end_date)

        counts: dict[str, int] = defaultdict(int)
        for order in orders:
            if order.table_number is not None:
                counts[order.table_number] += 1

        ranked = [BusiestTable(table_number=number, order_count=n) for number, n in counts.items()]
        ranked.sort(key=lambda r: (-r.order_count, r.table_number))
        return ranked

    async def get_top_items(
        self, start_date: date, end_date: date, offset: int = 0, limit: int = 10
    ) -> Page[TopItem]:
        return paginate(await self.rank_items(start_date, end_date), offset, limit)

    async def get_top_categories(
        self, start_date: date, end_date: date, offset: int = 0, limit: int = 10
    ) -> Page[TopCategory]:
        return paginate(await self.rank_categories(start_date, end_date), offset, limit)

    async def get_busiest_tables(
        self, start_date: date, end_date: date, offset: int = 0, limit: int = 10
    ) -> Page[BusiestTable]:
        return paginate(await self.rank_tables(start_date, end_date), offset, limit)


def uses_hourly_buckets(start_date: date, end_date: date) -> bool:
    """True when end_date is less than three days after start_date."""
    return (end_date - start_date).days < HOURLY_BUCKET_MAX_SPAN_DAYS
