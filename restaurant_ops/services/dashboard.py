"""
Dashboard Facade

Fills in default date ranges and page sizes, then delegates to the
AnalyticsAggregator. Used by the API routes and by the report export
task.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_ops.core.config import Settings, get_settings
from restaurant_ops.core.exceptions import ValidationError
from restaurant_ops.services.analytics import (
    AnalyticsAggregator,
    BusiestTable,
    DashboardStats,
    HeatmapPoint,
    RevenueDataPoint,
    TopCategory,
    TopItem,
)
from restaurant_ops.services.paging import Page, paginate_by_number

logger = logging.getLogger(__name__)


@dataclass
class DashboardReport:
    """Every dashboard metric for one date range, unpaginated."""
    start_date: date
    end_date: date
    generated_at: datetime
    stats: DashboardStats
    revenue_chart: list[RevenueDataPoint] = field(default_factory=list)
    top_items: list[TopItem] = field(default_factory=list)
    top_categories: list[TopCategory] = field(default_factory=list)
    busiest_tables: list[BusiestTable] = field(default_factory=list)
    heatmap: list[HeatmapPoint] = field(default_factory=list)


class DashboardService:
    """
    Entry point for dashboard reads.

    Missing start dates default to settings.dashboard_default_start,
    missing end dates to today.
    """

    def __init__(
        self,
        session: AsyncSession,
        clock: Optional[Callable[[], datetime]] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.clock = clock or datetime.now
        self.aggregator = AnalyticsAggregator(session, self.settings)

    def resolve_range(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> tuple[date, date]:
        start = start_date or self.settings.dashboard_default_start
        end = end_date or self.clock().date()
        if start > end:
            raise ValidationError(f"start_date {start} is after end_date {end}")
        return start, end

    def _page_size(self, size: Optional[int]) -> int:
        size = size or self.settings.default_page_size
        if size > self.settings.max_page_size:
            raise ValidationError(f"size must be <= {self.settings.max_page_size}")
        return size

    async def get_dashboard_stats(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> DashboardStats:
        return await self.aggregator.get_dashboard_stats(*self.resolve_range(start_date, end_date))

    async def get_revenue_chart(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[RevenueDataPoint]:
        return await self.aggregator.get_revenue_chart(*self.resolve_range(start_date, end_date))

    async def get_revenue_heatmap(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[HeatmapPoint]:
        return await self.aggregator.get_revenue_heatmap(*self.resolve_range(start_date, end_date))

    async def get_top_items(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 0,
        size: Optional[int] = None,
    ) -> Page[TopItem]:
        ranked = await self.aggregator.rank_items(*self.resolve_range(start_date, end_date))
        return paginate_by_number(ranked, page, self._page_size(size))

    async def get_top_categories(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 0,
        size: Optional[int] = None,
    ) -> Page[TopCategory]:
        ranked = await self.aggregator.rank_categories(*self.resolve_range(start_date, end_date))
        return paginate_by_number(ranked, page, self._page_size(size))

    async def get_busiest_tables(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 0,
        size: Optional[int] = None,
    ) -> Page[BusiestTable]:
        ranked = await self.aggregator.rank_tables(*self.resolve_range(start_date, end_date))
        return paginate_by_number(ranked, page, self._page_size(size))

    async def build_report(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> DashboardReport:
        start, end = self.resolve_range(start_date, end_date)
        logger.info(f"Building dashboard report for {start} → {end}")
        return DashboardReport(
            start_date=start,
            end_date=end,
            generated_at=self.clock(),
            stats=await self.aggregator.get_dashboard_stats(start, end),
            revenue_chart=await self.aggregator.get_revenue_chart(start, end),
            top_items=await self.aggregator.rank_items(start, end),
            top_categories=await self.aggregator.rank_categories(start, end),
            busiest_tables=await self.aggregator.rank_tables(start, end),
            heatmap=await self.aggregator.get_revenue_heatmap(start, end),
        )
