"""Dashboard metrics over completed orders."""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from restaurant_ops.models import OrderStatus
from restaurant_ops.services.analytics import (
    UNCATEGORIZED,
    AnalyticsAggregator,
    DashboardStats,
    uses_hourly_buckets,
)
from restaurant_ops.services.business_day import business_day_start, business_window

from conftest import NOW, add_order

DAY = date(2024, 5, 15)


# =============================================================================
# BUSINESS DAY
# =============================================================================

def test_business_window_shifts_both_ends():
    lower, upper = business_window(DAY, DAY)
    assert lower == datetime(2024, 5, 15, 6, 0)
    assert upper == datetime(2024, 5, 16, 2, 59, 59, 999999)


def test_business_day_start_before_opening_uses_previous_day():
    assert business_day_start(datetime(2024, 5, 15, 12, 0)) == datetime(2024, 5, 15, 6, 0)
    assert business_day_start(datetime(2024, 5, 15, 2, 0)) == datetime(2024, 5, 14, 6, 0)


@pytest.mark.parametrize(
    "start, end, hourly",
    [
        (date(2024, 5, 15), date(2024, 5, 15), True),
        (date(2024, 5, 15), date(2024, 5, 17), True),
        (date(2024, 5, 15), date(2024, 5, 18), False),
    ],
)
def test_hourly_buckets_for_short_ranges(start, end, hourly):
    assert uses_hourly_buckets(start, end) is hourly


# =============================================================================
# SUMMARY
# =============================================================================

@pytest.mark.anyio
async def test_stats_ignore_non_completed_orders(session, menu):
    alice, foods = menu["alice"], menu["foods"]
    await add_order(session, alice, NOW, [(foods["Salad"], 2)])
    await add_order(session, alice, NOW, [(foods["Burger"], 10)], status=OrderStatus.CANCELLED)
    await add_order(session, alice, NOW, [(foods["Burger"], 3)], status=OrderStatus.DELIVERED)

    stats = await AnalyticsAggregator(session).get_dashboard_stats(DAY, DAY)

    assert stats == DashboardStats(
        total_revenue=Decimal("20.00"),
        total_orders=1,
        average_order_value=Decimal("20.00"),
        new_customers=1,
    )


@pytest.mark.anyio
async def test_stats_empty_range(session, menu):
    stats = await AnalyticsAggregator(session).get_dashboard_stats(DAY, DAY)
    assert stats.total_revenue == Decimal("0.00")
    assert stats.total_orders == 0
    assert stats.average_order_value == Decimal("0.00")
    assert stats.new_customers == 0


@pytest.mark.anyio
async def test_average_order_value_rounds_to_cents(session, menu):
    alice, foods = menu["alice"], menu["foods"]
    for food in ("Burger", "Fries", "Water"):
        await add_order(session, alice, NOW, [(foods[food], 1)])

    stats = await AnalyticsAggregator(session).get_dashboard_stats(DAY, DAY)

    # 13.00 / 3
    assert stats.total_revenue == Decimal("13.00")
    assert stats.average_order_value == Decimal("4.33")


@pytest.mark.anyio
async def test_new_customers_counts_first_completed_order_only(session, menu):
    alice, bob, foods = menu["alice"], menu["bob"], menu["foods"]
    await add_order(session, alice, NOW - timedelta(days=7), [(foods["Water"], 1)])
    await add_order(session, alice, NOW, [(foods["Water"], 1)])
    # An earlier cancelled order does not make bob a returning customer
    await add_order(session, bob, NOW - timedelta(days=7), [(foods["Water"], 1)], status=OrderStatus.CANCELLED)
    await add_order(session, bob, NOW, [(foods["Water"], 1)])

    stats = await AnalyticsAggregator(session).get_dashboard_stats(DAY, DAY)

    assert stats.total_orders == 2
    assert stats.new_customers == 1


@pytest.mark.anyio
async def test_business_window_boundaries(session, menu):
    alice, foods = menu["alice"], menu["foods"]
    await add_order(session, alice, datetime(2024, 5, 15, 5, 59), [(foods["Burger"], 1)])
    await add_order(session, alice, datetime(2024, 5, 15, 6, 0), [(foods["Fries"], 1)])
    await add_order(session, alice, datetime(2024, 5, 16, 2, 30), [(foods["Water"], 1)])
    await add_order(session, alice, datetime(2024, 5, 16, 3, 0), [(foods["Salad"], 1)])

    stats = await AnalyticsAggregator(session).get_dashboard_stats(DAY, DAY)

    assert stats.total_orders == 2
    assert stats.total_revenue == Decimal("4.50")


# =============================================================================
# TIME SERIES
# =============================================================================

@pytest.mark.anyio
async def test_revenue_chart_hourly(session, menu):
    alice, foods = menu["alice"], menu["foods"]
    await add_order(session, alice, datetime(2024, 5, 15, 12, 5), [(foods["Burger"], 1)])
    await add_order(session, alice, datetime(2024, 5, 15, 12, 45), [(foods["Fries"], 1)])
    await add_order(session, alice, datetime(2024, 5, 17, 19, 0), [(foods["Water"], 1)])

    chart = await AnalyticsAggregator(session).get_revenue_chart(date(2024, 5, 15), date(2024, 5, 17))

    assert [(p.label, p.revenue) for p in chart] == [
        ("2024-05-15 12:00", Decimal("11.50")),
        ("2024-05-17 19:00", Decimal("1.50")),
    ]


@pytest.mark.anyio
async def test_revenue_chart_daily(session, menu):
    alice, foods = menu["alice"], menu["foods"]
    await add_order(session, alice, datetime(2024, 5, 15, 12, 5), [(foods["Burger"], 1)])
    await add_order(session, alice, datetime(2024, 5, 15, 20, 0), [(foods["Fries"], 1)])
    await add_order(session, alice, datetime(2024, 5, 18, 9, 0), [(foods["Water"], 1)])

    chart = await AnalyticsAggregator(session).get_revenue_chart(date(2024, 5, 15), date(2024, 5, 18))

    assert [(p.label, p.revenue) for p in chart] == [
        ("2024-05-15", Decimal("11.50")),
        ("2024-05-18", Decimal("1.50")),
    ]


@pytest.mark.anyio
async def test_heatmap_sorted_by_weekday_then_hour(session, menu):
    alice, foods = menu["alice"], menu["foods"]
    await add_order(session, alice, datetime(2024, 5, 15, 12, 0), [(foods["Burger"], 1)])  # Wednesday
    await add_order(session, alice, datetime(2024, 5, 15, 9, 30), [(foods["Fries"], 1)])
    await add_order(session, alice, datetime(2024, 5, 13, 10, 0), [(foods["Water"], 1)])  # Monday
    await add_order(session, alice, datetime(2024, 5, 13, 10, 40), [(foods["Water"], 1)])

    heatmap = await AnalyticsAggregator(session).get_revenue_heatmap(date(2024, 5, 13), date(2024, 5, 15))

    assert [(h.day_of_week, h.hour_of_day, h.revenue) for h in heatmap] == [
        ("MONDAY", 10, Decimal("3.00")),
        ("WEDNESDAY", 9, Decimal("3.00")),
        ("WEDNESDAY", 12, Decimal("8.50")),
    ]


# =============================================================================
# RANKINGS
# =============================================================================

@pytest.mark.anyio
async def test_top_items_ranked_by_revenue(session, menu):
    alice, foods = menu["alice"], menu["foods"]
    await add_order(session, alice, NOW, [(foods["Burger"], 2), (foods["Fries"], 1)])
    await add_order(session, alice, NOW, [(foods["Fries"], 2), (foods["Water"], 2)])

    page = await AnalyticsAggregator(session).get_top_items(DAY, DAY)

    assert [(i.food_name, i.quantity_sold, i.total_revenue) for i in page.content] == [
        ("Burger", 2, Decimal("17.00")),
        ("Fries", 3, Decimal("9.00")),
        ("Water", 2, Decimal("3.00")),
    ]
    assert page.total == 3


@pytest.mark.anyio
async def test_top_items_tie_broken_by_name(session, menu):
    alice, foods = menu["alice"], menu["foods"]
    await add_order(session, alice, NOW, [(foods["Water"], 2), (foods["Fries"], 1)])

    page = await AnalyticsAggregator(session).get_top_items(DAY, DAY)

    assert [i.food_name for i in page.content] == ["Fries", "Water"]


@pytest.mark.anyio
async def test_top_items_offset_beyond_end(session, menu):
    await add_order(session, menu["alice"], NOW, [(menu["foods"]["Burger"], 1)])

    page = await AnalyticsAggregator(session).get_top_items(DAY, DAY, offset=10, limit=5)

    assert page.content == []
    assert page.total == 1


@pytest.mark.anyio
async def test_categories_split_item_revenue(session, menu):
    alice, foods = menu["alice"], menu["foods"]
    await add_order(session, alice, NOW, [(foods["Salad"], 1), (foods["Burger"], 1), (foods["Water"], 1)])

    page = await AnalyticsAggregator(session).get_top_categories(DAY, DAY)

    assert [(c.category_name, c.total_revenue) for c in page.content] == [
        ("Mains", Decimal("13.50")),
        ("Vegan", Decimal("5.00")),
        (UNCATEGORIZED, Decimal("1.50")),
    ]


@pytest.mark.anyio
async def test_busiest_tables(session, menu):
    alice, foods, tables = menu["alice"], menu["foods"], menu["tables"]
    await add_order(session, alice, NOW, [(foods["Water"], 1)], table=tables["T2"])
    await add_order(session, alice, NOW, [(foods["Water"], 1)], table=tables["T1"])
    await add_order(session, alice, NOW, [(foods["Water"], 1)], table=tables["T2"])
    await add_order(session, alice, NOW, [(foods["Water"], 1)])

    page = await AnalyticsAggregator(session).get_busiest_tables(DAY, DAY)

    assert [(t.table_number, t.order_count) for t in page.content] == [("T2", 2), ("T1", 1)]
