"""
Business day boundaries.

A restaurant day opens at 06:00 and its last orders may land up to
03:00 on the next calendar day. Analytics ranges and the staff order
views are both expressed in these terms.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

from restaurant_ops.core.config import Settings, get_settings


def business_window(
    start_date: date,
    end_date: date,
    settings: Optional[Settings] = None,
) -> tuple[datetime, datetime]:
    """
    Inclusive datetime bounds for a calendar date range.

    Lower bound is start_date 00:00 shifted by business_day_start_hours,
    upper bound is the last instant of end_date shifted by
    business_day_end_hours.
    """
    settings = settings or get_settings()
    lower = datetime.combine(start_date, time.min) + timedelta(hours=settings.business_day_start_hours)
    upper = datetime.combine(end_date, time.max) + timedelta(hours=settings.business_day_end_hours)
    return lower, upper


def business_day_start(now: datetime, settings: Optional[Settings] = None) -> datetime:
    """Opening time of the business day `now` belongs to."""
    settings = settings or get_settings()
    opening = datetime.combine(now.date(), time.min) + timedelta(hours=settings.business_day_start_hours)
    if now < opening:
        opening -= timedelta(days=1)
    return opening
