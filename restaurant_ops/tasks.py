"""
Celery Tasks
Background dashboard report exports.
"""

import asyncio
import logging
import time
from datetime import date, datetime
from typing import Optional

from restaurant_ops.celery_worker import celery_app
from restaurant_ops.core.config import get_settings
from restaurant_ops.database import build_engine, build_session_maker
from restaurant_ops.services.dashboard import DashboardService
from restaurant_ops.services.report_exporter import ReportExporter

logger = logging.getLogger(__name__)


async def _build_and_export(start_date: Optional[date], end_date: Optional[date]) -> dict:
    # Each task run gets its own engine; the worker has no running loop to share one with
    settings = get_settings()
    engine = build_engine(settings.database_url, settings.database_echo)
    try:
        session_maker = build_session_maker(engine)
        async with session_maker() as session:
            report = await DashboardService(session, settings=settings).build_report(start_date, end_date)
        return ReportExporter().export(report)
    finally:
        await engine.dispose()


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def export_dashboard_report(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> dict:
    """
    Export every dashboard metric for a date range to the report workbook.

    Args:
        start_date: ISO date, defaults to the dashboard default start
        end_date: ISO date, defaults to today

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    logger.info(f"Task {task_id}: exporting dashboard report {start_date} → {end_date}")
    start_time = time.time()

    try:
        result = asyncio.run(_build_and_export(
            date.fromisoformat(start_date) if start_date else None,
            date.fromisoformat(end_date) if end_date else None,
        ))
    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        logger.error(f"Task {task_id}: export failed after {elapsed}s - {e}")
        raise

    elapsed = round(time.time() - start_time, 3)
    result['task_id'] = task_id
    result['processing_time_seconds'] = elapsed

    if result['success']:
        logger.info(f"Task {task_id}: report exported in {elapsed}s")
    else:
        logger.warning(f"Task {task_id}: export failed - {result['message']}")

    return result


@celery_app.task
def health_check() -> dict:
    """Simple health check task to verify Celery is working."""
    return {
        'status': 'healthy',
        'worker': 'celery',
        'timestamp': datetime.now().isoformat()
    }
