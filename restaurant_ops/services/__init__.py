"""
                        Services Module

Business logic behind the API routes and the Celery worker.

Services:
    - orders: Order lifecycle engine (placement, status, merge, tables)
    - analytics: Dashboard metrics over completed orders
    - dashboard: Facade with default ranges and paging
    - lookups: Catalog, address and table resolvers
    - report_exporter: Lock-guarded Excel report writer
"""

from restaurant_ops.services.dashboard import DashboardReport, DashboardService
from restaurant_ops.services.report_exporter import ReportExporter

__all__ = ["DashboardReport", "DashboardService", "ReportExporter"]
