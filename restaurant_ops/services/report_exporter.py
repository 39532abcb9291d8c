"""
Dashboard Report Exporter

Writes a DashboardReport to an Excel workbook, one sheet per metric.
The file is guarded by a file lock so concurrent export tasks never
interleave writes.
"""

import logging
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

import pandas as pd
from filelock import FileLock, Timeout

from restaurant_ops.core.config import get_settings
from restaurant_ops.services.dashboard import DashboardReport

logger = logging.getLogger(__name__)

SHEET_COLUMNS = {
    "Summary": ["start_date", "end_date", "total_revenue", "total_orders",
                "average_order_value", "new_customers", "generated_at"],
    "Revenue": ["label", "revenue"],
    "Top Items": ["food_name", "quantity_sold", "total_revenue"],
    "Top Categories": ["category_name", "total_revenue"],
    "Busiest Tables": ["table_number", "order_count"],
    "Heatmap": ["day_of_week", "hour_of_day", "revenue"],
}


def _plain(row: dict[str, Any]) -> dict[str, Any]:
    """Decimals become floats so openpyxl stores numbers."""
    return {k: float(v) if isinstance(v, Decimal) else v for k, v in row.items()}


class ReportExporter:
    """Excel writer for dashboard reports."""

    def __init__(
        self,
        data_directory: Optional[str] = None,
        filename: Optional[str] = None,
        lock_timeout: Optional[int] = None,
    ):
        settings = get_settings()
        self.data_dir = Path(data_directory or settings.data_directory)
        self.report_file = self.data_dir / (filename or settings.report_filename)
        self.lock_file = self.data_dir / f"{self.report_file.name}.lock"
        self.lock_timeout = lock_timeout if lock_timeout is not None else settings.report_lock_timeout

    def _ensure_data_dir(self) -> None:
        """Create data directory if needed."""
        if not self.data_dir.exists():
            self.data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {self.data_dir}")

    @staticmethod
    def to_frames(report: DashboardReport) -> dict[str, pd.DataFrame]:
        """Flatten a report into one DataFrame per sheet."""
        summary = {
            "start_date": report.start_date.isoformat(),
            "end_date": report.end_date.isoformat(),
            **report.stats.to_dict(),
            "generated_at": report.generated_at.isoformat(),
        }
        rows = {
            "Summary": [summary],
            "Revenue": [asdict(p) for p in report.revenue_chart],
            "Top Items": [asdict(i) for i in report.top_items],
            "Top Categories": [asdict(c) for c in report.top_categories],
            "Busiest Tables": [asdict(t) for t in report.busiest_tables],
            "Heatmap": [asdict(h) for h in report.heatmap],
        }
        return {
            sheet: pd.DataFrame([_plain(r) for r in rows[sheet]], columns=columns)
            for sheet, columns in SHEET_COLUMNS.items()
        }

    def export(self, report: DashboardReport) -> dict[str, Any]:
        """Write the report, replacing any previous workbook."""
        self._ensure_data_dir()

        result = {
            "success": False,
            "message": "",
            "file": str(self.report_file),
            "exported_at": None,
        }

        try:
            lock = FileLock(str(self.lock_file), timeout=self.lock_timeout)

            with lock:
                logger.debug(f"Lock acquired for {self.report_file}")

                frames = self.to_frames(report)
                with pd.ExcelWriter(self.report_file, engine="openpyxl") as writer:
                    for sheet, frame in frames.items():
                        frame.to_excel(writer, sheet_name=sheet, index=False)

                export_time = datetime.now().isoformat()
                logger.info(
                    f"Dashboard report {report.start_date} → {report.end_date} "
                    f"exported to {self.report_file}"
                )

                result["success"] = True
                result["message"] = f"Report exported ({report.stats.total_orders} orders)"
                result["exported_at"] = export_time

            logger.debug(f"Lock released for {self.report_file}")

        except Timeout:
            result["message"] = f"Lock timeout ({self.lock_timeout}s)"
            logger.error(f"Lock timeout for {self.report_file}")

        return result

    def read_sheet(self, sheet: str) -> list[dict[str, Any]]:
        """Read one sheet of the last exported workbook."""
        if not self.report_file.exists():
            return []
        df = pd.read_excel(self.report_file, sheet_name=sheet, engine="openpyxl")
        return df.to_dict("records")
