"""Celery export task, run eagerly."""

from restaurant_ops import tasks


def test_export_task_reports_timing(monkeypatch):
    calls = []

    async def fake_build_and_export(start_date, end_date):
        calls.append((start_date, end_date))
        return {"success": True, "message": "Report exported (0 orders)", "file": "x.xlsx"}

    monkeypatch.setattr(tasks, "_build_and_export", fake_build_and_export)

    result = tasks.export_dashboard_report.apply(args=("2024-05-01", "2024-05-15")).get()

    assert result["success"] is True
    assert "processing_time_seconds" in result
    assert [(s.isoformat(), e.isoformat()) for s, e in calls] == [("2024-05-01", "2024-05-15")]


def test_export_task_defaults_dates(monkeypatch):
    calls = []

    async def fake_build_and_export(start_date, end_date):
        calls.append((start_date, end_date))
        return {"success": True, "message": "ok"}

    monkeypatch.setattr(tasks, "_build_and_export", fake_build_and_export)

    tasks.export_dashboard_report.apply().get()

    assert calls == [(None, None)]


def test_health_check_task():
    assert tasks.health_check.apply().get()["status"] == "healthy"
