"""Tests for the Celery SLA sweep task wrapper."""
from datetime import timedelta
from unittest.mock import MagicMock, patch

from app.core.config import settings
from app.core.errors import SystemicFailure
from app.services.sla_scheduler import SlaRunResult
from app.workers.celery_app import celery_app
from app.workers.sla_tasks import check_sla_delays


@patch("app.db.session.get_sync_session_factory", return_value=MagicMock())
@patch("app.services.sla_scheduler.run_sla_check")
def test_task_returns_run_counts(mock_run, mock_factory):
    mock_run.return_value = SlaRunResult(shops_checked=4, alerts_created=7, shops_failed=1)

    result = check_sla_delays()

    assert result["success"] is True
    assert result["shops_checked"] == 4
    assert result["alerts_created"] == 7
    assert result["shops_failed"] == 1
    assert result["shops_timed_out"] == 0
    mock_run.assert_called_once_with(mock_factory.return_value)


@patch("app.db.session.get_sync_session_factory", return_value=MagicMock())
@patch("app.services.sla_scheduler.run_sla_check", side_effect=SystemicFailure("shops table unreachable"))
def test_task_reports_systemic_failure(mock_run, mock_factory):
    result = check_sla_delays()

    assert result["status"] == "error"
    assert "shops table unreachable" in result["error"]


def test_beat_schedules_sweep():
    entry = celery_app.conf.beat_schedule["check-sla-delays"]

    assert entry["task"] == "app.workers.sla_tasks.check_sla_delays"
    assert entry["schedule"] == timedelta(minutes=settings.SLA_CHECK_INTERVAL_MINUTES)
