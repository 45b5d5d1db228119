"""Celery task for the periodic SLA delay sweep."""
import logging

from app.core.config import settings
from app.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    name="app.workers.sla_tasks.check_sla_delays",
    soft_time_limit=settings.SLA_RUN_SOFT_TIMEOUT_SECONDS + 60,
)
def check_sla_delays():
    """Sweep all alerting shops and raise SLA alerts for late or near-late cases.

    Scheduled by beat every SLA_CHECK_INTERVAL_MINUTES. Overlapping runs are
    safe: the per-case daily dedup absorbs them.
    """
    logger.info("check_sla_delays: starting SLA sweep")
    try:
        from app.db.session import get_sync_session_factory
        from app.services.sla_scheduler import run_sla_check

        result = run_sla_check(get_sync_session_factory())
        return {
            "success": True,
            "shops_checked": result.shops_checked,
            "alerts_created": result.alerts_created,
            "shops_failed": result.shops_failed,
            "cases_failed": result.cases_failed,
            "shops_timed_out": result.shops_timed_out,
        }

    except Exception as exc:
        logger.exception("check_sla_delays failed: %s", exc)
        return {"status": "error", "error": str(exc)}
