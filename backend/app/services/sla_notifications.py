"""SLA alert composition and deduplicated creation.

One unread sla_alert per case per UTC calendar day. The check is a plain
read-then-write: two overlapping sweeps may both pass it and leave one extra
duplicate, which is tolerated.
"""
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from app.models.notification import Notification
from app.rules.delay_calculator import CaseRef, DelayAssessment
from app.services import sla_store

logger = logging.getLogger(__name__)

# ─── Severity levels ───
OVERDUE = "overdue"
IMMINENT = "imminent"
APPROACHING = "approaching"


@dataclass(frozen=True)
class AlertMessage:
    severity: str
    title: str
    message: str


def _days(n: int) -> str:
    return f"{n} day" if n == 1 else f"{n} days"


def compose_alert(case: CaseRef, assessment: DelayAssessment) -> AlertMessage:
    """Build the severity-graded title and message for an alerting case."""
    days_left = assessment.whole_days_remaining
    label = f"Case {case.case_number} ({case.type_key})"

    if assessment.is_overdue:
        # Less than a full day late still reads as one day
        days_overdue = max(1, abs(days_left))
        return AlertMessage(
            severity=OVERDUE,
            title="Case overdue",
            message=f"{label} is overdue by {_days(days_overdue)}.",
        )
    if days_left == 0:
        return AlertMessage(
            severity=IMMINENT,
            title="Case due imminently",
            message=f"{label} is due within 24 hours.",
        )
    return AlertMessage(
        severity=APPROACHING,
        title="Case approaching deadline",
        message=f"{label} is due in {_days(days_left)}.",
    )


def ensure_alert(
    db: Session,
    case: CaseRef,
    assessment: DelayAssessment,
    now: datetime,
) -> Notification | None:
    """Create today's sla_alert for ``case`` unless an unread one already exists.

    Returns:
        The created notification, or None if one already existed today.

    Raises:
        TransientStoreError: the dedup read or the insert failed.
    """
    if sla_store.has_unread_alert_today(db, case.id, now):
        logger.debug("ensure_alert: unread alert already exists today for case %s", case.id)
        return None

    alert = compose_alert(case, assessment)
    notification = sla_store.insert_alert(
        db,
        shop_id=case.shop_id,
        case_id=case.id,
        title=alert.title,
        message=alert.message,
        now=now,
    )

    if alert.severity == OVERDUE:
        logger.warning(
            "SLA OVERDUE: case %s (shop=%s, status=%s) remaining=%.2fd",
            case.case_number, case.shop_id, case.status_key, assessment.remaining_days,
            extra={"shop_id": str(case.shop_id), "case_id": str(case.id), "severity": alert.severity},
        )
    else:
        logger.info(
            "SLA %s: case %s (shop=%s, status=%s) remaining=%.2fd",
            alert.severity.upper(), case.case_number, case.shop_id, case.status_key, assessment.remaining_days,
            extra={"shop_id": str(case.shop_id), "case_id": str(case.id), "severity": alert.severity},
        )
    return notification
