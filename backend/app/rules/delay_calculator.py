"""Delay Calculator — point-in-time SLA assessment for one repair case.

Pure and deterministic: no I/O, no wall-clock reads. Callers pass ``now``.
Both the alert sweep and the timeline renderer call ``assess``; neither
re-derives overdue/paused on its own.
"""
import enum
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

SECONDS_PER_DAY = 86400

DEFAULT_ALERT_DAYS = 2
DEFAULT_MAX_PROCESSING_DAYS = 7

# Built-in case types and their processing deadlines (days)
BUILTIN_MAX_PROCESSING_DAYS = {
    "client": 7,
    "external": 9,
    "internal": 5,
}


class StatusClass(str, enum.Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    TERMINAL = "terminal"


def classify_status(pause_timer: bool, is_final_status: bool) -> StatusClass:
    """Collapse the two catalog flags into one classification. Final wins."""
    if is_final_status:
        return StatusClass.TERMINAL
    if pause_timer:
        return StatusClass.PAUSED
    return StatusClass.ACTIVE


# ─── Inputs ───

@dataclass(frozen=True)
class CaseRef:
    id: uuid.UUID
    shop_id: uuid.UUID
    case_number: str
    type_key: str
    status_key: str
    created_at: datetime

    @classmethod
    def from_row(cls, row) -> "CaseRef":
        return cls(
            id=row.id,
            shop_id=row.shop_id,
            case_number=row.case_number,
            type_key=row.type_key,
            status_key=row.status_key,
            created_at=row.created_at,
        )


@dataclass(frozen=True)
class SlaPolicy:
    type_key: str
    max_processing_days: int
    alert_days: int = DEFAULT_ALERT_DAYS
    is_default: bool = False


@dataclass(frozen=True)
class StatusDefinition:
    status_key: str
    label: str
    status_class: StatusClass

    @classmethod
    def from_flags(
        cls, status_key: str, label: str, pause_timer: bool, is_final_status: bool
    ) -> "StatusDefinition":
        return cls(status_key, label, classify_status(pause_timer, is_final_status))

    @property
    def pause_timer(self) -> bool:
        return self.status_class is StatusClass.PAUSED

    @property
    def is_final_status(self) -> bool:
        return self.status_class is StatusClass.TERMINAL


def default_policy(type_key: str, alert_days: int = DEFAULT_ALERT_DAYS) -> SlaPolicy:
    """Policy used when the shop has no active row for ``type_key``."""
    return SlaPolicy(
        type_key=type_key,
        max_processing_days=BUILTIN_MAX_PROCESSING_DAYS.get(type_key, DEFAULT_MAX_PROCESSING_DAYS),
        alert_days=alert_days,
        is_default=True,
    )


def unknown_status(status_key: str) -> StatusDefinition:
    """Unknown statuses count as active so they never hide an overdue case."""
    return StatusDefinition(status_key=status_key, label=status_key, status_class=StatusClass.ACTIVE)


# ─── Output ───

@dataclass(frozen=True)
class DelayAssessment:
    elapsed_days: float
    remaining_days: float
    is_overdue: bool
    is_paused: bool
    status_class: StatusClass
    max_processing_days: int

    @property
    def whole_days_remaining(self) -> int:
        return whole_days_remaining(self.remaining_days)

    @property
    def current_day_index(self) -> int:
        """1-based processing day shown on the timeline, capped at the deadline day."""
        return min(math.floor(self.elapsed_days) + 1, self.max_processing_days)

    @property
    def progress_percent(self) -> float:
        if self.max_processing_days <= 0:
            return 100.0
        return min(100.0, max(0.0, self.elapsed_days / self.max_processing_days * 100))


def whole_days_remaining(remaining_days: float) -> int:
    """Whole days left as a user perceives them: 1.2 days left reads as 2."""
    return math.ceil(remaining_days)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def assess(
    case: CaseRef,
    policy: SlaPolicy | None,
    status: StatusDefinition | None,
    now: datetime,
) -> DelayAssessment:
    """Compute elapsed/remaining days and the overdue/paused verdict.

    Args:
        case: Anything exposing ``type_key``, ``status_key`` and ``created_at``.
        policy: Shop policy for the case type; ``None`` applies the type default.
        status: Shop status definition; ``None`` (unknown key) is treated as active.
        now: Evaluation instant. Naive datetimes are taken as UTC.
    """
    if policy is None:
        policy = default_policy(case.type_key)
    if status is None:
        status = unknown_status(case.status_key)

    elapsed_seconds = (_as_utc(now) - _as_utc(case.created_at)).total_seconds()
    # Clock skew can put created_at in the future
    elapsed_days = max(elapsed_seconds, 0.0) / SECONDS_PER_DAY
    remaining_days = policy.max_processing_days - elapsed_days

    is_paused = status.status_class is not StatusClass.ACTIVE
    is_overdue = remaining_days < 0 and not is_paused

    return DelayAssessment(
        elapsed_days=elapsed_days,
        remaining_days=remaining_days,
        is_overdue=is_overdue,
        is_paused=is_paused,
        status_class=status.status_class,
        max_processing_days=policy.max_processing_days,
    )


def should_alert(assessment: DelayAssessment, alert_days: int) -> bool:
    """Overdue, or inside the early-warning window. Never for a paused case."""
    if assessment.is_paused:
        return False
    if assessment.is_overdue:
        return True
    return 0 <= assessment.whole_days_remaining <= alert_days
