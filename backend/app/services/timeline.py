"""Timeline renderer: day markers for a case's processing window.

Display only. Verdicts come from ``delay_calculator.assess`` so a case shown
on time here is never alerted as overdue by the sweep, and vice versa.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from app.rules.delay_calculator import (
    CaseRef,
    DelayAssessment,
    SlaPolicy,
    StatusClass,
    StatusDefinition,
    assess,
    default_policy,
)

PAST = "past"
CURRENT = "current"
OVERDUE = "overdue"
UPCOMING = "upcoming"


@dataclass(frozen=True)
class TimelineMarker:
    day: int
    date: datetime
    state: str


@dataclass(frozen=True)
class TerminalMarker:
    status_key: str
    label: str


@dataclass
class Timeline:
    assessment: DelayAssessment
    markers: list[TimelineMarker] = field(default_factory=list)
    terminal: TerminalMarker | None = None

    @property
    def current_day(self) -> int:
        return self.assessment.current_day_index


def marker_state(day: int, assessment: DelayAssessment) -> str:
    current = assessment.current_day_index
    if assessment.is_overdue and day <= current:
        return OVERDUE
    if day < current:
        return PAST
    if day == current:
        return CURRENT
    return UPCOMING


def render_timeline(
    case: CaseRef,
    policy: SlaPolicy | None,
    status: StatusDefinition | None,
    now: datetime,
) -> Timeline:
    if policy is None:
        policy = default_policy(case.type_key)

    assessment = assess(case, policy, status, now)
    markers = [
        TimelineMarker(
            day=day,
            date=case.created_at + timedelta(days=day - 1),
            state=marker_state(day, assessment),
        )
        for day in range(1, policy.max_processing_days + 1)
    ]

    terminal = None
    if status is not None and assessment.status_class is StatusClass.TERMINAL:
        terminal = TerminalMarker(status_key=status.status_key, label=status.label)

    return Timeline(assessment=assessment, markers=markers, terminal=terminal)
