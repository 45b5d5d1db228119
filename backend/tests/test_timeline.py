"""Tests for the timeline renderer and its agreement with the sweep's verdicts."""
import uuid
from datetime import datetime, timedelta, timezone

from app.rules.delay_calculator import CaseRef, SlaPolicy, StatusDefinition, assess, should_alert
from app.services.timeline import CURRENT, OVERDUE, PAST, UPCOMING, render_timeline

CREATED = datetime(2024, 1, 1, tzinfo=timezone.utc)
POLICY_5 = SlaPolicy(type_key="client", max_processing_days=5, alert_days=2)
ACTIVE = StatusDefinition.from_flags("in_progress", "In progress", False, False)
READY = StatusDefinition.from_flags("ready", "Ready for pickup", False, True)


def _make_case(status_key: str = "in_progress") -> CaseRef:
    return CaseRef(
        id=uuid.uuid4(),
        shop_id=uuid.uuid4(),
        case_number="SAV-0100",
        type_key="client",
        status_key=status_key,
        created_at=CREATED,
    )


def test_markers_on_day_three():
    timeline = render_timeline(_make_case(), POLICY_5, ACTIVE, CREATED + timedelta(days=2, hours=3))

    assert [m.state for m in timeline.markers] == [PAST, PAST, CURRENT, UPCOMING, UPCOMING]
    assert timeline.current_day == 3
    assert timeline.terminal is None


def test_marker_dates_follow_creation_day():
    timeline = render_timeline(_make_case(), POLICY_5, ACTIVE, CREATED)

    assert [m.day for m in timeline.markers] == [1, 2, 3, 4, 5]
    assert timeline.markers[0].date == CREATED
    assert timeline.markers[4].date == CREATED + timedelta(days=4)


def test_overdue_case_marks_every_day_overdue():
    timeline = render_timeline(_make_case(), POLICY_5, ACTIVE, CREATED + timedelta(days=6))

    assert timeline.assessment.is_overdue is True
    assert all(m.state == OVERDUE for m in timeline.markers)


def test_terminal_status_adds_terminal_marker():
    timeline = render_timeline(_make_case("ready"), POLICY_5, READY, CREATED + timedelta(days=9))

    assert timeline.terminal is not None
    assert timeline.terminal.label == "Ready for pickup"
    assert timeline.assessment.is_overdue is False
    assert OVERDUE not in {m.state for m in timeline.markers}


def test_missing_policy_uses_type_default_marker_count():
    timeline = render_timeline(_make_case(), None, ACTIVE, CREATED)

    assert len(timeline.markers) == 7


def test_timeline_and_sweep_agree_on_verdicts():
    """Same inputs → same overdue/paused verdict as the alert sweep computes."""
    statuses = [ACTIVE, READY, StatusDefinition.from_flags("parts_ordered", "Parts ordered", True, False)]
    for status in statuses:
        case = _make_case(status.status_key)
        for hours in range(0, 24 * 8, 7):
            now = CREATED + timedelta(hours=hours)
            timeline = render_timeline(case, POLICY_5, status, now)
            sweep_view = assess(case, POLICY_5, status, now)

            assert timeline.assessment == sweep_view
            if sweep_view.is_overdue:
                assert should_alert(sweep_view, POLICY_5.alert_days)
                assert timeline.markers[-1].state == OVERDUE
