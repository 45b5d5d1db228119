"""Tests for SLA store helpers: snapshots, exclusion sets, error wrapping.

DB access is mocked; only the pure snapshot logic runs for real.
"""
import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from app.core.config import settings
from app.core.errors import TransientStoreError
from app.models.case_catalog import ShopCaseStatus, ShopCaseType
from app.rules.delay_calculator import StatusClass
from app.services import sla_store
from app.services.sla_store import ShopRef


# ─── Helpers ──────────────────────────────────────────────────────────────────

SHOP = ShopRef(id=uuid.uuid4(), name="Phone Fix Lyon")


def _type_row(type_key: str, max_days: int, alert_days: int | None = 2) -> MagicMock:
    row = MagicMock(spec=ShopCaseType)
    row.type_key = type_key
    row.max_processing_days = max_days
    row.alert_days = alert_days
    return row


def _status_row(key: str, pause_timer: bool = False, is_final: bool = False) -> MagicMock:
    row = MagicMock(spec=ShopCaseStatus)
    row.status_key = key
    row.label = key.replace("_", " ").title()
    row.pause_timer = pause_timer
    row.is_final_status = is_final
    return row


def _snapshot(status_rows, legacy=frozenset()):
    return sla_store.build_snapshot(
        SHOP,
        sla_store.policies_from_rows([_type_row("client", 7)]),
        sla_store.statuses_from_rows(status_rows),
        legacy_final_statuses=legacy,
    )


# ─── Snapshot building ────────────────────────────────────────────────────────

def test_null_alert_days_defaults_to_two():
    policy = sla_store.policy_from_row(_type_row("external", 9, alert_days=None))

    assert policy.max_processing_days == 9
    assert policy.alert_days == 2
    assert policy.is_default is False


@patch.object(settings, "SLA_DEFAULT_ALERT_DAYS", 4)
def test_configured_default_alert_days_applies_to_null_rows_and_missing_types():
    snapshot = sla_store.build_snapshot(
        SHOP,
        sla_store.policies_from_rows([_type_row("external", 9, alert_days=None), _type_row("client", 7, alert_days=1)]),
        {},
        legacy_final_statuses=frozenset(),
    )

    assert snapshot.policy_for("external").alert_days == 4
    assert snapshot.policy_for("client").alert_days == 1
    missing = snapshot.policy_for("internal")
    assert missing.is_default is True
    assert missing.max_processing_days == 5
    assert missing.alert_days == 4


def test_excluded_statuses_come_from_final_flag():
    snapshot = _snapshot([
        _status_row("in_progress"),
        _status_row("waiting_customer", pause_timer=True),
        _status_row("returned", is_final=True),
    ])

    assert snapshot.excluded_status_keys() == frozenset({"returned"})
    assert snapshot.status_for("waiting_customer").status_class is StatusClass.PAUSED


def test_legacy_final_statuses_are_terminal_when_enabled():
    """Old catalogs list 'ready' without the final flag; the legacy list still closes it."""
    snapshot = _snapshot(
        [_status_row("in_progress"), _status_row("ready")],
        legacy=frozenset({"ready", "cancelled", "delivered"}),
    )

    assert snapshot.excluded_status_keys() == frozenset({"ready", "cancelled", "delivered"})
    assert snapshot.status_for("ready").status_class is StatusClass.TERMINAL
    assert snapshot.status_for("ready").label == "Ready"
    assert snapshot.status_for("in_progress").status_class is StatusClass.ACTIVE


def test_legacy_final_statuses_ignored_when_disabled():
    snapshot = _snapshot([_status_row("in_progress"), _status_row("ready")], legacy=frozenset())

    assert snapshot.excluded_status_keys() == frozenset()
    assert snapshot.status_for("ready").status_class is StatusClass.ACTIVE


def test_policy_for_falls_back_to_type_default():
    snapshot = _snapshot([])

    assert snapshot.policy_for("client").is_default is False
    assert snapshot.policy_for("internal").max_processing_days == 5
    assert snapshot.policy_for("internal").is_default is True


def test_unknown_status_lookup_returns_none():
    assert _snapshot([]).status_for("nope") is None


# ─── Day bounds ───────────────────────────────────────────────────────────────

def test_utc_day_bounds():
    start, end = sla_store.utc_day_bounds(datetime(2024, 3, 10, 23, 59, tzinfo=timezone.utc))

    assert start == datetime(2024, 3, 10, tzinfo=timezone.utc)
    assert end == datetime(2024, 3, 11, tzinfo=timezone.utc)


# ─── Store accessors ──────────────────────────────────────────────────────────

def test_load_shop_snapshot_batches_two_queries():
    db = MagicMock()
    types_result = MagicMock()
    types_result.scalars.return_value.all.return_value = [_type_row("client", 10)]
    statuses_result = MagicMock()
    statuses_result.scalars.return_value.all.return_value = [_status_row("returned", is_final=True)]
    db.execute.side_effect = [types_result, statuses_result]

    snapshot = sla_store.load_shop_snapshot(db, SHOP)

    assert db.execute.call_count == 2
    assert snapshot.policy_for("client").max_processing_days == 10
    assert "returned" in snapshot.excluded_status_keys()


def test_read_failure_raises_transient_store_error():
    db = MagicMock()
    db.execute.side_effect = OperationalError("SELECT", {}, Exception("connection reset"))

    with pytest.raises(TransientStoreError) as exc_info:
        sla_store.list_active_cases(db, SHOP.id, frozenset({"ready"}))

    assert exc_info.value.operation == "list_active_cases"


def test_has_unread_alert_today_reads_count():
    db = MagicMock()
    db.execute.return_value.scalar.return_value = 1

    assert sla_store.has_unread_alert_today(db, uuid.uuid4(), datetime.now(timezone.utc)) is True


def test_insert_alert_rolls_back_on_failure():
    db = MagicMock()
    db.commit.side_effect = OperationalError("INSERT", {}, Exception("deadlock"))

    with pytest.raises(TransientStoreError):
        sla_store.insert_alert(
            db,
            shop_id=SHOP.id,
            case_id=uuid.uuid4(),
            title="Case overdue",
            message="Case SAV-1 (client) is overdue by 1 day.",
            now=datetime.now(timezone.utc),
        )

    db.rollback.assert_called_once()


def test_insert_alert_writes_unread_sla_alert():
    db = MagicMock()
    case_id = uuid.uuid4()
    now = datetime(2024, 1, 4, 8, 30, tzinfo=timezone.utc)

    notification = sla_store.insert_alert(
        db, shop_id=SHOP.id, case_id=case_id, title="t", message="m", now=now
    )

    db.add.assert_called_once_with(notification)
    db.commit.assert_called_once()
    assert notification.type == "sla_alert"
    assert notification.read is False
    assert notification.case_id == case_id
    assert notification.created_at == now
