"""Tests for settings parsing."""
from app.core.config import Settings


def test_legacy_final_statuses_parsed_from_csv():
    s = Settings(SLA_LEGACY_FINAL_STATUSES=" delivered, cancelled ,,ready ")

    assert s.legacy_final_statuses == frozenset({"delivered", "cancelled", "ready"})


def test_legacy_final_statuses_empty_when_disabled():
    s = Settings(SLA_LEGACY_FINAL_STATUSES_ENABLED=False)

    assert s.legacy_final_statuses == frozenset()


def test_only_read_settings_are_declared():
    assert "APP_BASE_URL" not in Settings.model_fields
    assert Settings().SLA_DEFAULT_ALERT_DAYS == 2
