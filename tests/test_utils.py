"""Tests for small shared helpers: env validation, URLs, lead and order rules."""

from datetime import datetime, timezone

import pytest

from modules.leads.lead_service import LeadValidationError, validate_lead, welcome_number
from repos.database import normalize_database_url
from services.order_service import OrderValidationError, period_start
from utils.env import validate_environment


class TestEnvironment:
    def test_missing_vars_warn_in_development(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "development")
        monkeypatch.delenv("OSZAP_TEST_VAR", raising=False)
        assert validate_environment(("OSZAP_TEST_VAR", )) == ["OSZAP_TEST_VAR"]

    def test_missing_vars_abort_in_production(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.delenv("OSZAP_TEST_VAR", raising=False)
        with pytest.raises(OSError):
            validate_environment(("OSZAP_TEST_VAR", ))

    def test_present_vars(self, monkeypatch):
        monkeypatch.setenv("OSZAP_TEST_VAR", "1")
        assert validate_environment(("OSZAP_TEST_VAR", )) == []


@pytest.mark.parametrize("raw,expected", [
    ("postgres://u:p@db/oszap", "postgresql+asyncpg://u:p@db/oszap"),
    ("postgresql://u:p@db/oszap", "postgresql+asyncpg://u:p@db/oszap"),
    ("postgresql+asyncpg://u:p@db/oszap", "postgresql+asyncpg://u:p@db/oszap"),
    ("sqlite+aiosqlite:///./dev.db", "sqlite+aiosqlite:///./dev.db"),
])
def test_database_url_normalization(raw, expected):
    assert normalize_database_url(raw) == expected


class TestLeadRules:
    def test_cleans_name_and_email(self):
        assert validate_lead("  Ana ", " ANA@Example.COM ") == ("Ana", "ana@example.com")

    def test_blank_name_is_invalid(self):
        with pytest.raises(LeadValidationError):
            validate_lead("   ", "ana@example.com")

    @pytest.mark.parametrize("phone,expected", [
        ("(11) 98888-7777", "5511988887777"),
        ("1198888777", "551198888777"),
        ("98888-777", None),
        (None, None),
    ])
    def test_welcome_number(self, phone, expected):
        assert welcome_number(phone) == expected


class TestBalancePeriods:
    # 2026-10-19 01:30 UTC is still the 18th in São Paulo (UTC-3)
    NOW = datetime(2026, 10, 19, 1, 30, tzinfo=timezone.utc)

    def test_day_starts_at_local_midnight(self):
        assert period_start("day", self.NOW) == datetime(2026, 10, 18, 3, 0)

    def test_month_starts_on_the_first(self):
        assert period_start("month", self.NOW) == datetime(2026, 10, 1, 3, 0)

    def test_unknown_period(self):
        with pytest.raises(OrderValidationError):
            period_start("year", self.NOW)
