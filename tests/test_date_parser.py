"""Tests for the Portuguese natural-language date parser."""

from datetime import datetime, timedelta, timezone

import pytest

from modules.assistant.date_parser import (
    ClockTime,
    Fallback,
    IsoInstant,
    NamedDay,
    Relative,
    classify,
    parse_datetime,
)
from utils.formatting import LOCAL_TZ

# Monday, 19 Oct 2026, 10:00 in São Paulo
NOW = datetime(2026, 10, 19, 10, 0, tzinfo=LOCAL_TZ)


def local(day, hour, minute=0, month=10):
    return datetime(2026, month, day, hour, minute, tzinfo=LOCAL_TZ)


class TestClassify:
    def test_relative_units(self):
        assert classify("daqui 3 horas") == Relative(unit="hora", quantity=3)
        assert classify("em 30 minutos") == Relative(unit="minuto", quantity=30)
        assert classify("daqui 2 dias") == Relative(unit="dia", quantity=2)

    def test_tomorrow_defaults_to_nine(self):
        assert classify("amanhã") == NamedDay(offset=1, hour=9, minute=0)

    def test_weekday_is_sunday_based(self):
        assert classify("sexta 15:30") == NamedDay(weekday=5, hour=15, minute=30)

    def test_clock_only(self):
        assert classify("15h") == ClockTime(hour=15, minute=0)

    def test_iso(self):
        assert isinstance(classify("2026-10-20T14:00:00-03:00"), IsoInstant)

    def test_invalid_time(self):
        assert classify("amanhã 25h") == Fallback("invalid_time")

    def test_unrecognized_and_empty(self):
        assert classify("quando der") == Fallback()
        assert classify("") == Fallback("empty")


class TestParseDatetime:
    @pytest.mark.parametrize("text,expected", [
        ("amanhã 14h", local(20, 14)),
        ("amanha às 8:30", local(20, 8, 30)),
        ("amanhã", local(20, 9)),
        ("sexta 15:30", local(23, 15, 30)),
        ("sábado", local(24, 9)),
        ("15h", local(19, 15)),
        ("2026-10-20T14:00:00-03:00", local(20, 14)),
    ])
    def test_expressions(self, text, expected):
        assert parse_datetime(text, NOW) == expected

    def test_relative_minutes(self):
        assert parse_datetime("daqui 30 minutos", NOW) == NOW + timedelta(minutes=30)

    def test_relative_days(self):
        assert parse_datetime("em 2 dias", NOW) == NOW + timedelta(days=2)

    def test_same_weekday_means_next_week(self):
        assert parse_datetime("segunda", NOW) == local(26, 9)

    def test_today_past_hour_rolls_to_tomorrow(self):
        assert parse_datetime("hoje 8h", NOW) == local(20, 8)

    def test_clock_past_rolls_to_tomorrow(self):
        assert parse_datetime("8h", NOW) == local(20, 8)

    def test_today_without_hour_is_one_hour_ahead(self):
        assert parse_datetime("hoje", NOW) == NOW + timedelta(hours=1)

    def test_past_iso_falls_back(self):
        assert parse_datetime("2026-10-01T10:00:00", NOW) == NOW + timedelta(hours=1)

    def test_garbage_falls_back(self):
        assert parse_datetime("qualquer hora dessas", NOW) == NOW + timedelta(hours=1)

    def test_invalid_time_falls_back(self):
        assert parse_datetime("amanhã 25h", NOW) == NOW + timedelta(hours=1)

    def test_result_is_always_in_the_future(self):
        for text in ("agora", "hoje 10h", "2026-10-19T10:00:00-03:00", "0h"):
            assert parse_datetime(text, NOW) > NOW

    def test_utc_now_is_converted(self):
        utc_now = NOW.astimezone(timezone.utc)
        assert parse_datetime("amanhã 14h", utc_now) == local(20, 14)
