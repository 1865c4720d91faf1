import logging
from datetime import date, datetime, timedelta, timezone

from timezones import day_bounds, days_between, hours_between, local_date, resolve_timezone


def test_fixed_offset_table_wins():
    tz = resolve_timezone("Asia/Shanghai")
    assert tz.utcoffset(None) == timedelta(hours=8)


def test_empty_timezone_is_utc():
    assert resolve_timezone("") is timezone.utc
    assert resolve_timezone(None) is timezone.utc


def test_unknown_timezone_falls_back_to_utc(caplog):
    with caplog.at_level(logging.WARNING):
        tz = resolve_timezone("Mars/Olympus_Mons")
    assert tz is timezone.utc
    assert "Mars/Olympus_Mons" in caplog.text


def test_iana_zone_is_used_when_not_in_table():
    tz = resolve_timezone("Europe/Moscow")
    assert datetime(2024, 1, 1, tzinfo=tz).utcoffset() == timedelta(hours=3)


def test_local_date_crosses_midnight():
    instant = datetime(2024, 1, 1, 17, 0, tzinfo=timezone.utc)
    assert local_date(instant, "Asia/Shanghai") == date(2024, 1, 2)
    assert local_date(instant, "UTC") == date(2024, 1, 1)


def test_naive_instant_is_treated_as_utc():
    assert local_date(datetime(2024, 1, 1, 17, 0), "Asia/Shanghai") == date(2024, 1, 2)


def test_day_bounds_cover_one_local_day():
    start, end = day_bounds(date(2024, 1, 2), "Asia/Shanghai")
    assert start == datetime(2024, 1, 1, 16, 0, tzinfo=timezone.utc)
    assert end - start == timedelta(days=1)


def test_days_between_and_hours_between():
    assert days_between(date(2023, 12, 30), date(2024, 1, 2)) == 3
    start = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)
    assert hours_between(start, start + timedelta(hours=8, minutes=30)) == 8.5
