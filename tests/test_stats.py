import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest

import stats
from errors import ValidationError

# Wednesday, Jan 10 in Shanghai
NOW = datetime(2024, 1, 10, 4, 0, tzinfo=timezone.utc)


def test_week_starts_on_sunday():
    assert stats.week_bounds(date(2024, 1, 10)) == (date(2024, 1, 7), date(2024, 1, 13))
    assert stats.week_bounds(date(2024, 1, 7)) == (date(2024, 1, 7), date(2024, 1, 13))
    assert stats.week_bounds(date(2024, 1, 13)) == (date(2024, 1, 7), date(2024, 1, 13))


@pytest.mark.parametrize("period, expected", [
    ("today", (date(2024, 1, 10), date(2024, 1, 10))),
    ("week", (date(2024, 1, 7), date(2024, 1, 10))),
    ("biweekly", (date(2023, 12, 28), date(2024, 1, 10))),
    ("month", (date(2024, 1, 1), date(2024, 1, 10))),
])
def test_period_bounds(period, expected):
    assert stats.period_bounds(period, date(2024, 1, 10)) == expected


def test_unknown_period():
    with pytest.raises(ValidationError):
        stats.period_bounds("year", date(2024, 1, 10))


def _work_day(store, employee_id, day, hours):
    clock_in_time = datetime(2024, 1, day, 1, 0, tzinfo=timezone.utc)
    session = asyncio.run(store.create_clock_in(employee_id, clock_in_time, date(2024, 1, day)))
    asyncio.run(store.set_clock_out(session['id'], clock_in_time + timedelta(hours=hours), hours))


def test_personal_stats(store, employee):
    _work_day(store, employee['id'], 8, 8.0)
    _work_day(store, employee['id'], 10, 7.5)
    _work_day(store, employee['id'], 2, 6.0)
    asyncio.run(store.create_sale(employee['id'], "tip", 20.0, date(2024, 1, 8), None))
    asyncio.run(store.create_sale(employee['id'], "ppv", 30.5, date(2024, 1, 10), None))

    week = asyncio.run(stats.personal_stats(employee['id'], "week", now=NOW, store=store))
    assert week['total_hours'] == 15.5
    assert week['days_worked'] == 2
    assert week['total_sales'] == 50.5
    assert week['tip_sales'] == 20.0
    assert week['ppv_sales'] == 30.5
    assert week['sales_count'] == 2
    assert week['period_label'] == "Эта неделя"

    today = asyncio.run(stats.personal_stats(employee['id'], "today", now=NOW, store=store))
    assert today['total_hours'] == 7.5
    assert today['sales_count'] == 1


def test_open_session_counts_zero_hours(store, employee):
    asyncio.run(store.create_clock_in(employee['id'], NOW, date(2024, 1, 10)))
    result = asyncio.run(stats.personal_stats(employee['id'], "today", now=NOW, store=store))
    assert result['total_hours'] == 0
    assert result['days_worked'] == 1


def test_admin_stats(store, employee):
    other = asyncio.run(store.create_employee("2002", "Борис"))
    _work_day(store, employee['id'], 10, 8.0)
    _work_day(store, other['id'], 8, 4.0)
    asyncio.run(store.create_sale(employee['id'], "tip", 10.0, date(2024, 1, 10), None))
    asyncio.run(store.create_sale(other['id'], "ppv", 5.0, date(2024, 1, 9), None))

    result = asyncio.run(stats.admin_stats(now=NOW, store=store))
    assert result == {
        'total_employees': 2,
        'active_employees': 1,
        'today_clock_ins': 1,
        'today_sales': 10.0,
        'this_week_hours': 12.0,
        'this_week_sales': 15.0,
    }
