from datetime import date, datetime, timedelta

import config
import database
from errors import ValidationError
from timezones import local_date, now_utc

PERIOD_LABELS = {
    'today': "Сегодня",
    'week': "Эта неделя",
    'biweekly': "Последние 2 недели",
    'month': "Этот месяц",
}


def week_bounds(today: date) -> tuple[date, date]:
    # неделя с воскресенья по субботу
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def period_bounds(period: str, today: date) -> tuple[date, date]:
    if period == 'today':
        return today, today
    if period == 'week':
        return week_bounds(today)[0], today
    if period == 'biweekly':
        return today - timedelta(days=13), today
    if period == 'month':
        return today.replace(day=1), today
    raise ValidationError(f"Неизвестный период: {period}.")


def _sum_amounts(sales: list[dict], category: str | None = None) -> float:
    return round(sum(s['amount'] for s in sales if category is None or s['category'] == category), 2)


async def admin_stats(now: datetime | None = None, store=database) -> dict:
    today = local_date(now or now_utc(), config.WORK_TIMEZONE)
    week_start, week_end = week_bounds(today)
    today_clock_ins = await store.get_clock_ins_between(today, today)
    week_clock_ins = await store.get_clock_ins_between(week_start, week_end)
    today_sales = await store.get_sales_between(today, today)
    week_sales = await store.get_sales_between(week_start, week_end)
    clocked_in_today = len({c['employee_id'] for c in today_clock_ins})
    return {
        'total_employees': await store.count_employees(),
        'active_employees': clocked_in_today,
        'today_clock_ins': clocked_in_today,
        'today_sales': _sum_amounts(today_sales),
        'this_week_hours': round(sum(c['total_hours'] or 0 for c in week_clock_ins), 2),
        'this_week_sales': _sum_amounts(week_sales),
    }


async def personal_stats(employee_id: int, period: str, now: datetime | None = None, store=database) -> dict:
    today = local_date(now or now_utc(), config.WORK_TIMEZONE)
    start_date, end_date = period_bounds(period, today)
    clock_ins = await store.get_clock_ins_between(start_date, end_date, employee_id=employee_id)
    sales = await store.get_sales_between(start_date, end_date, employee_id=employee_id)
    return {
        'period': period,
        'period_label': PERIOD_LABELS[period],
        'start_date': start_date,
        'end_date': end_date,
        'total_hours': round(sum(c['total_hours'] or 0 for c in clock_ins), 2),
        'total_sales': _sum_amounts(sales),
        'tip_sales': _sum_amounts(sales, 'tip'),
        'ppv_sales': _sum_amounts(sales, 'ppv'),
        'sales_count': len(sales),
        'days_worked': len({c['date'] for c in clock_ins}),
        'clock_ins_count': len(clock_ins),
    }
