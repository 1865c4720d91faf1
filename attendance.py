import logging
from datetime import date, datetime

import config
import database
import quiz
from errors import (
    AlreadyClockedInError, ConflictError, NotClockedInError, NotFoundError,
    QuizNotPassedError, RequiresManualClockOutError, ValidationError
)
from models import ClockInResult, ClockOutResult, CorrectionResult
from timezones import hours_between, local_date, now_utc, resolve_timezone

logger = logging.getLogger(__name__)


async def get_active_employee(telegram_id, store=database) -> dict:
    employee = await store.get_employee_by_telegram_id(str(telegram_id))
    if not employee or not employee['active']:
        raise NotFoundError("Ваш аккаунт не найден или деактивирован. Зарегистрируйтесь через /start.")
    return employee


def calculate_hours(clock_in_time: datetime, clock_out_time: datetime) -> float:
    return round(hours_between(clock_in_time, clock_out_time), 2)


def find_stale_session(open_sessions: list[dict], now: datetime, threshold_hours: float) -> tuple[dict, float] | None:
    for session in open_sessions:
        hours_open = hours_between(session['clock_in_time'], now)
        if hours_open > threshold_hours:
            return session, hours_open
    return None


async def precheck_clock_in(telegram_id, now: datetime | None = None, stale_hours: float | None = None,
                            store=database) -> tuple[dict, date]:
    """Проверки состояния дня без создания смены. Возвращает (сотрудник, сегодняшняя дата)."""
    now = now or now_utc()
    if stale_hours is None:
        stale_hours = config.STALE_SESSION_HOURS
    employee = await get_active_employee(telegram_id, store=store)
    today = local_date(now, config.WORK_TIMEZONE)

    open_sessions = await store.get_open_clock_ins_before(employee['id'], today)
    stale = find_stale_session(open_sessions, now, stale_hours)
    if stale:
        session, hours_open = stale
        logger.warning(
            f"Сотрудник {employee['id']} не закрыл смену {session['id']} за {session['date'].isoformat()} "
            f"({hours_open:.1f} ч). Приход отклонен до исправления."
        )
        raise RequiresManualClockOutError(session['id'], session['date'], session['clock_in_time'], hours_open)

    if await store.get_clock_in_for_date(employee['id'], today):
        raise AlreadyClockedInError()
    return employee, today


async def clock_in(telegram_id, now: datetime | None = None, require_quiz: bool | None = None,
                   stale_hours: float | None = None, store=database) -> ClockInResult:
    """
    Открывает смену на сегодня.

    Порядок проверок: забытая смена с прошлых дней, смена за сегодня, вопрос дня.
    Уникальность (employee_id, date) дополнительно держит база.
    """
    now = now or now_utc()
    if require_quiz is None:
        require_quiz = config.QUIZ_REQUIRED_FOR_CLOCK_IN
    employee, today = await precheck_clock_in(telegram_id, now, stale_hours=stale_hours, store=store)

    if require_quiz and not await quiz.has_passed_todays_quiz(employee['id'], now, store=store):
        raise QuizNotPassedError()

    try:
        session = await store.create_clock_in(employee['id'], now, today)
    except ConflictError:
        raise AlreadyClockedInError()
    logger.info(f"Сотрудник {employee['name']} ({employee['id']}) отметил приход за {today.isoformat()}.")
    return ClockInResult(session_id=session['id'], date=today, clock_in_time=session['clock_in_time'])


async def clock_out(telegram_id, now: datetime | None = None, store=database) -> ClockOutResult:
    now = now or now_utc()
    employee = await get_active_employee(telegram_id, store=store)
    today = local_date(now, config.WORK_TIMEZONE)
    session = await store.get_clock_in_for_date(employee['id'], today)
    if not session:
        raise NotClockedInError()
    if session['clock_out_time'] is not None:
        raise NotClockedInError("Вы уже отметили уход сегодня.")
    total_hours = calculate_hours(session['clock_in_time'], now)
    await store.set_clock_out(session['id'], now, total_hours)
    logger.info(f"Сотрудник {employee['name']} ({employee['id']}) отметил уход, отработано {total_hours} ч.")
    return ClockOutResult(
        session_id=session['id'],
        clock_in_time=session['clock_in_time'],
        clock_out_time=now,
        total_hours=total_hours,
    )


async def correct_clock_out(session_id: int, new_clock_out_time: datetime, store=database) -> CorrectionResult:
    """Исправление времени ухода администратором. Часы пересчитываются."""
    session = await store.get_clock_in(session_id)
    if not session:
        raise NotFoundError("Смена не найдена.")
    if new_clock_out_time.tzinfo is None:
        new_clock_out_time = new_clock_out_time.replace(tzinfo=resolve_timezone(config.WORK_TIMEZONE))
    if hours_between(session['clock_in_time'], new_clock_out_time) < 0:
        raise ValidationError("Время ухода не может быть раньше времени прихода.")
    total_hours = calculate_hours(session['clock_in_time'], new_clock_out_time)
    updated = await store.set_clock_out(session_id, new_clock_out_time, total_hours)
    if not updated:
        raise NotFoundError("Смена не найдена.")
    logger.info(f"Время ухода для смены {session_id} исправлено на {new_clock_out_time.isoformat()} ({total_hours} ч).")
    return CorrectionResult(session_id=session_id, clock_out_time=new_clock_out_time, total_hours=total_hours)


async def today_status(telegram_id, now: datetime | None = None, store=database) -> dict | None:
    employee = await get_active_employee(telegram_id, store=store)
    today = local_date(now or now_utc(), config.WORK_TIMEZONE)
    return await store.get_clock_in_for_date(employee['id'], today)
