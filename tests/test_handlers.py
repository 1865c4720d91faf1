import asyncio
from datetime import date, datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import handlers_user
from errors import QuizNotPassedError
from models import AttemptResult, ClockInResult


def _callback_update(data):
    query = MagicMock()
    query.data = data
    query.answer = AsyncMock()
    query.edit_message_text = AsyncMock()
    return SimpleNamespace(callback_query=query, effective_user=SimpleNamespace(id=1001))


def _attempt(correct, number=1):
    return AttemptResult(
        attempt_id=number, question_id=3, selected_answer="B", correct=correct,
        attempt_number=number, explanation="Так написано в регламенте.",
    )


def test_wrong_answer_keeps_keyboard(monkeypatch):
    monkeypatch.setattr(handlers_user.quiz, "submit_attempt", AsyncMock(return_value=_attempt(False, 2)))
    clock_in = AsyncMock()
    monkeypatch.setattr(handlers_user.attendance, "clock_in", clock_in)
    update = _callback_update("quiz:3:A")

    asyncio.run(handlers_user.quiz_answer_callback(update, MagicMock()))

    text = update.callback_query.edit_message_text.call_args.args[0]
    assert "попытка №2" in text
    assert update.callback_query.edit_message_text.call_args.kwargs['reply_markup'] is not None
    clock_in.assert_not_called()


def test_correct_answer_clocks_in(monkeypatch):
    monkeypatch.setattr(handlers_user.quiz, "submit_attempt", AsyncMock(return_value=_attempt(True)))
    result = ClockInResult(session_id=1, date=date(2024, 1, 10), clock_in_time=datetime(2024, 1, 10, 1, 0, tzinfo=timezone.utc))
    monkeypatch.setattr(handlers_user.attendance, "clock_in", AsyncMock(return_value=result))
    update = _callback_update("quiz:3:B")

    asyncio.run(handlers_user.quiz_answer_callback(update, MagicMock()))

    text = update.callback_query.edit_message_text.call_args.args[0]
    assert "09:00" in text
    assert "регламенте" in text


def test_service_error_is_shown_to_user(monkeypatch):
    monkeypatch.setattr(handlers_user.quiz, "submit_attempt", AsyncMock(return_value=_attempt(True)))
    monkeypatch.setattr(handlers_user.attendance, "clock_in", AsyncMock(side_effect=QuizNotPassedError()))
    update = _callback_update("quiz:3:B")

    asyncio.run(handlers_user.quiz_answer_callback(update, MagicMock()))

    assert update.callback_query.edit_message_text.call_args.args[0] == QuizNotPassedError().message


def test_format_stats_mentions_categories_only_with_sales():
    data = {
        'period_label': "Сегодня", 'total_hours': 8.5, 'total_sales': 0, 'sales_count': 0,
        'days_worked': 1, 'tip_sales': 0, 'ppv_sales': 0,
    }
    assert "Tips" not in handlers_user.format_stats(data)
    data.update(total_sales=30, sales_count=2, tip_sales=10, ppv_sales=20)
    text = handlers_user.format_stats(data)
    assert "Tips: $10.00" in text
    assert "PPV: $20.00" in text


def test_format_today():
    assert "не отмечали" in handlers_user.format_today(None)
    clock_in_time = datetime(2024, 1, 10, 1, 0, tzinfo=timezone.utc)
    open_session = {'clock_in_time': clock_in_time, 'clock_out_time': None, 'total_hours': None}
    assert "с 09:00" in handlers_user.format_today(open_session)
    closed = {**open_session, 'clock_out_time': datetime(2024, 1, 10, 9, 30, tzinfo=timezone.utc), 'total_hours': 8.5}
    assert "09:00 - 17:30, 8.5 ч" in handlers_user.format_today(closed)
