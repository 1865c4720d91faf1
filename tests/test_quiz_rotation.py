import asyncio
import random
from datetime import date, datetime, timedelta, timezone

import quiz
from tests.fake_store import make_questions

START = date(2024, 1, 1)
SETTINGS = {'start_date': START, 'timezone': "Asia/Shanghai"}


def _questions(count):
    return [
        {'id': 100 + i, 'sequence': i + 1, 'active': True, 'question': f"Q{i}"}
        for i in range(count)
    ]


def test_first_day_of_rotation_is_day_one():
    assert quiz.days_since_start(START, START) == 1


def test_days_before_start_clamp_to_one():
    assert quiz.days_since_start(START - timedelta(days=30), START) == 1


def test_days_since_start_is_monotonic():
    previous = 0
    for offset in range(-5, 40):
        current = quiz.days_since_start(START + timedelta(days=offset), START)
        assert current >= max(previous, 1)
        previous = current


def test_rotation_wraps_around():
    questions = _questions(5)
    picked = [
        quiz.active_question_for(START + timedelta(days=offset), SETTINGS, questions)['id']
        for offset in range(10)
    ]
    assert picked == [100, 101, 102, 103, 104, 100, 101, 102, 103, 104]


def test_selection_is_pure():
    questions = _questions(7)
    today = date(2024, 3, 15)
    first = quiz.active_question_for(today, SETTINGS, questions)
    second = quiz.active_question_for(today, SETTINGS, list(reversed(questions)))
    assert first == second


def test_inactive_questions_are_skipped():
    questions = _questions(3)
    questions[0]['active'] = False
    assert quiz.active_question_for(START, SETTINGS, questions)['id'] == 101


def test_ordering_uses_sequence_then_id():
    questions = [
        {'id': 3, 'sequence': 1, 'active': True},
        {'id': 1, 'sequence': 2, 'active': True},
        {'id': 2, 'sequence': 1, 'active': True},
    ]
    assert [q['id'] for q in quiz.order_active_questions(questions)] == [2, 3, 1]


def test_no_active_questions():
    assert quiz.active_question_for(START, SETTINGS, []) is None


def test_todays_question_uses_rotation_timezone(store, rotation):
    # 17:00 UTC on Jan 2 is already Jan 3 in Shanghai
    now = datetime(2024, 1, 2, 17, 0, tzinfo=timezone.utc)
    question = asyncio.run(quiz.get_todays_question(now, store=store))
    assert question['id'] == rotation[2]['id']


def test_random_strategy_without_settings(store):
    created = make_questions(store, 3)
    strategy = quiz.select_strategy(None, rng=random.Random(7))
    assert isinstance(strategy, quiz.RandomStrategy)
    question = asyncio.run(quiz.get_todays_question(store=store))
    assert question['id'] in {q['id'] for q in created}


def test_no_question_counts_as_passed(store, employee):
    assert asyncio.run(quiz.has_passed_todays_quiz(employee['id'], store=store)) is True
