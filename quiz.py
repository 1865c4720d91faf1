import logging
import random
from datetime import date, datetime

import config
import database
from errors import NotFoundError, ValidationError
from models import AttemptResult
from timezones import day_bounds, day_index, local_date, now_utc

logger = logging.getLogger(__name__)

QUESTION_TEXT_FIELDS = ('question', 'option_a', 'option_b', 'option_c', 'option_d')

# --- Ротация ---

def days_since_start(today: date, start_date: date) -> int:
    """Номер дня ротации, первый день ротации это сам start_date."""
    return max(0, day_index(today) - day_index(start_date)) + 1


def rotation_index(today: date, start_date: date, count: int) -> int:
    return (days_since_start(today, start_date) - 1) % count


def order_active_questions(questions: list[dict]) -> list[dict]:
    active = [q for q in questions if q.get('active', True)]
    return sorted(active, key=lambda q: (q.get('sequence') or 0, q['id']))


def active_question_for(today: date, settings: dict, questions: list[dict]) -> dict | None:
    ordered = order_active_questions(questions)
    if not ordered:
        return None
    return ordered[rotation_index(today, settings['start_date'], len(ordered))]


class RotationStrategy:
    """Один вопрос на календарный день, по порядку sequence."""

    def __init__(self, settings: dict):
        self.settings = settings

    @property
    def timezone(self) -> str:
        return self.settings['timezone']

    def pick(self, questions: list[dict], today: date) -> dict | None:
        return active_question_for(today, self.settings, questions)


class RandomStrategy:
    """Запасной режим без настроек ротации: случайный вопрос на каждый запрос."""

    timezone = config.DEFAULT_QUIZ_TIMEZONE

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def pick(self, questions: list[dict], today: date) -> dict | None:
        active = order_active_questions(questions)
        return self.rng.choice(active) if active else None


def select_strategy(settings: dict | None, rng: random.Random | None = None):
    if settings:
        return RotationStrategy(settings)
    return RandomStrategy(rng)


async def get_todays_question(now: datetime | None = None, store=database) -> dict | None:
    now = now or now_utc()
    strategy = select_strategy(await store.get_quiz_settings())
    questions = await store.list_active_questions()
    return strategy.pick(questions, local_date(now, strategy.timezone))


async def has_passed_todays_quiz(employee_id: int, now: datetime | None = None, store=database) -> bool:
    """True, если вопроса нет или сотрудник сегодня уже ответил правильно."""
    now = now or now_utc()
    strategy = select_strategy(await store.get_quiz_settings())
    questions = await store.list_active_questions()
    today = local_date(now, strategy.timezone)
    question = strategy.pick(questions, today)
    if question is None:
        return True
    since, until = day_bounds(today, strategy.timezone)
    # в случайном режиме вопрос меняется от запроса к запросу, засчитываем любой верный ответ за день
    question_id = question['id'] if isinstance(strategy, RotationStrategy) else None
    return await store.has_correct_attempt(employee_id, question_id, since, until)

# --- Попытки ---

async def record_attempt(employee_id: int, question_id: int, selected_answer: str, is_correct: bool,
                         now: datetime | None = None, store=database) -> dict:
    previous = await store.count_attempts(employee_id, question_id)
    return await store.create_attempt(
        employee_id=employee_id,
        question_id=question_id,
        selected_answer=selected_answer,
        correct=is_correct,
        attempt_number=previous + 1,
        attempted_at=now or now_utc(),
    )


async def submit_attempt(telegram_id, question_id: int, selected_answer: str,
                         now: datetime | None = None, store=database) -> AttemptResult:
    selected = (selected_answer or "").strip().upper()
    if selected not in config.ANSWER_OPTIONS:
        raise ValidationError("Ответ должен быть одним из вариантов: A, B, C или D.")
    employee = await store.get_employee_by_telegram_id(str(telegram_id))
    if not employee or not employee['active']:
        raise NotFoundError("Сотрудник не найден. Зарегистрируйтесь через /start.")
    question = await store.get_question(question_id)
    if not question:
        raise NotFoundError("Вопрос не найден.")
    is_correct = selected == question['correct_answer']
    attempt = await record_attempt(employee['id'], question['id'], selected, is_correct, now=now, store=store)
    logger.info(
        f"Сотрудник {employee['id']} ответил на вопрос {question['id']}: {selected} "
        f"({'верно' if is_correct else 'неверно'}, попытка №{attempt['attempt_number']})"
    )
    return AttemptResult(
        attempt_id=attempt['id'],
        question_id=question['id'],
        selected_answer=selected,
        correct=is_correct,
        attempt_number=attempt['attempt_number'],
        explanation=question.get('explanation'),
    )


async def list_attempts(employee_id: int, question_id: int, store=database) -> list[dict]:
    return await store.list_attempts(employee_id, question_id)

# --- Управление вопросами ---

def validate_question(data: dict) -> dict:
    cleaned = {}
    for field in QUESTION_TEXT_FIELDS:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("Заполните вопрос и все четыре варианта ответа (пояснение необязательно).")
        cleaned[field] = value.strip()
    correct_answer = data.get('correct_answer')
    if not isinstance(correct_answer, str) or correct_answer.strip().upper() not in config.ANSWER_OPTIONS:
        raise ValidationError("Правильный ответ должен быть A, B, C или D.")
    cleaned['correct_answer'] = correct_answer.strip().upper()
    explanation = data.get('explanation')
    if isinstance(explanation, str) and explanation.strip():
        cleaned['explanation'] = explanation.strip()
    else:
        cleaned['explanation'] = None
    sequence = data.get('sequence')
    if sequence is not None and (not isinstance(sequence, int) or sequence < 0):
        raise ValidationError("Порядковый номер должен быть неотрицательным целым числом.")
    cleaned['sequence'] = sequence
    return cleaned


async def list_questions(store=database) -> list[dict]:
    return await store.list_questions()


async def get_question(question_id: int, store=database) -> dict:
    question = await store.get_question(question_id)
    if not question:
        raise NotFoundError("Вопрос не найден.")
    return question


async def create_question(data: dict, store=database) -> dict:
    cleaned = validate_question(data)
    if cleaned['sequence'] is None:
        cleaned['sequence'] = await store.get_max_question_sequence() + 1
    question = await store.create_question(**cleaned, active=True)
    logger.info(f"Добавлен вопрос викторины {question['id']} (порядок {question['sequence']}).")
    return question


async def update_question(question_id: int, data: dict, store=database) -> dict:
    existing = await get_question(question_id, store=store)
    cleaned = validate_question(data)
    if cleaned['sequence'] is None:
        cleaned['sequence'] = existing['sequence']
    active = data.get('active')
    question = await store.update_question(question_id, **cleaned, active=True if active is None else bool(active))
    if not question:
        raise NotFoundError("Вопрос не найден.")
    return question


async def delete_question(question_id: int, store=database) -> str:
    """Удаляет вопрос без попыток, иначе только деактивирует его."""
    await get_question(question_id, store=store)
    if await store.question_has_attempts(question_id):
        await store.set_question_active(question_id, False)
        logger.info(f"Вопрос {question_id} деактивирован: на него уже отвечали.")
        return "deactivated"
    await store.delete_question(question_id)
    logger.info(f"Вопрос {question_id} удален безвозвратно.")
    return "deleted"

# --- Настройки ротации ---

async def get_quiz_settings(now: datetime | None = None, store=database) -> dict:
    settings = await store.get_quiz_settings()
    if settings:
        return settings
    today = local_date(now or now_utc(), config.DEFAULT_QUIZ_TIMEZONE)
    logger.info(f"Настройки ротации не найдены, создаю по умолчанию со стартом {today.isoformat()}.")
    return await store.upsert_quiz_settings(today, config.DEFAULT_QUIZ_TIMEZONE)


async def update_quiz_settings(start_date, timezone: str | None = None, store=database) -> dict:
    if not start_date:
        raise ValidationError("Укажите дату начала ротации.")
    if isinstance(start_date, str):
        try:
            start_date = date.fromisoformat(start_date)
        except ValueError:
            raise ValidationError("Дата начала должна быть в формате ГГГГ-ММ-ДД.")
    return await store.upsert_quiz_settings(start_date, (timezone or "").strip() or config.DEFAULT_QUIZ_TIMEZONE)
