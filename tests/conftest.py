import os

os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:TEST-TOKEN")
os.environ.setdefault("DB_USER", "test")
os.environ.setdefault("DB_PASSWORD", "test")
os.environ.setdefault("DB_NAME", "test")
os.environ.setdefault("DB_HOST", "localhost")
os.environ["ADMIN_IDS"] = "999"
os.environ["WORK_TIMEZONE"] = "Asia/Shanghai"
os.environ["STALE_SESSION_HOURS"] = "14"
os.environ["QUIZ_REQUIRED_FOR_CLOCK_IN"] = "true"

import asyncio
from datetime import date

import pytest

from tests.fake_store import FakeStore, make_questions


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def employee(store):
    return asyncio.run(store.create_employee("1001", "Анна Петрова"))


@pytest.fixture
def rotation(store):
    asyncio.run(store.upsert_quiz_settings(date(2024, 1, 1), "Asia/Shanghai"))
    return make_questions(store, 5)
