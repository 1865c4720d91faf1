# config.py
import os
from dotenv import load_dotenv

load_dotenv()
BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")

if not BOT_TOKEN:
    raise ValueError("Не найден TELEGRAM_BOT_TOKEN в файле .env.")

ADMIN_IDS = [int(x) for x in os.getenv("ADMIN_IDS", "").split(",") if x.strip()]

DB_USER = os.getenv("DB_USER")
if not DB_USER:
    raise ValueError("Не найден DB_USER в файле .env.")
DB_PASSWORD = os.getenv("DB_PASSWORD")
if not DB_PASSWORD:
    raise ValueError("Не найден DB_PASSWORD в файле .env.")
DB_NAME = os.getenv("DB_NAME")
if not DB_NAME:
    raise ValueError("Не найден DB_NAME в файле .env.")
DB_HOST = os.getenv("DB_HOST")
if not DB_HOST:
    raise ValueError("Не найден DB_HOST в файле .env.")
PERSISTENCE_FILE = os.getenv("PERSISTENCE_FILE", "bot_persistence.pickle")
WEBAPP_URL = os.getenv("WEBAPP_URL", "https://localhost:8000/")

# --- Время и часовые пояса ---
DEFAULT_QUIZ_TIMEZONE = "Asia/Shanghai"
WORK_TIMEZONE = os.getenv("WORK_TIMEZONE", DEFAULT_QUIZ_TIMEZONE)
# Фиксированные смещения в минутах. Переходы на летнее время не учитываются.
TIMEZONE_OFFSETS = {
    "UTC": 0,
    "Etc/UTC": 0,
    "GMT": 0,
    "GMT+8": 480,
    "Asia/Shanghai": 480,
    "Asia/Singapore": 480,
    "Asia/Manila": 480,
    "Asia/Hong_Kong": 480,
}

# --- Правила отметок ---
STALE_SESSION_HOURS = float(os.getenv("STALE_SESSION_HOURS", "14"))
QUIZ_REQUIRED_FOR_CLOCK_IN = os.getenv("QUIZ_REQUIRED_FOR_CLOCK_IN", "true").lower() not in ("0", "false", "no")
ANSWER_OPTIONS = ("A", "B", "C", "D")
SALE_CATEGORIES = ("tip", "ppv")
MIN_NAME_LENGTH = 2

# --- Тексты кнопок ---
BUTTON_CLOCK_IN = "✅ Приход"
BUTTON_CLOCK_OUT = "🏁 Уход"
BUTTON_ADD_SALE = "💰 Добавить продажу"
BUTTON_MY_STATS = "📊 Моя статистика"
BUTTON_CANCEL_ACTION = "❌ Отмена"
