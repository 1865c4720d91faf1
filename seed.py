# seed.py
import asyncio
import logging
import os
import database
import employees
import quiz

logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_QUESTIONS = [
    {
        'question': "What should you do if a customer asks for a refund?",
        'option_a': "Give them the refund immediately",
        'option_b': "Check company policy and process appropriately",
        'option_c': "Ignore the request",
        'option_d': "Ask them to come back tomorrow",
        'correct_answer': "B",
    },
    {
        'question': "How should you handle customer complaints?",
        'option_a': "Argue with the customer",
        'option_b': "Listen actively and try to resolve the issue",
        'option_c': "Tell them it's not your problem",
        'option_d': "Hang up immediately",
        'correct_answer': "B",
    },
    {
        'question': "What is the most important thing when dealing with customers?",
        'option_a': "Making sales quickly",
        'option_b': "Building trust and good relationships",
        'option_c': "Following scripts exactly",
        'option_d': "Ending calls as fast as possible",
        'correct_answer': "B",
    },
    {
        'question': "When should you clock in for work?",
        'option_a': "When you arrive at your desk",
        'option_b': "When you start your shift as scheduled",
        'option_c': "Whenever you feel like it",
        'option_d': "After your break",
        'correct_answer': "B",
    },
    {
        'question': "How should you record sales transactions?",
        'option_a': "Only when you remember",
        'option_b': "Immediately after each transaction",
        'option_c': "At the end of the week",
        'option_d': "Never, it's automatic",
        'correct_answer': "B",
    },
]


async def seed_questions(store=database) -> int:
    """Добавляет стандартные вопросы, только если в базе нет ни одного."""
    if await store.list_questions():
        logger.info("Вопросы уже есть в базе, пропускаю.")
        return 0
    for sequence, data in enumerate(DEFAULT_QUESTIONS, start=1):
        await quiz.create_question({**data, 'sequence': sequence}, store=store)
    logger.info(f"Добавлено вопросов: {len(DEFAULT_QUESTIONS)}.")
    return len(DEFAULT_QUESTIONS)


async def seed_admin(telegram_id: str, name: str, store=database) -> dict:
    employee = await store.get_employee_by_telegram_id(str(telegram_id))
    if not employee:
        employee = await employees.create_employee(name, telegram_id, store=store)
    return await employees.grant_admin(employee['id'], store=store)


async def main():
    await database.init_db()
    await seed_questions()
    admin_telegram_id = os.getenv("SEED_ADMIN_TELEGRAM_ID")
    if admin_telegram_id:
        await seed_admin(admin_telegram_id, os.getenv("SEED_ADMIN_NAME", "Администратор"))


if __name__ == "__main__":
    asyncio.run(main())
