from functools import wraps
from datetime import datetime, timedelta
from telegram import Update, ReplyKeyboardRemove
from telegram.ext import ContextTypes, ConversationHandler

import database
import employees

def check_active_employee(func):
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        user = update.effective_user
        if not user:
            return
        employee = await database.get_employee_by_telegram_id(str(user.id))
        if not employee or not employee['active']:
            await update.effective_message.reply_text(
                "Ваш аккаунт не найден в системе или был деактивирован. Используйте /start или обратитесь к администратору.",
                reply_markup=ReplyKeyboardRemove()
            )
            return ConversationHandler.END
        return await func(update, context, *args, **kwargs)
    return wrapper

def admin_only(func):
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        user = update.effective_user
        if not user or not await employees.is_admin(user.id):
            await update.effective_message.reply_text("Нужны права администратора.")
            return
        return await func(update, context, *args, **kwargs)
    return wrapper

def user_level_cooldown(seconds: int):
    def decorator(func):
        @wraps(func)
        async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
            user_id = update.effective_user.id
            now = datetime.now()
            cooldown_key = f"cooldown_{func.__name__}_{user_id}"
            last_called = context.bot_data.get(cooldown_key, datetime.min)
            if now < last_called + timedelta(seconds=seconds):
                remaining = (last_called + timedelta(seconds=seconds) - now).seconds
                await update.effective_message.reply_text(
                    f"Эту команду можно использовать не чаще одного раза в {seconds} секунд. "
                    f"Пожалуйста, подождите еще {remaining} сек."
                )
                return
            context.bot_data[cooldown_key] = now
            return await func(update, context, *args, **kwargs)
        return wrapper
    return decorator
