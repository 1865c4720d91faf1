# handlers_user.py
import logging
import attendance
import database
import employees
import quiz
import sales
import stats
from datetime import datetime
from telegram import Update, ReplyKeyboardRemove
from telegram.ext import ContextTypes, ConversationHandler
from config import WORK_TIMEZONE
from conversation import Step, get_state
from decorators import check_active_employee, user_level_cooldown
from errors import ConflictError, ServiceError, ValidationError
from keyboards import (
    main_menu_keyboard, cancel_action_keyboard, quiz_answer_keyboard,
    sale_category_keyboard, sale_continue_keyboard, stats_period_keyboard
)
from timezones import resolve_timezone

logger = logging.getLogger(__name__)

COMMANDS_HELP = (
    "Команды:\n"
    "/clockin - отметить приход (с вопросом дня)\n"
    "/clockout - отметить уход\n"
    "/addsale - добавить продажи\n"
    "/status - моя статистика"
)
CATEGORY_NAMES = {'tip': "Чаевые (Tip)", 'ppv': "PPV"}


def _local_time(value: datetime) -> str:
    return value.astimezone(resolve_timezone(WORK_TIMEZONE)).strftime('%H:%M')


def format_question(question: dict) -> str:
    return (
        f"❓ *Вопрос дня*\n\n{question['question']}\n\n"
        f"A) {question['option_a']}\n"
        f"B) {question['option_b']}\n"
        f"C) {question['option_c']}\n"
        f"D) {question['option_d']}"
    )


def format_today(session: dict | None) -> str:
    if not session:
        return "Сегодня вы еще не отмечали приход."
    if session['clock_out_time'] is None:
        return f"Сегодня на смене с {_local_time(session['clock_in_time'])}."
    return (
        f"Сегодня: {_local_time(session['clock_in_time'])} - {_local_time(session['clock_out_time'])}, "
        f"{session['total_hours']} ч."
    )


def format_stats(data: dict) -> str:
    lines = [
        f"📊 Ваша статистика: {data['period_label']}\n",
        f"⏰ Отработано часов: {data['total_hours']:.1f} ч",
        f"💰 Сумма продаж: ${data['total_sales']:.2f}",
        f"📈 Количество продаж: {data['sales_count']}",
        f"📅 Рабочих дней: {data['days_worked']}",
    ]
    if data['sales_count'] > 0:
        lines.append(f"\n💵 Tips: ${data['tip_sales']:.2f}")
        lines.append(f"PPV: ${data['ppv_sales']:.2f}")
    lines.append(
        "\n⚠️ Это не чистые продажи: возвраты и ручное переназначение продаж не учитываются."
    )
    return "\n".join(lines)


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    user = update.effective_user
    state = get_state(context.user_data)
    employee = await database.get_employee_by_telegram_id(str(user.id))
    if not employee:
        state.start_registration()
        await update.message.reply_text("Добро пожаловать! Для регистрации введите ваше полное имя:", reply_markup=ReplyKeyboardRemove())
        return Step.AWAITING_NAME
    if not employee['active']:
        await update.message.reply_text("Ваш аккаунт деактивирован. Пожалуйста, обратитесь к администратору.", reply_markup=ReplyKeyboardRemove())
        return ConversationHandler.END
    state.reset()
    role_text = " (администратор)" if await employees.is_admin(user.id) else ""
    await update.message.reply_text(
        f"Здравствуйте, {employee['name']}{role_text}!\n\n{COMMANDS_HELP}",
        reply_markup=main_menu_keyboard()
    )
    return ConversationHandler.END


async def receive_name(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    user = update.effective_user
    state = get_state(context.user_data)
    try:
        employee = await employees.register_employee(user.id, update.message.text)
    except ValidationError as e:
        await update.message.reply_text(e.message)
        return Step.AWAITING_NAME
    except ConflictError:
        state.reset()
        await update.message.reply_text("Вы уже зарегистрированы.", reply_markup=main_menu_keyboard())
        return ConversationHandler.END
    state.reset()
    await update.message.reply_text(
        f"Регистрация завершена! Добро пожаловать, {employee['name']}.\n\n{COMMANDS_HELP}",
        reply_markup=main_menu_keyboard()
    )
    return ConversationHandler.END


@check_active_employee
async def clock_in_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    user = update.effective_user
    try:
        await attendance.precheck_clock_in(user.id)
        question = await quiz.get_todays_question()
        if question is None:
            result = await attendance.clock_in(user.id)
            await update.message.reply_text(
                f"✅ Приход отмечен в {_local_time(result.clock_in_time)}. Хорошего дня!",
                reply_markup=main_menu_keyboard()
            )
            return
    except ServiceError as e:
        await update.message.reply_text(e.message, reply_markup=main_menu_keyboard())
        return
    await update.message.reply_text(
        format_question(question) + "\n\nОтветьте правильно, чтобы отметить приход:",
        reply_markup=quiz_answer_keyboard(question['id']),
        parse_mode='Markdown'
    )


async def quiz_answer_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    user = update.effective_user
    _, question_id, letter = query.data.split(":")
    try:
        attempt = await quiz.submit_attempt(user.id, int(question_id), letter)
        if not attempt.correct:
            await query.edit_message_text(
                f"❌ Неверно (попытка №{attempt.attempt_number}). Попробуйте еще раз:",
                reply_markup=quiz_answer_keyboard(attempt.question_id)
            )
            return
        result = await attendance.clock_in(user.id)
    except ServiceError as e:
        await query.edit_message_text(e.message)
        return
    except Exception as e:
        logger.error(f"Ошибка при обработке ответа {user.id} на вопрос {question_id}: {e}", exc_info=True)
        await query.edit_message_text("Произошла внутренняя ошибка. Попробуйте позже.")
        return
    text = f"✅ Верно! Приход отмечен в {_local_time(result.clock_in_time)}."
    if attempt.explanation:
        text += f"\n\n💡 {attempt.explanation}"
    await query.edit_message_text(text)


@check_active_employee
async def clock_out_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    user = update.effective_user
    try:
        result = await attendance.clock_out(user.id)
    except ServiceError as e:
        await update.message.reply_text(e.message, reply_markup=main_menu_keyboard())
        return
    await update.message.reply_text(
        f"🏁 Уход отмечен!\nВремя: {_local_time(result.clock_out_time)}\nОтработано сегодня: {result.total_hours} ч",
        reply_markup=main_menu_keyboard()
    )


@check_active_employee
async def add_sale_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    get_state(context.user_data).start_sales()
    await update.message.reply_text("💰 Ввод продаж. Для выхода нажмите «Отмена».", reply_markup=cancel_action_keyboard())
    await update.message.reply_text("Выберите категорию:", reply_markup=sale_category_keyboard())
    return Step.AWAITING_SALE_CATEGORY


async def sale_choice_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = update.callback_query
    await query.answer()
    state = get_state(context.user_data)
    action = query.data.split(":")
    if action[1] == 'category':
        try:
            state.choose_category(action[2])
        except ValidationError as e:
            await query.edit_message_text(e.message)
            state.reset()
            return ConversationHandler.END
        await query.edit_message_text(f"{CATEGORY_NAMES[action[2]]}: введите сумму ($):")
        return Step.AWAITING_SALE_AMOUNT
    if action[1] == 'more':
        await query.edit_message_text("Выберите категорию:", reply_markup=sale_category_keyboard())
        return Step.AWAITING_SALE_CATEGORY
    count, total = state.finish_sales()
    await query.edit_message_text(f"Ввод продаж завершен!\n\nДобавлено: {count}\nИтого: ${total:.2f}")
    await query.message.reply_text("Главное меню:", reply_markup=main_menu_keyboard())
    return ConversationHandler.END


async def sale_amount_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    user = update.effective_user
    state = get_state(context.user_data)
    try:
        amount = sales.parse_amount(update.message.text)
        await sales.record_own_sale(user.id, state.sale_category, amount)
    except ValidationError as e:
        await update.message.reply_text(e.message)
        return Step.AWAITING_SALE_AMOUNT
    except ServiceError as e:
        state.reset()
        await update.message.reply_text(e.message, reply_markup=main_menu_keyboard())
        return ConversationHandler.END
    category = state.add_sale(amount)
    await update.message.reply_text(
        f"✓ ${amount:.2f} добавлено как {CATEGORY_NAMES[category]}\n\nДобавить еще одну продажу?",
        reply_markup=sale_continue_keyboard()
    )
    return Step.AWAITING_SALE_CATEGORY


@user_level_cooldown(5)
@check_active_employee
async def status_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    try:
        session = await attendance.today_status(update.effective_user.id)
    except ServiceError as e:
        await update.message.reply_text(e.message)
        return
    await update.message.reply_text(
        format_today(session) + "\n\n📊 Выберите период:", reply_markup=stats_period_keyboard()
    )


async def stats_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    period = query.data.split(":")[1]
    employee = await database.get_employee_by_telegram_id(str(update.effective_user.id))
    if not employee or not employee['active']:
        await query.edit_message_text("Сотрудник не найден. Используйте /start.")
        return
    try:
        data = await stats.personal_stats(employee['id'], period)
    except ServiceError as e:
        await query.edit_message_text(e.message)
        return
    await query.edit_message_text(format_stats(data), reply_markup=stats_period_keyboard())


async def employee_cancel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    get_state(context.user_data).reset()
    await update.message.reply_text("Действие отменено.", reply_markup=main_menu_keyboard())
    return ConversationHandler.END
