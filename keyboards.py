# keyboards.py
from telegram import ReplyKeyboardMarkup, InlineKeyboardMarkup, InlineKeyboardButton, WebAppInfo
from config import (
    BUTTON_CLOCK_IN, BUTTON_CLOCK_OUT, BUTTON_ADD_SALE, BUTTON_MY_STATS, BUTTON_CANCEL_ACTION,
    ANSWER_OPTIONS, WEBAPP_URL
)

def main_menu_keyboard():
    return ReplyKeyboardMarkup(
        [
            [BUTTON_CLOCK_IN, BUTTON_CLOCK_OUT],
            [BUTTON_ADD_SALE, BUTTON_MY_STATS]
        ],
        resize_keyboard=True
    )

def cancel_action_keyboard():
    return ReplyKeyboardMarkup([[BUTTON_CANCEL_ACTION]], resize_keyboard=True)

def quiz_answer_keyboard(question_id: int):
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(letter, callback_data=f"quiz:{question_id}:{letter}") for letter in ANSWER_OPTIONS]
    ])

def sale_category_keyboard():
    return InlineKeyboardMarkup([
        [
            InlineKeyboardButton("Чаевые (Tip)", callback_data="sale:category:tip"),
            InlineKeyboardButton("PPV", callback_data="sale:category:ppv")
        ]
    ])

def sale_continue_keyboard():
    return InlineKeyboardMarkup([
        [
            InlineKeyboardButton("Еще одну", callback_data="sale:more"),
            InlineKeyboardButton("Готово", callback_data="sale:done")
        ]
    ])

def stats_period_keyboard():
    return InlineKeyboardMarkup([
        [
            InlineKeyboardButton("Сегодня", callback_data="stats:today"),
            InlineKeyboardButton("Неделя", callback_data="stats:week")
        ],
        [
            InlineKeyboardButton("Месяц", callback_data="stats:month"),
            InlineKeyboardButton("2 недели", callback_data="stats:biweekly")
        ]
    ])

def admin_panel_keyboard():
    return InlineKeyboardMarkup([[
        InlineKeyboardButton("Открыть админ-панель", web_app=WebAppInfo(url=WEBAPP_URL))
    ]])
