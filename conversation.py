"""
Состояние диалога с сотрудником.

Хранится в context.user_data под ключом 'conversation', поэтому у каждого
пользователя Telegram оно свое и переживает перезапуск вместе с PicklePersistence.
Значения Step используются как состояния ConversationHandler.
"""
from enum import IntEnum

import config
from errors import ValidationError

STATE_KEY = 'conversation'


class Step(IntEnum):
    IDLE = 0
    AWAITING_NAME = 1
    AWAITING_SALE_CATEGORY = 2
    AWAITING_SALE_AMOUNT = 3


class ConversationState:
    def __init__(self):
        self.step = Step.IDLE
        self.sale_category = None
        self.sales = []

    def reset(self):
        self.step = Step.IDLE
        self.sale_category = None
        self.sales = []

    def start_registration(self):
        self.reset()
        self.step = Step.AWAITING_NAME

    def start_sales(self):
        self.reset()
        self.step = Step.AWAITING_SALE_CATEGORY

    def choose_category(self, category: str):
        if self.step != Step.AWAITING_SALE_CATEGORY:
            raise ValidationError("Сначала начните ввод продаж командой /addsale.")
        if category not in config.SALE_CATEGORIES:
            raise ValidationError('Категория должна быть "tip" или "ppv".')
        self.sale_category = category
        self.step = Step.AWAITING_SALE_AMOUNT

    def add_sale(self, amount: float) -> str:
        if self.step != Step.AWAITING_SALE_AMOUNT or not self.sale_category:
            raise ValidationError("Сначала выберите категорию продажи.")
        category = self.sale_category
        self.sales.append((category, amount))
        self.sale_category = None
        self.step = Step.AWAITING_SALE_CATEGORY
        return category

    def finish_sales(self) -> tuple[int, float]:
        count, total = len(self.sales), round(sum(amount for _, amount in self.sales), 2)
        self.reset()
        return count, total


def get_state(user_data: dict) -> ConversationState:
    state = user_data.get(STATE_KEY)
    if not isinstance(state, ConversationState):
        state = ConversationState()
        user_data[STATE_KEY] = state
    return state
