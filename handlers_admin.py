# handlers_admin.py
import logging
import stats

from telegram import Update
from telegram.ext import ContextTypes

from decorators import admin_only
from keyboards import admin_panel_keyboard

logger = logging.getLogger(__name__)


def format_dashboard(data: dict) -> str:
    return (
        "🛠 Панель администратора\n\n"
        f"👥 Сотрудников: {data['active_employees']} активных из {data['total_employees']}\n"
        f"✅ Приходов сегодня: {data['today_clock_ins']}\n"
        f"💰 Продажи сегодня: ${data['today_sales']:.2f}\n"
        f"⏰ Часов за неделю: {data['this_week_hours']:.1f}\n"
        f"📈 Продажи за неделю: ${data['this_week_sales']:.2f}"
    )


@admin_only
async def admin_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Краткая сводка и кнопка веб-интерфейса администратора."""
    try:
        data = await stats.admin_stats()
        text = format_dashboard(data)
    except Exception as e:
        logger.error(f"Не удалось собрать сводку для администратора {update.effective_user.id}: {e}", exc_info=True)
        text = "🛠 Панель администратора\n\nСводка временно недоступна."
    await update.message.reply_text(
        text + "\n\nНажмите на кнопку ниже, чтобы открыть веб-интерфейс.",
        reply_markup=admin_panel_keyboard()
    )
