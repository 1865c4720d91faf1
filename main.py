# main.py
import logging
import asyncio
import config
import database
from telegram.ext import (
    Application,
    CommandHandler,
    MessageHandler,
    filters,
    ConversationHandler,
    PicklePersistence,
    CallbackQueryHandler,
    AIORateLimiter
)
from config import (
    BUTTON_CLOCK_IN,
    BUTTON_CLOCK_OUT,
    BUTTON_ADD_SALE,
    BUTTON_MY_STATS,
    BUTTON_CANCEL_ACTION
)
from conversation import Step
from handlers_user import (
    start_command, receive_name, clock_in_command, quiz_answer_callback, clock_out_command,
    add_sale_start, sale_choice_callback, sale_amount_message, status_command, stats_callback,
    employee_cancel_command
)
from handlers_admin import admin_command

logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def build_application() -> Application:
    persistence = PicklePersistence(filepath=config.PERSISTENCE_FILE)
    rate_limiter = AIORateLimiter(max_retries=5)
    application = (
        Application.builder()
        .token(config.BOT_TOKEN)
        .persistence(persistence)
        .rate_limiter(rate_limiter)
        .build()
    )
    cancel_handlers = [
        CommandHandler("cancel", employee_cancel_command),
        MessageHandler(filters.Regex(f"^{BUTTON_CANCEL_ACTION}$"), employee_cancel_command),
    ]
    employee_conv_handler = ConversationHandler(
        entry_points=[
            CommandHandler("start", start_command),
            CommandHandler("addsale", add_sale_start),
            MessageHandler(filters.Regex(f"^{BUTTON_ADD_SALE}$"), add_sale_start),
        ],
        states={
            Step.AWAITING_NAME: [
                MessageHandler(filters.TEXT & ~filters.COMMAND, receive_name)
            ],
            Step.AWAITING_SALE_CATEGORY: [
                CallbackQueryHandler(sale_choice_callback, pattern="^sale:")
            ],
            Step.AWAITING_SALE_AMOUNT: [
                *cancel_handlers,
                MessageHandler(filters.TEXT & ~filters.COMMAND, sale_amount_message)
            ],
        },
        fallbacks=cancel_handlers,
        allow_reentry=True, name="employee_conversation", persistent=True,
    )
    application.add_handler(employee_conv_handler)
    application.add_handler(CommandHandler("clockin", clock_in_command))
    application.add_handler(MessageHandler(filters.Regex(f"^{BUTTON_CLOCK_IN}$"), clock_in_command))
    application.add_handler(CommandHandler("clockout", clock_out_command))
    application.add_handler(MessageHandler(filters.Regex(f"^{BUTTON_CLOCK_OUT}$"), clock_out_command))
    application.add_handler(CommandHandler("status", status_command))
    application.add_handler(MessageHandler(filters.Regex(f"^{BUTTON_MY_STATS}$"), status_command))
    application.add_handler(CallbackQueryHandler(quiz_answer_callback, pattern="^quiz:"))
    application.add_handler(CallbackQueryHandler(stats_callback, pattern="^stats:"))
    application.add_handler(CommandHandler("admin", admin_command))
    application.add_handler(CommandHandler("cancel", employee_cancel_command))
    return application


async def main() -> None:
    application = build_application()
    async with application:
        await database.init_db()
        await application.updater.start_polling()
        await application.start()
        logger.info("Бот запущен. Нажмите Ctrl+C для остановки.")
        try:
            await asyncio.Event().wait()
        finally:
            await application.updater.stop()
            await application.stop()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logger.info("Бот остановлен.")
    except Exception as e:
        logger.critical(f"Критическая ошибка при запуске: {e}", exc_info=True)
