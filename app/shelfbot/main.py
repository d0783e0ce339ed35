import time

import telebot
from alembic import command
from alembic.config import Config

from shelfbot.config import settings
from shelfbot.context import build_context
from shelfbot.logging import logger
from shelfbot.bot.poller import UpdatePoller
from shelfbot.bot.webhook_server import app, set_handler


def create_bot() -> telebot.TeleBot:
    """Создать экземпляр бота. Апдейты раздаёт наш диспетчер, не telebot."""
    return telebot.TeleBot(settings.bot_token, threaded=False)


def setup_webhook(bot: telebot.TeleBot) -> None:
    """Установить webhook в Telegram."""
    logger.info("Removing old webhook...")
    bot.delete_webhook(drop_pending_updates=True)
    time.sleep(0.5)

    logger.info("Setting webhook: %s", settings.webhook_url)
    bot.set_webhook(
        url=settings.webhook_url,
        secret_token=settings.webhook_secret_token or None,
        allowed_updates=["message", "callback_query"],
    )
    logger.info("Webhook set successfully")


def run_migrations() -> None:
    """Применить pending-миграции Alembic, если коллекции хранятся в БД."""
    if settings.collections_backend != "sql":
        return
    logger.info("Running database migrations...")
    command.upgrade(Config("alembic.ini"), "head")
    logger.info("Database migrations applied")


def main() -> None:
    logger.info("Starting shelfbot (%s mode)...", settings.transport_mode)

    run_migrations()

    bot = create_bot()
    context = build_context(settings)
    handler = context.handler_for(bot)

    try:
        if settings.transport_mode == "webhook":
            set_handler(handler)
            setup_webhook(bot)
            logger.info("Starting webhook server on %s:%d", settings.app_host, settings.app_port)
            app.run(host=settings.app_host, port=settings.app_port)
        else:
            # getUpdates не работает, пока установлен webhook
            bot.delete_webhook()
            UpdatePoller(bot, handler, timeout=settings.polling_timeout).run()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        context.close()
        logger.info("Shutdown complete")


if __name__ == "__main__":
    main()
