"""WSGI entrypoint для gunicorn (режим webhook)."""
from shelfbot.config import settings
from shelfbot.context import build_context
from shelfbot.main import create_bot, setup_webhook, run_migrations
from shelfbot.bot.webhook_server import app, set_handler
from shelfbot.logging import logger

logger.info("WSGI: Initializing application...")

run_migrations()

bot = create_bot()
context = build_context(settings)
set_handler(context.handler_for(bot))
setup_webhook(bot)

logger.info("WSGI: Application ready")

# gunicorn ищет переменную `application` или `app`
application = app
