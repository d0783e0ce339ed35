"""
Webhook-транспорт: Telegram присылает апдейты POST-запросами.

Апдейт только разбирается и ставится в очередь пользователя; ответ
Telegram получает сразу, не дожидаясь вызова воркера.
"""
from flask import Flask, request, abort

from shelfbot.bot.handlers import UpdateHandler
from shelfbot.bot.updates import parse_update
from shelfbot.config import settings
from shelfbot.errors import TransportDecodeError
from shelfbot.logging import logger

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

app = Flask(__name__)

# Устанавливается из main.py / wsgi.py
_handler: UpdateHandler | None = None


def set_handler(handler: UpdateHandler) -> None:
    """Установить обработчик апдейтов."""
    global _handler
    _handler = handler


def _rejection() -> int | None:
    """HTTP-код отказа для запроса, который не похож на апдейт от Telegram."""
    if settings.webhook_secret_token and request.headers.get(SECRET_HEADER, "") != settings.webhook_secret_token:
        logger.warning("Webhook request with invalid secret token from %s", request.remote_addr)
        return 403
    content_type = request.headers.get("content-type")
    if content_type != "application/json":
        logger.warning("Webhook request with content-type %s", content_type)
        return 400
    return None


@app.route(f"/{settings.webhook_path}", methods=["POST"])
def webhook() -> tuple[str, int]:
    if _handler is None:
        logger.error("Update handler not set")
        abort(500)

    status = _rejection()
    if status is not None:
        abort(status)

    try:
        update = parse_update(request.get_data(as_text=True))
    except TransportDecodeError as e:
        # На не-2xx Telegram повторяет доставку, битый апдейт подтверждаем
        logger.warning("Dropping malformed webhook update: %s", e)
        return "OK", 200

    _handler.submit(update)
    return "OK", 200


@app.route("/health", methods=["GET"])
def health() -> tuple[str, int]:
    return "OK", 200
