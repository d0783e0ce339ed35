"""Разбор апдейтов Telegram во входящие события бота."""
from dataclasses import dataclass

import telebot

from shelfbot.dialogs.events import Event, StructuredReply, TextProvided
from shelfbot.errors import TransportDecodeError


@dataclass(frozen=True)
class InboundUpdate:
    update_id: int
    user_id: int
    chat_id: int
    event: Event
    # Команда без аргументов и @username бота, "" если это не команда
    command: str = ""
    callback_query_id: str | None = None


def extract_command(text: str) -> str:
    tokens = text.strip().split(maxsplit=1)
    if not tokens:
        return ""
    command_token = tokens[0].lower()
    if not command_token.startswith("/"):
        return ""
    if "@" in command_token:
        command_token = command_token.split("@", 1)[0]
    return command_token


def decode_update(update: telebot.types.Update) -> InboundUpdate:
    """Апдейт -> InboundUpdate. Всё, что роутеру не нужно, даёт TransportDecodeError."""
    message = update.message
    if message is not None:
        if message.from_user is None:
            raise TransportDecodeError(f"Update {update.update_id}: message without sender")
        if message.text is None:
            raise TransportDecodeError(f"Update {update.update_id}: message without text")
        return InboundUpdate(
            update_id=update.update_id,
            user_id=message.from_user.id,
            chat_id=message.chat.id,
            event=TextProvided(message.text),
            command=extract_command(message.text),
        )

    callback = update.callback_query
    if callback is not None:
        if callback.data is None:
            raise TransportDecodeError(f"Update {update.update_id}: callback without data")
        # У старых сообщений message может не быть; тогда пишем в личку
        chat_id = callback.message.chat.id if callback.message is not None else callback.from_user.id
        return InboundUpdate(
            update_id=update.update_id,
            user_id=callback.from_user.id,
            chat_id=chat_id,
            event=StructuredReply(callback.data),
            callback_query_id=callback.id,
        )

    raise TransportDecodeError(f"Update {update.update_id}: unsupported content")


def parse_update(json_data: str) -> telebot.types.Update:
    """Сырой JSON webhook-запроса -> Update."""
    try:
        update = telebot.types.Update.de_json(json_data)
    except (ValueError, KeyError, TypeError) as e:
        raise TransportDecodeError(f"Malformed update JSON: {e}") from e
    if update is None:
        raise TransportDecodeError("Empty update")
    return update
