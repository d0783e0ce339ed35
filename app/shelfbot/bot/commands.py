"""Обычные команды вне диалога: справка и списки коллекций."""
from shelfbot.bot.messages import (
    HELP,
    UNKNOWN,
    NO_ACTIVE_DIALOG,
    BOOKS_HEADER,
    BOOK_LINE,
    NO_BOOKS,
    MOVIES_HEADER,
    MOVIE_LINE,
    NO_MOVIES,
    QUOTES_HEADER,
    QUOTE_LINE,
    NO_QUOTES,
)
from shelfbot.bot.updates import InboundUpdate
from shelfbot.dialogs.events import TextProvided
from shelfbot.services.collector import UserCollections

# команда -> (вид результата, заголовок, строка, текст для пустого списка)
_LISTINGS = {
    "/books": ("book", BOOKS_HEADER, BOOK_LINE, NO_BOOKS),
    "/movies": ("movie", MOVIES_HEADER, MOVIE_LINE, NO_MOVIES),
    "/quotes": ("quote", QUOTES_HEADER, QUOTE_LINE, NO_QUOTES),
}


class CommandHandler:
    def __init__(self, collections: UserCollections):
        self._collections = collections

    def handle(self, update: InboundUpdate) -> str | None:
        """Текст ответа на команду или None, если отвечать нечего."""
        if not isinstance(update.event, TextProvided):
            # Нажатие кнопки вне диалога (старое сообщение) молча игнорируем
            return None

        command = update.command
        if command in ("/start", "/help"):
            return HELP
        if command == "/reset":
            return NO_ACTIVE_DIALOG
        if command in _LISTINGS:
            return self._listing(update.user_id, *_LISTINGS[command])
        return UNKNOWN

    def _listing(self, user_id: int, kind: str, header: str, line: str, empty: str) -> str:
        items = self._collections.entries(user_id, kind)
        if not items:
            return empty
        lines = [line.format(**vars(item)) for item in items]
        return "\n".join([header, *lines])
