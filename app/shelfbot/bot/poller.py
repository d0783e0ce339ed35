"""
Long polling через getUpdates.

Offset сдвигается на update_id + 1 после передачи апдейта в диспетчер.
Доставка at-least-once: при рестарте Telegram может повторить апдейт.
"""
import threading

import telebot

from shelfbot.bot.handlers import UpdateHandler
from shelfbot.logging import logger

ALLOWED_UPDATES = ["message", "callback_query"]
# HTTP-таймаут запроса должен пережить серверное ожидание long polling
HTTP_TIMEOUT_MARGIN = 5


class UpdatePoller:
    def __init__(
        self,
        bot: telebot.TeleBot,
        handler: UpdateHandler,
        timeout: int = 10,
        error_delay: float = 3.0,
    ):
        self._bot = bot
        self._handler = handler
        self._timeout = timeout
        self._error_delay = error_delay
        self._offset: int | None = None
        self._stop = threading.Event()

    @property
    def offset(self) -> int | None:
        return self._offset

    def poll_once(self) -> int:
        """Забрать одну пачку апдейтов и раздать их. Возвращает размер пачки."""
        updates = self._bot.get_updates(
            offset=self._offset,
            timeout=self._timeout + HTTP_TIMEOUT_MARGIN,
            long_polling_timeout=self._timeout,
            allowed_updates=ALLOWED_UPDATES,
        )
        for update in updates:
            self._handler.submit(update)
            self._offset = update.update_id + 1
        return len(updates)

    def run(self) -> None:
        logger.info("Polling for updates (timeout=%ds)", self._timeout)
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception as e:
                logger.error("Error while receiving updates: %s", e)
                self._stop.wait(self._error_delay)
        logger.info("Polling stopped")

    def stop(self) -> None:
        self._stop.set()
