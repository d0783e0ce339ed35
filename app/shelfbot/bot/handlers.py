import telebot

from shelfbot.bot.commands import CommandHandler
from shelfbot.bot.dispatcher import UserDispatcher
from shelfbot.bot.keyboards import choices_keyboard
from shelfbot.bot.updates import InboundUpdate, decode_update
from shelfbot.errors import CollectionStoreError, TransportDecodeError
from shelfbot.logging import logger
from shelfbot.services.router import SessionRouter


class UpdateHandler:
    """Принимает апдейты от транспорта (polling или webhook) и отвечает пользователю."""

    def __init__(
        self,
        bot: telebot.TeleBot,
        router: SessionRouter,
        commands: CommandHandler,
        dispatcher: UserDispatcher,
    ):
        self._bot = bot
        self._router = router
        self._commands = commands
        self._dispatcher = dispatcher

    def submit(self, update: telebot.types.Update) -> None:
        """Разобрать апдейт и поставить в очередь его пользователя."""
        try:
            inbound = decode_update(update)
        except TransportDecodeError as e:
            logger.warning("Dropping update: %s", e)
            return
        self._dispatcher.submit(inbound.user_id, self.handle, inbound)

    def handle(self, inbound: InboundUpdate) -> None:
        """Обработать одно событие пользователя. Вызывается из очереди диспетчера."""
        if inbound.callback_query_id is not None:
            self._answer_callback(inbound.callback_query_id)

        result = self._router.route(inbound)
        if result.handled:
            for reply in result.replies:
                self._send(inbound.chat_id, reply.text, choices_keyboard(reply.choices))
            return

        try:
            text = self._commands.handle(inbound)
        except CollectionStoreError as e:
            logger.error("Command %s failed for user %d: %s", inbound.command, inbound.user_id, e)
            return
        if text:
            self._send(inbound.chat_id, text)

    def _send(self, chat_id: int, text: str, reply_markup=None) -> None:
        try:
            self._bot.send_message(chat_id, text, reply_markup=reply_markup)
        except Exception as e:
            logger.error("Failed to send message to chat %d: %s", chat_id, e)

    def _answer_callback(self, callback_query_id: str) -> None:
        """Убрать «часики» с нажатой кнопки."""
        try:
            self._bot.answer_callback_query(callback_query_id)
        except Exception as e:
            logger.warning("Failed to answer callback query %s: %s", callback_query_id, e)
