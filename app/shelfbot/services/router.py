"""
Роутер сессий: ядро бота.

По входящему событию решает: начать новый диалог, переслать событие в
активный, сбросить его или отдать обычным командам. Управляет жизненным
циклом воркера и записью результата.

Владение состоянием двухуровневое: роутер владеет метаданными сессии
(хэндл воркера), а DialogState живёт в воркере и виден только через
ответы шага. Роутер не держит никаких блокировок: последовательность
событий одного пользователя обеспечивает диспетчер.
"""
import uuid
from dataclasses import dataclass, field
from typing import Sequence

from shelfbot.bot.messages import ALREADY_IN_DIALOG, DIALOG_RESET
from shelfbot.bot.updates import InboundUpdate
from shelfbot.dialogs.catalog import START_COMMANDS, DialogType
from shelfbot.dialogs.events import Event, Start
from shelfbot.dialogs.fsm import DialogOutcome
from shelfbot.dialogs.results import DialogResult
from shelfbot.errors import AlreadyInDialogError, CollectionStoreError, ShelfbotError, WorkerLifecycleError
from shelfbot.logging import logger
from shelfbot.services.collector import ResultCollector
from shelfbot.services.sessions import Session, SessionStore
from shelfbot.workers.client import DialogWorkerClient

RESET_COMMAND = "/reset"


@dataclass(frozen=True)
class Reply:
    text: str
    choices: tuple[str, ...] = ()


@dataclass
class RouteResult:
    # False: событие не относится к диалогам, его обработают команды
    handled: bool
    replies: list[Reply] = field(default_factory=list)
    committed: DialogResult | None = None
    error: ShelfbotError | None = None


class SessionRouter:
    def __init__(
        self,
        sessions: SessionStore,
        client: DialogWorkerClient,
        collector: ResultCollector,
        worker_env: Sequence[tuple[str, str]] = (),
    ):
        self._sessions = sessions
        self._client = client
        self._collector = collector
        self._worker_env = list(worker_env)

    def route(self, update: InboundUpdate) -> RouteResult:
        session = self._sessions.get(update.user_id)

        if session is None:
            dialog_type = START_COMMANDS.get(update.command)
            if dialog_type is None:
                return RouteResult(handled=False)
            return self._start(update.user_id, dialog_type)

        if update.command == RESET_COMMAND:
            self._dispose(session)
            logger.info("Dialog %s reset by user %d", session.dialog_type.value, update.user_id)
            return RouteResult(handled=True, replies=[Reply(DIALOG_RESET)])

        if update.command in START_COMMANDS:
            error = AlreadyInDialogError(update.user_id, session.dialog_type.value)
            logger.info("Start command %s ignored: %s", update.command, error)
            return RouteResult(handled=True, replies=[Reply(ALREADY_IN_DIALOG)], error=error)

        return self._forward(session, update.event)

    def _start(self, user_id: int, dialog_type: DialogType) -> RouteResult:
        """Создать воркер, сохранить сессию и проиграть Start. При сбое не остаётся ничего."""
        worker_id = str(uuid.uuid4())
        env = [("DIALOG_TYPE", dialog_type.value), *self._worker_env]
        try:
            self._client.create(worker_id, dialog_type, env)
        except WorkerLifecycleError as e:
            logger.error("Failed to start %s dialog for user %d: %s", dialog_type.value, user_id, e)
            return RouteResult(handled=True, error=e)

        session = Session(user_id=user_id, dialog_type=dialog_type, worker_id=worker_id)
        self._sessions.put(user_id, session)

        try:
            credential = self._client.obtain_credential(worker_id, dialog_type)
            outcome = self._client.invoke_step(dialog_type, worker_id, credential, Start())
        except WorkerLifecycleError as e:
            logger.error("Failed to start %s dialog for user %d: %s", dialog_type.value, user_id, e)
            self._dispose(session)
            return RouteResult(handled=True, error=e)

        logger.info("Started %s dialog for user %d in worker %s", dialog_type.value, user_id, worker_id)
        return self._apply(session, outcome)

    def _forward(self, session: Session, event: Event) -> RouteResult:
        """Переслать событие в воркер. При сбое сессия остаётся, пользователь может повторить."""
        try:
            credential = self._client.obtain_credential(session.worker_id, session.dialog_type)
            outcome = self._client.invoke_step(session.dialog_type, session.worker_id, credential, event)
        except WorkerLifecycleError as e:
            logger.error(
                "Dialog step failed for user %d (worker %s), session kept: %s",
                session.user_id,
                session.worker_id,
                e,
            )
            return RouteResult(handled=True, error=e)
        return self._apply(session, outcome)

    def _apply(self, session: Session, outcome: DialogOutcome) -> RouteResult:
        replies: list[Reply] = []
        if outcome.error:
            replies.append(Reply(outcome.error, outcome.choices))

        if outcome.result is None:
            if outcome.prompt:
                replies.append(Reply(outcome.prompt, outcome.choices))
            return RouteResult(handled=True, replies=replies)

        # Терминальное состояние: сначала коммит, потом утилизация.
        # Если коммит не удался, сессия остаётся: воркер в Completed
        # вернёт тот же результат на следующее сообщение.
        try:
            self._collector.commit(session.user_id, outcome.result)
        except CollectionStoreError as e:
            logger.error("Commit failed for user %d, session kept for retry: %s", session.user_id, e)
            return RouteResult(handled=True, replies=replies, error=e)

        if outcome.prompt:
            replies.append(Reply(outcome.prompt))
        self._dispose(session)
        return RouteResult(handled=True, replies=replies, committed=outcome.result)

    def _dispose(self, session: Session) -> None:
        self._sessions.remove(session.user_id)
        self._client.delete(session.worker_id, session.dialog_type)
