"""Pytest configuration and fixtures."""

import os

# Настройки читаются при импорте shelfbot.config, задаём окружение заранее
os.environ.setdefault("BOT_TOKEN", "123456:test-token")
os.environ.setdefault("WORKER_API_TOKEN", "test-runtime-token")
os.environ.setdefault("TRANSPORT_MODE", "polling")

import pytest

from shelfbot.bot.updates import InboundUpdate, extract_command
from shelfbot.dialogs.catalog import DialogType, fsm_for
from shelfbot.dialogs.events import Event, StructuredReply, TextProvided, encode_event
from shelfbot.dialogs.fsm import DialogOutcome
from shelfbot.dialogs.worker import DialogWorker
from shelfbot.services.collector import InMemoryCollections, ResultCollector
from shelfbot.services.router import SessionRouter
from shelfbot.services.sessions import InMemorySessionStore

USER_ID = 7
CHAT_ID = 42


class FakeWorkerClient:
    """
    DialogWorkerClient без сети: воркеры живут в процессе.

    События и ответы проходят через тот же JSON, что и по HTTP.
    Ошибки подставляются через атрибуты *_error.
    """

    def __init__(self):
        self.workers: dict[str, DialogWorker] = {}
        self.created: list[tuple[str, DialogType, list]] = []
        self.deleted: list[str] = []
        self.invocations: list[tuple[str, Event]] = []
        self.create_error = None
        self.credential_error = None
        self.invoke_error = None

    def create(self, worker_id, dialog_type, env):
        if self.create_error is not None:
            raise self.create_error
        self.created.append((worker_id, dialog_type, list(env)))
        self.workers[worker_id] = DialogWorker(fsm_for(dialog_type))

    def obtain_credential(self, worker_id, dialog_type):
        if self.credential_error is not None:
            raise self.credential_error
        return f"key-{worker_id}"

    def invoke_step(self, dialog_type, worker_id, credential, event):
        if self.invoke_error is not None:
            raise self.invoke_error
        self.invocations.append((worker_id, event))
        return DialogOutcome.from_dict(self.workers[worker_id].step(encode_event(event)))

    def delete(self, worker_id, dialog_type):
        self.deleted.append(worker_id)
        self.workers.pop(worker_id, None)

    def close(self):
        pass


def text_update(text: str, user_id: int = USER_ID, update_id: int = 1) -> InboundUpdate:
    return InboundUpdate(
        update_id=update_id,
        user_id=user_id,
        chat_id=CHAT_ID,
        event=TextProvided(text),
        command=extract_command(text),
    )


def button_update(data: str, user_id: int = USER_ID, update_id: int = 1) -> InboundUpdate:
    return InboundUpdate(
        update_id=update_id,
        user_id=user_id,
        chat_id=CHAT_ID,
        event=StructuredReply(data),
        callback_query_id="cb-1",
    )


@pytest.fixture
def fake_client():
    return FakeWorkerClient()


@pytest.fixture
def sessions():
    return InMemorySessionStore()


@pytest.fixture
def collections():
    return InMemoryCollections()


@pytest.fixture
def router(sessions, fake_client, collections):
    return SessionRouter(
        sessions=sessions,
        client=fake_client,
        collector=ResultCollector(collections),
        worker_env=[("LOG_LEVEL", "DEBUG")],
    )


def message_payload(text: str | None, user_id: int = USER_ID, update_id: int = 1) -> dict:
    """Сырой апдейт Telegram с сообщением, как его присылает Bot API."""
    message = {
        "message_id": 100 + update_id,
        "date": 1700000000,
        "chat": {"id": CHAT_ID, "type": "private"},
        "from": {"id": user_id, "is_bot": False, "first_name": "Reader"},
    }
    if text is not None:
        message["text"] = text
    return {"update_id": update_id, "message": message}


def callback_payload(data: str | None, user_id: int = USER_ID, update_id: int = 1, with_message: bool = True) -> dict:
    """Сырой апдейт Telegram с нажатием inline-кнопки."""
    callback = {
        "id": "cb-1",
        "from": {"id": user_id, "is_bot": False, "first_name": "Reader"},
        "chat_instance": "ci-1",
    }
    if data is not None:
        callback["data"] = data
    if with_message:
        callback["message"] = {
            "message_id": 99,
            "date": 1700000000,
            "chat": {"id": CHAT_ID, "type": "private"},
            "text": "Enter rating",
        }
    return {"update_id": update_id, "callback_query": callback}
