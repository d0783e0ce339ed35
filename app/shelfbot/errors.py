"""
Закрытая таксономия ошибок.

Вызывающий код ветвится по `kind`, а не по тексту сообщения.
`retryable` подсказывает транспортному слою, имеет ли смысл повторить
то же действие (сам роутер ничего не повторяет).
"""
from enum import Enum


class ErrorKind(str, Enum):
    TRANSPORT_DECODE = "transport_decode"
    VALIDATION = "validation"
    WORKER_CREATE = "worker_create"
    CREDENTIAL = "credential"
    INVOKE = "invoke"
    WORKER_DELETE = "worker_delete"
    UNEXPECTED_TRANSITION = "unexpected_transition"
    ALREADY_IN_DIALOG = "already_in_dialog"
    COLLECTION_STORE = "collection_store"


class ShelfbotError(Exception):
    kind: ErrorKind
    retryable: bool = False


class TransportDecodeError(ShelfbotError):
    """Апдейт от транспорта не удалось разобрать. Дропаем и логируем."""
    kind = ErrorKind.TRANSPORT_DECODE


class ValidationError(ShelfbotError):
    """Значение поля не прошло проверку диалога. Текст показывается пользователю."""
    kind = ErrorKind.VALIDATION


class WorkerLifecycleError(ShelfbotError):
    """Сбой create/credential/invoke/delete у рантайма воркеров."""
    retryable = True


class WorkerCreateError(WorkerLifecycleError):
    kind = ErrorKind.WORKER_CREATE


class CredentialError(WorkerLifecycleError):
    kind = ErrorKind.CREDENTIAL


class InvokeError(WorkerLifecycleError):
    kind = ErrorKind.INVOKE


class WorkerDeleteError(WorkerLifecycleError):
    kind = ErrorKind.WORKER_DELETE


class UnexpectedTransitionError(ShelfbotError):
    """Диагностика FSM: пара (state, event) без перехода. Никогда не выбрасывается."""
    kind = ErrorKind.UNEXPECTED_TRANSITION

    def __init__(self, state: object, event: object):
        super().__init__(f"{state!r} -> {event!r}")
        self.state = state
        self.event = event


class AlreadyInDialogError(ShelfbotError):
    kind = ErrorKind.ALREADY_IN_DIALOG

    def __init__(self, user_id: int, dialog_type: str):
        super().__init__(f"user {user_id} is already in dialog {dialog_type}")
        self.user_id = user_id
        self.dialog_type = dialog_type


class CollectionStoreError(ShelfbotError):
    """Хранилище коллекций недоступно; коммит результата не состоялся."""
    kind = ErrorKind.COLLECTION_STORE
    retryable = True
