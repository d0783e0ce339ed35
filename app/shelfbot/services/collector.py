"""
Коллекции пользователей и запись в них итогов диалогов.

Коллекции только растут: на каждого пользователя по одной упорядоченной
последовательности на вид результата. Дедупликации нет: два завершённых
диалога дают две записи.
"""
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shelfbot.dialogs.results import DialogResult
from shelfbot.errors import CollectionStoreError
from shelfbot.logging import logger
from shelfbot.storage.repo import Repository


class UserCollections(ABC):
    @abstractmethod
    def append(self, user_id: int, result: DialogResult) -> None:
        """Дописать результат в конец последовательности его вида."""

    @abstractmethod
    def entries(self, user_id: int, kind: str) -> list[DialogResult]:
        """Результаты вида `kind` в порядке добавления."""


class InMemoryCollections(UserCollections):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        # user_id -> kind -> results
        self._items: dict[int, dict[str, list[DialogResult]]] = defaultdict(dict)

    def append(self, user_id: int, result: DialogResult) -> None:
        with self._lock:
            self._items[user_id].setdefault(result.kind, []).append(result)

    def entries(self, user_id: int, kind: str) -> list[DialogResult]:
        with self._lock:
            return list(self._items.get(user_id, {}).get(kind, []))


class SqlCollections(UserCollections):
    """Коллекции в БД через SQLAlchemy; недоступная БД даёт CollectionStoreError."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def append(self, user_id: int, result: DialogResult) -> None:
        session = None
        try:
            session = self._session_factory()
            Repository(session).add_result(user_id, result)
        except SQLAlchemyError as e:
            raise CollectionStoreError(f"Failed to store {result.kind} for user {user_id}: {e}") from e
        finally:
            if session is not None:
                session.close()

    def entries(self, user_id: int, kind: str) -> list[DialogResult]:
        readers = {
            "book": Repository.list_books,
            "movie": Repository.list_movies,
            "quote": Repository.list_quotes,
        }
        session = None
        try:
            session = self._session_factory()
            return readers[kind](Repository(session), user_id)
        except SQLAlchemyError as e:
            raise CollectionStoreError(f"Failed to read {kind} list for user {user_id}: {e}") from e
        finally:
            if session is not None:
                session.close()


class ResultCollector:
    def __init__(self, collections: UserCollections):
        self._collections = collections

    def commit(self, user_id: int, result: DialogResult) -> None:
        """Записать итог диалога. Ошибка хранилища фатальна для этого коммита."""
        self._collections.append(user_id, result)
        logger.info("Committed %s for user %d", result.kind, user_id)
