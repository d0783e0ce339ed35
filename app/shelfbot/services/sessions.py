"""
Хранилище сессий: user_id -> активный диалог.

Единственный источник правды о том, находится ли пользователь в диалоге.
Блокировка держится только на время операции со словарём, никогда на
время сетевого вызова.
"""
import json
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone

import redis

from shelfbot.dialogs.catalog import DialogType
from shelfbot.logging import logger


@dataclass(frozen=True)
class Session:
    user_id: int
    dialog_type: DialogType
    worker_id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_json(self) -> str:
        return json.dumps(
            {
                "user_id": self.user_id,
                "dialog_type": self.dialog_type.value,
                "worker_id": self.worker_id,
                "created_at": self.created_at.isoformat(),
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> "Session":
        payload = json.loads(raw)
        return cls(
            user_id=int(payload["user_id"]),
            dialog_type=DialogType(payload["dialog_type"]),
            worker_id=payload["worker_id"],
            created_at=datetime.fromisoformat(payload["created_at"]),
        )


class SessionStore(ABC):
    @abstractmethod
    def get(self, user_id: int) -> Session | None:
        """Активная сессия пользователя или None."""

    @abstractmethod
    def put(self, user_id: int, session: Session) -> None:
        """Сохранить сессию пользователя."""

    @abstractmethod
    def remove(self, user_id: int) -> None:
        """Удалить сессию; отсутствие сессии не ошибка."""


class InMemorySessionStore(SessionStore):
    """Сессии в памяти процесса; рестарт их теряет."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: dict[int, Session] = {}

    def get(self, user_id: int) -> Session | None:
        with self._lock:
            return self._sessions.get(user_id)

    def put(self, user_id: int, session: Session) -> None:
        with self._lock:
            self._sessions[user_id] = session

    def remove(self, user_id: int) -> None:
        with self._lock:
            self._sessions.pop(user_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class RedisSessionStore(SessionStore):
    """Сессии в Redis: переживают рестарт бота, пока жив сам воркер."""

    _KEY_PREFIX = "shelfbot:session"

    def __init__(self, client: redis.Redis):
        self._redis = client

    @classmethod
    def from_url(cls, dsn: str) -> "RedisSessionStore":
        return cls(redis.from_url(dsn, decode_responses=True))

    def get(self, user_id: int) -> Session | None:
        raw = self._redis.get(self._key(user_id))
        if not raw:
            return None
        try:
            return Session.from_json(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Invalid session payload for user %d, dropping it: %s", user_id, e)
            self._redis.delete(self._key(user_id))
            return None

    def put(self, user_id: int, session: Session) -> None:
        self._redis.set(self._key(user_id), session.to_json())

    def remove(self, user_id: int) -> None:
        self._redis.delete(self._key(user_id))

    def _key(self, user_id: int) -> str:
        return f"{self._KEY_PREFIX}:{user_id}"
