"""
Контекст приложения.

Все разделяемые объекты (сессии, коллекции, клиент воркеров, роутер,
диспетчер) создаются здесь один раз при старте и передаются явно.
Живут от старта процесса до `close()`.
"""
from dataclasses import dataclass

import telebot

from shelfbot.bot.commands import CommandHandler
from shelfbot.bot.dispatcher import UserDispatcher
from shelfbot.bot.handlers import UpdateHandler
from shelfbot.config import Settings
from shelfbot.dialogs.catalog import DialogType
from shelfbot.logging import logger
from shelfbot.services.collector import InMemoryCollections, ResultCollector, SqlCollections, UserCollections
from shelfbot.services.router import SessionRouter
from shelfbot.services.sessions import InMemorySessionStore, RedisSessionStore, SessionStore
from shelfbot.storage.db import create_db_engine, create_session_factory
from shelfbot.workers.client import DialogWorkerClient


@dataclass
class AppContext:
    sessions: SessionStore
    collections: UserCollections
    client: DialogWorkerClient
    router: SessionRouter
    commands: CommandHandler
    dispatcher: UserDispatcher

    def handler_for(self, bot: telebot.TeleBot) -> UpdateHandler:
        return UpdateHandler(bot, self.router, self.commands, self.dispatcher)

    def close(self) -> None:
        """Дождаться обработки очередей и закрыть соединения."""
        self.dispatcher.shutdown(wait=True)
        self.client.close()


def build_sessions(settings: Settings) -> SessionStore:
    if settings.session_backend == "redis":
        logger.info("Session store: redis")
        return RedisSessionStore.from_url(settings.redis_dsn)
    logger.info("Session store: memory")
    return InMemorySessionStore()


def build_collections(settings: Settings) -> UserCollections:
    if settings.collections_backend == "sql":
        logger.info("Collections store: sql")
        return SqlCollections(create_session_factory(create_db_engine(settings.collections_dsn)))
    logger.info("Collections store: memory")
    return InMemoryCollections()


def build_client(settings: Settings) -> DialogWorkerClient:
    return DialogWorkerClient(
        api_root=settings.worker_api_root,
        token=settings.worker_api_token,
        templates={DialogType(kind): template for kind, template in settings.template_ids.items()},
        step_function=settings.worker_step_function,
        timeout=settings.worker_request_timeout,
    )


def build_context(settings: Settings) -> AppContext:
    sessions = build_sessions(settings)
    collections = build_collections(settings)
    client = build_client(settings)
    router = SessionRouter(
        sessions=sessions,
        client=client,
        collector=ResultCollector(collections),
        worker_env=list(settings.worker_env.items()),
    )
    return AppContext(
        sessions=sessions,
        collections=collections,
        client=client,
        router=router,
        commands=CommandHandler(collections),
        dispatcher=UserDispatcher(max_workers=settings.dispatch_workers),
    )
