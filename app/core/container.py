from dataclasses import dataclass
from typing import Optional
import logging

from app.core.config import Settings
from app.core.errors import StorageUnavailable
from app.realtime.emitter import Emitter
from app.realtime.presence import PresenceNotifier
from app.realtime.registry import ConnectionRegistry
from app.services.history import ChatHistory
from app.services.messaging import MessageRouter
from app.services.sessions import SessionStore
from app.services.users import UserDirectory
from app.storage.base import KeyPathStore
from app.storage.chats import ChatIndexStore, MessageLogStore
from app.storage.memory import MemoryKeyPathStore
from app.storage.sql import SqlKeyPathStore

logger = logging.getLogger(__name__)

@dataclass
class Services:
    """Все сервисы приложения; создаются один раз при старте"""
    store: KeyPathStore
    users: UserDirectory
    sessions: SessionStore
    chat_index: ChatIndexStore
    message_log: MessageLogStore
    registry: ConnectionRegistry
    router: MessageRouter
    history: ChatHistory
    presence: PresenceNotifier

async def create_store(settings: Settings) -> KeyPathStore:
    """Выбирает хранилище по STORAGE_BACKEND; при недоступной БД - память"""
    if settings.STORAGE_BACKEND == "sql":
        store = SqlKeyPathStore(settings.DATABASE_URL)
        try:
            await store.connect()
            logger.info("✅ Chat storage initialized with SQL database")
            return store
        except StorageUnavailable as e:
            logger.warning(f"⚠️ Database unavailable, using in-memory storage: {e}")
            await store.close()

    logger.info("✅ Chat storage initialized in memory (demo mode)")
    return MemoryKeyPathStore()

def build_services(settings: Settings, store: KeyPathStore, emitter: Emitter,
                   registry: Optional[ConnectionRegistry] = None) -> Services:
    registry = registry or ConnectionRegistry()
    users = UserDirectory(store, default_avatar=settings.DEFAULT_AVATAR)
    chat_index = ChatIndexStore(store)
    message_log = MessageLogStore(store)

    return Services(
        store=store,
        users=users,
        sessions=SessionStore(),
        chat_index=chat_index,
        message_log=message_log,
        registry=registry,
        router=MessageRouter(chat_index, message_log, users, registry, emitter),
        history=ChatHistory(chat_index, message_log, users),
        presence=PresenceNotifier(registry, emitter),
    )

async def shutdown_services(services: Services) -> None:
    services.registry.clear()
    services.sessions.clear()
    await services.store.close()
