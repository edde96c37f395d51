import os

# настройки читаются при импорте app.core.config
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["ENABLE_RATE_LIMITING"] = "false"
os.environ.pop("REDIS_URL", None)

import pytest
import pytest_asyncio

from app.core.config import Settings
from app.core.container import build_services
from app.schemas.user import UserRecord
from app.storage.memory import MemoryKeyPathStore


class RecordingEmitter:
    """Stands in for socketio.AsyncServer: records every emit."""

    def __init__(self):
        self.events = []

    async def emit(self, event, data=None, to=None, **kwargs):
        self.events.append((event, data, to))

    def sent(self, event, to=None):
        return [data for name, data, sid in self.events if name == event and (to is None or sid == to)]

    def targets(self, event):
        return sorted(sid for name, _, sid in self.events if name == event)

    def clear(self):
        self.events.clear()


class FailingStore(MemoryKeyPathStore):
    """Memory store whose writes under the given prefixes raise ``error``."""

    def __init__(self, error):
        super().__init__()
        self.error = error
        self.failing_prefixes = []
        self.writes = []

    async def set(self, path, value):
        if any(path.startswith(prefix) for prefix in self.failing_prefixes):
            raise self.error
        self.writes.append(path)
        await super().set(path, value)


async def add_user(store, user_id, username=None):
    user = UserRecord(id=user_id, username=username or user_id.title(), email=f"{user_id}@example.com")
    await store.set(f"users/{user_id}", user.model_dump(mode="json", by_alias=True))
    return user


@pytest.fixture
def emitter():
    return RecordingEmitter()


@pytest.fixture
def store():
    return MemoryKeyPathStore()


@pytest.fixture
def services(store, emitter):
    return build_services(Settings(), store, emitter)


@pytest_asyncio.fixture
async def alice_and_bob(store):
    alice = await add_user(store, "alice")
    bob = await add_user(store, "bob")
    return alice, bob
