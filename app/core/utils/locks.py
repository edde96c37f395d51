from contextlib import asynccontextmanager
from typing import Dict, Hashable
import asyncio

class KeyedLocks:
    """
    asyncio.Lock на каждый ключ. Замок удаляется, когда его никто
    не держит и не ждет, поэтому словарь не растет бесконечно.
    Работает только в пределах одного процесса.
    """

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._holders: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
