from abc import ABC, abstractmethod
from typing import Any, Optional
import itertools
import time
import uuid

def split_path(path: str) -> list[str]:
    parts = [part for part in path.strip("/").split("/") if part]
    if not parts:
        raise ValueError("Store path must not be empty")
    return parts

def join_path(*parts: str) -> str:
    return "/".join(part.strip("/") for part in parts)

_key_counter = itertools.count()

def generate_key() -> str:
    """
    Ключ для append: монотонный в пределах процесса,
    поэтому лексикографический порядок ключей совпадает с порядком вставки.
    """
    return f"{time.time_ns():020d}-{next(_key_counter) % 1000000:06d}-{uuid.uuid4().hex[:8]}"

class KeyPathStore(ABC):
    """
    Хранилище вида "путь -> JSON-значение".

    Значение по пути `a/b` видно и как поле `b` у `get("a")`.
    Транзакций между разными путями нет.
    """

    name = "store"

    @abstractmethod
    async def get(self, path: str) -> Optional[Any]:
        """Возвращает значение или None, если по пути ничего нет"""

    @abstractmethod
    async def set(self, path: str, value: Any) -> None:
        """Заменяет значение по пути целиком (вместе с вложенными ключами)"""

    async def append(self, path: str, value: Any) -> str:
        """Записывает значение под сгенерированным ключом и возвращает ключ"""
        key = generate_key()
        await self.set(join_path(path, key), value)
        return key

    async def close(self) -> None:
        pass
