from sqlalchemy import delete, func, or_, select, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from typing import Any, Optional
import asyncio
import copy
import logging

from app.db.session import create_engine, create_sessionmaker, init_db
from app.models.store_entry import StoreEntry
from app.core.errors import StorageUnavailable, WriteFailed
from app.storage.base import KeyPathStore, split_path

logger = logging.getLogger(__name__)

def _with_nested(container: Any, relative: list, value: Any) -> dict:
    """Возвращает копию container, где по относительному пути лежит value"""
    result = copy.deepcopy(container) if isinstance(container, dict) else {}
    node = result
    for part in relative[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[relative[-1]] = copy.deepcopy(value)
    return result

class SqlKeyPathStore(KeyPathStore):
    """
    Постоянное хранилище: каждая запись - строка (path, JSON value).

    get() по "папке" собирает дерево из всех строк с этим префиксом
    в порядке вставки.
    """

    name = "sql"

    def __init__(self, database_url: str):
        self.database_url = database_url
        self._engine = create_engine(database_url)
        self._sessionmaker = create_sessionmaker(self._engine)
        # read-modify-write в set() не должен перемежаться с другой записью
        self._write_lock = asyncio.Lock()

    async def connect(self) -> None:
        try:
            await init_db(self._engine)
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Database is unreachable at {self.database_url}: {e}")
            raise StorageUnavailable("Database is unreachable") from e

    async def get(self, path: str) -> Optional[Any]:
        parts = split_path(path)
        path = "/".join(parts)
        ancestors = ["/".join(parts[:i]) for i in range(1, len(parts))]

        stmt = select(StoreEntry).where(
            or_(
                StoreEntry.path == path,
                StoreEntry.path.startswith(path + "/", autoescape=True),
                StoreEntry.path.in_(ancestors),
            )
        ).order_by(StoreEntry.id)
        try:
            async with self._sessionmaker() as db:
                entries = (await db.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Store read failed for {path}: {e}")
            raise StorageUnavailable(f"Failed to read {path}") from e

        for entry in entries:
            if entry.path in ancestors:
                # значение лежит внутри записи-предка
                node = entry.value
                for part in parts[len(entry.path.split("/")):]:
                    if not isinstance(node, dict) or part not in node:
                        return None
                    node = node[part]
                return node

        result: Any = None
        for entry in entries:
            if entry.path == path:
                result = entry.value
                continue
            if not isinstance(result, dict):
                result = {}
            node = result
            relative = entry.path[len(path) + 1:].split("/")
            for part in relative[:-1]:
                if not isinstance(node.get(part), dict):
                    node[part] = {}
                node = node[part]
            node[relative[-1]] = entry.value
        return result

    async def set(self, path: str, value: Any) -> None:
        parts = split_path(path)
        path = "/".join(parts)
        ancestors = ["/".join(parts[:i]) for i in range(1, len(parts))]

        async with self._write_lock:
            try:
                async with self._sessionmaker() as db:
                    if ancestors:
                        stmt = (
                            select(StoreEntry)
                            .where(StoreEntry.path.in_(ancestors))
                            .order_by(func.length(StoreEntry.path))
                        )
                        holder = (await db.execute(stmt)).scalars().first()
                        if holder is not None:
                            relative = parts[len(holder.path.split("/")):]
                            holder.value = _with_nested(holder.value, relative, value)
                            await db.commit()
                            return

                    await db.execute(
                        delete(StoreEntry).where(
                            or_(
                                StoreEntry.path == path,
                                StoreEntry.path.startswith(path + "/", autoescape=True),
                            )
                        )
                    )
                    db.add(StoreEntry(path=path, value=value))
                    await db.commit()
            except OperationalError as e:
                logger.error(f"Store is unavailable while writing {path}: {e}")
                raise StorageUnavailable(f"Failed to write {path}") from e
            except SQLAlchemyError as e:
                logger.error(f"Store rejected write to {path}: {e}")
                raise WriteFailed(f"Failed to write {path}") from e

    async def close(self) -> None:
        await self._engine.dispose()
