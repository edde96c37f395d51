from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
import logging

from app.db.base import Base

logger = logging.getLogger(__name__)

def create_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, pool_pre_ping=True)

def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)

async def init_db(engine: AsyncEngine) -> None:
    """Создает таблицы, если их еще нет"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema is ready")
