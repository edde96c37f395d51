from sqlalchemy import Column, Integer, String, DateTime, JSON, func, Index
from app.db.base import Base

class StoreEntry(Base):
    __tablename__ = "store_entries"

    # id задает порядок вставки, по нему собираются дочерние ключи
    id = Column(Integer, primary_key=True, autoincrement=True)
    path = Column(String(512), unique=True, nullable=False)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index('idx_store_entry_path', 'path'),
    )
