from pydantic_settings import BaseSettings
from typing import List, Literal, Optional
import logging
from logging.handlers import RotatingFileHandler
import os

def setup_logging(log_level: str = "INFO"):
    log_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "..", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "app.log")

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(log_format)
    level = getattr(logging, log_level.upper(), logging.INFO)

    file_handler = RotatingFileHandler(log_file, maxBytes=1000000, backupCount=5)
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)

    logging.basicConfig(
        level=level,
        handlers=[file_handler, console_handler]
    )

class Settings(BaseSettings):
    # memory = демо-режим, sql = постоянное хранилище через SQLAlchemy
    STORAGE_BACKEND: Literal["memory", "sql"] = "memory"
    DATABASE_URL: str = "sqlite+aiosqlite:///./chat.db"
    REDIS_URL: Optional[str] = None
    ENABLE_RATE_LIMITING: bool = True

    SESSION_COOKIE_NAME: str = "sessionId"
    DEFAULT_AVATAR: str = "/default-avatar.png"
    CORS_ALLOWED_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    model_config = {
        "env_file": "app/.env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }

settings = Settings()
