from fastapi import FastAPI, Request
from contextlib import asynccontextmanager
import logging
import socketio

from app.core.utils.rate_limiter import limiter
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from app.routers.auth import router as auth_router
from app.routers.chats import router as chats_router
from app.routers.me import router as me_router
from app.core.config import settings, setup_logging
from app.core.container import build_services, create_store, shutdown_services
from app.realtime.events import ChatSocketHandlers
from app.realtime.server import create_socket_server

# Socket.IO сервер живет рядом с FastAPI в одном ASGI-приложении
sio = create_socket_server(settings.CORS_ALLOWED_ORIGINS)

# Настройка lifespan-обработчика
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Управляет жизненным циклом приложения FastAPI.

    - При запуске: выбирает хранилище, собирает сервисы, регистрирует обработчики сокетов.
    - При остановке: очищает реестр соединений и закрывает хранилище.
    """
    logger = logging.getLogger(__name__)
    logger.info("Starting Chat API")

    store = await create_store(settings)
    services = build_services(settings, store, emitter=sio)
    app.state.services = services
    ChatSocketHandlers(services, emitter=sio).bind(sio)

    yield  # Здесь приложение работает

    await shutdown_services(services)
    logger.info("Shutting down Chat API")

# Инициализация приложения
app = FastAPI(
    title="Chat API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Настройка логирования (логи в logs/app.log в корне проекта)
setup_logging(settings.LOG_LEVEL)

# Инициализация лимитера запросов
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Подключение роутеров
app.include_router(auth_router)
app.include_router(me_router)
app.include_router(chats_router)

@app.get("/")
@limiter.limit("10/minute")
async def root(request: Request):
    """
    Корневой эндпоинт для проверки работоспособности API.
    """
    return {"message": "API is up and running 🚀"}

# Точка входа для uvicorn: uvicorn app.main:asgi_app
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)
