"""Socket.IO server definition.

The server runs in ASGI mode next to the FastAPI app (see ``app.main``).
Chat handlers are bound in the FastAPI lifespan, once the services exist.
"""

from __future__ import annotations

from typing import List, Union

import socketio


def _origins(allowed: List[str]) -> Union[str, List[str]]:
    return "*" if "*" in allowed else allowed


def create_socket_server(cors_allowed_origins: List[str]) -> socketio.AsyncServer:
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=_origins(cors_allowed_origins),
        ping_timeout=25,
        ping_interval=20,
    )
