from typing import Any, Iterable, Optional, Protocol
import logging

logger = logging.getLogger(__name__)


class Emitter(Protocol):
    """Anything with socketio.AsyncServer.emit's shape."""

    async def emit(self, event: str, data: Any = None, to: Optional[str] = None, **kwargs) -> None:
        ...


async def emit_to(emitter: Emitter, event: str, payload: dict, sids: Iterable[str]) -> int:
    """
    Best-effort fan-out of one event to several connections.
    A failure on one sid is logged and does not stop the rest.
    """
    delivered = 0
    for sid in sids:
        try:
            await emitter.emit(event, payload, to=sid)
            delivered += 1
        except Exception as e:
            logger.warning(f"Failed to emit {event} to {sid}: {e}")
    return delivered
