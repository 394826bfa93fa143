"""
Socket.IO server that pushes graph notifications to editor clients.

Uses python-socketio in ASGI mode so it can wrap FastAPI.
`create_socket_app(fastapi_app)` returns the composite ASGI application to
pass to uvicorn.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

import socketio

from .event_emitter import global_emitter

logger = logging.getLogger(__name__)

GRAPH_EVENT = "graph"

# ---------------------------------------------------------------------------
# Socket.IO instance (async, ASGI mode)
# ---------------------------------------------------------------------------

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*",
    logger=False,
    engineio_logger=False,
)


# ---------------------------------------------------------------------------
# Graph fan-out: wire global_emitter → Socket.IO emit
# ---------------------------------------------------------------------------

def _on_graph_event(event: Dict[str, Any]) -> None:
    """
    Called synchronously by GraphEventEmitter.fire().
    We schedule an async emit on the running event loop; with no loop
    running (CLI, tests) the event is dropped.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return
    loop.create_task(sio.emit(GRAPH_EVENT, event))


global_emitter.on_event(_on_graph_event)


# ---------------------------------------------------------------------------
# Socket.IO lifecycle events
# ---------------------------------------------------------------------------

@sio.event
async def connect(sid: str, environ: dict) -> None:
    logger.info(f"Editor client connected: {sid}")


@sio.event
async def disconnect(sid: str) -> None:
    logger.info(f"Editor client disconnected: {sid}")


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_socket_app(fastapi_app: Any) -> socketio.ASGIApp:
    """Wrap *fastapi_app* inside a Socket.IO ASGI application."""
    return socketio.ASGIApp(sio, other_asgi_app=fastapi_app)
