"""
GraphEventEmitter: fan-out of graph change notifications.

The workspace NodeGraph calls ``fire()`` synchronously for every mutation;
registered listeners (the Socket.IO bridge, loggers, tests) receive the
payload stamped with a millisecond timestamp.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class GraphEventEmitter:
    def __init__(self) -> None:
        self._listeners: List[Callable[[Dict[str, Any]], None]] = []

    # ------------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------------

    def on_event(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        """Register a callback that receives every emitted graph event."""
        self._listeners.append(callback)

    def off_event(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ------------------------------------------------------------------
    # Emit
    # ------------------------------------------------------------------

    def fire(self, payload: Dict[str, Any]) -> None:
        """Stamp the payload with a millisecond timestamp and broadcast it."""
        if "ts" not in payload:
            payload["ts"] = _now_ms()
        for cb in list(self._listeners):
            try:
                cb(payload)
            except Exception:
                # a broken listener must not abort the graph mutation
                logger.exception("Graph event listener failed for '%s'", payload.get("type"))


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

global_emitter = GraphEventEmitter()


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _now_ms() -> int:
    return int(time.time() * 1000)
