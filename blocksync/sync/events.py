"""
SyncEmitter — fan-out of synchronization events.

Listeners (the Socket.IO bridge, tests, loggers) receive every event dict
from ``blocksync.sync.event_types``. A failing listener is logged and
skipped so one bad subscriber cannot stall the controller.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

SyncListener = Callable[[Dict[str, Any]], None]


class SyncEmitter:
    def __init__(self) -> None:
        self._listeners: List[SyncListener] = []

    # ------------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------------

    def on_event(self, callback: SyncListener) -> None:
        """Register a callback that receives every emitted sync event."""
        self._listeners.append(callback)

    def off_event(self, callback: SyncListener) -> None:
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
                logger.exception("sync listener failed on %s", payload.get("type"))


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

global_emitter = SyncEmitter()


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _now_ms() -> int:
    return int(time.time() * 1000)
