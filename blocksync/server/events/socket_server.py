"""
Socket.IO server.

Uses python-socketio in ASGI mode so it can wrap FastAPI.
`create_socket_app(fastapi_app)` returns the composite ASGI application to
pass to uvicorn.

Outbound: every sync event is emitted to all clients as a "sync" message.
Inbound:  "text_change" {text} and "select" {nodeId} from the editor UI.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

import socketio

from blocksync.server.session import editor_session
from blocksync.sync.editor import ChangeOrigin
from blocksync.sync.events import global_emitter

logger = logging.getLogger(__name__)

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
# Sync fan-out: wire global_emitter → Socket.IO emit
# ---------------------------------------------------------------------------

def _on_sync(event: Dict[str, Any]) -> None:
    """
    Called synchronously by SyncEmitter.fire().
    We schedule an async emit on the running event loop.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("no running event loop; %s not forwarded", event.get("type"))
        return
    loop.create_task(sio.emit("sync", event))


global_emitter.on_event(_on_sync)


# ---------------------------------------------------------------------------
# Socket.IO lifecycle events
# ---------------------------------------------------------------------------

@sio.event
async def connect(sid: str, environ: dict) -> None:
    """Send the current text state so a fresh client starts in sync."""
    await sio.emit("session", editor_session.text_state(), to=sid)


@sio.event
async def disconnect(sid: str) -> None:
    logger.debug("client %s disconnected", sid)


@sio.event
async def text_change(sid: str, data: Dict[str, Any]) -> None:
    text = data.get("text") if isinstance(data, dict) else None
    if not isinstance(text, str):
        logger.warning("text_change from %s without text", sid)
        return
    editor_session.editor.set_content(text, ChangeOrigin.USER)


@sio.event
async def select(sid: str, data: Dict[str, Any]) -> None:
    node_id = data.get("nodeId") if isinstance(data, dict) else None
    if node_id is not None and editor_session.workspace.get_node(node_id) is None:
        logger.warning("select from %s for unknown node %s", sid, node_id)
        return
    editor_session.workspace.select(node_id)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_socket_app(fastapi_app: Any) -> socketio.ASGIApp:
    """Wrap *fastapi_app* inside a Socket.IO ASGI application."""
    return socketio.ASGIApp(sio, other_asgi_app=fastapi_app)
