"""
Sync REST routes.

All routes are mounted under /api by main.py.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel

from blocksync.ir.serialize import from_dict, to_dict
from blocksync.language.errors import GenerationError, ParseError, extract_error_line
from blocksync.language.generator import RenderMode
from blocksync.server.serializers.graph_serializer import serialize_workspace
from blocksync.server.session import editor_session
from blocksync.sync.editor import ChangeOrigin

logger = logging.getLogger(__name__)

router = APIRouter()


# ── POST /parse ───────────────────────────────────────────────────────────────

class ParseBody(BaseModel):
    source: str


@router.post("/parse")
async def parse(body: ParseBody) -> Dict[str, Any]:
    try:
        program = await editor_session.language.parse(body.source)
    except ParseError as exc:
        raise HTTPException(status_code=422, detail={"error": str(exc), "line": exc.line})
    return to_dict(program)


# ── POST /generate ────────────────────────────────────────────────────────────

class GenerateBody(BaseModel):
    program: Dict[str, Any]
    mode: Optional[str] = None


@router.post("/generate")
async def generate(body: GenerateBody) -> Dict[str, Any]:
    try:
        mode = RenderMode(body.mode) if body.mode else editor_session.settings.render_mode
    except ValueError:
        raise HTTPException(status_code=422, detail=f"unknown render mode {body.mode!r}")
    try:
        program = from_dict(body.program)
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=f"malformed program: {exc}")
    try:
        text = await editor_session.language.generate(program, mode)
    except GenerationError as exc:
        raise HTTPException(status_code=422, detail={"error": str(exc), "line": extract_error_line(str(exc))})
    return {"text": text}


# ── GET /session/graph ────────────────────────────────────────────────────────

@router.get("/session/graph")
async def get_session_graph() -> Dict[str, Any]:
    return serialize_workspace(editor_session.workspace)


# ── GET /session/text ─────────────────────────────────────────────────────────

@router.get("/session/text")
async def get_session_text() -> Dict[str, Any]:
    return editor_session.text_state()


# ── POST /session/text ────────────────────────────────────────────────────────

class TextBody(BaseModel):
    text: str


@router.post("/session/text", status_code=202)
async def set_session_text(body: TextBody) -> Dict[str, Any]:
    editor_session.editor.set_content(body.text, ChangeOrigin.USER)
    return {"ok": True}


# ── POST /session/flush ───────────────────────────────────────────────────────

@router.post("/session/flush")
async def flush_session() -> Dict[str, Any]:
    await editor_session.controller.flush()
    return editor_session.text_state()


# ── POST /session/select ──────────────────────────────────────────────────────

class SelectBody(BaseModel):
    nodeId: Optional[str] = None


@router.post("/session/select")
async def select_node(body: SelectBody) -> Dict[str, Any]:
    try:
        editor_session.workspace.select(body.nodeId)
    except KeyError:
        raise HTTPException(status_code=404, detail="Node not found")
    return editor_session.text_state()


# ── POST /session/nodes ───────────────────────────────────────────────────────

class CreateNodeBody(BaseModel):
    type: str
    position: Optional[Dict[str, float]] = None


@router.post("/session/nodes", status_code=201)
async def create_node(body: CreateNodeBody) -> Dict[str, Any]:
    position = body.position or {"x": 0.0, "y": 0.0}
    try:
        node = editor_session.workspace.new_node(body.type, x=position["x"], y=position["y"])
    except (KeyError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"id": node.id, "type": node.type}


# ── DELETE /session/nodes/:nodeId ─────────────────────────────────────────────

@router.delete("/session/nodes/{node_id}", status_code=204)
async def delete_node(node_id: str) -> Response:
    try:
        editor_session.workspace.delete_node(node_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Node not found")
    return Response(status_code=204)


# ── POST /session/connect ─────────────────────────────────────────────────────

class ConnectBody(BaseModel):
    parentId: str
    slot: str
    childId: str


@router.post("/session/connect")
async def connect(body: ConnectBody) -> Dict[str, Any]:
    ws = editor_session.workspace
    try:
        parent = ws.require_node(body.parentId)
        if body.slot == "next":
            ws.connect_next(body.parentId, body.childId)
        elif parent.has_statement_slot(body.slot):
            ws.connect_statement(body.parentId, body.slot, body.childId)
        else:
            ws.connect_value(body.parentId, body.slot, body.childId)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Node not found: {exc}")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"ok": True}


# ── POST /session/disconnect ──────────────────────────────────────────────────

class DisconnectBody(BaseModel):
    nodeId: str


@router.post("/session/disconnect")
async def disconnect(body: DisconnectBody) -> Dict[str, Any]:
    try:
        editor_session.workspace.disconnect(body.nodeId)
    except KeyError:
        raise HTTPException(status_code=404, detail="Node not found")
    return {"ok": True}


# ── PUT /session/nodes/:nodeId/fields/:name ───────────────────────────────────

class FieldBody(BaseModel):
    value: Any


@router.put("/session/nodes/{node_id}/fields/{name}", status_code=204)
async def set_field(node_id: str, name: str, body: FieldBody) -> Response:
    try:
        node = editor_session.workspace.require_node(node_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Node not found")
    try:
        node.set_field(name, body.value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return Response(status_code=204)


# ── PUT /session/nodes/:nodeId/position ───────────────────────────────────────

class PositionBody(BaseModel):
    x: float
    y: float


@router.put("/session/nodes/{node_id}/position", status_code=204)
async def set_position(node_id: str, body: PositionBody) -> Response:
    try:
        editor_session.workspace.move_node(node_id, body.x, body.y)
    except KeyError:
        raise HTTPException(status_code=404, detail="Node not found")
    return Response(status_code=204)
