"""
Workspace REST routes.

All routes are mounted under /api by main.py.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, Response
from pydantic import BaseModel

from picograph.compiler.schema import SchemaError
from picograph.noderegistry.NodeRegistry import UnknownNodeTypeError
from picograph.server.state import NodeNotFoundError, graph_state

logger = logging.getLogger(__name__)

router = APIRouter()


def _node_or_404(node_id: str):
    node = graph_state.graph.get_node(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail="Node not found")
    return node


# ── GET /graph ────────────────────────────────────────────────────────────────

@router.get("/graph")
async def get_graph() -> Dict[str, Any]:
    return graph_state.graph.to_dict()


# ── PUT /graph ────────────────────────────────────────────────────────────────

class GraphBody(BaseModel):
    nodes: List[Dict[str, Any]]
    connections: List[Dict[str, Any]]


@router.put("/graph")
async def replace_graph(body: GraphBody) -> Dict[str, Any]:
    try:
        graph_state.replace_graph({"nodes": body.nodes, "connections": body.connections})
    except SchemaError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return graph_state.graph.to_dict()


# ── GET /nodes/types ──────────────────────────────────────────────────────────

@router.get("/nodes/types")
async def search_node_types(
    q: Optional[str] = Query(None, description="Fuzzy search over title, category and tags"),
) -> List[Dict[str, Any]]:
    return [definition.to_dict() for definition in graph_state.registry.search(q)]


# ── POST /nodes ───────────────────────────────────────────────────────────────

class CreateNodeBody(BaseModel):
    type: str
    position: Optional[Dict[str, float]] = None


@router.post("/nodes", status_code=201)
async def create_node(body: CreateNodeBody) -> Dict[str, Any]:
    try:
        node = graph_state.create_node(body.type, body.position)
    except UnknownNodeTypeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return node.to_dict()


# ── DELETE /nodes/:nodeId ─────────────────────────────────────────────────────

@router.delete("/nodes/{node_id}", status_code=204)
async def delete_node(node_id: str) -> Response:
    try:
        graph_state.delete_node(node_id)
    except NodeNotFoundError:
        raise HTTPException(status_code=404, detail="Node not found")
    return Response(status_code=204)


# ── PUT /nodes/:nodeId/position ───────────────────────────────────────────────

class PositionBody(BaseModel):
    x: float
    y: float


@router.put("/nodes/{node_id}/position", status_code=204)
async def set_node_position(node_id: str, body: PositionBody) -> Response:
    _node_or_404(node_id)
    graph_state.set_position(node_id, body.x, body.y)
    return Response(status_code=204)


# ── PUT /nodes/:nodeId/properties ─────────────────────────────────────────────

class SetPropertyBody(BaseModel):
    key: str
    value: Any = None


@router.put("/nodes/{node_id}/properties")
async def set_node_property(node_id: str, body: SetPropertyBody) -> Dict[str, Any]:
    node = _node_or_404(node_id)
    graph_state.set_property(node_id, body.key, body.value)
    return node.to_dict()


# ── POST /connections ─────────────────────────────────────────────────────────

class PinRefBody(BaseModel):
    nodeId: str
    pinId: str


class ConnectBody(BaseModel):
    source: PinRefBody
    target: PinRefBody


@router.post("/connections", status_code=201)
async def add_connection(body: ConnectBody) -> Dict[str, Any]:
    source = {"nodeId": body.source.nodeId, "pinId": body.source.pinId}
    target = {"nodeId": body.target.nodeId, "pinId": body.target.pinId}
    if not graph_state.connect(source, target):
        raise HTTPException(status_code=400, detail="Connection rejected")
    return {"connections": [c.to_dict() for c in graph_state.graph.get_connections()]}


# ── DELETE /connections/:connectionId ─────────────────────────────────────────

@router.delete("/connections/{connection_id}", status_code=204)
async def delete_connection(connection_id: str) -> Response:
    graph_state.remove_connection(connection_id)
    return Response(status_code=204)


# ── POST /nodes/:nodeId/parameters ────────────────────────────────────────────

class ParameterBody(BaseModel):
    name: str = ""
    type: str = "any"
    optional: bool = False


@router.post("/nodes/{node_id}/parameters", status_code=201)
async def add_parameter(node_id: str, body: ParameterBody) -> Dict[str, Any]:
    node = _node_or_404(node_id)
    parameter = graph_state.add_parameter(node_id, body.name, body.type, body.optional)
    if parameter is None:
        raise HTTPException(status_code=400, detail=f"Node '{node_id}' is not a custom event")
    return {"parameter": parameter, "node": node.to_dict()}


# ── DELETE /nodes/:nodeId/parameters/:parameterId ─────────────────────────────

@router.delete("/nodes/{node_id}/parameters/{parameter_id}", status_code=204)
async def remove_parameter(node_id: str, parameter_id: str) -> Response:
    _node_or_404(node_id)
    if not graph_state.remove_parameter(node_id, parameter_id):
        raise HTTPException(status_code=404, detail="Parameter not found")
    return Response(status_code=204)


# ── POST /nodes/:nodeId/branches ──────────────────────────────────────────────

@router.post("/nodes/{node_id}/branches", status_code=201)
async def add_branch(node_id: str) -> Dict[str, Any]:
    node = _node_or_404(node_id)
    branch_id = graph_state.add_branch(node_id)
    if branch_id is None:
        raise HTTPException(status_code=400, detail=f"Node '{node_id}' is not a sequence")
    return {"pinId": branch_id, "node": node.to_dict()}


# ── DELETE /nodes/:nodeId/branches/:pinId ─────────────────────────────────────

@router.delete("/nodes/{node_id}/branches/{pin_id}", status_code=204)
async def remove_branch(node_id: str, pin_id: str) -> Response:
    _node_or_404(node_id)
    if not graph_state.remove_branch(node_id, pin_id):
        raise HTTPException(status_code=400, detail="Branch cannot be removed")
    return Response(status_code=204)


# ── GET/PUT /variables ────────────────────────────────────────────────────────

@router.get("/variables")
async def get_variables() -> List[Dict[str, Any]]:
    return graph_state.variables


class VariablesBody(BaseModel):
    variables: List[Dict[str, Any]]


@router.put("/variables")
async def set_variables(body: VariablesBody) -> List[Dict[str, Any]]:
    graph_state.set_variables(body.variables)
    return graph_state.variables


# ── GET/PUT /settings ─────────────────────────────────────────────────────────

@router.get("/settings")
async def get_settings() -> Dict[str, Any]:
    return graph_state.settings.to_dict()


class SettingsBody(BaseModel):
    use60Fps: bool = False


@router.put("/settings")
async def set_settings(body: SettingsBody) -> Dict[str, Any]:
    graph_state.set_settings({"use60Fps": body.use60Fps})
    return graph_state.settings.to_dict()


# ── POST /compile ─────────────────────────────────────────────────────────────

@router.post("/compile")
async def compile_workspace() -> Dict[str, str]:
    return {"lua": graph_state.compile()}
