"""
Workspace serializer.

Converts a Workspace and its blocks into JSON-safe dicts for the block
editor UI.
"""
from __future__ import annotations

from typing import Any, Dict, List, Set

from blocksync.core.Node import Node
from blocksync.core.NodePort import NodePort
from blocksync.core.Types import NodeKind, PortDirection, PortFunction
from blocksync.core.Workspace import Workspace

# ── Wire shapes (dicts, not TypedDicts, for easy JSON serialisation) ──────────
# SerializedPort keys: name, function, direction, connected
# SerializedNode keys: id, type, kind, fields, inputs, outputs, position
# SerializedEdge keys: id, sourceNodeId, sourcePortName, targetNodeId,
#                      targetPortName, edgeType
# SerializedWorkspace keys: nodes, edges, topNodeIds, selectedId, viewport,
#                           declaredVariables, declaredFunctions

_KIND_NAMES = {
    NodeKind.ENTRY: "ENTRY",
    NodeKind.STATEMENT: "STATEMENT",
    NodeKind.EXPRESSION: "EXPRESSION",
}


# ── Helpers ───────────────────────────────────────────────────────────────────

def _serialize_port(port: NodePort, connected: bool = False) -> Dict[str, Any]:
    return {
        "name": port.port_name,
        "function": "VALUE" if port.function == PortFunction.VALUE else "STATEMENT",
        "direction": "OUTPUT" if port.direction == PortDirection.OUTPUT else "INPUT",
        "connected": connected,
    }


def _serialize_node(node: Node, positions: Dict[str, Dict[str, float]], connected: Set[str]) -> Dict[str, Any]:
    return {
        "id": node.id,
        "type": node.type,
        "kind": _KIND_NAMES[node.kind],
        "fields": dict(node.fields),
        "inputs": [
            _serialize_port(p, f"{node.id}:{p.port_name}" in connected)
            for p in node.inputs.values()
        ],
        "outputs": [
            _serialize_port(p, f"{node.id}:{p.port_name}" in connected)
            for p in node.outputs.values()
        ],
        "position": positions.get(node.id, {"x": 0, "y": 0}),
    }


# ── Public API ─────────────────────────────────────────────────────────────────

def serialize_workspace(workspace: Workspace) -> Dict[str, Any]:
    """Serialize every block, connection and the view state of *workspace*."""
    graph = workspace.graph

    # Both ends of every edge count as connected.
    connected: Set[str] = set()
    for edge in graph.edges:
        connected.add(f"{edge.to_node_id}:{edge.to_port_name}")
        connected.add(f"{edge.from_node_id}:{edge.from_port_name}")

    nodes: List[Dict[str, Any]] = [
        _serialize_node(node, workspace.positions, connected)
        for node in workspace.all_nodes()
    ]
    edges: List[Dict[str, Any]] = [
        {
            "id": f"{e.from_node_id}:{e.from_port_name}->{e.to_node_id}:{e.to_port_name}",
            "sourceNodeId": e.from_node_id,
            "sourcePortName": e.from_port_name,
            "targetNodeId": e.to_node_id,
            "targetPortName": e.to_port_name,
            "edgeType": e.edge_type,
        }
        for e in graph.edges
    ]
    viewport = workspace.get_viewport()
    return {
        "nodes": nodes,
        "edges": edges,
        "topNodeIds": [n.id for n in workspace.get_top_nodes(ordered=True)],
        "selectedId": workspace.selected_id,
        "viewport": {"scrollX": viewport.scroll_x, "scrollY": viewport.scroll_y, "scale": viewport.scale},
        "declaredVariables": list(workspace.declared_variables),
        "declaredFunctions": [
            {"name": f.name, "paramCount": f.param_count} for f in workspace.declared_functions
        ],
    }
