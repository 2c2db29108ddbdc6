from typing import Dict, List, NamedTuple, Tuple
from collections import defaultdict


# Edges are plain immutable records; all connection state lives in the Graph arena.
# Value edges run child.output -> parent.SLOT.
# Statement edges run parent.SLOT (or prev.next) -> child.previous.
class Edge(NamedTuple):
    from_node_id: str
    from_port_name: str
    to_node_id: str
    to_port_name: str

    edge_type: str = "value"  # "value" | "statement"

    def __repr__(self):
        return f"Edge({self.from_node_id}.{self.from_port_name} -> {self.to_node_id}.{self.to_port_name})"


class Graph:
    """Centralized connection storage (Arena Pattern), one per workspace."""

    def __init__(self):
        self.nodes: Dict[str, object] = {}
        self.edges: List[Edge] = []
        self.incoming_edges: Dict[Tuple[str, str], List[Edge]] = defaultdict(list)
        self.outgoing_edges: Dict[Tuple[str, str], List[Edge]] = defaultdict(list)

    def add_node(self, node) -> None:
        if node.id in self.nodes:
            raise ValueError(f"Node with id '{node.id}' already exists in the graph")
        self.nodes[node.id] = node

    def remove_node(self, node_id: str) -> None:
        for edge in self.edges_of(node_id):
            self.remove_edge(edge)
        self.nodes.pop(node_id, None)

    def get_node(self, node_id: str):
        return self.nodes.get(node_id)

    def add_edge(self, from_node_id: str, from_port_name: str,
                 to_node_id: str, to_port_name: str, edge_type: str = "value") -> Edge:
        edge = Edge(from_node_id, from_port_name, to_node_id, to_port_name, edge_type)
        self.edges.append(edge)
        self.incoming_edges[(to_node_id, to_port_name)].append(edge)
        self.outgoing_edges[(from_node_id, from_port_name)].append(edge)
        return edge

    def remove_edge(self, edge: Edge) -> None:
        self.edges.remove(edge)
        self.incoming_edges[(edge.to_node_id, edge.to_port_name)].remove(edge)
        self.outgoing_edges[(edge.from_node_id, edge.from_port_name)].remove(edge)

    def get_incoming_edges(self, node_id: str, port_name: str) -> List[Edge]:
        return self.incoming_edges.get((node_id, port_name), [])

    def get_outgoing_edges(self, node_id: str, port_name: str) -> List[Edge]:
        return self.outgoing_edges.get((node_id, port_name), [])

    def edges_of(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.from_node_id == node_id or e.to_node_id == node_id]

    def clear(self) -> None:
        self.nodes.clear()
        self.edges.clear()
        self.incoming_edges.clear()
        self.outgoing_edges.clear()
