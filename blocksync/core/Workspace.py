from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Callable
import itertools
import logging

from .GraphPrimitives import Graph, Edge
from .Node import Node
from .Types import EventType

# Get a logger for this module
logger = logging.getLogger(__name__)


@dataclass
class Viewport:
    scroll_x: float = 0.0
    scroll_y: float = 0.0
    scale: float = 1.0


@dataclass
class WorkspaceEvent:
    type: EventType
    node_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


ChangeListener = Callable[[WorkspaceEvent], None]


# Vertical spacing used by clean_up()
ROW_HEIGHT = 40
STACK_GAP = 48


class Workspace:
    """
    The visual block graph: nodes, their connections, their positions and the
    viewport. All connections live in one Graph arena.

    Value connections:     child.output  -> parent.<SLOT>
    Statement connections: parent.<SLOT> -> child.previous
                           prev.next     -> child.previous
    """

    def __init__(self) -> None:
        self.graph = Graph()
        # UI layout positions: node_id -> {x, y}
        self.positions: Dict[str, Dict[str, float]] = {}
        self.viewport = Viewport()
        self.selected_id: Optional[str] = None

        # Read-only categories recomputed after every rebuild
        self.declared_variables: List[str] = []
        self.declared_functions: List[Any] = []

        self._listeners: List[ChangeListener] = []
        self._events_disabled = 0
        self._ids = itertools.count(1)

    # ── Nodes ─────────────────────────────────────────────────────────────────

    def new_node(self, type_name: str, node_id: Optional[str] = None,
                 x: float = 0.0, y: float = 0.0) -> Node:
        if node_id is None:
            node_id = self._next_id()
        node = Node.create_node(node_id, type_name, self)
        self.graph.add_node(node)
        self.positions[node.id] = {"x": x, "y": y}
        self.fire(EventType.CREATE, node.id, type=type_name)
        return node

    def _next_id(self) -> str:
        while True:
            node_id = f"n{next(self._ids)}"
            if node_id not in self.graph.nodes:
                return node_id

    def get_node(self, node_id: str) -> Optional[Node]:
        return self.graph.get_node(node_id)

    def require_node(self, node_id: str) -> Node:
        node = self.graph.get_node(node_id)
        if node is None:
            raise KeyError(f"Node '{node_id}' not found")
        return node

    def all_nodes(self) -> List[Node]:
        return list(self.graph.nodes.values())

    def nodes_of_type(self, type_name: str) -> List[Node]:
        return [n for n in self.graph.nodes.values() if n.type == type_name]

    def delete_node(self, node_id: str, heal: bool = True) -> None:
        """
        Remove a node together with everything plugged into its slots. With
        heal=True the statement following it is reattached to its predecessor.
        """
        node = self.require_node(node_id)
        follower = self.get_next(node_id) if node.isStatement() else None
        upstream = self.graph.get_incoming_edges(node_id, "previous")
        upstream = upstream[0] if upstream else None

        if follower is not None:
            self._remove_edges(self.graph.get_outgoing_edges(node_id, "next"))
            if not heal:
                self.delete_node(follower.id, heal=False)
                follower = None

        for child in self._slot_children(node):
            self.delete_node(child.id, heal=False)

        self.graph.remove_node(node_id)
        self.positions.pop(node_id, None)
        if self.selected_id == node_id:
            self.selected_id = None
        self.fire(EventType.DELETE, node_id)

        if heal and follower is not None and upstream is not None:
            self.graph.add_edge(upstream.from_node_id, upstream.from_port_name,
                                follower.id, "previous", "statement")

    def _slot_children(self, node: Node) -> List[Node]:
        children = []
        for slot in node.value_slots():
            child = self.get_input_target(node.id, slot)
            if child is not None:
                children.append(child)
        for slot in node.statement_slots():
            child = self.get_input_target(node.id, slot)
            while child is not None:
                children.append(child)
                child = self.get_next(child.id)
        return children

    # ── Connections ───────────────────────────────────────────────────────────

    def connect_value(self, parent_id: str, slot: str, child_id: str) -> Edge:
        parent = self.require_node(parent_id)
        child = self.require_node(child_id)
        if not parent.has_value_slot(slot):
            raise ValueError(f"Node '{parent.type}' has no value slot '{slot}'")
        if "output" not in child.outputs:
            raise ValueError(f"Node '{child.type}' cannot be plugged into a value slot")
        self._check_not_ancestor(child_id, parent_id)

        self._remove_edges(self.graph.get_outgoing_edges(child_id, "output"))
        self._remove_edges(self.graph.get_incoming_edges(parent_id, slot))
        edge = self.graph.add_edge(child_id, "output", parent_id, slot, "value")
        self.fire(EventType.MOVE, child_id, parent_id=parent_id, slot=slot)
        return edge

    def connect_statement(self, parent_id: str, slot: str, child_id: str) -> Edge:
        """
        Plug the statement chain starting at *child_id* into *slot* ("next" or a
        body slot). Whatever occupied the slot is appended after the chain.
        """
        parent = self.require_node(parent_id)
        child = self.require_node(child_id)
        if not parent.has_statement_slot(slot):
            raise ValueError(f"Node '{parent.type}' has no statement slot '{slot}'")
        if "previous" not in child.inputs:
            raise ValueError(f"Node '{child.type}' cannot be chained as a statement")
        self._check_not_ancestor(child_id, parent_id)

        self._remove_edges(self.graph.get_incoming_edges(child_id, "previous"))
        displaced = self.get_input_target(parent_id, slot)
        self._remove_edges(self.graph.get_outgoing_edges(parent_id, slot))
        edge = self.graph.add_edge(parent_id, slot, child_id, "previous", "statement")

        if displaced is not None:
            last = self.last_in_chain(child_id)
            if "next" in last.outputs:
                self.graph.add_edge(last.id, "next", displaced.id, "previous", "statement")

        self.fire(EventType.MOVE, child_id, parent_id=parent_id, slot=slot)
        return edge

    def connect_next(self, prev_id: str, next_id: str) -> Edge:
        return self.connect_statement(prev_id, "next", next_id)

    def disconnect(self, node_id: str) -> None:
        """Unplug a node (and everything after it) from whatever holds it."""
        self.require_node(node_id)
        self._remove_edges(self.graph.get_incoming_edges(node_id, "previous"))
        self._remove_edges(self.graph.get_outgoing_edges(node_id, "output"))
        self.fire(EventType.MOVE, node_id, parent_id=None)

    def detach_port(self, node_id: str, port_name: str) -> None:
        """Drop every connection on one port; used when a slot is removed."""
        if node_id not in self.graph.nodes:
            return
        self._remove_edges(self.graph.get_incoming_edges(node_id, port_name))
        self._remove_edges(self.graph.get_outgoing_edges(node_id, port_name))

    def _remove_edges(self, edges: List[Edge]) -> None:
        for edge in list(edges):
            self.graph.remove_edge(edge)

    def _check_not_ancestor(self, child_id: str, parent_id: str) -> None:
        cursor: Optional[str] = parent_id
        while cursor is not None:
            if cursor == child_id:
                raise ValueError(f"Connecting '{child_id}' under '{parent_id}' would create a cycle")
            up = self.get_parent(cursor)
            cursor = up.id if up is not None else None

    # ── Traversal ─────────────────────────────────────────────────────────────

    def get_input_target(self, node_id: str, slot: str) -> Optional[Node]:
        """The node plugged into *slot*: a value child or the first statement of a body."""
        incoming = self.graph.get_incoming_edges(node_id, slot)
        if incoming:
            return self.graph.get_node(incoming[0].from_node_id)
        outgoing = self.graph.get_outgoing_edges(node_id, slot)
        if outgoing:
            return self.graph.get_node(outgoing[0].to_node_id)
        return None

    def get_next(self, node_id: str) -> Optional[Node]:
        outgoing = self.graph.get_outgoing_edges(node_id, "next")
        return self.graph.get_node(outgoing[0].to_node_id) if outgoing else None

    def get_previous(self, node_id: str) -> Optional[Node]:
        incoming = self.graph.get_incoming_edges(node_id, "previous")
        if incoming and incoming[0].from_port_name == "next":
            return self.graph.get_node(incoming[0].from_node_id)
        return None

    def get_parent(self, node_id: str) -> Optional[Node]:
        """The node directly upstream: previous statement, enclosing block or consuming slot."""
        incoming = self.graph.get_incoming_edges(node_id, "previous")
        if incoming:
            return self.graph.get_node(incoming[0].from_node_id)
        outgoing = self.graph.get_outgoing_edges(node_id, "output")
        if outgoing:
            return self.graph.get_node(outgoing[0].to_node_id)
        return None

    def get_parent_slot(self, node_id: str) -> Optional[str]:
        incoming = self.graph.get_incoming_edges(node_id, "previous")
        if incoming:
            return incoming[0].from_port_name
        outgoing = self.graph.get_outgoing_edges(node_id, "output")
        if outgoing:
            return outgoing[0].to_port_name
        return None

    def last_in_chain(self, node_id: str) -> Node:
        node = self.require_node(node_id)
        following = self.get_next(node.id)
        while following is not None:
            node = following
            following = self.get_next(node.id)
        return node

    def chain(self, node_id: Optional[str]) -> List[Node]:
        nodes = []
        node = self.get_node(node_id) if node_id is not None else None
        while node is not None:
            nodes.append(node)
            node = self.get_next(node.id)
        return nodes

    def get_top_nodes(self, ordered: bool = False) -> List[Node]:
        """Nodes with nothing upstream; ordered=True sorts them top-to-bottom."""
        tops = [n for n in self.graph.nodes.values() if self.get_parent(n.id) is None]
        if ordered:
            tops.sort(key=lambda n: (self.positions.get(n.id, {}).get("y", 0.0),
                                     self.positions.get(n.id, {}).get("x", 0.0)))
        return tops

    # ── Layout ────────────────────────────────────────────────────────────────

    def move_node(self, node_id: str, x: float, y: float) -> None:
        self.require_node(node_id)
        self.positions[node_id] = {"x": x, "y": y}
        self.fire(EventType.MOVE, node_id, x=x, y=y)

    def move_by(self, node_id: str, dx: float, dy: float) -> None:
        pos = self.positions.get(node_id, {"x": 0.0, "y": 0.0})
        self.move_node(node_id, pos["x"] + dx, pos["y"] + dy)

    def get_viewport(self) -> Viewport:
        return Viewport(self.viewport.scroll_x, self.viewport.scroll_y, self.viewport.scale)

    def set_viewport(self, viewport: Viewport) -> None:
        self.viewport = Viewport(viewport.scroll_x, viewport.scroll_y, viewport.scale)
        self.fire(EventType.VIEWPORT_CHANGE, None)

    def clean_up(self, x: float = 24.0, y: float = 24.0) -> None:
        """Stack the top-level nodes vertically, keeping their current order."""
        cursor = y
        for node in self.get_top_nodes(ordered=True):
            self.positions[node.id] = {"x": x, "y": cursor}
            cursor += self._stack_height(node) + STACK_GAP

    def _stack_height(self, node: Node) -> float:
        rows = 0
        for member in self.chain(node.id):
            rows += 1
            for slot in member.statement_slots():
                first = self.get_input_target(member.id, slot)
                if first is not None:
                    rows += self._stack_height(first) / ROW_HEIGHT
        return rows * ROW_HEIGHT

    def clear(self) -> None:
        node_ids = list(self.graph.nodes)
        self.graph.clear()
        self.positions.clear()
        self.selected_id = None
        for node_id in node_ids:
            self.fire(EventType.DELETE, node_id)

    # ── Selection ─────────────────────────────────────────────────────────────

    def select(self, node_id: Optional[str]) -> None:
        if node_id is not None:
            self.require_node(node_id)
        old = self.selected_id
        self.selected_id = node_id
        self.fire(EventType.SELECTED, node_id, old_value=old)

    # ── Events ────────────────────────────────────────────────────────────────

    def add_change_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def remove_change_listener(self, listener: ChangeListener) -> None:
        self._listeners.remove(listener)

    def disable_events(self) -> None:
        self._events_disabled += 1

    def enable_events(self) -> None:
        if self._events_disabled > 0:
            self._events_disabled -= 1

    def events_enabled(self) -> bool:
        return self._events_disabled == 0

    def fire(self, event_type: EventType, node_id: Optional[str] = None, **details: Any) -> None:
        if not self.events_enabled():
            return
        event = WorkspaceEvent(event_type, node_id, details)
        for listener in list(self._listeners):
            listener(event)
