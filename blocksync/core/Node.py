from typing import Optional, List, Dict, Any, Type, Callable, Tuple, TYPE_CHECKING
import logging

from .NodePort import (
    NodePort,
    InputValuePort,
    OutputValuePort,
    InputStatementPort,
    OutputStatementPort,
)
from .Types import NodeKind, EventType

# To avoid circular imports
if TYPE_CHECKING:
    from .Workspace import Workspace


# Get a logger for this module
logger = logging.getLogger(__name__)

# (extra value slots, extra statement slots, extra field defaults)
Shape = Tuple[List[str], List[str], Dict[str, Any]]


def shape_count(name: str, value: Any) -> int:
    """Validate a count field value; digit strings are accepted and converted."""
    if isinstance(value, bool):
        raise ValueError(f"Field '{name}' must be a non-negative integer, got {value!r}")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value < 0:
        raise ValueError(f"Field '{name}' must be a non-negative integer, got {value!r}")
    return value


class Node:
    """
    Base class for every block in a workspace.

    A subclass declares its fixed connections with VALUE_SLOTS, STATEMENT_SLOTS
    and FIELDS. Variable-arity blocks list their count fields in SHAPE_FIELDS
    and override dynamic_shape(); changing a count field regenerates the
    indexed slots and detaches whatever was plugged into a removed slot.
    """
    _node_registry: Dict[str, Type['Node']] = {}

    kind: NodeKind = NodeKind.STATEMENT
    VALUE_SLOTS: Tuple[str, ...] = ()
    STATEMENT_SLOTS: Tuple[str, ...] = ()
    FIELDS: Dict[str, Any] = {}
    SHAPE_FIELDS: Tuple[str, ...] = ()

    @classmethod
    def register(cls, type_name: str) -> Callable[[Type['Node']], Type['Node']]:
        """Decorator to register a node class with a specific type name."""
        def decorator(subclass: Type['Node']) -> Type['Node']:
            if cls._node_registry.get(type_name):
                raise ValueError(f"Node type '{type_name}' is already registered.")
            cls._node_registry[type_name] = subclass
            return subclass
        return decorator

    @classmethod
    def create_node(cls, node_id: str, type_name: str, *args, **kwargs) -> 'Node':
        """Factory method to create a node instance by type name."""
        if type_name not in cls._node_registry:
            raise ValueError(f"Unknown node type '{type_name}'")
        node_class = cls._node_registry[type_name]
        return node_class(node_id, type_name, *args, **kwargs)

    @classmethod
    def registered_types(cls) -> List[str]:
        return sorted(cls._node_registry)

    def __init__(self, node_id: str, type: str, workspace: Optional['Workspace'] = None):
        self.id = node_id
        self.type = type
        self.workspace = workspace

        self.inputs: Dict[str, NodePort] = {}
        self.outputs: Dict[str, NodePort] = {}
        self.fields: Dict[str, Any] = dict(self.FIELDS)

        if self.kind == NodeKind.STATEMENT:
            self.inputs["previous"] = InputStatementPort(self.id)
            self.outputs["next"] = OutputStatementPort(self.id)
        elif self.kind == NodeKind.EXPRESSION:
            self.outputs["output"] = OutputValuePort(self.id)

        for name in self.VALUE_SLOTS:
            self.add_value_input(name)
        for name in self.STATEMENT_SLOTS:
            self.add_statement_input(name)
        self.update_shape()

    def __repr__(self):
        return f"{type(self).__name__}({self.id}, {self.type})"

    def isStatement(self) -> bool:
        return self.kind == NodeKind.STATEMENT

    def isExpression(self) -> bool:
        return self.kind == NodeKind.EXPRESSION

    # ── Ports ─────────────────────────────────────────────────────────────────

    def add_value_input(self, name: str) -> InputValuePort:
        port = InputValuePort(self.id, name)
        self.inputs[name] = port
        return port

    def add_statement_input(self, name: str) -> OutputStatementPort:
        port = OutputStatementPort(self.id, name)
        self.outputs[name] = port
        return port

    def value_slots(self) -> List[str]:
        return [name for name, port in self.inputs.items() if port.isValuePort()]

    def statement_slots(self) -> List[str]:
        return [
            name for name, port in self.outputs.items()
            if port.isStatementPort() and name != "next"
        ]

    def has_value_slot(self, name: str) -> bool:
        port = self.inputs.get(name)
        return port is not None and port.isValuePort()

    def has_statement_slot(self, name: str) -> bool:
        port = self.outputs.get(name)
        return port is not None and port.isStatementPort()

    # ── Fields ────────────────────────────────────────────────────────────────

    def get_field(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def set_field(self, name: str, value: Any) -> None:
        if self.is_shape_field(name):
            value = shape_count(name, value)
        old = self.fields.get(name)
        if name in self.fields and old == value:
            return
        self.fields[name] = value
        if self.is_shape_field(name):
            self.update_shape()
        if self.workspace is not None:
            self.workspace.fire(EventType.CHANGE, self.id, name=name, old_value=old, new_value=value)

    def is_shape_field(self, name: str) -> bool:
        return name in self.SHAPE_FIELDS

    @property
    def item_count(self) -> int:
        return int(self.fields.get("item_count", 0))

    @item_count.setter
    def item_count(self, count: int) -> None:
        self.set_field("item_count", count)

    # ── Shape ─────────────────────────────────────────────────────────────────

    def dynamic_shape(self) -> Shape:
        return [], [], {}

    def update_shape(self) -> None:
        """Bring indexed slots and fields in line with the current count fields."""
        values, statements, dynamic_fields = self.dynamic_shape()
        wanted_values = list(self.VALUE_SLOTS) + values
        wanted_statements = list(self.STATEMENT_SLOTS) + statements

        for name in self.value_slots():
            if name not in wanted_values:
                self._drop_port(name, self.inputs)
        for name in self.statement_slots():
            if name not in wanted_statements:
                self._drop_port(name, self.outputs)

        for name in wanted_values:
            if name not in self.inputs:
                self.add_value_input(name)
        for name in wanted_statements:
            if name not in self.outputs:
                self.add_statement_input(name)

        for name in list(self.fields):
            if name not in self.FIELDS and name not in dynamic_fields:
                del self.fields[name]
        for name, default in dynamic_fields.items():
            self.fields.setdefault(name, default)

    def _drop_port(self, name: str, ports: Dict[str, NodePort]) -> None:
        if self.workspace is not None:
            self.workspace.detach_port(self.id, name)
        del ports[name]


def indexed(prefix: str, count: int) -> List[str]:
    return [f"{prefix}{i}" for i in range(count)]


class EntryNode(Node):
    kind = NodeKind.ENTRY


class StatementNode(Node):
    kind = NodeKind.STATEMENT


class ExpressionNode(Node):
    kind = NodeKind.EXPRESSION
