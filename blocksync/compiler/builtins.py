"""
Canonical call patterns shown as dedicated blocks.

A call qualifies when its callee is a bare name from the table, it passes no
keyword arguments and its positional arity is one the block supports. The
mapping is purely presentational: graph_builder swaps the generic call for
the dedicated block and tree_builder expands it back to the same Call.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from blocksync.blocks import names
from blocksync.ir.nodes import Call, Identifier

from .errors import StructuralError, StructuralErrorKind


@dataclass(frozen=True)
class BuiltinCall:
    node_type: str
    callees: Tuple[str, ...]
    layouts: Dict[int, Tuple[str, ...]] = field(default_factory=dict, hash=False)
    callee_field: Optional[str] = None      # field holding the callee when several share a block
    variadic_prefix: Optional[str] = None   # ITER0, ITER1 ... for zip
    min_arity: int = 0
    statement: bool = False                 # matched only as a whole expression statement

    def accepts(self, arity: int) -> bool:
        if self.variadic_prefix is not None:
            return arity >= self.min_arity
        return arity in self.layouts

    def slots_for(self, arity: int) -> Tuple[str, ...]:
        if self.variadic_prefix is not None:
            return tuple(f"{self.variadic_prefix}{i}" for i in range(arity))
        return self.layouts[arity]

    def arity_for(self, connected: Iterable[str]) -> int:
        """Largest fixed arity whose slots are all filled, else the smallest one."""
        filled = set(connected)
        for arity in sorted(self.layouts, reverse=True):
            if all(slot in filled for slot in self.layouts[arity]):
                return arity
        return min(self.layouts)


BUILTIN_CALLS: List[BuiltinCall] = [
    BuiltinCall(names.PRINT, ("print",), {1: ("VALUE",)}, statement=True),
    BuiltinCall(names.WAIT, ("sleep",), {1: ("VALUE",)}, statement=True),
    BuiltinCall(names.RANDOM, ("random",), {0: ()}),
    BuiltinCall(names.ROUND, ("round",), {1: ("VALUE",)}),
    BuiltinCall(names.RANGE, ("range",), {
        1: ("STOP",),
        2: ("START", "STOP"),
        3: ("START", "STOP", "STEP"),
    }),
    BuiltinCall(names.LEN, ("len",), {1: ("OBJ",)}),
    BuiltinCall(names.INPUT, ("input",), {0: (), 1: ("PROMPT",)}),
    BuiltinCall(
        names.TYPE_CONVERT,
        ("int", "float", "str", "bool", "list", "tuple", "dict", "set"),
        {1: ("VALUE",)},
        callee_field="type",
    ),
    BuiltinCall(names.ENUMERATE, ("enumerate",), {1: ("ITERABLE",), 2: ("ITERABLE", "START")}),
    BuiltinCall(names.ZIP, ("zip",), variadic_prefix="ITER", min_arity=2),
    BuiltinCall(names.SORTED, ("sorted",), {1: ("ITERABLE",)}),
    BuiltinCall(names.REVERSED, ("reversed",), {1: ("ITERABLE",)}),
    BuiltinCall(names.MATH_FUNC, ("abs", "min", "max", "sum"), {1: ("VALUE",)}, callee_field="func"),
    BuiltinCall(names.ISINSTANCE, ("isinstance",), {2: ("OBJ", "TYPE")}),
    BuiltinCall(names.TYPE_CHECK, ("type",), {1: ("OBJ",)}),
]

BY_NODE_TYPE: Dict[str, BuiltinCall] = {b.node_type: b for b in BUILTIN_CALLS}


def match_call(call: Call, statement: bool = False) -> Optional[BuiltinCall]:
    """Return the dedicated block pattern for *call*, if any."""
    if not isinstance(call.func, Identifier) or call.keywords:
        return None
    name = call.func.name
    for builtin in BUILTIN_CALLS:
        if builtin.statement != statement:
            continue
        if name in builtin.callees and builtin.accepts(len(call.args)):
            return builtin
    return None


def callee_of(builtin: BuiltinCall, field_value: Optional[str], node_id: Optional[str] = None) -> str:
    """Callee a builtin block expands to; raises when its callee field names an unknown one."""
    if builtin.callee_field is None:
        return builtin.callees[0]
    if field_value not in builtin.callees:
        raise StructuralError(
            StructuralErrorKind.UNSUPPORTED_NODE,
            f"'{field_value}' is not one of {', '.join(builtin.callees)}",
            node_id,
        )
    return field_value


