"""
Declared-name categories derived from the workspace.

Variables come from assignment, for-loop and annotated-assignment targets
(identifiers or tuples of identifiers) plus function parameters. Functions
come from definition blocks with their parameter counts. Both lists are
sorted and de-duplicated.
"""
from __future__ import annotations

from typing import List, NamedTuple, Optional, Set

from blocksync.blocks import names
from blocksync.core.Node import Node
from blocksync.core.Workspace import Workspace


class DeclaredFunction(NamedTuple):
    name: str
    param_count: int


def _target_names(workspace: Workspace, node: Optional[Node], out: Set[str]) -> None:
    if node is None:
        return
    if node.type == names.IDENTIFIER:
        name = node.get_field("name", "")
        if name:
            out.add(name)
    elif node.type in (names.TUPLE, names.LIST):
        for slot in node.value_slots():
            _target_names(workspace, workspace.get_input_target(node.id, slot), out)


def declared_variables(workspace: Workspace) -> List[str]:
    found: Set[str] = set()
    for node in workspace.all_nodes():
        if node.type == names.VAR_SET:
            if node.get_field("name"):
                found.add(node.get_field("name"))
        elif node.type == names.ASSIGN:
            for slot in node.value_slots():
                if slot.startswith("TARGET"):
                    _target_names(workspace, workspace.get_input_target(node.id, slot), found)
        elif node.type in (names.FOR, names.ANN_ASSIGN):
            _target_names(workspace, workspace.get_input_target(node.id, "TARGET"), found)
        elif node.type == names.FUNCTION_DEF:
            for i in range(node.item_count):
                param = node.get_field(f"PARAM{i}", "")
                if param:
                    found.add(param)
    return sorted(found)


def declared_functions(workspace: Workspace) -> List[DeclaredFunction]:
    found = {
        DeclaredFunction(node.get_field("name"), node.item_count)
        for node in workspace.nodes_of_type(names.FUNCTION_DEF)
        if node.get_field("name")
    }
    return sorted(found)


def refresh_declared(workspace: Workspace) -> None:
    workspace.declared_variables = declared_variables(workspace)
    workspace.declared_functions = declared_functions(workspace)
