"""
blocksync.ir — the statement/expression tree and its helpers.

    from blocksync.ir import nodes, NodeIdAllocator
    from blocksync.ir.serialize import dumps, loads
"""
from . import nodes
from .identity import NodeIdAllocator
from .serialize import dumps, from_dict, loads, to_dict
from .walk import iter_nodes, max_id, strip_meta, structurally_equal

__all__ = [
    "nodes",
    "NodeIdAllocator",
    "dumps",
    "loads",
    "to_dict",
    "from_dict",
    "iter_nodes",
    "max_id",
    "strip_meta",
    "structurally_equal",
]
