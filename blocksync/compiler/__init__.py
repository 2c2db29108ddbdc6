"""
blocksync.compiler — IR ⇄ workspace graph.

    GraphBuilder       Program → Workspace (text → graph direction)
    compile_workspace  Workspace → CompileResult (graph → text direction)
"""
from .errors import StructuralError, StructuralErrorKind
from .graph_builder import GraphBuilder
from .spans import SpanTable
from .tree_builder import CompileResult, TreeBuilder, compile_workspace

__all__ = [
    "StructuralError",
    "StructuralErrorKind",
    "GraphBuilder",
    "SpanTable",
    "CompileResult",
    "TreeBuilder",
    "compile_workspace",
]
