"""Side-table mapping block ids to the source span of the statement they came from."""
from __future__ import annotations

from typing import Dict, Iterator, Optional, Tuple

from blocksync.core.Workspace import Workspace
from blocksync.ir.nodes import Span


class SpanTable:
    def __init__(self) -> None:
        self._spans: Dict[str, Span] = {}

    def record(self, node_id: str, span: Optional[Span]) -> None:
        if span is not None:
            self._spans[node_id] = span

    def get(self, node_id: str) -> Optional[Span]:
        return self._spans.get(node_id)

    def clear(self) -> None:
        self._spans.clear()

    def __len__(self) -> int:
        return len(self._spans)

    def __iter__(self) -> Iterator[Tuple[str, Span]]:
        return iter(self._spans.items())

    def lookup(self, workspace: Workspace, node_id: str) -> Optional[Span]:
        """Span of *node_id* or of the nearest upstream block that has one."""
        node = workspace.get_node(node_id)
        while node is not None:
            span = self._spans.get(node.id)
            if span is not None:
                return span
            node = workspace.get_parent(node.id)
        return None
