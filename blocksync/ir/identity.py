"""
Node identity allocation.

Text-originated trees arrive with ids chosen by the parser; trees compiled
from the workspace get ids from this allocator. ``reconcile`` moves the
counter past every id seen in a parsed tree so the two sources never
collide in the shared id space used for span lookups.
"""
from __future__ import annotations

import logging
from typing import Any

from .nodes import NodeMeta
from .walk import max_id

logger = logging.getLogger(__name__)


class NodeIdAllocator:
    def __init__(self, start: int = 0) -> None:
        self._last = start

    @property
    def last(self) -> int:
        """The most recently issued (or reconciled) id."""
        return self._last

    def allocate(self) -> int:
        self._last += 1
        return self._last

    def new_meta(self) -> NodeMeta:
        return NodeMeta(id=self.allocate())

    def reconcile(self, tree: Any) -> int:
        """Advance past the largest id found in *tree*; never moves backwards."""
        seen = max_id(tree)
        if seen > self._last:
            logger.debug("allocator advanced from %d to %d", self._last, seen)
            self._last = seen
        return self._last
