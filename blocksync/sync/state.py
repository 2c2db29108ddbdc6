"""
Sync state machine
==================
One mutual-exclusion flag shared by both directions:

    IDLE ──request──▶ BUSY ──finish (nothing pending)──▶ IDLE
                       │  ▲
                       └──┘ finish with a pending request: run it next

While BUSY:
  - a text request replaces the pending source (only the newest survives)
  - a graph request is dropped, or remembered as a single flag when
    coalescing is enabled

Pending text is served before a pending graph request: the text is the
newer user intent once it has been typed.

No timers or tasks live here; the controller drives every transition.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class Direction(Enum):
    TEXT_TO_GRAPH = "text_to_graph"
    GRAPH_TO_TEXT = "graph_to_text"


class Phase(Enum):
    IDLE = "idle"
    BUSY = "busy"


@dataclass(frozen=True)
class SyncJob:
    direction: Direction
    source: Optional[str] = None    # text to parse, for TEXT_TO_GRAPH jobs


class SyncStateMachine:
    def __init__(self) -> None:
        self.phase = Phase.IDLE
        self.pending_source: Optional[str] = None
        self.pending_graph = False

    @property
    def busy(self) -> bool:
        return self.phase == Phase.BUSY

    def request_text(self, source: str) -> Optional[SyncJob]:
        """Job to run now, or None when the source was parked as pending."""
        if not self.busy:
            self.phase = Phase.BUSY
            return SyncJob(Direction.TEXT_TO_GRAPH, source)
        if self.pending_source is not None:
            logger.debug("pending text replaced by newer edit")
        self.pending_source = source
        return None

    def request_graph(self, coalesce: bool = False) -> Optional[SyncJob]:
        """Job to run now, or None when the request was coalesced or dropped."""
        if not self.busy:
            self.phase = Phase.BUSY
            return SyncJob(Direction.GRAPH_TO_TEXT)
        if coalesce:
            self.pending_graph = True
        return None

    def finish(self) -> Optional[SyncJob]:
        """Complete the running job; return the next one or go idle."""
        if self.pending_source is not None:
            source, self.pending_source = self.pending_source, None
            return SyncJob(Direction.TEXT_TO_GRAPH, source)
        if self.pending_graph:
            self.pending_graph = False
            return SyncJob(Direction.GRAPH_TO_TEXT)
        self.phase = Phase.IDLE
        return None

    def reset(self) -> None:
        self.phase = Phase.IDLE
        self.pending_source = None
        self.pending_graph = False
