"""
Sync event type definitions.
All events are plain dicts so they can be emitted over Socket.IO without Pydantic overhead.
"""
from typing import Literal, Optional, TypedDict, Union

# "text_to_graph" or "graph_to_text"
Direction = Literal["text_to_graph", "graph_to_text"]


class SyncStartEvent(TypedDict):
    type: Literal["SYNC_START"]
    direction: Direction
    ts: int


class SyncDoneEvent(TypedDict):
    type: Literal["SYNC_DONE"]
    direction: Direction
    changed: bool
    ts: int


class SyncErrorEvent(TypedDict):
    type: Literal["SYNC_ERROR"]
    direction: Direction
    error: str
    line: Optional[int]
    ts: int


class SyncCoalescedEvent(TypedDict):
    type: Literal["SYNC_COALESCED"]
    direction: Direction
    ts: int


class SyncDroppedEvent(TypedDict):
    type: Literal["SYNC_DROPPED"]
    direction: Direction
    ts: int


class HighlightEvent(TypedDict):
    type: Literal["HIGHLIGHT"]
    nodeId: Optional[str]
    startLine: Optional[int]
    endLine: Optional[int]
    ts: int


SyncEvent = Union[
    SyncStartEvent,
    SyncDoneEvent,
    SyncErrorEvent,
    SyncCoalescedEvent,
    SyncDroppedEvent,
    HighlightEvent,
]
