"""
blocksync.sync — the bidirectional synchronization loop.

    from blocksync.sync import SynchronizationController, TextBuffer, OutputBuffer
"""
from .controller import SynchronizationController
from .debounce import Debouncer
from .editor import ChangeOrigin, OutputBuffer, TextBuffer, TextEditor
from .events import SyncEmitter, global_emitter
from .state import Direction, Phase, SyncJob, SyncStateMachine

__all__ = [
    "SynchronizationController",
    "Debouncer",
    "ChangeOrigin",
    "OutputBuffer",
    "TextBuffer",
    "TextEditor",
    "SyncEmitter",
    "global_emitter",
    "Direction",
    "Phase",
    "SyncJob",
    "SyncStateMachine",
]
