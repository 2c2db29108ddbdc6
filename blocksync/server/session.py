"""
EditorSession — the single editor session served by this process.

Holds the workspace, the text buffer, the output panel and the
SynchronizationController that keeps them in step. Sync events go to the
module-level emitter so the Socket.IO bridge can forward them.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import blocksync.blocks  # noqa: F401  (side-effect: registers block types)
from blocksync.config import SyncSettings, load_settings
from blocksync.core.Workspace import Workspace
from blocksync.language.service import LanguageService, LocalLanguageService
from blocksync.sync.controller import SynchronizationController
from blocksync.sync.editor import OutputBuffer, TextBuffer
from blocksync.sync.events import SyncEmitter, global_emitter

logger = logging.getLogger(__name__)


class EditorSession:
    """Workspace + text buffer + controller for one editor."""

    def __init__(
        self,
        settings: Optional[SyncSettings] = None,
        language: Optional[LanguageService] = None,
        emitter: Optional[SyncEmitter] = None,
    ) -> None:
        self.settings = settings or SyncSettings()
        self.language = language or LocalLanguageService(self.settings.indent_width)
        self.emitter = emitter or global_emitter
        self.workspace = Workspace()
        self.editor = TextBuffer()
        self.output = OutputBuffer()
        self.controller = SynchronizationController(
            self.workspace, self.editor, self.output, self.language,
            settings=self.settings, emitter=self.emitter,
        )
        self.controller.attach()

    def text_state(self) -> Dict[str, Any]:
        highlight = self.editor.highlight
        return {
            "text": self.editor.get_content(),
            "errorLine": self.editor.error_line,
            "output": self.output.text,
            "highlight": {"startLine": highlight[0], "endLine": highlight[1]} if highlight else None,
        }


editor_session = EditorSession(load_settings())
