"""
Text-editor contract used by the synchronization controller, plus the
in-memory buffers used by the server session and the tests.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class ChangeOrigin(Enum):
    USER = "user"    # typed by the user; triggers text → graph
    SYNC = "sync"    # written by the controller; never re-parsed


TextListener = Callable[[str, ChangeOrigin], None]


class TextEditor(Protocol):
    def get_content(self) -> str: ...

    def set_content(self, text: str, origin: ChangeOrigin = ChangeOrigin.USER) -> None: ...

    def highlight_lines(self, start_line: int, end_line: int) -> None: ...

    def clear_highlight(self) -> None: ...

    def set_error_line(self, line: Optional[int]) -> None: ...

    def on_change(self, listener: TextListener) -> None: ...


class TextBuffer:
    """A TextEditor held in memory."""

    def __init__(self, text: str = "") -> None:
        self._text = text
        self._listeners: List[TextListener] = []
        self.highlight: Optional[Tuple[int, int]] = None
        self.error_line: Optional[int] = None

    def get_content(self) -> str:
        return self._text

    def set_content(self, text: str, origin: ChangeOrigin = ChangeOrigin.USER) -> None:
        if text == self._text:
            return
        self._text = text
        for listener in list(self._listeners):
            listener(text, origin)

    def highlight_lines(self, start_line: int, end_line: int) -> None:
        self.highlight = (start_line, end_line)

    def clear_highlight(self) -> None:
        self.highlight = None

    def set_error_line(self, line: Optional[int]) -> None:
        self.error_line = line

    def on_change(self, listener: TextListener) -> None:
        self._listeners.append(listener)

    def off_change(self, listener: TextListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)


class OutputBuffer:
    """The output panel: last error message, or empty."""

    def __init__(self) -> None:
        self.text = ""

    def set_text(self, text: str) -> None:
        self.text = text

    def clear(self) -> None:
        self.text = ""
