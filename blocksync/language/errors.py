"""Errors reported by the parser and generator services."""
from __future__ import annotations

import re
from typing import Optional

# "line <N>:" with an optional column, as produced by ParseError.__str__
LINE_PATTERN = re.compile(r"line (\d+):(\d+)?")


class ParseError(Exception):
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"line {self.line}:{self.column or 0} {self.message}"


class GenerationError(Exception):
    pass


def extract_error_line(message: str) -> Optional[int]:
    """1-based line number embedded in an error message, if any."""
    match = LINE_PATTERN.search(message)
    return int(match.group(1)) if match else None
