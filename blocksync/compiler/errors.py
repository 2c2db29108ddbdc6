"""Structural errors raised while compiling a workspace back into IR."""
from __future__ import annotations

from enum import Enum
from typing import Optional


class StructuralErrorKind(Enum):
    MULTIPLE_ENTRY = "multiple entry"
    STRAY_TOP_LEVEL = "stray top-level statement"
    CONTINUATION_WITHOUT_IF = "continuation without if"
    CASE_OUTSIDE_MATCH = "case outside match"
    EMPTY_MATCH = "empty match"
    NON_CASE_IN_MATCH = "non-case block in match"
    INVALID_PATTERN = "invalid pattern"
    SYNC_ERROR_NODE = "sync error placeholder"
    UNSUPPORTED_NODE = "unsupported block"


class StructuralError(ValueError):
    """The workspace does not form a legal program."""

    def __init__(self, kind: StructuralErrorKind, detail: str = "", node_id: Optional[str] = None):
        self.kind = kind
        self.detail = detail
        self.node_id = node_id
        message = kind.value
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
