"""
blocksync.language — text side of the synchronization loop.

    from blocksync.language import LocalLanguageService, RenderMode
"""
from .errors import GenerationError, ParseError, extract_error_line
from .generator import RenderMode, generate_source
from .parser import parse_source
from .service import LanguageService, LocalLanguageService

__all__ = [
    "GenerationError",
    "ParseError",
    "extract_error_line",
    "RenderMode",
    "generate_source",
    "parse_source",
    "LanguageService",
    "LocalLanguageService",
]
