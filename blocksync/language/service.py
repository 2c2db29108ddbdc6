"""
Parser / generator service boundary.

The synchronization controller only talks to a LanguageService; the local
implementation below runs the reference parser and generator in-process but
keeps the same async request/response shape a remote service would have.
"""
from __future__ import annotations

from typing import Protocol

from blocksync.ir.nodes import Program

from .generator import RenderMode, generate_source
from .parser import parse_source


class LanguageService(Protocol):
    async def parse(self, source: str) -> Program:
        """Parse *source*; raise ParseError on failure."""
        ...

    async def generate(self, program: Program, mode: RenderMode) -> str:
        """Render *program*; raise GenerationError on failure."""
        ...


class LocalLanguageService:
    def __init__(self, indent_width: int = 4) -> None:
        self.indent_width = indent_width

    async def parse(self, source: str) -> Program:
        return parse_source(source, self.indent_width)

    async def generate(self, program: Program, mode: RenderMode = RenderMode.LOSSLESS) -> str:
        return generate_source(program, mode)
