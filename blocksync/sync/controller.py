"""
SynchronizationController — keeps one text editor and one workspace in step.
=============================================================================
One instance per editor session owns every piece of mutable sync state:

    allocator      ids for graph-compiled IR, reconciled past parsed ids
    spans          block id → source span, for selection highlighting
    graph_builder  IR → workspace, with its last-installed-body cache
    state          the Idle/Busy machine shared by both directions

Directions
----------
    text edit ─debounce─▶ parse ─▶ reconcile ─▶ GraphBuilder.build
    graph edit ─────────▶ compile_workspace ─▶ generate(render_mode) ─▶ editor

Errors never escape the controller: they are logged, written to the output
panel and emitted as SYNC_ERROR events. A failed parse additionally marks
the offending line and replaces the graph with a sync-error block.

Public API
----------
    controller = SynchronizationController(workspace, editor, output, LocalLanguageService())
    controller.attach()
    editor.set_content("x = 1\\n")        # debounced text → graph
    await controller.flush()             # run whatever is pending now
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Union

from blocksync.compiler.declared import refresh_declared
from blocksync.compiler.graph_builder import GraphBuilder
from blocksync.compiler.spans import SpanTable
from blocksync.compiler.tree_builder import compile_workspace
from blocksync.config import SyncSettings
from blocksync.core.Types import COSMETIC_EVENTS, EventType
from blocksync.core.Workspace import Workspace, WorkspaceEvent
from blocksync.ir.identity import NodeIdAllocator
from blocksync.ir.nodes import Program
from blocksync.language.errors import ParseError, extract_error_line
from blocksync.language.service import LanguageService

from .debounce import Debouncer
from .editor import ChangeOrigin, OutputBuffer, TextEditor
from .events import SyncEmitter
from .state import Direction, SyncJob, SyncStateMachine

logger = logging.getLogger(__name__)

PersistCallback = Callable[[str], Union[None, Awaitable[None]]]


class SynchronizationController:
    def __init__(
        self,
        workspace: Workspace,
        editor: TextEditor,
        output: OutputBuffer,
        language: LanguageService,
        settings: Optional[SyncSettings] = None,
        emitter: Optional[SyncEmitter] = None,
        persist: Optional[PersistCallback] = None,
    ) -> None:
        self.workspace = workspace
        self.editor = editor
        self.output = output
        self.language = language
        self.settings = settings or SyncSettings()
        self.emitter = emitter or SyncEmitter()
        self.persist = persist

        self.allocator = NodeIdAllocator()
        self.spans = SpanTable()
        self.graph_builder = GraphBuilder(workspace, self.spans)
        self.state = SyncStateMachine()
        self.last_program: Optional[Program] = None

        self._text_debouncer = Debouncer(self.settings.text_debounce_ms / 1000.0, self._on_text_settled)
        self._graph_debouncer: Optional[Debouncer] = None
        if self.settings.graph_debounce_ms > 0:
            self._graph_debouncer = Debouncer(self.settings.graph_debounce_ms / 1000.0,
                                              self._on_graph_settled)
        self._tasks: Set[asyncio.Task] = set()
        self._attached = False

    # ── Wiring ───────────────────────────────────────────────────────────────

    def attach(self) -> None:
        """Subscribe to editor and workspace change notifications."""
        if self._attached:
            return
        self.editor.on_change(self.handle_text_changed)
        self.workspace.add_change_listener(self.handle_workspace_event)
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        off_change = getattr(self.editor, "off_change", None)
        if off_change is not None:
            off_change(self.handle_text_changed)
        self.workspace.remove_change_listener(self.handle_workspace_event)
        self._text_debouncer.cancel()
        if self._graph_debouncer is not None:
            self._graph_debouncer.cancel()
        self._attached = False

    # ── Inbound events ───────────────────────────────────────────────────────

    def handle_text_changed(self, text: str, origin: ChangeOrigin = ChangeOrigin.USER) -> None:
        if origin == ChangeOrigin.SYNC:
            return
        self._text_debouncer.call(text)

    def handle_workspace_event(self, event: WorkspaceEvent) -> None:
        if event.type == EventType.SELECTED:
            self.highlight_selection(event.node_id)
            return
        if event.type in COSMETIC_EVENTS:
            return
        self.graph_builder.invalidate()
        refresh_declared(self.workspace)
        if self._graph_debouncer is not None:
            self._graph_debouncer.call()
        else:
            self._on_graph_settled()

    def _on_text_settled(self, source: str) -> None:
        self._spawn(self.request_text_sync(source))

    def _on_graph_settled(self) -> None:
        self._spawn(self.request_graph_sync())

    def _spawn(self, coro: Awaitable[Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.debug("no running event loop; sync request not scheduled")
            return
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # ── Requests ─────────────────────────────────────────────────────────────

    async def request_text_sync(self, source: str) -> None:
        job = self.state.request_text(source)
        if job is None:
            logger.debug("text sync coalesced while busy")
            self._fire("SYNC_COALESCED", Direction.TEXT_TO_GRAPH)
            return
        await self._drain(job)

    async def request_graph_sync(self) -> None:
        coalesce = self.settings.coalesce_graph_sync
        job = self.state.request_graph(coalesce)
        if job is None:
            if coalesce:
                logger.debug("graph sync coalesced while busy")
                self._fire("SYNC_COALESCED", Direction.GRAPH_TO_TEXT)
            else:
                logger.debug("graph sync dropped while busy")
                self._fire("SYNC_DROPPED", Direction.GRAPH_TO_TEXT)
            return
        await self._drain(job)

    async def flush(self) -> None:
        """Fire armed debounce timers now and wait until no sync is running."""
        self._text_debouncer.flush()
        if self._graph_debouncer is not None:
            self._graph_debouncer.flush()
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _drain(self, job: Optional[SyncJob]) -> None:
        try:
            while job is not None:
                if job.direction == Direction.TEXT_TO_GRAPH:
                    await self.sync_text_to_graph(job.source or "")
                else:
                    await self.sync_graph_to_text()
                job = self.state.finish()
        except BaseException:
            self.state.reset()
            raise

    # ── Text → Graph ─────────────────────────────────────────────────────────

    async def sync_text_to_graph(self, source: str) -> None:
        self._fire("SYNC_START", Direction.TEXT_TO_GRAPH)
        try:
            program = await self.language.parse(source)
        except ParseError as exc:
            self._text_failed(str(exc))
            return
        except Exception as exc:
            logger.warning("parser service failed", exc_info=True)
            self._text_failed(str(exc) or type(exc).__name__)
            return

        self.allocator.reconcile(program)
        changed = self.graph_builder.build(program)
        self.last_program = program
        self.editor.set_error_line(None)
        self.output.clear()
        self._fire("SYNC_DONE", Direction.TEXT_TO_GRAPH, changed=changed)

    def _text_failed(self, message: str) -> None:
        line = extract_error_line(message)
        logger.warning("parse failed: %s", message)
        self.output.set_text(message)
        self.editor.set_error_line(line)
        self.graph_builder.show_sync_error(message)
        self._fire("SYNC_ERROR", Direction.TEXT_TO_GRAPH, error=message, line=line)

    # ── Graph → Text ─────────────────────────────────────────────────────────

    async def sync_graph_to_text(self) -> None:
        self._fire("SYNC_START", Direction.GRAPH_TO_TEXT)
        try:
            result = compile_workspace(self.workspace, self.allocator, self.settings.indent_width)
        except Exception as exc:
            logger.warning("graph compiler failed", exc_info=True)
            self._graph_failed(str(exc) or type(exc).__name__)
            return
        if not result.ok:
            self._graph_failed(str(result.error))
            return
        before = self.editor.get_content()
        try:
            text = await self.language.generate(result.program, self.settings.render_mode)
        except Exception as exc:
            logger.warning("generator service failed: %s", exc)
            self._graph_failed(str(exc) or type(exc).__name__)
            return

        # the user typed while generating: their text wins and is synced next
        if self.state.pending_source is not None or self.editor.get_content() != before:
            logger.debug("text edited during graph sync; generated text discarded")
            self._fire("SYNC_DONE", Direction.GRAPH_TO_TEXT, changed=False, discarded=True)
            return

        changed = text != before
        if changed:
            self.editor.set_content(text, ChangeOrigin.SYNC)
            self.editor.set_error_line(None)
            logger.info("editor text replaced from graph (%d chars)", len(text))
            await self._persist(text)
        self.output.clear()
        self._fire("SYNC_DONE", Direction.GRAPH_TO_TEXT, changed=changed)

    def _graph_failed(self, message: str) -> None:
        logger.warning("graph to text failed: %s", message)
        self.output.set_text(message)
        self._fire("SYNC_ERROR", Direction.GRAPH_TO_TEXT, error=message, line=None)

    async def _persist(self, text: str) -> None:
        if self.persist is None:
            return
        try:
            result = self.persist(text)
            if asyncio.iscoroutine(result):
                await result
        except Exception:
            logger.exception("persisting editor text failed")

    # ── Selection ────────────────────────────────────────────────────────────

    def highlight_selection(self, node_id: Optional[str]) -> None:
        """Project the selected block's source span onto the editor."""
        span = self.spans.lookup(self.workspace, node_id) if node_id else None
        if span is None:
            self.editor.clear_highlight()
            self.emitter.fire({"type": "HIGHLIGHT", "nodeId": node_id,
                               "startLine": None, "endLine": None})
            return
        self.editor.highlight_lines(span.start.line, span.end.line)
        self.emitter.fire({"type": "HIGHLIGHT", "nodeId": node_id,
                           "startLine": span.start.line, "endLine": span.end.line})

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _fire(self, event_type: str, direction: Direction, **details: Any) -> None:
        payload: Dict[str, Any] = {"type": event_type, "direction": direction.value}
        payload.update(details)
        self.emitter.fire(payload)
