import asyncio
import logging

import blocksync.blocks  # noqa: F401  (registers block types)
from blocksync.blocks import names
from blocksync.config import SyncSettings
from blocksync.core.Workspace import Workspace
from blocksync.language.errors import GenerationError, ParseError
from blocksync.language.generator import generate_source
from blocksync.language.parser import parse_source
from blocksync.sync.controller import SynchronizationController
from blocksync.sync.debounce import Debouncer
from blocksync.sync.editor import ChangeOrigin, OutputBuffer, TextBuffer
from blocksync.sync.events import SyncEmitter


class RecordingLanguage:
    """Runs the real parser and generator, recording calls and optionally holding calls at a gate."""

    def __init__(self):
        self.parsed = []
        self.generated = 0
        self.gate = None
        self.error = None
        self.generate_gate = None
        self.generate_error = None

    async def parse(self, source):
        self.parsed.append(source)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return parse_source(source)

    async def generate(self, program, mode):
        self.generated += 1
        if self.generate_gate is not None:
            await self.generate_gate.wait()
        if self.generate_error is not None:
            raise self.generate_error
        return generate_source(program, mode)


class TestSynchronizationController:

    def setup_method(self):
        self.workspace = Workspace()
        self.editor = TextBuffer()
        self.output = OutputBuffer()
        self.language = RecordingLanguage()
        self.events = []
        self.persisted = []
        self.edits = []
        self.editor.on_change(lambda text, origin: self.edits.append((text, origin)))

    def _controller(self, **settings):
        settings.setdefault("text_debounce_ms", 10)
        emitter = SyncEmitter()
        emitter.on_event(self.events.append)
        controller = SynchronizationController(
            self.workspace, self.editor, self.output, self.language,
            settings=SyncSettings(**settings), emitter=emitter, persist=self.persisted.append,
        )
        controller.attach()
        return controller

    def _types(self, direction=None):
        return [e["type"] for e in self.events if direction is None or e.get("direction") == direction]

    def _body(self):
        entry = self.workspace.nodes_of_type(names.ENTRY)[0]
        return self.workspace.chain(getattr(self.workspace.get_input_target(entry.id, "BODY"), "id", None))

    def test_burst_of_edits_parses_once(self):
        async def scenario():
            controller = self._controller()
            for text in ("x", "x =", "x = 1\n"):
                self.editor.set_content(text)
            await asyncio.sleep(0.05)
            await controller.flush()

        asyncio.run(scenario())

        assert self.language.parsed == ["x = 1\n"]
        assert [n.type for n in self._body()] == [names.VAR_SET]

    def test_flush_fires_armed_debounce(self):
        async def scenario():
            controller = self._controller(text_debounce_ms=10_000)
            self.editor.set_content("pass\n")
            await controller.flush()

        asyncio.run(scenario())
        assert self.language.parsed == ["pass\n"]

    def test_only_newest_text_waits_behind_running_sync(self):
        async def scenario():
            controller = self._controller()
            self.language.gate = asyncio.Event()
            running = asyncio.ensure_future(controller.request_text_sync("a = 1\n"))
            await asyncio.sleep(0)

            await controller.request_text_sync("b = 1\n")
            await controller.request_text_sync("c = 1\n")
            self.language.gate.set()
            await running

        asyncio.run(scenario())

        assert self.language.parsed == ["a = 1\n", "c = 1\n"]
        assert self._types().count("SYNC_COALESCED") == 2
        assert self._body()[0].get_field("name") == "c"

    def test_parse_error_marks_line_and_installs_placeholder(self):
        async def scenario():
            controller = self._controller()
            self.language.error = ParseError("line 3: unexpected token")
            await controller.request_text_sync("x = (\n")

        asyncio.run(scenario())

        assert self.editor.error_line == 3
        assert self.output.text == "line 3: unexpected token"
        assert [n.type for n in self.workspace.all_nodes()] == [names.SYNC_ERROR]
        error = [e for e in self.events if e["type"] == "SYNC_ERROR"][0]
        assert error["line"] == 3
        assert error["direction"] == "text_to_graph"

    def test_successful_parse_clears_error(self):
        async def scenario():
            controller = self._controller()
            self.language.error = ParseError("bad", 2, 0)
            await controller.request_text_sync("x = (\n")
            self.language.error = None
            await controller.request_text_sync("x = 1\n")

        asyncio.run(scenario())

        assert self.editor.error_line is None
        assert self.output.text == ""
        assert self.workspace.nodes_of_type(names.SYNC_ERROR) == []
        assert self._types()[-1] == "SYNC_DONE"

    def test_selection_highlights_source_lines(self):
        async def scenario():
            controller = self._controller()
            await controller.request_text_sync("x = 1\nprint(x)\n")
            _, printed = self._body()
            argument = self.workspace.get_input_target(printed.id, "VALUE")

            self.workspace.select(printed.id)
            first = self.editor.highlight
            self.workspace.select(argument.id)
            second = self.editor.highlight
            self.workspace.select(self.workspace.nodes_of_type(names.ENTRY)[0].id)
            await controller.flush()
            return first, second

        first, second = asyncio.run(scenario())

        assert first == (2, 2)
        assert second == (2, 2)
        assert self.editor.highlight is None
        highlights = [e for e in self.events if e["type"] == "HIGHLIGHT"]
        assert [(e["startLine"], e["endLine"]) for e in highlights] == [(2, 2), (2, 2), (None, None)]
        assert self._types("graph_to_text") == []

    def test_graph_edit_rewrites_text(self):
        async def scenario():
            controller = self._controller()
            self.editor.set_content("x = 1\n")
            await controller.flush()
            (var_set,) = self._body()

            var_set.set_field("name", "y")
            await controller.flush()

        asyncio.run(scenario())

        assert self.editor.get_content() == "y = 1\n"
        assert self.edits[-1] == ("y = 1\n", ChangeOrigin.SYNC)
        assert self.language.parsed == ["x = 1\n"]
        assert self.persisted == ["y = 1\n"]
        done = [e for e in self.events if e["type"] == "SYNC_DONE" and e["direction"] == "graph_to_text"]
        assert done[0]["changed"] is True

    def test_uncompilable_graph_reports_error(self):
        async def scenario():
            controller = self._controller()
            self.editor.set_content("x = 1\n")
            await controller.flush()
            self.workspace.new_node(names.ENTRY)
            await controller.flush()

        asyncio.run(scenario())

        assert self.editor.get_content() == "x = 1\n"
        assert "entry" in self.output.text
        assert self._types("graph_to_text")[-1] == "SYNC_ERROR"

    def test_corrupt_count_field_reports_error(self):
        async def scenario():
            controller = self._controller()
            await controller.request_text_sync("x = [1, 2]\n")
            self.workspace.nodes_of_type(names.LIST)[0].fields["item_count"] = "two"
            await controller.request_graph_sync()

        asyncio.run(scenario())

        assert self.editor.get_content() == ""
        assert "invalid fields" in self.output.text
        assert self._types("graph_to_text") == ["SYNC_START", "SYNC_ERROR"]
        assert self.persisted == []

    def test_generation_failure_keeps_text(self):
        async def scenario():
            controller = self._controller()
            self.editor.set_content("x = 1\n")
            await controller.flush()
            (var_set,) = self._body()

            self.language.generate_error = GenerationError("cannot render statement")
            var_set.set_field("name", "y")
            await controller.flush()

        asyncio.run(scenario())

        assert self.editor.get_content() == "x = 1\n"
        assert self.output.text == "cannot render statement"
        assert self._types("graph_to_text")[-1] == "SYNC_ERROR"
        error = [e for e in self.events if e["type"] == "SYNC_ERROR"][-1]
        assert error["line"] is None
        assert self.persisted == []
        assert self._body()[0].get_field("name") == "y"

    def test_text_queued_during_generation_wins(self):
        async def scenario():
            controller = self._controller()
            self.editor.set_content("x = 1\n")
            await controller.flush()
            (var_set,) = self._body()
            number = self.workspace.get_input_target(var_set.id, "VALUE")

            self.language.generate_gate = asyncio.Event()
            number.set_field("value", "2")
            await asyncio.sleep(0)

            self.editor.set_content("y = 5\n")
            await asyncio.sleep(0.05)
            self.language.generate_gate.set()
            await controller.flush()

        asyncio.run(scenario())

        assert self.editor.get_content() == "y = 5\n"
        assert self.persisted == []
        assert self.language.parsed == ["x = 1\n", "y = 5\n"]
        assert "SYNC_COALESCED" in self._types("text_to_graph")
        assert self._body()[0].get_field("name") == "y"
        done = [e for e in self.events if e["type"] == "SYNC_DONE" and e["direction"] == "graph_to_text"]
        assert done[-1]["changed"] is False
        assert done[-1]["discarded"] is True

    def test_typing_during_generation_wins(self):
        async def scenario():
            controller = self._controller(text_debounce_ms=10_000)
            self.editor.set_content("x = 1\n")
            await controller.flush()
            (var_set,) = self._body()

            self.language.generate_gate = asyncio.Event()
            var_set.set_field("name", "renamed")
            await asyncio.sleep(0)

            self.editor.set_content("z = 3\n")
            self.language.generate_gate.set()
            await controller.flush()

        asyncio.run(scenario())

        assert self.editor.get_content() == "z = 3\n"
        assert "renamed = 1\n" not in self.persisted
        assert self._body()[0].get_field("name") == "z"

    def test_graph_request_dropped_while_busy(self):
        async def scenario():
            controller = self._controller()
            self.language.gate = asyncio.Event()
            running = asyncio.ensure_future(controller.request_text_sync("x = 1\n"))
            await asyncio.sleep(0)
            await controller.request_graph_sync()
            self.language.gate.set()
            await running

        asyncio.run(scenario())

        assert self._types("graph_to_text") == ["SYNC_DROPPED"]
        assert self.language.generated == 0

    def test_graph_request_coalesced_while_busy(self):
        async def scenario():
            controller = self._controller(coalesce_graph_sync=True)
            self.language.gate = asyncio.Event()
            running = asyncio.ensure_future(controller.request_text_sync("x = 1\n"))
            await asyncio.sleep(0)
            await controller.request_graph_sync()
            self.language.gate.set()
            await running

        asyncio.run(scenario())

        assert self._types("graph_to_text") == ["SYNC_COALESCED", "SYNC_START", "SYNC_DONE"]
        assert self.language.generated == 1
        assert not self.language.parsed[1:]

    def test_detach_stops_listening(self):
        async def scenario():
            controller = self._controller()
            controller.detach()
            self.editor.set_content("x = 1\n")
            await controller.flush()

        asyncio.run(scenario())
        assert self.language.parsed == []


class TestDebouncer:

    def test_burst_fires_once_with_last_arguments(self):
        calls = []

        async def scenario():
            debouncer = Debouncer(0.01, calls.append)
            for value in (1, 2, 3):
                debouncer.call(value)
            await asyncio.sleep(0.05)

        asyncio.run(scenario())
        assert calls == [3]

    def test_flush_and_cancel(self):
        calls = []

        async def scenario():
            debouncer = Debouncer(10.0, calls.append)
            debouncer.call("now")
            assert debouncer.flush()
            assert not debouncer.flush()
            debouncer.call("never")
            debouncer.cancel()
            assert not debouncer.pending

        asyncio.run(scenario())
        assert calls == ["now"]


class TestSyncEmitter:

    def test_failing_listener_is_logged_and_skipped(self, caplog):
        emitter = SyncEmitter()
        received = []

        def broken(payload):
            raise RuntimeError("boom")

        emitter.on_event(broken)
        emitter.on_event(received.append)

        with caplog.at_level(logging.ERROR):
            emitter.fire({"type": "SYNC_START", "direction": "text_to_graph"})

        assert len(received) == 1
        assert isinstance(received[0]["ts"], int)
        assert "sync listener failed" in caplog.text

    def test_off_event(self):
        emitter = SyncEmitter()
        received = []
        emitter.on_event(received.append)
        emitter.off_event(received.append)
        emitter.fire({"type": "SYNC_START"})
        assert received == []
