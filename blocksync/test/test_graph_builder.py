import blocksync.blocks  # noqa: F401  (registers block types)
from blocksync.blocks import names
from blocksync.compiler.graph_builder import ENTRY_OFFSET, GraphBuilder
from blocksync.core.Workspace import Viewport, Workspace
from blocksync.language.parser import parse_source


class TestGraphBuilder:

    def setup_method(self):
        self.ws = Workspace()
        self.builder = GraphBuilder(self.ws)
        self.events = []
        self.ws.add_change_listener(self.events.append)

    def _body(self):
        entry = self.ws.nodes_of_type(names.ENTRY)[0]
        return self.ws.chain(getattr(self.ws.get_input_target(entry.id, "BODY"), "id", None))

    def test_assignment_becomes_var_set(self):
        assert self.builder.build(parse_source("x = 1\n"))

        (stmt,) = self._body()
        assert stmt.type == names.VAR_SET
        assert stmt.get_field("name") == "x"
        value = self.ws.get_input_target(stmt.id, "VALUE")
        assert value.type == names.NUMBER
        assert value.get_field("value") == "1"

    def test_entry_placed_at_offset(self):
        self.builder.build(parse_source("pass\n"))
        entry = self.ws.nodes_of_type(names.ENTRY)[0]
        assert (self.ws.positions[entry.id]["x"], self.ws.positions[entry.id]["y"]) == ENTRY_OFFSET

    def test_build_fires_no_workspace_events(self):
        self.builder.build(parse_source("x = 1\nprint(x)\n"))
        assert self.events == []

    def test_identical_program_skips_rebuild(self):
        assert self.builder.build(parse_source("x = 1\n"))
        first_ids = set(self.ws.graph.nodes)

        assert not self.builder.build(parse_source("x = 1\n"))
        assert self.builder.rebuild_count == 1
        assert set(self.ws.graph.nodes) == first_ids

    def test_comment_change_forces_rebuild(self):
        self.builder.build(parse_source("x = 1\n"))
        assert self.builder.build(parse_source("x = 1  # one\n"))
        assert self.builder.rebuild_count == 2

    def test_invalidate_forces_rebuild(self):
        program = parse_source("x = 1\n")
        self.builder.build(program)
        self.builder.invalidate()
        assert self.builder.build(program)
        assert self.builder.rebuild_count == 2

    def test_viewport_preserved(self):
        self.ws.set_viewport(Viewport(120.0, -40.0, 1.5))
        self.builder.build(parse_source("x = 1\n"))
        viewport = self.ws.get_viewport()
        assert (viewport.scroll_x, viewport.scroll_y, viewport.scale) == (120.0, -40.0, 1.5)

    def test_print_statement_block(self):
        self.builder.build(parse_source("print(x)\n"))
        (stmt,) = self._body()
        assert stmt.type == names.PRINT
        assert self.ws.get_input_target(stmt.id, "VALUE").get_field("name") == "x"

    def test_print_with_keywords_stays_generic(self):
        self.builder.build(parse_source("print(x, end='')\n"))
        (stmt,) = self._body()
        assert stmt.type == names.EXPR_STMT
        call = self.ws.get_input_target(stmt.id, "EXPR")
        assert call.type == names.CALL
        assert call.get_field("KWARG_NAME0") == "end"

    def test_builtin_expression_block(self):
        self.builder.build(parse_source("for i in range(1, 10):\n    pass\n"))
        (loop,) = self._body()
        rng = self.ws.get_input_target(loop.id, "ITER")
        assert rng.type == names.RANGE
        assert self.ws.get_input_target(rng.id, "START").get_field("value") == "1"
        assert self.ws.get_input_target(rng.id, "STOP").get_field("value") == "10"
        assert self.ws.get_input_target(rng.id, "STEP") is None

    def test_if_chain_becomes_siblings(self):
        self.builder.build(parse_source(
            "if a:\n    pass\nelif b:\n    pass\nelif c:\n    pass\nelse:\n    pass\n"
        ))
        assert [n.type for n in self._body()] == [names.IF, names.ELIF, names.ELIF, names.ELSE]

    def test_match_cases_in_cases_slot(self):
        self.builder.build(parse_source(
            "match x:\n    case 1:\n        pass\n    case _:\n        pass\n"
        ))
        (match,) = self._body()
        cases = self.ws.chain(self.ws.get_input_target(match.id, "CASES").id)
        assert [c.type for c in cases] == [names.CASE, names.CASE]
        patterns = [self.ws.get_input_target(c.id, "PATTERN") for c in cases]
        assert patterns[0].type == names.NUMBER
        assert patterns[1].get_field("name") == "_"

    def test_function_params(self):
        self.builder.build(parse_source("def f(a, b: int = 2, *rest, **extra):\n    return a\n"))
        (fn,) = self._body()
        assert fn.get_field("name") == "f"
        assert fn.item_count == 4
        assert [fn.get_field(f"PARAM{i}") for i in range(4)] == ["a", "b", "rest", "extra"]
        assert [fn.get_field(f"PARAM_KIND{i}") for i in range(4)] == ["normal", "normal", "star", "double_star"]
        assert self.ws.get_input_target(fn.id, "ANNOTATION1").get_field("name") == "int"
        assert self.ws.get_input_target(fn.id, "DEFAULT1").get_field("value") == "2"

    def test_blank_and_comment_lines_produce_no_blocks(self):
        self.builder.build(parse_source("# header\n\nx = 1\n\n# trailer\n"))
        assert [n.type for n in self._body()] == [names.VAR_SET]

    def test_spans_recorded_per_statement(self):
        self.builder.build(parse_source("x = 1\n\nif x:\n    y = 2\nelif z:\n    pass\n"))
        var_set, if_node, elif_node = self._body()
        inner = self.ws.get_input_target(if_node.id, "BODY")

        assert self.builder.spans.get(var_set.id).start.line == 1
        assert (self.builder.spans.get(if_node.id).start.line, self.builder.spans.get(if_node.id).end.line) == (3, 6)
        assert self.builder.spans.get(inner.id).start.line == 4
        assert self.builder.spans.get(elif_node.id).start.line == 5

    def test_span_lookup_falls_back_to_statement(self):
        self.builder.build(parse_source("x = 1\ny = x + 2\n"))
        _, second = self._body()
        binary = self.ws.get_input_target(second.id, "VALUE")
        operand = self.ws.get_input_target(binary.id, "LEFT")
        span = self.builder.spans.lookup(self.ws, operand.id)
        assert (span.start.line, span.end.line) == (2, 2)

    def test_declared_names_refreshed(self):
        self.builder.build(parse_source("a = 1\nb, c = 2, 3\ndef f(p, q):\n    pass\n"))
        assert self.ws.declared_variables == ["a", "b", "c", "p", "q"]
        assert [(f.name, f.param_count) for f in self.ws.declared_functions] == [("f", 2)]

    def test_show_sync_error_installs_placeholder(self):
        self.builder.build(parse_source("x = 1\n"))
        self.builder.show_sync_error("line 3: unexpected token")

        assert [n.type for n in self.ws.all_nodes()] == [names.SYNC_ERROR]
        assert self.ws.all_nodes()[0].get_field("message") == "line 3: unexpected token"
        assert len(self.builder.spans) == 0

        # the next successful parse always rebuilds
        assert self.builder.build(parse_source("x = 1\n"))
