import pytest

import blocksync.blocks  # noqa: F401  (registers block types)
from blocksync.blocks import names
from blocksync.compiler.errors import StructuralError, StructuralErrorKind
from blocksync.compiler.tree_builder import TreeBuilder, compile_workspace
from blocksync.core.Workspace import Workspace
from blocksync.ir import nodes as ir
from blocksync.ir.identity import NodeIdAllocator
from blocksync.ir.walk import all_ids


class TestTreeBuilder:

    def setup_method(self):
        self.ws = Workspace()
        self.allocator = NodeIdAllocator()

    def _compile(self):
        return TreeBuilder(self.ws, self.allocator).build()

    def _identifier(self, name):
        node = self.ws.new_node(names.IDENTIFIER)
        node.set_field("name", name)
        return node

    def _number(self, raw):
        node = self.ws.new_node(names.NUMBER)
        node.set_field("value", raw)
        return node

    def test_print_string_becomes_call(self):
        entry = self.ws.new_node(names.ENTRY)
        stmt = self.ws.new_node(names.PRINT)
        text = self.ws.new_node(names.STRING)
        text.set_field("value", "hi")
        self.ws.connect_statement(entry.id, "BODY", stmt.id)
        self.ws.connect_value(stmt.id, "VALUE", text.id)

        program = self._compile()

        (expr_stmt,) = program.body.statements
        assert isinstance(expr_stmt, ir.ExprStmt)
        call = expr_stmt.value
        assert isinstance(call, ir.Call)
        assert call.func.name == "print"
        (arg,) = call.args
        assert arg.kind == ir.LiteralKind.STRING
        assert arg.value == "hi"
        assert arg.raw == '"hi"'

    def test_program_marked_dirty_with_fresh_ids(self):
        entry = self.ws.new_node(names.ENTRY)
        self.ws.connect_statement(entry.id, "BODY", self.ws.new_node(names.PASS).id)
        self.allocator.reconcile(ir.Program(ir.Block([]), meta=ir.NodeMeta(id=40)))

        program = self._compile()

        assert program.dirty
        assert program.source is None
        ids = all_ids(program)
        assert min(ids) > 40
        assert len(ids) == len(set(ids))
        assert program.body.statements[0].meta.span is None

    def test_var_set_and_number(self):
        entry = self.ws.new_node(names.ENTRY)
        stmt = self.ws.new_node(names.VAR_SET)
        stmt.set_field("name", "x")
        self.ws.connect_statement(entry.id, "BODY", stmt.id)
        self.ws.connect_value(stmt.id, "VALUE", self._number("0x1F").id)

        (assign,) = self._compile().body.statements
        assert assign.targets[0].name == "x"
        assert assign.value.raw == "0x1F"
        assert assign.value.value is None

    def test_empty_required_slot_uses_placeholder(self):
        entry = self.ws.new_node(names.ENTRY)
        self.ws.connect_statement(entry.id, "BODY", self.ws.new_node(names.RETURN).id)
        loop = self.ws.new_node(names.WHILE)
        self.ws.connect_next(self.ws.get_input_target(entry.id, "BODY").id, loop.id)

        ret, while_stmt = self._compile().body.statements
        assert ret.value is None
        assert while_stmt.test.name == "_"
        assert while_stmt.body.statements == []
        assert while_stmt.body.indent_level == 1

    def test_if_elif_else_merged(self):
        entry = self.ws.new_node(names.ENTRY)
        head = self.ws.new_node(names.IF)
        elif_node = self.ws.new_node(names.ELIF)
        else_node = self.ws.new_node(names.ELSE)
        self.ws.connect_statement(entry.id, "BODY", head.id)
        self.ws.connect_next(head.id, elif_node.id)
        self.ws.connect_next(elif_node.id, else_node.id)
        self.ws.connect_value(head.id, "COND", self._identifier("a").id)
        self.ws.connect_value(elif_node.id, "COND", self._identifier("b").id)
        self.ws.connect_statement(else_node.id, "BODY", self.ws.new_node(names.BREAK).id)

        (stmt,) = self._compile().body.statements
        assert isinstance(stmt, ir.If)
        assert stmt.test.name == "a"
        assert [c.test.name for c in stmt.elifs] == ["b"]
        assert isinstance(stmt.else_body.statements[0], ir.Break)

    def test_without_entry_chains_ordered_by_position(self):
        self.ws.new_node(names.BREAK, x=0, y=200)
        self.ws.new_node(names.CONTINUE, x=0, y=20)
        self._identifier("loose")    # loose expressions are ignored

        statements = self._compile().body.statements
        assert [type(s) for s in statements] == [ir.Continue, ir.Break]

    def test_definitions_spaced(self):
        entry = self.ws.new_node(names.ENTRY)
        first = self.ws.new_node(names.PASS)
        fn = self.ws.new_node(names.FUNCTION_DEF)
        fn.set_field("name", "f")
        last = self.ws.new_node(names.PASS)
        self.ws.connect_statement(entry.id, "BODY", first.id)
        self.ws.connect_next(first.id, fn.id)
        self.ws.connect_next(fn.id, last.id)

        kinds = [type(s).__name__ for s in self._compile().body.statements]
        assert kinds == ["Pass", "Empty", "Empty", "FunctionDef", "Empty", "Empty", "Pass"]

    def test_builtin_arity_from_connected_slots(self):
        entry = self.ws.new_node(names.ENTRY)
        stmt = self.ws.new_node(names.EXPR_STMT)
        rng = self.ws.new_node(names.RANGE)
        self.ws.connect_statement(entry.id, "BODY", stmt.id)
        self.ws.connect_value(stmt.id, "EXPR", rng.id)
        self.ws.connect_value(rng.id, "START", self._number("2").id)
        self.ws.connect_value(rng.id, "STOP", self._number("8").id)

        (expr_stmt,) = self._compile().body.statements
        call = expr_stmt.value
        assert call.func.name == "range"
        assert [a.raw for a in call.args] == ["2", "8"]

    def test_match_with_cases(self):
        entry = self.ws.new_node(names.ENTRY)
        match = self.ws.new_node(names.MATCH)
        first = self.ws.new_node(names.CASE)
        second = self.ws.new_node(names.CASE)
        self.ws.connect_statement(entry.id, "BODY", match.id)
        self.ws.connect_value(match.id, "SUBJECT", self._identifier("x").id)
        self.ws.connect_statement(match.id, "CASES", first.id)
        self.ws.connect_next(first.id, second.id)
        self.ws.connect_value(first.id, "PATTERN", self._number("1").id)
        self.ws.connect_value(second.id, "PATTERN", self._identifier("other").id)

        (stmt,) = self._compile().body.statements
        assert isinstance(stmt.cases[0].pattern, ir.LiteralPattern)
        assert stmt.cases[1].pattern.name == "other"
        assert stmt.cases[0].body.indent_level == 2


class TestLegality:

    def setup_method(self):
        self.ws = Workspace()
        self.allocator = NodeIdAllocator()

    def _kind(self):
        result = compile_workspace(self.ws, self.allocator)
        assert not result.ok
        return result.error.kind

    def test_multiple_entries(self):
        self.ws.new_node(names.ENTRY)
        self.ws.new_node(names.ENTRY)
        assert self._kind() == StructuralErrorKind.MULTIPLE_ENTRY

    def test_stray_statement_with_entry(self):
        self.ws.new_node(names.ENTRY)
        self.ws.new_node(names.PASS, y=100)
        assert self._kind() == StructuralErrorKind.STRAY_TOP_LEVEL

    def test_orphan_elif(self):
        entry = self.ws.new_node(names.ENTRY)
        self.ws.connect_statement(entry.id, "BODY", self.ws.new_node(names.ELIF).id)
        assert self._kind() == StructuralErrorKind.CONTINUATION_WITHOUT_IF

    def test_else_after_plain_statement(self):
        first = self.ws.new_node(names.PASS)
        self.ws.connect_next(first.id, self.ws.new_node(names.ELSE).id)
        assert self._kind() == StructuralErrorKind.CONTINUATION_WITHOUT_IF

    def test_empty_match(self):
        entry = self.ws.new_node(names.ENTRY)
        self.ws.connect_statement(entry.id, "BODY", self.ws.new_node(names.MATCH).id)
        assert self._kind() == StructuralErrorKind.EMPTY_MATCH

    def test_case_outside_match(self):
        entry = self.ws.new_node(names.ENTRY)
        self.ws.connect_statement(entry.id, "BODY", self.ws.new_node(names.CASE).id)
        assert self._kind() == StructuralErrorKind.CASE_OUTSIDE_MATCH

    def test_non_case_in_match(self):
        entry = self.ws.new_node(names.ENTRY)
        match = self.ws.new_node(names.MATCH)
        self.ws.connect_statement(entry.id, "BODY", match.id)
        self.ws.connect_statement(match.id, "CASES", self.ws.new_node(names.PASS).id)
        assert self._kind() == StructuralErrorKind.NON_CASE_IN_MATCH

    def test_invalid_pattern(self):
        entry = self.ws.new_node(names.ENTRY)
        match = self.ws.new_node(names.MATCH)
        case = self.ws.new_node(names.CASE)
        self.ws.connect_statement(entry.id, "BODY", match.id)
        self.ws.connect_statement(match.id, "CASES", case.id)
        self.ws.connect_value(case.id, "PATTERN", self.ws.new_node(names.CALL).id)
        assert self._kind() == StructuralErrorKind.INVALID_PATTERN

    def test_sync_error_placeholder_blocks_compile(self):
        self.ws.new_node(names.SYNC_ERROR)
        assert self._kind() == StructuralErrorKind.SYNC_ERROR_NODE

    def test_bad_operator_field(self):
        entry = self.ws.new_node(names.ENTRY)
        stmt = self.ws.new_node(names.AUG_ASSIGN)
        stmt.set_field("op", "<>")
        self.ws.connect_statement(entry.id, "BODY", stmt.id)
        assert self._kind() == StructuralErrorKind.UNSUPPORTED_NODE

    def test_unreadable_count_field(self):
        entry = self.ws.new_node(names.ENTRY)
        stmt = self.ws.new_node(names.EXPR_STMT)
        lst = self.ws.new_node(names.LIST)
        self.ws.connect_statement(entry.id, "BODY", stmt.id)
        self.ws.connect_value(stmt.id, "EXPR", lst.id)
        lst.fields["item_count"] = "two"

        result = compile_workspace(self.ws, self.allocator)

        assert result.error.kind == StructuralErrorKind.UNSUPPORTED_NODE
        assert result.error.node_id == lst.id

    @pytest.mark.parametrize("block, field, value", [
        (names.TYPE_CONVERT, "type", "complexx"),
        (names.MATH_FUNC, "func", "avg"),
    ])
    def test_unknown_builtin_callee(self, block, field, value):
        entry = self.ws.new_node(names.ENTRY)
        stmt = self.ws.new_node(names.EXPR_STMT)
        call = self.ws.new_node(block)
        call.set_field(field, value)
        self.ws.connect_statement(entry.id, "BODY", stmt.id)
        self.ws.connect_value(stmt.id, "EXPR", call.id)

        result = compile_workspace(self.ws, self.allocator)

        assert result.error.kind == StructuralErrorKind.UNSUPPORTED_NODE
        assert result.error.node_id == call.id
        assert value in str(result.error)

    def test_builder_raises_structural_error(self):
        self.ws.new_node(names.ENTRY)
        self.ws.new_node(names.ENTRY)
        with pytest.raises(StructuralError) as info:
            TreeBuilder(self.ws, self.allocator).build()
        assert info.value.node_id is not None
        assert "multiple entry" in str(info.value)
