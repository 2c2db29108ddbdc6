"""
blocksync Compiler — IR → Workspace
====================================
Replaces the workspace content with one block per IR node.

    Program  →  [GraphBuilder.build]  →  entry block + statement chains

Rebuilds are skipped when the serialized program body is byte-identical to
the last installed one, so re-parsing unchanged text never disturbs the
user's selection or scroll position.

Variable-arity blocks get their count field set first; the block then
regenerates its indexed slots and the children are plugged into them.
Every produced statement block records its source span in the SpanTable.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from blocksync.blocks import names
from blocksync.core.Node import Node
from blocksync.core.Workspace import Workspace
from blocksync.ir import nodes as ir
from blocksync.ir.literals import quote_of
from blocksync.ir.serialize import dumps

from .builtins import match_call
from .declared import refresh_declared
from .spans import SpanTable

logger = logging.getLogger(__name__)

# Where the entry block lands after a rebuild.
ENTRY_OFFSET = (24.0, 24.0)


class GraphBuilder:
    def __init__(self, workspace: Workspace, spans: Optional[SpanTable] = None) -> None:
        self.workspace = workspace
        self.spans = spans if spans is not None else SpanTable()
        self.rebuild_count = 0
        self._installed_body: Optional[str] = None

        self._stmt_builders: Dict[type, Callable[[ir.Stmt], List[Node]]] = {
            ir.If: self._if,
            ir.While: self._while,
            ir.For: self._for,
            ir.Match: self._match,
            ir.FunctionDef: self._function_def,
            ir.ClassDef: self._class_def,
            ir.Assign: self._assign,
            ir.AnnAssign: self._ann_assign,
            ir.AugAssign: self._aug_assign,
            ir.ExprStmt: self._expr_stmt,
            ir.Pass: lambda s: [self._new(names.PASS)],
            ir.Break: lambda s: [self._new(names.BREAK)],
            ir.Continue: lambda s: [self._new(names.CONTINUE)],
            ir.Return: self._return,
            ir.Import: self._import,
            ir.Try: self._try,
            ir.With: self._with,
            ir.Assert: self._assert,
            ir.Raise: self._raise,
            ir.Delete: self._delete,
            ir.Global: lambda s: [self._names_block(names.GLOBAL, s.names)],
            ir.Nonlocal: lambda s: [self._names_block(names.NONLOCAL, s.names)],
        }
        self._expr_builders: Dict[type, Callable[[ir.Expr], Node]] = {
            ir.Identifier: self._identifier,
            ir.Literal: self._literal,
            ir.Binary: self._binary,
            ir.Unary: self._unary,
            ir.BoolOp: self._boolop,
            ir.Compare: self._compare,
            ir.Lambda: self._lambda,
            ir.IfExpr: self._ifexpr,
            ir.Call: self._call,
            ir.TupleExpr: lambda e: self._items(names.TUPLE, e.elements),
            ir.ListExpr: lambda e: self._items(names.LIST, e.elements),
            ir.SetExpr: lambda e: self._items(names.SET, e.elements),
            ir.DictExpr: self._dict,
            ir.Attribute: self._attribute,
            ir.Subscript: self._subscript,
            ir.Slice: self._slice,
            ir.Comprehension: self._comprehension,
            ir.Grouped: lambda e: self._wrap(names.GROUPED, "EXPR", e.expr),
            ir.FString: self._fstring,
            ir.NamedExpr: self._named_expr,
            ir.Yield: lambda e: self._wrap(names.YIELD, "VALUE", e.value),
            ir.YieldFrom: lambda e: self._wrap(names.YIELD_FROM, "VALUE", e.value),
            ir.Await: lambda e: self._wrap(names.AWAIT, "VALUE", e.value),
        }

    # ── Public API ───────────────────────────────────────────────────────────

    def build(self, program: ir.Program) -> bool:
        """Install *program* in the workspace. Returns False when nothing changed."""
        body = dumps(program.body)
        if body == self._installed_body:
            logger.debug("graph rebuild skipped: program body unchanged")
            return False

        ws = self.workspace
        ws.disable_events()
        try:
            viewport = ws.get_viewport()
            ws.clear()
            self.spans.clear()

            entry = ws.new_node(names.ENTRY)
            first = self._chain(program.body)
            if first is not None:
                ws.connect_statement(entry.id, "BODY", first.id)
            ws.move_by(entry.id, *ENTRY_OFFSET)
            ws.clean_up(*ENTRY_OFFSET)
            ws.set_viewport(viewport)
        finally:
            ws.enable_events()

        refresh_declared(ws)
        self._installed_body = body
        self.rebuild_count += 1
        logger.info("graph rebuilt: %d blocks", len(ws.graph.nodes))
        return True

    def show_sync_error(self, message: str) -> None:
        """Replace the workspace with a single sync-error placeholder block."""
        ws = self.workspace
        ws.disable_events()
        try:
            viewport = ws.get_viewport()
            ws.clear()
            self.spans.clear()
            node = ws.new_node(names.SYNC_ERROR, x=ENTRY_OFFSET[0], y=ENTRY_OFFSET[1])
            node.set_field("message", message)
            ws.set_viewport(viewport)
        finally:
            ws.enable_events()
        refresh_declared(ws)
        self._installed_body = None

    def invalidate(self) -> None:
        """Forget the installed body; the next build always rebuilds."""
        self._installed_body = None

    # ── Plumbing ─────────────────────────────────────────────────────────────

    def _new(self, type_name: str, **fields) -> Node:
        node = self.workspace.new_node(type_name)
        for name, value in fields.items():
            node.set_field(name, value)
        return node

    def _value(self, parent: Node, slot: str, expr: Optional[ir.Expr]) -> None:
        if expr is None:
            return
        child = self._expr(expr)
        self.workspace.connect_value(parent.id, slot, child.id)

    def _body(self, parent: Node, slot: str, block: Optional[ir.Block]) -> None:
        if block is None:
            return
        first = self._chain(block)
        if first is not None:
            self.workspace.connect_statement(parent.id, slot, first.id)

    def _chain(self, block: ir.Block) -> Optional[Node]:
        first: Optional[Node] = None
        tail: Optional[Node] = None
        for stmt in block.statements:
            if isinstance(stmt, ir.Empty):
                continue
            produced = self._stmt(stmt)
            for node in produced:
                if tail is None:
                    first = node
                else:
                    self.workspace.connect_next(tail.id, node.id)
                tail = node
        return first

    def _stmt(self, stmt: ir.Stmt) -> List[Node]:
        builder = self._stmt_builders.get(type(stmt))
        if builder is None:
            raise TypeError(f"No block for statement {type(stmt).__name__}")
        produced = builder(stmt)
        self.spans.record(produced[0].id, stmt.meta.span)
        return produced

    def _expr(self, expr: ir.Expr) -> Node:
        builder = self._expr_builders.get(type(expr))
        if builder is None:
            raise TypeError(f"No block for expression {type(expr).__name__}")
        return builder(expr)

    # ── Statements ───────────────────────────────────────────────────────────

    def _if(self, stmt: ir.If) -> List[Node]:
        head = self._new(names.IF)
        self._value(head, "COND", stmt.test)
        self._body(head, "BODY", stmt.body)
        produced = [head]
        for clause in stmt.elifs:
            node = self._new(names.ELIF)
            self._value(node, "COND", clause.test)
            self._body(node, "BODY", clause.body)
            self.spans.record(node.id, clause.meta.span)
            produced.append(node)
        if stmt.else_body is not None:
            node = self._new(names.ELSE)
            self._body(node, "BODY", stmt.else_body)
            produced.append(node)
        return produced

    def _while(self, stmt: ir.While) -> List[Node]:
        node = self._new(names.WHILE, has_else=stmt.else_body is not None)
        self._value(node, "COND", stmt.test)
        self._body(node, "BODY", stmt.body)
        self._body(node, "ELSE_BODY", stmt.else_body)
        return [node]

    def _for(self, stmt: ir.For) -> List[Node]:
        node = self._new(names.FOR, is_async=stmt.is_async, has_else=stmt.else_body is not None)
        self._value(node, "TARGET", stmt.target)
        self._value(node, "ITER", stmt.iter)
        self._body(node, "BODY", stmt.body)
        self._body(node, "ELSE_BODY", stmt.else_body)
        return [node]

    def _match(self, stmt: ir.Match) -> List[Node]:
        node = self._new(names.MATCH)
        self._value(node, "SUBJECT", stmt.subject)
        tail: Optional[Node] = None
        for case in stmt.cases:
            case_node = self._new(names.CASE)
            pattern = self._pattern(case.pattern)
            self.workspace.connect_value(case_node.id, "PATTERN", pattern.id)
            self._body(case_node, "BODY", case.body)
            self.spans.record(case_node.id, case.meta.span)
            if tail is None:
                self.workspace.connect_statement(node.id, "CASES", case_node.id)
            else:
                self.workspace.connect_next(tail.id, case_node.id)
            tail = case_node
        return [node]

    def _pattern(self, pattern: ir.Pattern) -> Node:
        if isinstance(pattern, ir.WildcardPattern):
            return self._new(names.IDENTIFIER, name="_")
        if isinstance(pattern, ir.CapturePattern):
            return self._new(names.IDENTIFIER, name=pattern.name)
        if isinstance(pattern, ir.LiteralPattern):
            return self._literal(pattern.literal)
        raise TypeError(f"No block for pattern {type(pattern).__name__}")

    def _function_def(self, stmt: ir.FunctionDef) -> List[Node]:
        node = self._new(
            names.FUNCTION_DEF,
            name=stmt.name,
            is_async=stmt.is_async,
            item_count=len(stmt.params),
            decorator_count=len(stmt.decorators),
        )
        self._params(node, stmt.params, annotations=True)
        for i, decorator in enumerate(stmt.decorators):
            self._value(node, f"DECORATOR{i}", decorator)
        self._value(node, "RETURN_TYPE", stmt.return_type)
        self._body(node, "BODY", stmt.body)
        return [node]

    def _params(self, node: Node, params: List[ir.Param], annotations: bool) -> None:
        for i, param in enumerate(params):
            node.set_field(f"PARAM{i}", param.name)
            node.set_field(f"PARAM_KIND{i}", param.kind.value)
            if annotations:
                self._value(node, f"ANNOTATION{i}", param.annotation)
            self._value(node, f"DEFAULT{i}", param.default)

    def _class_def(self, stmt: ir.ClassDef) -> List[Node]:
        node = self._new(
            names.CLASS_DEF,
            name=stmt.name,
            item_count=len(stmt.bases),
            decorator_count=len(stmt.decorators),
        )
        for i, base in enumerate(stmt.bases):
            self._value(node, f"BASE{i}", base)
        for i, decorator in enumerate(stmt.decorators):
            self._value(node, f"DECORATOR{i}", decorator)
        self._body(node, "BODY", stmt.body)
        return [node]

    def _assign(self, stmt: ir.Assign) -> List[Node]:
        if len(stmt.targets) == 1 and isinstance(stmt.targets[0], ir.Identifier):
            node = self._new(names.VAR_SET, name=stmt.targets[0].name)
        else:
            node = self._new(names.ASSIGN, item_count=len(stmt.targets))
            for i, target in enumerate(stmt.targets):
                self._value(node, f"TARGET{i}", target)
        self._value(node, "VALUE", stmt.value)
        return [node]

    def _ann_assign(self, stmt: ir.AnnAssign) -> List[Node]:
        node = self._new(names.ANN_ASSIGN)
        self._value(node, "TARGET", stmt.target)
        self._value(node, "ANNOTATION", stmt.annotation)
        self._value(node, "VALUE", stmt.value)
        return [node]

    def _aug_assign(self, stmt: ir.AugAssign) -> List[Node]:
        node = self._new(names.AUG_ASSIGN, op=stmt.op.value)
        self._value(node, "TARGET", stmt.target)
        self._value(node, "VALUE", stmt.value)
        return [node]

    def _expr_stmt(self, stmt: ir.ExprStmt) -> List[Node]:
        if isinstance(stmt.value, ir.Call):
            builtin = match_call(stmt.value, statement=True)
            if builtin is not None:
                node = self._new(builtin.node_type)
                for slot, arg in zip(builtin.slots_for(len(stmt.value.args)), stmt.value.args):
                    self._value(node, slot, arg)
                return [node]
        node = self._new(names.EXPR_STMT)
        self._value(node, "EXPR", stmt.value)
        return [node]

    def _return(self, stmt: ir.Return) -> List[Node]:
        node = self._new(names.RETURN)
        self._value(node, "VALUE", stmt.value)
        return [node]

    def _import(self, stmt: ir.Import) -> List[Node]:
        node = self._new(names.IMPORT, module=stmt.module, is_from=stmt.is_from,
                         item_count=len(stmt.names))
        for i, alias in enumerate(stmt.names):
            node.set_field(f"NAME{i}", alias.name)
            node.set_field(f"ALIAS{i}", alias.alias or "")
        return [node]

    def _try(self, stmt: ir.Try) -> List[Node]:
        node = self._new(
            names.TRY,
            handler_count=len(stmt.handlers),
            has_else=stmt.else_body is not None,
            has_finally=stmt.finally_body is not None,
        )
        self._body(node, "BODY", stmt.body)
        for i, handler in enumerate(stmt.handlers):
            self._value(node, f"EXCEPT_TYPE{i}", handler.type)
            node.set_field(f"EXCEPT_NAME{i}", handler.name or "")
            self._body(node, f"EXCEPT_BODY{i}", handler.body)
        self._body(node, "ELSE_BODY", stmt.else_body)
        self._body(node, "FINALLY_BODY", stmt.finally_body)
        return [node]

    def _with(self, stmt: ir.With) -> List[Node]:
        node = self._new(names.WITH, is_async=stmt.is_async, item_count=len(stmt.items))
        for i, item in enumerate(stmt.items):
            self._value(node, f"CONTEXT{i}", item.context)
            node.set_field(f"NAME{i}", item.name or "")
        self._body(node, "BODY", stmt.body)
        return [node]

    def _assert(self, stmt: ir.Assert) -> List[Node]:
        node = self._new(names.ASSERT)
        self._value(node, "CONDITION", stmt.test)
        self._value(node, "MESSAGE", stmt.msg)
        return [node]

    def _raise(self, stmt: ir.Raise) -> List[Node]:
        node = self._new(names.RAISE)
        self._value(node, "EXCEPTION", stmt.exception)
        self._value(node, "CAUSE", stmt.cause)
        return [node]

    def _delete(self, stmt: ir.Delete) -> List[Node]:
        node = self._new(names.DELETE, item_count=len(stmt.targets))
        for i, target in enumerate(stmt.targets):
            self._value(node, f"TARGET{i}", target)
        return [node]

    def _names_block(self, type_name: str, identifiers: List[str]) -> Node:
        return self._new(type_name, names=", ".join(identifiers))

    # ── Expressions ──────────────────────────────────────────────────────────

    def _wrap(self, type_name: str, slot: str, inner: Optional[ir.Expr]) -> Node:
        node = self._new(type_name)
        self._value(node, slot, inner)
        return node

    def _identifier(self, expr: ir.Identifier) -> Node:
        return self._new(names.IDENTIFIER, name=expr.name)

    def _literal(self, expr: ir.Literal) -> Node:
        if expr.kind == ir.LiteralKind.NUMBER:
            return self._new(names.NUMBER, value=expr.raw)
        if expr.kind == ir.LiteralKind.STRING:
            value = expr.value if expr.value is not None else ""
            # raw goes last: editing value or quote clears it
            return self._new(names.STRING, value=value, quote=quote_of(expr.raw), raw=expr.raw)
        if expr.kind == ir.LiteralKind.BOOL:
            return self._new(names.BOOL, value=bool(expr.value))
        return self._new(names.NONE)

    def _binary(self, expr: ir.Binary) -> Node:
        node = self._new(names.BINARY, op=expr.op.value)
        self._value(node, "LEFT", expr.left)
        self._value(node, "RIGHT", expr.right)
        return node

    def _unary(self, expr: ir.Unary) -> Node:
        node = self._new(names.UNARY, op=expr.op.value)
        self._value(node, "OPERAND", expr.operand)
        return node

    def _boolop(self, expr: ir.BoolOp) -> Node:
        node = self._new(names.BOOLOP, op=expr.op.value, item_count=len(expr.values))
        for i, value in enumerate(expr.values):
            self._value(node, f"ITEM{i}", value)
        return node

    def _compare(self, expr: ir.Compare) -> Node:
        node = self._new(names.COMPARE, item_count=len(expr.ops))
        self._value(node, "LEFT", expr.left)
        for i, (op, comparator) in enumerate(zip(expr.ops, expr.comparators)):
            node.set_field(f"OP{i}", op.value)
            self._value(node, f"CMP{i}", comparator)
        return node

    def _lambda(self, expr: ir.Lambda) -> Node:
        node = self._new(names.LAMBDA, item_count=len(expr.params))
        self._params(node, expr.params, annotations=False)
        self._value(node, "EXPR", expr.body)
        return node

    def _ifexpr(self, expr: ir.IfExpr) -> Node:
        node = self._new(names.IFEXPR)
        self._value(node, "COND", expr.test)
        self._value(node, "THEN", expr.body)
        self._value(node, "ELSE", expr.orelse)
        return node

    def _call(self, expr: ir.Call) -> Node:
        builtin = match_call(expr)
        if builtin is not None:
            node = self._new(builtin.node_type)
            if builtin.callee_field is not None:
                node.set_field(builtin.callee_field, expr.func.name)
            if builtin.variadic_prefix is not None:
                node.set_field("item_count", len(expr.args))
            for slot, arg in zip(builtin.slots_for(len(expr.args)), expr.args):
                self._value(node, slot, arg)
            return node

        node = self._new(names.CALL, item_count=len(expr.args), keyword_count=len(expr.keywords))
        self._value(node, "CALLEE", expr.func)
        for i, arg in enumerate(expr.args):
            self._value(node, f"ARG{i}", arg)
        for i, keyword in enumerate(expr.keywords):
            node.set_field(f"KWARG_NAME{i}", keyword.name or "")
            self._value(node, f"KWARG{i}", keyword.value)
        return node

    def _items(self, type_name: str, elements: List[ir.Expr]) -> Node:
        node = self._new(type_name, item_count=len(elements))
        for i, element in enumerate(elements):
            self._value(node, f"ITEM{i}", element)
        return node

    def _dict(self, expr: ir.DictExpr) -> Node:
        node = self._new(names.DICT, item_count=len(expr.entries))
        for i, entry in enumerate(expr.entries):
            self._value(node, f"KEY{i}", entry.key)
            self._value(node, f"VALUE{i}", entry.value)
        return node

    def _attribute(self, expr: ir.Attribute) -> Node:
        node = self._new(names.ATTRIBUTE, attr=expr.attr)
        self._value(node, "VALUE", expr.value)
        return node

    def _subscript(self, expr: ir.Subscript) -> Node:
        node = self._new(names.SUBSCRIPT)
        self._value(node, "VALUE", expr.value)
        self._value(node, "INDEX", expr.index)
        return node

    def _slice(self, expr: ir.Slice) -> Node:
        node = self._new(names.SLICE)
        self._value(node, "LOWER", expr.lower)
        self._value(node, "UPPER", expr.upper)
        self._value(node, "STEP", expr.step)
        return node

    def _comprehension(self, expr: ir.Comprehension) -> Node:
        node = self._new(names.COMPREHENSION, kind=expr.kind.value, item_count=len(expr.clauses))
        self._value(node, "ELEMENT", expr.element)
        self._value(node, "KEY", expr.key)
        for i, clause in enumerate(expr.clauses):
            node.set_field(f"IS_ASYNC{i}", clause.is_async)
            node.set_field(f"IF_COUNT{i}", len(clause.ifs))
            self._value(node, f"TARGET{i}", clause.target)
            self._value(node, f"ITER{i}", clause.iter)
            for j, condition in enumerate(clause.ifs):
                self._value(node, f"IF{i}_{j}", condition)
        return node

    def _fstring(self, expr: ir.FString) -> Node:
        node = self._new(names.FSTRING, quote=expr.quote, item_count=len(expr.parts))
        for i, part in enumerate(expr.parts):
            node.set_field(f"PART_KIND{i}", part.kind.value)
            node.set_field(f"PART_TEXT{i}", part.text)
            node.set_field(f"CONVERSION{i}", part.conversion)
            node.set_field(f"FORMAT_SPEC{i}", part.format_spec)
            self._value(node, f"PART{i}", part.expr)
        return node

    def _named_expr(self, expr: ir.NamedExpr) -> Node:
        node = self._new(names.NAMED_EXPR, name=expr.target)
        self._value(node, "VALUE", expr.value)
        return node
