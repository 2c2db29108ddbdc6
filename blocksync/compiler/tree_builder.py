"""
blocksync Compiler — Workspace → IR
====================================
Walks the workspace from its entry block (or, without one, from every
top-level statement chain ordered top-to-bottom) and produces a fresh
Program. Every IR node receives new metadata from the allocator; spans
are left empty because the edit invalidated them.

Legality rules checked along the way:
  ┌─────────────────────────┬──────────────────────────────────────────────┐
  │ kind                    │ trigger                                      │
  ├─────────────────────────┼──────────────────────────────────────────────┤
  │ SYNC_ERROR_NODE         │ a sync-error placeholder exists anywhere     │
  │ MULTIPLE_ENTRY          │ more than one entry block                    │
  │ STRAY_TOP_LEVEL         │ entry exists and another chain is loose      │
  │ CONTINUATION_WITHOUT_IF │ elif/else not following if/elif              │
  │ CASE_OUTSIDE_MATCH      │ case block outside a match CASES slot        │
  │ EMPTY_MATCH             │ match with no cases                          │
  │ NON_CASE_IN_MATCH       │ non-case block inside CASES                  │
  │ INVALID_PATTERN         │ case pattern is not _, a name or a literal   │
  └─────────────────────────┴──────────────────────────────────────────────┘

Public API
----------
    result = compile_workspace(workspace, allocator)
    if result.ok:
        program = result.program
    else:
        print(result.error.kind, result.error)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Type, TypeVar

from blocksync.blocks import names
from blocksync.core.Node import Node
from blocksync.core.Workspace import Workspace
from blocksync.ir import nodes as ir
from blocksync.ir.identity import NodeIdAllocator
from blocksync.ir.literals import quote_string

from .builtins import BY_NODE_TYPE, callee_of
from .errors import StructuralError, StructuralErrorKind

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)
T = TypeVar("T")

# Placeholder used when a required slot is empty.
MISSING_NAME = "_"

# Blank lines around top-level definitions.
DEFINITION_SPACING = 2


@dataclass
class CompileResult:
    program: Optional[ir.Program] = None
    error: Optional[StructuralError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def compile_workspace(
    workspace: Workspace,
    allocator: NodeIdAllocator,
    indent_width: int = 4,
) -> CompileResult:
    """Compile the workspace into a fresh Program, or report why it cannot be."""
    try:
        program = TreeBuilder(workspace, allocator, indent_width).build()
    except StructuralError as exc:
        logger.warning("workspace does not compile: %s", exc)
        return CompileResult(error=exc)
    return CompileResult(program=program)


class TreeBuilder:
    def __init__(self, workspace: Workspace, allocator: NodeIdAllocator, indent_width: int = 4) -> None:
        self.workspace = workspace
        self.allocator = allocator
        self.indent_width = indent_width

        self._stmt_builders: Dict[str, Callable[[Node, int], ir.Stmt]] = {
            names.WHILE: self._while,
            names.FOR: self._for,
            names.MATCH: self._match,
            names.FUNCTION_DEF: self._function_def,
            names.CLASS_DEF: self._class_def,
            names.VAR_SET: self._var_set,
            names.ASSIGN: self._assign,
            names.ANN_ASSIGN: self._ann_assign,
            names.AUG_ASSIGN: self._aug_assign,
            names.EXPR_STMT: lambda n, d: ir.ExprStmt(self._required(n, "EXPR"), meta=self._meta()),
            names.PASS: lambda n, d: ir.Pass(meta=self._meta()),
            names.BREAK: lambda n, d: ir.Break(meta=self._meta()),
            names.CONTINUE: lambda n, d: ir.Continue(meta=self._meta()),
            names.RETURN: lambda n, d: ir.Return(self._optional(n, "VALUE"), meta=self._meta()),
            names.IMPORT: self._import,
            names.TRY: self._try,
            names.WITH: self._with,
            names.ASSERT: self._assert,
            names.RAISE: self._raise,
            names.DELETE: self._delete,
            names.GLOBAL: lambda n, d: ir.Global(self._split_names(n), meta=self._meta()),
            names.NONLOCAL: lambda n, d: ir.Nonlocal(self._split_names(n), meta=self._meta()),
            names.PRINT: self._builtin_stmt,
            names.WAIT: self._builtin_stmt,
        }
        self._expr_builders: Dict[str, Callable[[Node], ir.Expr]] = {
            names.IDENTIFIER: lambda n: ir.Identifier(n.get_field("name") or MISSING_NAME, meta=self._meta()),
            names.NUMBER: self._number,
            names.STRING: self._string,
            names.BOOL: self._bool,
            names.NONE: lambda n: ir.Literal(ir.LiteralKind.NONE, "None", meta=self._meta()),
            names.BINARY: self._binary,
            names.UNARY: self._unary,
            names.BOOLOP: self._boolop,
            names.COMPARE: self._compare,
            names.IFEXPR: self._ifexpr,
            names.LAMBDA: self._lambda,
            names.CALL: self._call,
            names.TUPLE: lambda n: ir.TupleExpr(self._items(n), meta=self._meta()),
            names.LIST: lambda n: ir.ListExpr(self._items(n), meta=self._meta()),
            names.SET: lambda n: ir.SetExpr(self._items(n), meta=self._meta()),
            names.DICT: self._dict,
            names.ATTRIBUTE: self._attribute,
            names.SUBSCRIPT: self._subscript,
            names.SLICE: self._slice,
            names.GROUPED: lambda n: ir.Grouped(self._required(n, "EXPR"), meta=self._meta()),
            names.COMPREHENSION: self._comprehension,
            names.FSTRING: self._fstring,
            names.NAMED_EXPR: self._named_expr,
            names.YIELD: lambda n: ir.Yield(self._optional(n, "VALUE"), meta=self._meta()),
            names.YIELD_FROM: lambda n: ir.YieldFrom(self._required(n, "VALUE"), meta=self._meta()),
            names.AWAIT: lambda n: ir.Await(self._required(n, "VALUE"), meta=self._meta()),
        }

    # ── Entry point ──────────────────────────────────────────────────────────

    def build(self) -> ir.Program:
        ws = self.workspace
        placeholders = ws.nodes_of_type(names.SYNC_ERROR)
        if placeholders:
            raise StructuralError(StructuralErrorKind.SYNC_ERROR_NODE,
                                  "fix the text error first", placeholders[0].id)

        entries = ws.nodes_of_type(names.ENTRY)
        if len(entries) > 1:
            raise StructuralError(StructuralErrorKind.MULTIPLE_ENTRY,
                                  f"{len(entries)} entry blocks", entries[1].id)

        tops = ws.get_top_nodes(ordered=True)
        statements: List[ir.Stmt] = []
        if entries:
            entry = entries[0]
            for node in tops:
                if node is not entry and node.isStatement():
                    raise StructuralError(StructuralErrorKind.STRAY_TOP_LEVEL,
                                          f"'{node.type}' is not attached to the program", node.id)
            statements = self._chain(ws.get_input_target(entry.id, "BODY"), 0)
        else:
            for node in tops:
                if node.isStatement():
                    statements.extend(self._chain(node, 0))

        body = ir.Block(self._space_definitions(statements), 0)
        return ir.Program(body, self.indent_width, dirty=True, source=None, meta=self._meta())

    # ── Plumbing ─────────────────────────────────────────────────────────────

    def _meta(self) -> ir.NodeMeta:
        return self.allocator.new_meta()

    def _target(self, node: Node, slot: str) -> Optional[Node]:
        return self.workspace.get_input_target(node.id, slot)

    def _optional(self, node: Node, slot: str) -> Optional[ir.Expr]:
        child = self._target(node, slot)
        return self._expr(child) if child is not None else None

    def _required(self, node: Node, slot: str) -> ir.Expr:
        child = self._target(node, slot)
        if child is None:
            return ir.Identifier(MISSING_NAME, meta=self._meta())
        return self._expr(child)

    def _enum(self, enum_type: Type[E], value: object, node: Node) -> E:
        try:
            return enum_type(value)
        except ValueError:
            raise StructuralError(StructuralErrorKind.UNSUPPORTED_NODE,
                                  f"'{value}' is not a valid {enum_type.__name__}", node.id) from None

    def _block(self, node: Node, slot: str, depth: int) -> ir.Block:
        return ir.Block(self._chain(self._target(node, slot), depth + 1), depth + 1)

    def _chain(self, first: Optional[Node], depth: int) -> List[ir.Stmt]:
        statements: List[ir.Stmt] = []
        node = first
        while node is not None:
            if node.type == names.IF:
                stmt, node = self._if_chain(node, depth)
                statements.append(stmt)
                continue
            if node.type in names.CONTINUATIONS:
                raise StructuralError(StructuralErrorKind.CONTINUATION_WITHOUT_IF,
                                      f"'{node.type}' must follow an if block", node.id)
            if node.type == names.CASE:
                raise StructuralError(StructuralErrorKind.CASE_OUTSIDE_MATCH,
                                      "case blocks belong in a match", node.id)
            statements.append(self._stmt(node, depth))
            node = self.workspace.get_next(node.id)
        return statements

    def _stmt(self, node: Node, depth: int) -> ir.Stmt:
        builder = self._stmt_builders.get(node.type)
        if builder is None:
            raise StructuralError(StructuralErrorKind.UNSUPPORTED_NODE,
                                  f"'{node.type}' cannot appear in a statement chain", node.id)
        return self._checked(node, builder, node, depth)

    def _expr(self, node: Node) -> ir.Expr:
        builder = self._expr_builders.get(node.type)
        if builder is not None:
            return self._checked(node, builder, node)
        if node.type in BY_NODE_TYPE:
            return self._checked(node, self._builtin_call, node)
        raise StructuralError(StructuralErrorKind.UNSUPPORTED_NODE,
                              f"'{node.type}' cannot be used as a value", node.id)

    def _checked(self, node: Node, builder: Callable[..., T], *args: object) -> T:
        """Run *builder*, reporting a block with unreadable fields as a structural error."""
        try:
            return builder(*args)
        except StructuralError:
            raise
        except (ValueError, TypeError, KeyError) as exc:
            raise StructuralError(StructuralErrorKind.UNSUPPORTED_NODE,
                                  f"'{node.type}' block has invalid fields ({exc})", node.id) from exc

    def _space_definitions(self, statements: List[ir.Stmt]) -> List[ir.Stmt]:
        spaced: List[ir.Stmt] = []
        for i, stmt in enumerate(statements):
            if i > 0 and (_is_definition(stmt) or _is_definition(statements[i - 1])):
                for _ in range(DEFINITION_SPACING):
                    spaced.append(ir.Empty(ir.EmptySource.GENERATED, meta=self._meta()))
            spaced.append(stmt)
        return spaced

    # ── Statements ───────────────────────────────────────────────────────────

    def _if_chain(self, head: Node, depth: int) -> Tuple[ir.If, Optional[Node]]:
        """Merge if, elif* and an optional else into one If; return it and the next block."""
        meta = self._meta()
        stmt = ir.If(self._required(head, "COND"), self._block(head, "BODY", depth), meta=meta)
        node = self.workspace.get_next(head.id)
        while node is not None and node.type == names.ELIF:
            clause_meta = self._meta()
            stmt.elifs.append(ir.ElifClause(self._required(node, "COND"),
                                            self._block(node, "BODY", depth), meta=clause_meta))
            node = self.workspace.get_next(node.id)
        if node is not None and node.type == names.ELSE:
            stmt.else_body = self._block(node, "BODY", depth)
            node = self.workspace.get_next(node.id)
        return stmt, node

    def _optional_block(self, node: Node, flag: str, slot: str, depth: int) -> Optional[ir.Block]:
        """A body that exists when its flag is set or something is plugged into it."""
        if not node.get_field(flag) and self._target(node, slot) is None:
            return None
        return self._block(node, slot, depth)

    def _while(self, node: Node, depth: int) -> ir.While:
        meta = self._meta()
        return ir.While(self._required(node, "COND"), self._block(node, "BODY", depth),
                        self._optional_block(node, "has_else", "ELSE_BODY", depth), meta=meta)

    def _for(self, node: Node, depth: int) -> ir.For:
        meta = self._meta()
        return ir.For(
            self._required(node, "TARGET"),
            self._required(node, "ITER"),
            self._block(node, "BODY", depth),
            self._optional_block(node, "has_else", "ELSE_BODY", depth),
            is_async=bool(node.get_field("is_async")),
            meta=meta,
        )

    def _match(self, node: Node, depth: int) -> ir.Match:
        meta = self._meta()
        subject = self._required(node, "SUBJECT")
        case_nodes = self.workspace.chain(getattr(self._target(node, "CASES"), "id", None))
        if not case_nodes:
            raise StructuralError(StructuralErrorKind.EMPTY_MATCH, "add at least one case", node.id)
        cases = []
        for case_node in case_nodes:
            if case_node.type != names.CASE:
                raise StructuralError(StructuralErrorKind.NON_CASE_IN_MATCH,
                                      f"'{case_node.type}' inside match cases", case_node.id)
            case_meta = self._meta()
            pattern = self._pattern(case_node)
            # case bodies sit one level below the case line
            body = self._block(case_node, "BODY", depth + 1)
            cases.append(ir.MatchCase(pattern, body, meta=case_meta))
        return ir.Match(subject, cases, meta=meta)

    def _pattern(self, case_node: Node) -> ir.Pattern:
        node = self._target(case_node, "PATTERN")
        if node is None:
            return ir.WildcardPattern(meta=self._meta())
        if node.type == names.IDENTIFIER:
            name = node.get_field("name") or MISSING_NAME
            if name == MISSING_NAME:
                return ir.WildcardPattern(meta=self._meta())
            return ir.CapturePattern(name, meta=self._meta())
        if node.type in (names.NUMBER, names.STRING, names.BOOL, names.NONE):
            meta = self._meta()
            return ir.LiteralPattern(self._expr(node), meta=meta)
        raise StructuralError(StructuralErrorKind.INVALID_PATTERN,
                              f"'{node.type}' cannot be matched against", node.id)

    def _params(self, node: Node, annotations: bool) -> List[ir.Param]:
        params = []
        for i in range(node.item_count):
            meta = self._meta()
            params.append(ir.Param(
                name=node.get_field(f"PARAM{i}", ""),
                annotation=self._optional(node, f"ANNOTATION{i}") if annotations else None,
                default=self._optional(node, f"DEFAULT{i}"),
                kind=self._enum(ir.ParamKind, node.get_field(f"PARAM_KIND{i}", "normal"), node),
                meta=meta,
            ))
        return params

    def _decorators(self, node: Node) -> List[ir.Expr]:
        count = int(node.get_field("decorator_count", 0))
        return [self._required(node, f"DECORATOR{i}") for i in range(count)]

    def _function_def(self, node: Node, depth: int) -> ir.FunctionDef:
        meta = self._meta()
        return ir.FunctionDef(
            name=node.get_field("name") or MISSING_NAME,
            params=self._params(node, annotations=True),
            body=self._block(node, "BODY", depth),
            decorators=self._decorators(node),
            return_type=self._optional(node, "RETURN_TYPE"),
            is_async=bool(node.get_field("is_async")),
            meta=meta,
        )

    def _class_def(self, node: Node, depth: int) -> ir.ClassDef:
        meta = self._meta()
        bases = [self._required(node, f"BASE{i}") for i in range(node.item_count)]
        return ir.ClassDef(
            name=node.get_field("name") or MISSING_NAME,
            bases=bases,
            body=self._block(node, "BODY", depth),
            decorators=self._decorators(node),
            meta=meta,
        )

    def _var_set(self, node: Node, depth: int) -> ir.Assign:
        meta = self._meta()
        target = ir.Identifier(node.get_field("name") or MISSING_NAME, meta=self._meta())
        return ir.Assign([target], self._required(node, "VALUE"), meta=meta)

    def _assign(self, node: Node, depth: int) -> ir.Assign:
        meta = self._meta()
        targets = [self._required(node, f"TARGET{i}") for i in range(node.item_count)]
        return ir.Assign(targets, self._required(node, "VALUE"), meta=meta)

    def _ann_assign(self, node: Node, depth: int) -> ir.AnnAssign:
        meta = self._meta()
        return ir.AnnAssign(self._required(node, "TARGET"), self._required(node, "ANNOTATION"),
                            self._optional(node, "VALUE"), meta=meta)

    def _aug_assign(self, node: Node, depth: int) -> ir.AugAssign:
        meta = self._meta()
        return ir.AugAssign(self._required(node, "TARGET"),
                            self._enum(ir.BinaryOp, node.get_field("op"), node),
                            self._required(node, "VALUE"), meta=meta)

    def _import(self, node: Node, depth: int) -> ir.Import:
        meta = self._meta()
        imported = []
        for i in range(node.item_count):
            alias = node.get_field(f"ALIAS{i}") or None
            imported.append(ir.ImportName(node.get_field(f"NAME{i}", ""), alias, meta=self._meta()))
        return ir.Import(node.get_field("module", ""), imported,
                         is_from=bool(node.get_field("is_from")), meta=meta)

    def _try(self, node: Node, depth: int) -> ir.Try:
        meta = self._meta()
        body = self._block(node, "BODY", depth)
        handlers = []
        for i in range(int(node.get_field("handler_count", 0))):
            handler_meta = self._meta()
            handlers.append(ir.ExceptHandler(
                self._optional(node, f"EXCEPT_TYPE{i}"),
                node.get_field(f"EXCEPT_NAME{i}") or None,
                self._block(node, f"EXCEPT_BODY{i}", depth),
                meta=handler_meta,
            ))
        else_body = self._optional_block(node, "has_else", "ELSE_BODY", depth)
        finally_body = self._optional_block(node, "has_finally", "FINALLY_BODY", depth)
        return ir.Try(body, handlers, else_body, finally_body, meta=meta)

    def _with(self, node: Node, depth: int) -> ir.With:
        meta = self._meta()
        items = []
        for i in range(node.item_count):
            item_meta = self._meta()
            items.append(ir.WithItem(self._required(node, f"CONTEXT{i}"),
                                     node.get_field(f"NAME{i}") or None, meta=item_meta))
        return ir.With(items, self._block(node, "BODY", depth),
                       is_async=bool(node.get_field("is_async")), meta=meta)

    def _assert(self, node: Node, depth: int) -> ir.Assert:
        meta = self._meta()
        return ir.Assert(self._required(node, "CONDITION"), self._optional(node, "MESSAGE"), meta=meta)

    def _raise(self, node: Node, depth: int) -> ir.Raise:
        meta = self._meta()
        return ir.Raise(self._optional(node, "EXCEPTION"), self._optional(node, "CAUSE"), meta=meta)

    def _delete(self, node: Node, depth: int) -> ir.Delete:
        meta = self._meta()
        return ir.Delete([self._required(node, f"TARGET{i}") for i in range(node.item_count)], meta=meta)

    def _split_names(self, node: Node) -> List[str]:
        return [part.strip() for part in node.get_field("names", "").split(",") if part.strip()]

    def _builtin_stmt(self, node: Node, depth: int) -> ir.ExprStmt:
        meta = self._meta()
        return ir.ExprStmt(self._builtin_call(node), meta=meta)

    # ── Expressions ──────────────────────────────────────────────────────────

    def _builtin_call(self, node: Node) -> ir.Call:
        """Expand a dedicated builtin block back into a plain positional call."""
        builtin = BY_NODE_TYPE[node.type]
        meta = self._meta()
        callee = callee_of(builtin, node.get_field(builtin.callee_field) if builtin.callee_field else None, node.id)
        func = ir.Identifier(callee, meta=self._meta())
        if builtin.variadic_prefix is not None:
            slots = builtin.slots_for(node.item_count)
        else:
            connected = [s for s in node.value_slots() if self._target(node, s) is not None]
            slots = builtin.slots_for(builtin.arity_for(connected))
        return ir.Call(func, [self._required(node, slot) for slot in slots], meta=meta)

    def _number(self, node: Node) -> ir.Literal:
        raw = str(node.get_field("value", "0")).strip() or "0"
        return ir.Literal(ir.LiteralKind.NUMBER, raw, meta=self._meta())

    def _string(self, node: Node) -> ir.Literal:
        value = node.get_field("value", "")
        raw = node.get_field("raw") or quote_string(value, node.get_field("quote", '"'))
        return ir.Literal(ir.LiteralKind.STRING, raw, value, meta=self._meta())

    def _bool(self, node: Node) -> ir.Literal:
        value = bool(node.get_field("value"))
        return ir.Literal(ir.LiteralKind.BOOL, "True" if value else "False", value, meta=self._meta())

    def _binary(self, node: Node) -> ir.Binary:
        meta = self._meta()
        return ir.Binary(self._required(node, "LEFT"), self._enum(ir.BinaryOp, node.get_field("op"), node),
                         self._required(node, "RIGHT"), meta=meta)

    def _unary(self, node: Node) -> ir.Unary:
        meta = self._meta()
        return ir.Unary(self._enum(ir.UnaryOp, node.get_field("op"), node),
                        self._required(node, "OPERAND"), meta=meta)

    def _boolop(self, node: Node) -> ir.BoolOp:
        meta = self._meta()
        values = [self._required(node, f"ITEM{i}") for i in range(node.item_count)]
        return ir.BoolOp(self._enum(ir.BoolOpKind, node.get_field("op"), node), values, meta=meta)

    def _compare(self, node: Node) -> ir.Compare:
        meta = self._meta()
        left = self._required(node, "LEFT")
        ops = [self._enum(ir.CompareOp, node.get_field(f"OP{i}"), node) for i in range(node.item_count)]
        comparators = [self._required(node, f"CMP{i}") for i in range(node.item_count)]
        return ir.Compare(left, ops, comparators, meta=meta)

    def _ifexpr(self, node: Node) -> ir.IfExpr:
        meta = self._meta()
        return ir.IfExpr(self._required(node, "COND"), self._required(node, "THEN"),
                         self._required(node, "ELSE"), meta=meta)

    def _lambda(self, node: Node) -> ir.Lambda:
        meta = self._meta()
        return ir.Lambda(self._params(node, annotations=False), self._required(node, "EXPR"), meta=meta)

    def _call(self, node: Node) -> ir.Call:
        meta = self._meta()
        func = self._required(node, "CALLEE")
        args = [self._required(node, f"ARG{i}") for i in range(node.item_count)]
        keywords = []
        for i in range(int(node.get_field("keyword_count", 0))):
            keyword_meta = self._meta()
            keywords.append(ir.Keyword(node.get_field(f"KWARG_NAME{i}") or None,
                                       self._required(node, f"KWARG{i}"), meta=keyword_meta))
        return ir.Call(func, args, keywords, meta=meta)

    def _items(self, node: Node) -> List[ir.Expr]:
        return [self._required(node, f"ITEM{i}") for i in range(node.item_count)]

    def _dict(self, node: Node) -> ir.DictExpr:
        meta = self._meta()
        entries = []
        for i in range(node.item_count):
            entry_meta = self._meta()
            entries.append(ir.DictEntry(self._optional(node, f"KEY{i}"),
                                        self._required(node, f"VALUE{i}"), meta=entry_meta))
        return ir.DictExpr(entries, meta=meta)

    def _attribute(self, node: Node) -> ir.Attribute:
        meta = self._meta()
        return ir.Attribute(self._required(node, "VALUE"), node.get_field("attr") or MISSING_NAME, meta=meta)

    def _subscript(self, node: Node) -> ir.Subscript:
        meta = self._meta()
        return ir.Subscript(self._required(node, "VALUE"), self._required(node, "INDEX"), meta=meta)

    def _slice(self, node: Node) -> ir.Slice:
        meta = self._meta()
        return ir.Slice(self._optional(node, "LOWER"), self._optional(node, "UPPER"),
                        self._optional(node, "STEP"), meta=meta)

    def _comprehension(self, node: Node) -> ir.Comprehension:
        meta = self._meta()
        kind = self._enum(ir.ComprehensionKind, node.get_field("kind"), node)
        element = self._required(node, "ELEMENT")
        key = self._required(node, "KEY") if kind == ir.ComprehensionKind.DICT else None
        clauses = []
        for i in range(node.item_count):
            clause_meta = self._meta()
            ifs = [self._required(node, f"IF{i}_{j}") for j in range(int(node.get_field(f"IF_COUNT{i}", 0)))]
            clauses.append(ir.ComprehensionClause(
                self._required(node, f"TARGET{i}"),
                self._required(node, f"ITER{i}"),
                ifs,
                is_async=bool(node.get_field(f"IS_ASYNC{i}")),
                meta=clause_meta,
            ))
        return ir.Comprehension(kind, element, clauses, key, meta=meta)

    def _fstring(self, node: Node) -> ir.FString:
        meta = self._meta()
        parts = []
        for i in range(node.item_count):
            part_meta = self._meta()
            kind = self._enum(ir.FStringPartKind, node.get_field(f"PART_KIND{i}"), node)
            if kind == ir.FStringPartKind.LITERAL:
                parts.append(ir.FStringPart(kind, text=node.get_field(f"PART_TEXT{i}", ""), meta=part_meta))
            else:
                parts.append(ir.FStringPart(
                    kind,
                    expr=self._required(node, f"PART{i}"),
                    conversion=node.get_field(f"CONVERSION{i}", ""),
                    format_spec=node.get_field(f"FORMAT_SPEC{i}", ""),
                    meta=part_meta,
                ))
        return ir.FString(parts, node.get_field("quote", '"'), meta=meta)

    def _named_expr(self, node: Node) -> ir.NamedExpr:
        meta = self._meta()
        return ir.NamedExpr(node.get_field("name") or MISSING_NAME, self._required(node, "VALUE"), meta=meta)


def _is_definition(stmt: ir.Stmt) -> bool:
    return isinstance(stmt, (ir.FunctionDef, ir.ClassDef))
