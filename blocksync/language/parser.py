"""
blocksync Language — Python source → IR
========================================
Built on the standard ``ast`` and ``tokenize`` modules:

    ast       statement and expression shape, node positions
    tokenize  comments, blank lines and the significant-token stream used
              for token ranges

Ids are issued in pre-order starting at 1 for the Program node; every parse
starts its own sequence, and the synchronization controller reconciles its
allocator past them.

Blank and comment-only lines between statements become ``Empty`` statements
in the enclosing block; a comment after code on the same line becomes the
statement's trailing trivia.

Constructs outside the block vocabulary (starred expressions, ``...``,
positional-only parameters, class keywords, guarded or structural match
patterns, ``except*``, type parameters) raise ParseError.
"""

from __future__ import annotations

import ast
import bisect
import io
import logging
import tokenize
from typing import Callable, Dict, List, Optional, Tuple

from blocksync.ir import nodes as ir
from blocksync.ir.literals import quote_of, quote_string

from .errors import ParseError

logger = logging.getLogger(__name__)


BINARY_OPS = {
    ast.Add: ir.BinaryOp.ADD,
    ast.Sub: ir.BinaryOp.SUB,
    ast.Mult: ir.BinaryOp.MUL,
    ast.Div: ir.BinaryOp.DIV,
    ast.FloorDiv: ir.BinaryOp.FLOOR_DIV,
    ast.Mod: ir.BinaryOp.MOD,
    ast.Pow: ir.BinaryOp.POW,
    ast.MatMult: ir.BinaryOp.MAT_MUL,
    ast.LShift: ir.BinaryOp.LSHIFT,
    ast.RShift: ir.BinaryOp.RSHIFT,
    ast.BitAnd: ir.BinaryOp.BIT_AND,
    ast.BitOr: ir.BinaryOp.BIT_OR,
    ast.BitXor: ir.BinaryOp.BIT_XOR,
}

UNARY_OPS = {
    ast.USub: ir.UnaryOp.NEG,
    ast.UAdd: ir.UnaryOp.POS,
    ast.Not: ir.UnaryOp.NOT,
    ast.Invert: ir.UnaryOp.INVERT,
}

COMPARE_OPS = {
    ast.Eq: ir.CompareOp.EQ,
    ast.NotEq: ir.CompareOp.NE,
    ast.Lt: ir.CompareOp.LT,
    ast.LtE: ir.CompareOp.LE,
    ast.Gt: ir.CompareOp.GT,
    ast.GtE: ir.CompareOp.GE,
    ast.Is: ir.CompareOp.IS,
    ast.IsNot: ir.CompareOp.IS_NOT,
    ast.In: ir.CompareOp.IN,
    ast.NotIn: ir.CompareOp.NOT_IN,
}

COMPREHENSIONS = {
    ast.ListComp: ir.ComprehensionKind.LIST,
    ast.SetComp: ir.ComprehensionKind.SET,
    ast.GeneratorExp: ir.ComprehensionKind.GENERATOR,
    ast.DictComp: ir.ComprehensionKind.DICT,
}

# Tokens that carry no program content.
TRIVIAL_TOKENS = frozenset({
    tokenize.COMMENT, tokenize.NL, tokenize.NEWLINE, tokenize.INDENT,
    tokenize.DEDENT, tokenize.ENDMARKER, tokenize.ENCODING,
})


def parse_source(source: str, indent_width: int = 4) -> ir.Program:
    """Parse *source* into a Program; raise ParseError on failure."""
    return SourceParser(source, indent_width).parse()


class SourceParser:
    def __init__(self, source: str, indent_width: int = 4) -> None:
        self.source = source
        self.indent_width = indent_width
        self.lines: List[str] = io.StringIO(source).readlines()
        self._line_starts: List[int] = []
        offset = 0
        for line in self.lines:
            self._line_starts.append(offset)
            offset += len(line)
        self._next_id = 0
        self._comments: Dict[int, Tuple[int, str]] = {}
        self._claimed: set = set()
        self._code_starts: List[Tuple[int, int]] = []
        self._code_end_rows: List[int] = []

        self._stmt_handlers: Dict[type, Callable] = {
            ast.If: self._if,
            ast.While: self._while,
            ast.For: self._for,
            ast.AsyncFor: self._for,
            ast.With: self._with,
            ast.AsyncWith: self._with,
            ast.Match: self._match,
            ast.FunctionDef: self._function_def,
            ast.AsyncFunctionDef: self._function_def,
            ast.ClassDef: self._class_def,
            ast.Try: self._try,
            ast.Assign: self._assign,
            ast.AnnAssign: self._ann_assign,
            ast.AugAssign: self._aug_assign,
            ast.Expr: lambda n, d, m: ir.ExprStmt(self.expr(n.value), meta=m),
            ast.Pass: lambda n, d, m: ir.Pass(meta=m),
            ast.Break: lambda n, d, m: ir.Break(meta=m),
            ast.Continue: lambda n, d, m: ir.Continue(meta=m),
            ast.Return: lambda n, d, m: ir.Return(self._optional(n.value), meta=m),
            ast.Import: self._import,
            ast.ImportFrom: self._import_from,
            ast.Assert: lambda n, d, m: ir.Assert(self.expr(n.test), self._optional(n.msg), meta=m),
            ast.Raise: lambda n, d, m: ir.Raise(self._optional(n.exc), self._optional(n.cause), meta=m),
            ast.Delete: lambda n, d, m: ir.Delete([self.expr(t) for t in n.targets], meta=m),
            ast.Global: lambda n, d, m: ir.Global(list(n.names), meta=m),
            ast.Nonlocal: lambda n, d, m: ir.Nonlocal(list(n.names), meta=m),
        }

        self._expr_handlers: Dict[type, Callable] = {
            ast.Name: lambda n, m: ir.Identifier(n.id, meta=m),
            ast.Constant: self._constant,
            ast.BinOp: lambda n, m: ir.Binary(self.expr(n.left), BINARY_OPS[type(n.op)],
                                              self.expr(n.right), meta=m),
            ast.UnaryOp: lambda n, m: ir.Unary(UNARY_OPS[type(n.op)], self.expr(n.operand), meta=m),
            ast.BoolOp: lambda n, m: ir.BoolOp(
                ir.BoolOpKind.AND if isinstance(n.op, ast.And) else ir.BoolOpKind.OR,
                [self.expr(v) for v in n.values], meta=m),
            ast.Compare: lambda n, m: ir.Compare(
                self.expr(n.left), [COMPARE_OPS[type(op)] for op in n.ops],
                [self.expr(c) for c in n.comparators], meta=m),
            ast.Lambda: lambda n, m: ir.Lambda(self._params(n.args), self.expr(n.body), meta=m),
            ast.IfExp: lambda n, m: ir.IfExpr(self.expr(n.test), self.expr(n.body),
                                              self.expr(n.orelse), meta=m),
            ast.Call: self._call,
            ast.Tuple: lambda n, m: ir.TupleExpr([self.expr(e) for e in n.elts], meta=m),
            ast.List: lambda n, m: ir.ListExpr([self.expr(e) for e in n.elts], meta=m),
            ast.Set: lambda n, m: ir.SetExpr([self.expr(e) for e in n.elts], meta=m),
            ast.Dict: self._dict,
            ast.Attribute: lambda n, m: ir.Attribute(self.expr(n.value), n.attr, meta=m),
            ast.Subscript: lambda n, m: ir.Subscript(self.expr(n.value), self.expr(n.slice), meta=m),
            ast.Slice: lambda n, m: ir.Slice(self._optional(n.lower), self._optional(n.upper),
                                             self._optional(n.step), meta=m),
            ast.ListComp: self._comprehension,
            ast.SetComp: self._comprehension,
            ast.GeneratorExp: self._comprehension,
            ast.DictComp: self._comprehension,
            ast.JoinedStr: self._fstring,
            ast.NamedExpr: lambda n, m: ir.NamedExpr(n.target.id, self.expr(n.value), meta=m),
            ast.Yield: lambda n, m: ir.Yield(self._optional(n.value), meta=m),
            ast.YieldFrom: lambda n, m: ir.YieldFrom(self.expr(n.value), meta=m),
            ast.Await: lambda n, m: ir.Await(self.expr(n.value), meta=m),
        }

    # ── Entry point ──────────────────────────────────────────────────────────

    def parse(self) -> ir.Program:
        try:
            module = ast.parse(self.source)
        except SyntaxError as e:
            column = (e.offset - 1) if e.offset else 0
            raise ParseError(e.msg, e.lineno, column) from e
        self._scan_tokens()

        meta = self._meta(self._program_span())
        body = self._block(module.body, 0, trailing=True)
        logger.debug("parsed %d top-level statements, %d ids", len(body.statements), self._next_id)
        return ir.Program(body, indent_width=self.indent_width, dirty=False,
                          source=self.source, meta=meta)

    def _scan_tokens(self) -> None:
        readline = io.StringIO(self.source).readline
        try:
            for tok in tokenize.generate_tokens(readline):
                if tok.type == tokenize.COMMENT:
                    self._comments[tok.start[0]] = (tok.start[1], tok.string)
                elif tok.type not in TRIVIAL_TOKENS:
                    self._code_starts.append(tok.start)
                    self._code_end_rows.append(tok.end[0])
        except (tokenize.TokenError, SyntaxError) as e:
            raise ParseError(f"tokenize failed: {e}") from e

    # ── Positions ────────────────────────────────────────────────────────────

    def _line(self, lineno: int) -> str:
        if 1 <= lineno <= len(self.lines):
            return self.lines[lineno - 1]
        return ""

    def _position(self, lineno: int, column: int) -> ir.Position:
        if 1 <= lineno <= len(self._line_starts):
            offset = self._line_starts[lineno - 1] + column
        else:
            offset = len(self.source)
        return ir.Position(lineno, column, offset)

    def _char_column(self, lineno: int, byte_column: int) -> int:
        encoded = self._line(lineno).encode("utf-8")
        return len(encoded[:byte_column].decode("utf-8", "ignore"))

    def _start(self, node: ast.AST) -> ir.Position:
        return self._position(node.lineno, self._char_column(node.lineno, node.col_offset))

    def _end(self, node: ast.AST) -> ir.Position:
        return self._position(node.end_lineno, self._char_column(node.end_lineno, node.end_col_offset))

    def _span(self, node: ast.AST) -> Optional[ir.Span]:
        if getattr(node, "lineno", None) is None or getattr(node, "end_lineno", None) is None:
            return None
        return ir.Span(self._start(node), self._end(node))

    def _span_between(self, first: ast.AST, last: ast.AST) -> ir.Span:
        return ir.Span(self._start(first), self._end(last))

    def _program_span(self) -> ir.Span:
        if not self.lines:
            return ir.Span(ir.Position(1, 0, 0), ir.Position(1, 0, 0))
        last = len(self.lines)
        return ir.Span(ir.Position(1, 0, 0),
                       ir.Position(last, len(self.lines[-1]), len(self.source)))

    def _token_range(self, span: Optional[ir.Span]) -> Optional[ir.TokenRange]:
        if span is None:
            return None
        start = bisect.bisect_left(self._code_starts, (span.start.line, span.start.column))
        end = bisect.bisect_left(self._code_starts, (span.end.line, span.end.column))
        return ir.TokenRange(start, max(start, end))

    def _meta(self, span: Optional[ir.Span]) -> ir.NodeMeta:
        self._next_id += 1
        return ir.NodeMeta(id=self._next_id, span=span, token_range=self._token_range(span))

    def _last_code_line(self, position: ir.Position) -> int:
        """Last line holding program tokens before *position*, or 0."""
        i = bisect.bisect_left(self._code_starts, (position.line, position.column)) - 1
        return self._code_end_rows[i] if i >= 0 else 0

    def _unsupported(self, node: ast.AST, what: Optional[str] = None) -> ParseError:
        line = getattr(node, "lineno", None)
        column = self._char_column(line, node.col_offset) if line is not None else None
        return ParseError(f"unsupported syntax: {what or type(node).__name__}", line, column)

    def _segment(self, node: ast.AST) -> str:
        return ast.get_source_segment(self.source, node) or ""

    # ── Blocks and trivia ────────────────────────────────────────────────────

    def _block(self, stmts: List[ast.stmt], depth: int, trailing: bool = False) -> ir.Block:
        out: List[ir.Stmt] = []
        for node in stmts:
            start = self._stmt_start(node)
            for lineno in range(self._last_code_line(start) + 1, start.line):
                out.append(self._gap(lineno))
            out.append(self.statement(node, depth))
        if trailing:
            last = self._code_end_rows[-1] if self._code_end_rows else 0
            for lineno in range(last + 1, len(self.lines) + 1):
                out.append(self._gap(lineno))
        return ir.Block(out, depth)

    def _gap(self, lineno: int) -> ir.Empty:
        text = self._line(lineno).rstrip("\r\n")
        meta = self._meta(ir.Span(self._position(lineno, 0), self._position(lineno, len(text))))
        comment = self._comments.get(lineno)
        if comment is not None:
            meta.trailing_trivia.append(ir.Trivia(ir.TriviaKind.COMMENT, comment[1]))
            self._claimed.add(lineno)
        return ir.Empty(ir.EmptySource.SOURCE, meta=meta)

    def _stmt_start(self, node: ast.stmt) -> ir.Position:
        decorators = getattr(node, "decorator_list", None)
        if decorators:
            lineno = decorators[0].lineno
            text = self._line(lineno)
            return self._position(lineno, len(text) - len(text.lstrip()))
        return self._start(node)

    def _attach_comment(self, meta: ir.NodeMeta, lineno: int, after_column: Optional[int] = None) -> None:
        """Claim the comment ending *lineno*, if only whitespace separates it from *after_column*."""
        comment = self._comments.get(lineno)
        if comment is None or lineno in self._claimed:
            return
        column, text = comment
        line = self._line(lineno)
        if after_column is not None and (column < after_column or line[after_column:column].strip()):
            return
        gap_start = len(line[:column].rstrip())
        meta.trailing_trivia.append(ir.Trivia(ir.TriviaKind.RAW_WHITESPACE, line[gap_start:column]))
        meta.trailing_trivia.append(ir.Trivia(ir.TriviaKind.COMMENT, text))
        self._claimed.add(lineno)

    # ── Statements ───────────────────────────────────────────────────────────

    def statement(self, node: ast.stmt, depth: int) -> ir.Stmt:
        handler = self._stmt_handlers.get(type(node))
        if handler is None:
            raise self._unsupported(node)
        span = ir.Span(self._stmt_start(node), self._end(node))
        meta = self._meta(span)

        body = getattr(node, "body", None)
        if isinstance(body, list) and body:
            header_line = self._last_code_line(self._stmt_start(body[0]))
            if header_line < body[0].lineno:
                self._attach_comment(meta, header_line)
        elif isinstance(node, ast.Match):
            self._attach_comment(meta, node.subject.end_lineno)
        else:
            self._attach_comment(meta, span.end.line, span.end.column)
        return handler(node, depth, meta)

    def _is_elif(self, node: ast.If) -> bool:
        line = self._line(node.lineno)
        return line[self._char_column(node.lineno, node.col_offset):].startswith("elif")

    def _if(self, node: ast.If, depth: int, meta: ir.NodeMeta) -> ir.If:
        test = self.expr(node.test)
        body = self._block(node.body, depth + 1)
        elifs: List[ir.ElifClause] = []
        orelse = node.orelse
        while len(orelse) == 1 and isinstance(orelse[0], ast.If) and self._is_elif(orelse[0]):
            clause = orelse[0]
            clause_meta = self._meta(self._span(clause))
            elifs.append(ir.ElifClause(self.expr(clause.test), self._block(clause.body, depth + 1),
                                       meta=clause_meta))
            orelse = clause.orelse
        else_body = self._block(orelse, depth + 1) if orelse else None
        return ir.If(test, body, elifs, else_body, meta=meta)

    def _while(self, node: ast.While, depth: int, meta: ir.NodeMeta) -> ir.While:
        return ir.While(self.expr(node.test), self._block(node.body, depth + 1),
                        self._block(node.orelse, depth + 1) if node.orelse else None, meta=meta)

    def _for(self, node: ast.For, depth: int, meta: ir.NodeMeta) -> ir.For:
        return ir.For(self.expr(node.target), self.expr(node.iter), self._block(node.body, depth + 1),
                      self._block(node.orelse, depth + 1) if node.orelse else None,
                      is_async=isinstance(node, ast.AsyncFor), meta=meta)

    def _with(self, node: ast.With, depth: int, meta: ir.NodeMeta) -> ir.With:
        items = []
        for item in node.items:
            target = item.optional_vars
            if target is not None and not isinstance(target, ast.Name):
                raise self._unsupported(target, "with-item target other than a name")
            span = self._span_between(item.context_expr, target or item.context_expr)
            item_meta = self._meta(span)
            items.append(ir.WithItem(self.expr(item.context_expr),
                                     target.id if target is not None else None, meta=item_meta))
        return ir.With(items, self._block(node.body, depth + 1),
                       is_async=isinstance(node, ast.AsyncWith), meta=meta)

    def _match(self, node: ast.Match, depth: int, meta: ir.NodeMeta) -> ir.Match:
        subject = self.expr(node.subject)
        cases = []
        for case in node.cases:
            if case.guard is not None:
                raise self._unsupported(case.guard, "case guard")
            lineno = case.pattern.lineno
            text = self._line(lineno)
            start = self._position(lineno, len(text) - len(text.lstrip()))
            case_meta = self._meta(ir.Span(start, self._end(case.body[-1])))
            pattern = self.pattern(case.pattern)
            cases.append(ir.MatchCase(pattern, self._block(case.body, depth + 2), meta=case_meta))
        return ir.Match(subject, cases, meta=meta)

    def pattern(self, node: ast.pattern) -> ir.Pattern:
        meta = self._meta(self._span(node))
        if isinstance(node, ast.MatchAs) and node.pattern is None:
            if node.name is None:
                return ir.WildcardPattern(meta=meta)
            return ir.CapturePattern(node.name, meta=meta)
        if isinstance(node, ast.MatchValue):
            value = node.value
            if isinstance(value, ast.Constant) and value.value is not Ellipsis:
                return ir.LiteralPattern(self.expr(value), meta=meta)
            if (isinstance(value, ast.UnaryOp) and isinstance(value.op, ast.USub)
                    and isinstance(value.operand, ast.Constant)):
                literal_meta = self._meta(self._span(value))
                return ir.LiteralPattern(
                    ir.Literal(ir.LiteralKind.NUMBER, self._segment(value), meta=literal_meta), meta=meta)
        if isinstance(node, ast.MatchSingleton):
            literal_meta = self._meta(self._span(node))
            if node.value is None:
                literal = ir.Literal(ir.LiteralKind.NONE, "None", meta=literal_meta)
            else:
                literal = ir.Literal(ir.LiteralKind.BOOL, repr(node.value), node.value, meta=literal_meta)
            return ir.LiteralPattern(literal, meta=meta)
        raise self._unsupported(node, f"pattern {type(node).__name__}")

    def _function_def(self, node: ast.FunctionDef, depth: int, meta: ir.NodeMeta) -> ir.FunctionDef:
        if getattr(node, "type_params", None):
            raise self._unsupported(node, "type parameters")
        decorators = [self.expr(d) for d in node.decorator_list]
        params = self._params(node.args)
        return_type = self._optional(node.returns)
        body = self._block(node.body, depth + 1)
        return ir.FunctionDef(node.name, params, body, decorators, return_type,
                              is_async=isinstance(node, ast.AsyncFunctionDef), meta=meta)

    def _class_def(self, node: ast.ClassDef, depth: int, meta: ir.NodeMeta) -> ir.ClassDef:
        if getattr(node, "type_params", None):
            raise self._unsupported(node, "type parameters")
        if node.keywords:
            raise self._unsupported(node.keywords[0], "class keyword argument")
        decorators = [self.expr(d) for d in node.decorator_list]
        bases = [self.expr(b) for b in node.bases]
        return ir.ClassDef(node.name, bases, self._block(node.body, depth + 1), decorators, meta=meta)

    def _try(self, node: ast.Try, depth: int, meta: ir.NodeMeta) -> ir.Try:
        body = self._block(node.body, depth + 1)
        handlers = []
        for handler in node.handlers:
            handler_meta = self._meta(self._span(handler))
            handlers.append(ir.ExceptHandler(self._optional(handler.type), handler.name,
                                             self._block(handler.body, depth + 1), meta=handler_meta))
        return ir.Try(body, handlers,
                      self._block(node.orelse, depth + 1) if node.orelse else None,
                      self._block(node.finalbody, depth + 1) if node.finalbody else None, meta=meta)

    def _assign(self, node: ast.Assign, depth: int, meta: ir.NodeMeta) -> ir.Assign:
        targets = [self.expr(t) for t in node.targets]
        return ir.Assign(targets, self.expr(node.value), meta=meta)

    def _ann_assign(self, node: ast.AnnAssign, depth: int, meta: ir.NodeMeta) -> ir.AnnAssign:
        return ir.AnnAssign(self.expr(node.target), self.expr(node.annotation),
                            self._optional(node.value), meta=meta)

    def _aug_assign(self, node: ast.AugAssign, depth: int, meta: ir.NodeMeta) -> ir.AugAssign:
        return ir.AugAssign(self.expr(node.target), BINARY_OPS[type(node.op)],
                            self.expr(node.value), meta=meta)

    def _import_names(self, aliases: List[ast.alias]) -> List[ir.ImportName]:
        out = []
        for alias in aliases:
            if alias.name == "*":
                raise ParseError("unsupported syntax: star import", getattr(alias, "lineno", None),
                                 getattr(alias, "col_offset", None))
            out.append(ir.ImportName(alias.name, alias.asname, meta=self._meta(self._span(alias))))
        return out

    def _import(self, node: ast.Import, depth: int, meta: ir.NodeMeta) -> ir.Import:
        return ir.Import("", self._import_names(node.names), is_from=False, meta=meta)

    def _import_from(self, node: ast.ImportFrom, depth: int, meta: ir.NodeMeta) -> ir.Import:
        module = "." * (node.level or 0) + (node.module or "")
        return ir.Import(module, self._import_names(node.names), is_from=True, meta=meta)

    def _params(self, args: ast.arguments) -> List[ir.Param]:
        if args.posonlyargs:
            raise self._unsupported(args.posonlyargs[0], "positional-only parameter")
        params = []
        defaults: List[Optional[ast.expr]] = [None] * (len(args.args) - len(args.defaults)) + list(args.defaults)
        for arg, default in zip(args.args, defaults):
            params.append(self._param(arg, default, ir.ParamKind.NORMAL))
        if args.vararg is not None:
            params.append(self._param(args.vararg, None, ir.ParamKind.STAR))
        elif args.kwonlyargs:
            params.append(ir.Param("", kind=ir.ParamKind.STAR, meta=self._meta(None)))
        for arg, default in zip(args.kwonlyargs, args.kw_defaults):
            params.append(self._param(arg, default, ir.ParamKind.NORMAL))
        if args.kwarg is not None:
            params.append(self._param(args.kwarg, None, ir.ParamKind.DOUBLE_STAR))
        return params

    def _param(self, arg: ast.arg, default: Optional[ast.expr], kind: ir.ParamKind) -> ir.Param:
        meta = self._meta(self._span_between(arg, default or arg))
        annotation = self._optional(arg.annotation)
        return ir.Param(arg.arg, annotation, self._optional(default), kind, meta=meta)

    # ── Expressions ──────────────────────────────────────────────────────────

    def expr(self, node: ast.expr) -> ir.Expr:
        handler = self._expr_handlers.get(type(node))
        if handler is None:
            raise self._unsupported(node)
        return handler(node, self._meta(self._span(node)))

    def _optional(self, node: Optional[ast.expr]) -> Optional[ir.Expr]:
        return self.expr(node) if node is not None else None

    def _constant(self, node: ast.Constant, meta: ir.NodeMeta) -> ir.Literal:
        value = node.value
        raw = self._segment(node)
        if value is None:
            return ir.Literal(ir.LiteralKind.NONE, "None", meta=meta)
        if isinstance(value, bool):
            return ir.Literal(ir.LiteralKind.BOOL, raw or repr(value), value, meta=meta)
        if isinstance(value, (int, float, complex)):
            return ir.Literal(ir.LiteralKind.NUMBER, raw or repr(value), meta=meta)
        if isinstance(value, str):
            token_range = meta.token_range
            concatenated = token_range is not None and token_range.end - token_range.start > 1
            if concatenated and "\n" in raw:
                # implicit concatenation across lines only parses inside brackets
                raw = quote_string(value, quote_of(raw))
            return ir.Literal(ir.LiteralKind.STRING, raw or quote_string(value), value, meta=meta)
        if isinstance(value, bytes):
            return ir.Literal(ir.LiteralKind.STRING, raw, raw, meta=meta)
        raise self._unsupported(node, "ellipsis" if value is Ellipsis else type(value).__name__)

    def _call(self, node: ast.Call, meta: ir.NodeMeta) -> ir.Call:
        func = self.expr(node.func)
        args = []
        for arg in node.args:
            if isinstance(arg, ast.Starred):
                raise self._unsupported(arg, "starred argument")
            args.append(self.expr(arg))
        keywords = []
        for keyword in node.keywords:
            keyword_meta = self._meta(self._span(keyword))
            keywords.append(ir.Keyword(keyword.arg, self.expr(keyword.value), meta=keyword_meta))
        return ir.Call(func, args, keywords, meta=meta)

    def _dict(self, node: ast.Dict, meta: ir.NodeMeta) -> ir.DictExpr:
        entries = []
        for key, value in zip(node.keys, node.values):
            entry_meta = self._meta(self._span_between(key if key is not None else value, value))
            entries.append(ir.DictEntry(self._optional(key), self.expr(value), meta=entry_meta))
        return ir.DictExpr(entries, meta=meta)

    def _comprehension(self, node: ast.expr, meta: ir.NodeMeta) -> ir.Comprehension:
        kind = COMPREHENSIONS[type(node)]
        key = self.expr(node.key) if kind == ir.ComprehensionKind.DICT else None
        element = self.expr(node.value if kind == ir.ComprehensionKind.DICT else node.elt)
        clauses = []
        for generator in node.generators:
            last = generator.ifs[-1] if generator.ifs else generator.iter
            clause_meta = self._meta(self._span_between(generator.target, last))
            clauses.append(ir.ComprehensionClause(
                self.expr(generator.target), self.expr(generator.iter),
                [self.expr(i) for i in generator.ifs], bool(generator.is_async), meta=clause_meta))
        return ir.Comprehension(kind, element, clauses, key, meta=meta)

    def _fstring(self, node: ast.JoinedStr, meta: ir.NodeMeta) -> ir.FString:
        parts = []
        for value in node.values:
            part_meta = self._meta(self._span(value))
            if isinstance(value, ast.Constant):
                parts.append(ir.FStringPart(ir.FStringPartKind.LITERAL, text=value.value, meta=part_meta))
                continue
            conversion = chr(value.conversion) if value.conversion and value.conversion > 0 else ""
            parts.append(ir.FStringPart(ir.FStringPartKind.EXPR, expr=self.expr(value.value),
                                        conversion=conversion,
                                        format_spec=self._format_spec(value.format_spec),
                                        meta=part_meta))
        return ir.FString(parts, quote=quote_of(self._segment(node)), meta=meta)

    def _format_spec(self, spec: Optional[ast.JoinedStr]) -> str:
        if spec is None:
            return ""
        text = []
        for value in spec.values:
            if not isinstance(value, ast.Constant):
                raise self._unsupported(value, "nested format specification")
            text.append(value.value)
        return "".join(text)
