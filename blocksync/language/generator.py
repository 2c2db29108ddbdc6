"""
blocksync Language — IR → Python source
========================================
Two render modes:

    LOSSLESS  the program's original text when it has not been edited since
              it was parsed, otherwise the same output as PRETTY
    PRETTY    canonical formatting: one statement per line, indent_width
              spaces per level, parentheses only where precedence needs them

Operator binding strength, loosest first:
  ┌──────┬──────────────────────────────┐
  │ prec │ construct                    │
  ├──────┼──────────────────────────────┤
  │  -1  │ yield, yield from            │
  │   0  │ lambda                       │
  │   1  │ x if c else y                │
  │   2  │ or                           │
  │   3  │ and                          │
  │   4  │ not                          │
  │   5  │ comparisons                  │
  │ 6..11│ | ^ & << >> + - * / // % @   │
  │  12  │ unary - + ~                  │
  │  13  │ **                           │
  │  14  │ await                        │
  │  15  │ call, attribute, subscript   │
  │  16  │ atoms                        │
  └──────┴──────────────────────────────┘
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional

from blocksync.ir import nodes as ir
from blocksync.ir.literals import quote_string

from .errors import GenerationError

logger = logging.getLogger(__name__)


class RenderMode(Enum):
    LOSSLESS = "lossless"
    PRETTY = "pretty"


# ── Precedence ───────────────────────────────────────────────────────────────

P_YIELD = -1
P_LAMBDA = 0
P_IFEXPR = 1
P_OR = 2
P_AND = 3
P_NOT = 4
P_COMPARE = 5
P_BIT_OR = 6
P_BIT_XOR = 7
P_BIT_AND = 8
P_SHIFT = 9
P_ARITH = 10
P_TERM = 11
P_UNARY = 12
P_POWER = 13
P_AWAIT = 14
P_POSTFIX = 15
P_ATOM = 16

BINARY_PREC: Dict[ir.BinaryOp, int] = {
    ir.BinaryOp.BIT_OR: P_BIT_OR,
    ir.BinaryOp.BIT_XOR: P_BIT_XOR,
    ir.BinaryOp.BIT_AND: P_BIT_AND,
    ir.BinaryOp.LSHIFT: P_SHIFT,
    ir.BinaryOp.RSHIFT: P_SHIFT,
    ir.BinaryOp.ADD: P_ARITH,
    ir.BinaryOp.SUB: P_ARITH,
    ir.BinaryOp.MUL: P_TERM,
    ir.BinaryOp.DIV: P_TERM,
    ir.BinaryOp.FLOOR_DIV: P_TERM,
    ir.BinaryOp.MOD: P_TERM,
    ir.BinaryOp.MAT_MUL: P_TERM,
    ir.BinaryOp.POW: P_POWER,
}


def precedence(expr: ir.Expr) -> int:
    if isinstance(expr, ir.Binary):
        return BINARY_PREC[expr.op]
    if isinstance(expr, ir.Unary):
        return P_NOT if expr.op == ir.UnaryOp.NOT else P_UNARY
    if isinstance(expr, ir.Compare):
        return P_COMPARE
    if isinstance(expr, ir.BoolOp):
        return P_AND if expr.op == ir.BoolOpKind.AND else P_OR
    if isinstance(expr, ir.IfExpr):
        return P_IFEXPR
    if isinstance(expr, ir.Lambda):
        return P_LAMBDA
    if isinstance(expr, (ir.Yield, ir.YieldFrom)):
        return P_YIELD
    if isinstance(expr, ir.Await):
        return P_AWAIT
    if isinstance(expr, (ir.Call, ir.Attribute, ir.Subscript)):
        return P_POSTFIX
    return P_ATOM


# ── Public API ───────────────────────────────────────────────────────────────

def generate_source(program: ir.Program, mode: RenderMode = RenderMode.LOSSLESS) -> str:
    if mode == RenderMode.LOSSLESS and not program.dirty and program.source is not None:
        return program.source
    return Renderer(program.indent_width).render(program)


class Renderer:
    def __init__(self, indent_width: int = 4) -> None:
        self.indent_width = indent_width
        self._stmt_renderers: Dict[type, Callable[[ir.Stmt, int], List[str]]] = {
            ir.If: self._if,
            ir.While: self._while,
            ir.For: self._for,
            ir.Match: self._match,
            ir.FunctionDef: self._function_def,
            ir.ClassDef: self._class_def,
            ir.Try: self._try,
            ir.With: self._with,
        }

    def render(self, program: ir.Program) -> str:
        lines = self.block(program.body, 0, allow_empty=True)
        return "\n".join(lines) + "\n" if lines else ""

    # ── Blocks and statements ────────────────────────────────────────────────

    def _indent(self, depth: int) -> str:
        return " " * (self.indent_width * depth)

    def block(self, block: ir.Block, depth: int, allow_empty: bool = False) -> List[str]:
        lines: List[str] = []
        if not allow_empty and not any(not isinstance(s, ir.Empty) for s in block.statements):
            lines.append(self._indent(depth) + "pass")
        for stmt in block.statements:
            lines.extend(self.statement(stmt, depth))
        return lines

    def statement(self, stmt: ir.Stmt, depth: int) -> List[str]:
        pad = self._indent(depth)
        lines: List[str] = []
        for trivia in stmt.meta.leading_trivia:
            if trivia.kind == ir.TriviaKind.COMMENT:
                lines.append(pad + trivia.text)
            elif trivia.kind == ir.TriviaKind.BLANK:
                lines.append("")

        if isinstance(stmt, ir.Empty):
            comment = self._trailing(stmt).strip()
            lines.append(pad + comment if comment else "")
            return lines

        renderer = self._stmt_renderers.get(type(stmt))
        if renderer is None:
            body = [pad + self.simple(stmt)]
            header = 0
        else:
            body = renderer(stmt, depth)
            header = len(getattr(stmt, "decorators", []))
        trailing = self._trailing(stmt)
        if trailing:
            body[header] += trailing
        lines.extend(body)
        return lines

    def _trailing(self, stmt: ir.Stmt) -> str:
        parts = []
        for trivia in stmt.meta.trailing_trivia:
            if trivia.kind in (ir.TriviaKind.COMMENT, ir.TriviaKind.RAW_WHITESPACE):
                parts.append(trivia.text)
        text = "".join(parts)
        if text and not text[0].isspace() and not isinstance(stmt, ir.Empty):
            text = "  " + text
        return text

    def simple(self, stmt: ir.Stmt) -> str:
        if isinstance(stmt, ir.Assign):
            return " = ".join([self.top(t) for t in stmt.targets] + [self.top(stmt.value)])
        if isinstance(stmt, ir.AnnAssign):
            text = f"{self.expr(stmt.target)}: {self.expr(stmt.annotation)}"
            if stmt.value is not None:
                text += f" = {self.top(stmt.value)}"
            return text
        if isinstance(stmt, ir.AugAssign):
            return f"{self.expr(stmt.target)} {stmt.op.value}= {self.top(stmt.value)}"
        if isinstance(stmt, ir.ExprStmt):
            return self.top(stmt.value)
        if isinstance(stmt, ir.Pass):
            return "pass"
        if isinstance(stmt, ir.Break):
            return "break"
        if isinstance(stmt, ir.Continue):
            return "continue"
        if isinstance(stmt, ir.Return):
            return "return" if stmt.value is None else f"return {self.top(stmt.value)}"
        if isinstance(stmt, ir.Import):
            imported = ", ".join(
                n.name if not n.alias else f"{n.name} as {n.alias}" for n in stmt.names
            )
            if stmt.is_from:
                return f"from {stmt.module} import {imported}"
            return f"import {imported}"
        if isinstance(stmt, ir.Assert):
            text = f"assert {self.expr(stmt.test)}"
            if stmt.msg is not None:
                text += f", {self.expr(stmt.msg)}"
            return text
        if isinstance(stmt, ir.Raise):
            text = "raise"
            if stmt.exception is not None:
                text += f" {self.expr(stmt.exception)}"
                if stmt.cause is not None:
                    text += f" from {self.expr(stmt.cause)}"
            return text
        if isinstance(stmt, ir.Delete):
            return "del " + ", ".join(self.expr(t) for t in stmt.targets)
        if isinstance(stmt, ir.Global):
            return "global " + ", ".join(stmt.names)
        if isinstance(stmt, ir.Nonlocal):
            return "nonlocal " + ", ".join(stmt.names)
        raise GenerationError(f"cannot render statement {type(stmt).__name__}")

    def _clause(self, header: str, block: ir.Block, depth: int) -> List[str]:
        return [self._indent(depth) + header] + self.block(block, depth + 1)

    def _if(self, stmt: ir.If, depth: int) -> List[str]:
        lines = self._clause(f"if {self.expr(stmt.test)}:", stmt.body, depth)
        for clause in stmt.elifs:
            lines += self._clause(f"elif {self.expr(clause.test)}:", clause.body, depth)
        if stmt.else_body is not None:
            lines += self._clause("else:", stmt.else_body, depth)
        return lines

    def _while(self, stmt: ir.While, depth: int) -> List[str]:
        lines = self._clause(f"while {self.expr(stmt.test)}:", stmt.body, depth)
        if stmt.else_body is not None:
            lines += self._clause("else:", stmt.else_body, depth)
        return lines

    def _for(self, stmt: ir.For, depth: int) -> List[str]:
        keyword = "async for" if stmt.is_async else "for"
        header = f"{keyword} {self.top(stmt.target)} in {self.top(stmt.iter)}:"
        lines = self._clause(header, stmt.body, depth)
        if stmt.else_body is not None:
            lines += self._clause("else:", stmt.else_body, depth)
        return lines

    def _match(self, stmt: ir.Match, depth: int) -> List[str]:
        lines = [self._indent(depth) + f"match {self.top(stmt.subject)}:"]
        for case in stmt.cases:
            lines += self._clause(f"case {self.pattern(case.pattern)}:", case.body, depth + 1)
        return lines

    def pattern(self, pattern: ir.Pattern) -> str:
        if isinstance(pattern, ir.WildcardPattern):
            return "_"
        if isinstance(pattern, ir.CapturePattern):
            return pattern.name
        if isinstance(pattern, ir.LiteralPattern):
            return self.expr(pattern.literal)
        raise GenerationError(f"cannot render pattern {type(pattern).__name__}")

    def _decorators(self, decorators: List[ir.Expr], depth: int) -> List[str]:
        return [self._indent(depth) + "@" + self.expr(d) for d in decorators]

    def _function_def(self, stmt: ir.FunctionDef, depth: int) -> List[str]:
        keyword = "async def" if stmt.is_async else "def"
        header = f"{keyword} {stmt.name}({self.params(stmt.params)})"
        if stmt.return_type is not None:
            header += f" -> {self.expr(stmt.return_type)}"
        return self._decorators(stmt.decorators, depth) + self._clause(header + ":", stmt.body, depth)

    def _class_def(self, stmt: ir.ClassDef, depth: int) -> List[str]:
        header = f"class {stmt.name}"
        if stmt.bases:
            header += "(" + ", ".join(self.expr(b) for b in stmt.bases) + ")"
        return self._decorators(stmt.decorators, depth) + self._clause(header + ":", stmt.body, depth)

    def _try(self, stmt: ir.Try, depth: int) -> List[str]:
        lines = self._clause("try:", stmt.body, depth)
        for handler in stmt.handlers:
            header = "except"
            if handler.type is not None:
                header += f" {self.expr(handler.type)}"
                if handler.name:
                    header += f" as {handler.name}"
            lines += self._clause(header + ":", handler.body, depth)
        if stmt.else_body is not None:
            lines += self._clause("else:", stmt.else_body, depth)
        if stmt.finally_body is not None:
            lines += self._clause("finally:", stmt.finally_body, depth)
        return lines

    def _with(self, stmt: ir.With, depth: int) -> List[str]:
        items = []
        for item in stmt.items:
            text = self.expr(item.context)
            if item.name:
                text += f" as {item.name}"
            items.append(text)
        keyword = "async with" if stmt.is_async else "with"
        return self._clause(f"{keyword} {', '.join(items)}:", stmt.body, depth)

    def params(self, params: List[ir.Param], annotations: bool = True) -> str:
        rendered = []
        for param in params:
            prefix = {ir.ParamKind.STAR: "*", ir.ParamKind.DOUBLE_STAR: "**"}.get(param.kind, "")
            text = prefix + param.name
            annotated = annotations and param.annotation is not None
            if annotated:
                text += f": {self.expr(param.annotation)}"
            if param.default is not None:
                text += (" = " if annotated else "=") + self.expr(param.default)
            rendered.append(text)
        return ", ".join(rendered)

    # ── Expressions ──────────────────────────────────────────────────────────

    def top(self, expr: ir.Expr) -> str:
        """Render in statement position, where a tuple needs no parentheses."""
        if isinstance(expr, ir.TupleExpr) and expr.elements:
            return self._tuple_items(expr)
        return self.expr(expr, P_YIELD)

    def expr(self, expr: ir.Expr, required: int = P_LAMBDA) -> str:
        text = self._expr(expr)
        if precedence(expr) < required:
            return f"({text})"
        return text

    def _tuple_items(self, expr: ir.TupleExpr) -> str:
        items = [self.expr(e) for e in expr.elements]
        if len(items) == 1:
            return items[0] + ","
        return ", ".join(items)

    def _expr(self, expr: ir.Expr) -> str:
        if isinstance(expr, ir.Identifier):
            return expr.name
        if isinstance(expr, ir.Literal):
            return self.literal(expr)
        if isinstance(expr, ir.Binary):
            prec = BINARY_PREC[expr.op]
            if expr.op == ir.BinaryOp.POW:
                left = self.expr(expr.left, P_AWAIT)
                right = self.expr(expr.right, P_UNARY)
            else:
                left = self.expr(expr.left, prec)
                right = self.expr(expr.right, prec + 1)
            return f"{left} {expr.op.value} {right}"
        if isinstance(expr, ir.Unary):
            if expr.op == ir.UnaryOp.NOT:
                return f"not {self.expr(expr.operand, P_NOT)}"
            return f"{expr.op.value}{self.expr(expr.operand, P_UNARY)}"
        if isinstance(expr, ir.BoolOp):
            prec = precedence(expr)
            return f" {expr.op.value} ".join(self.expr(v, prec + 1) for v in expr.values)
        if isinstance(expr, ir.Compare):
            text = self.expr(expr.left, P_COMPARE + 1)
            for op, comparator in zip(expr.ops, expr.comparators):
                text += f" {op.value} {self.expr(comparator, P_COMPARE + 1)}"
            return text
        if isinstance(expr, ir.IfExpr):
            return (f"{self.expr(expr.body, P_IFEXPR + 1)} if {self.expr(expr.test, P_IFEXPR + 1)}"
                    f" else {self.expr(expr.orelse, P_IFEXPR)}")
        if isinstance(expr, ir.Lambda):
            params = self.params(expr.params, annotations=False)
            head = f"lambda {params}" if params else "lambda"
            return f"{head}: {self.expr(expr.body)}"
        if isinstance(expr, ir.Call):
            args = [self.expr(a) for a in expr.args]
            for keyword in expr.keywords:
                if keyword.name is None:
                    args.append(f"**{self.expr(keyword.value)}")
                else:
                    args.append(f"{keyword.name}={self.expr(keyword.value)}")
            return f"{self.expr(expr.func, P_POSTFIX)}({', '.join(args)})"
        if isinstance(expr, ir.TupleExpr):
            if not expr.elements:
                return "()"
            return f"({self._tuple_items(expr)})"
        if isinstance(expr, ir.ListExpr):
            return "[" + ", ".join(self.expr(e) for e in expr.elements) + "]"
        if isinstance(expr, ir.SetExpr):
            return "{" + ", ".join(self.expr(e) for e in expr.elements) + "}"
        if isinstance(expr, ir.DictExpr):
            entries = []
            for entry in expr.entries:
                if entry.key is None:
                    entries.append(f"**{self.expr(entry.value, P_BIT_OR)}")
                else:
                    entries.append(f"{self.expr(entry.key)}: {self.expr(entry.value)}")
            return "{" + ", ".join(entries) + "}"
        if isinstance(expr, ir.Attribute):
            return f"{self.expr(expr.value, P_POSTFIX)}.{expr.attr}"
        if isinstance(expr, ir.Subscript):
            index = self._tuple_items(expr.index) if isinstance(expr.index, ir.TupleExpr) and expr.index.elements \
                else self.expr(expr.index)
            return f"{self.expr(expr.value, P_POSTFIX)}[{index}]"
        if isinstance(expr, ir.Slice):
            text = self._optional(expr.lower) + ":" + self._optional(expr.upper)
            if expr.step is not None:
                text += ":" + self.expr(expr.step)
            return text
        if isinstance(expr, ir.Comprehension):
            return self._comprehension(expr)
        if isinstance(expr, ir.Grouped):
            return f"({self.expr(expr.expr, P_YIELD)})"
        if isinstance(expr, ir.FString):
            return self._fstring(expr)
        if isinstance(expr, ir.NamedExpr):
            return f"({expr.target} := {self.expr(expr.value)})"
        if isinstance(expr, ir.Yield):
            return "yield" if expr.value is None else f"yield {self.top(expr.value)}"
        if isinstance(expr, ir.YieldFrom):
            return f"yield from {self.expr(expr.value)}"
        if isinstance(expr, ir.Await):
            return f"await {self.expr(expr.value, P_POSTFIX)}"
        raise GenerationError(f"cannot render expression {type(expr).__name__}")

    def _optional(self, expr: Optional[ir.Expr]) -> str:
        return self.expr(expr) if expr is not None else ""

    def literal(self, literal: ir.Literal) -> str:
        if literal.raw:
            return literal.raw
        if literal.kind == ir.LiteralKind.STRING:
            return quote_string(literal.value or "")
        if literal.kind == ir.LiteralKind.BOOL:
            return "True" if literal.value else "False"
        if literal.kind == ir.LiteralKind.NONE:
            return "None"
        return str(literal.value)

    def _comprehension(self, expr: ir.Comprehension) -> str:
        if expr.kind == ir.ComprehensionKind.DICT:
            head = f"{self.expr(expr.key)}: {self.expr(expr.element)}"
        else:
            head = self.expr(expr.element)
        clauses = []
        for clause in expr.clauses:
            keyword = "async for" if clause.is_async else "for"
            text = f"{keyword} {self.top(clause.target)} in {self.expr(clause.iter, P_OR)}"
            for condition in clause.ifs:
                text += f" if {self.expr(condition, P_OR)}"
            clauses.append(text)
        inner = " ".join([head] + clauses)
        brackets = {
            ir.ComprehensionKind.LIST: "[]",
            ir.ComprehensionKind.SET: "{}",
            ir.ComprehensionKind.DICT: "{}",
            ir.ComprehensionKind.GENERATOR: "()",
        }[expr.kind]
        return brackets[0] + inner + brackets[1]

    def _fstring(self, expr: ir.FString) -> str:
        quote = expr.quote
        out = []
        for part in expr.parts:
            if part.kind == ir.FStringPartKind.LITERAL:
                text = part.text.replace("{", "{{").replace("}", "}}")
                # reuse the string escaper, minus its delimiters
                out.append(quote_string(text, quote)[len(quote):-len(quote)])
                continue
            inner = self.expr(part.expr, P_IFEXPR) if part.expr is not None else ""
            if inner.startswith("{"):
                inner = " " + inner
            if part.conversion:
                inner += "!" + part.conversion
            if part.format_spec:
                inner += ":" + part.format_spec
            out.append("{" + inner + "}")
        return f"f{quote}{''.join(out)}{quote}"
