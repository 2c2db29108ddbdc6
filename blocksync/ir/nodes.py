"""
blocksync IR — Statement / Expression tree
===========================================
The intermediate representation shared by both synchronization directions:

    text  →  [parser]  →  Program  →  [graph_builder]  →  Workspace
    text  ←  [generator]  ←  Program  ←  [tree_builder]  ←  Workspace

Every node owns a NodeMeta (identity, source span, token range, trivia) and
its child nodes outright: the tree never shares a node between two parents.
Trees are built fresh by whichever side produces them and are never mutated
afterwards.

Design goals:
  - Pure data (dataclasses only, no references into the workspace).
  - Serialisable to JSON via blocksync.ir.serialize.
  - Closed variant sets: Expr and Stmt subclasses below are the whole grammar.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


# ── Metadata ─────────────────────────────────────────────────────────────────

class TriviaKind(Enum):
    COMMENT = "comment"
    BLANK = "blank"
    RAW_WHITESPACE = "raw_whitespace"


@dataclass
class Trivia:
    kind: TriviaKind
    text: str = ""


@dataclass
class Position:
    line: int = 0      # 1-based
    column: int = 0    # 0-based, in characters
    offset: int = 0    # absolute character offset into the source


@dataclass
class Span:
    start: Position = field(default_factory=Position)
    end: Position = field(default_factory=Position)

    def contains(self, other: "Span") -> bool:
        return self.start.offset <= other.start.offset and other.end.offset <= self.end.offset


@dataclass
class TokenRange:
    start: int = 0
    end: int = 0       # exclusive


@dataclass
class NodeMeta:
    id: int = 0
    span: Optional[Span] = None
    token_range: Optional[TokenRange] = None
    leading_trivia: List[Trivia] = field(default_factory=list)
    trailing_trivia: List[Trivia] = field(default_factory=list)


# ── Operators ────────────────────────────────────────────────────────────────
# Enum values are the source spelling so renderers and block fields can use
# them directly.

class BinaryOp(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    FLOOR_DIV = "//"
    MOD = "%"
    POW = "**"
    MAT_MUL = "@"
    LSHIFT = "<<"
    RSHIFT = ">>"
    BIT_AND = "&"
    BIT_OR = "|"
    BIT_XOR = "^"


class UnaryOp(Enum):
    NEG = "-"
    POS = "+"
    NOT = "not"
    INVERT = "~"


class BoolOpKind(Enum):
    AND = "and"
    OR = "or"


class CompareOp(Enum):
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    IS = "is"
    IS_NOT = "is not"
    IN = "in"
    NOT_IN = "not in"


class LiteralKind(Enum):
    NUMBER = "number"
    STRING = "string"
    BOOL = "bool"
    NONE = "none"


class ComprehensionKind(Enum):
    LIST = "list"
    SET = "set"
    GENERATOR = "generator"
    DICT = "dict"


class FStringPartKind(Enum):
    LITERAL = "literal"
    EXPR = "expr"


class ParamKind(Enum):
    NORMAL = "normal"
    STAR = "star"                # *args, or a bare "*" when name is empty
    DOUBLE_STAR = "double_star"  # **kwargs


class EmptySource(Enum):
    SOURCE = "source"            # blank/comment line present in the parsed text
    GENERATED = "generated"      # spacing inserted when rendering a compiled tree


# ── Expressions ──────────────────────────────────────────────────────────────

class Expr:
    """Marker base for every expression variant."""
    meta: NodeMeta


@dataclass
class Identifier(Expr):
    name: str
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Literal(Expr):
    kind: LiteralKind
    raw: str                     # exact source spelling: 1, 0x1f, 'hi', True, None
    value: Any = None            # decoded value for strings and bools
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Binary(Expr):
    left: Expr
    op: BinaryOp
    right: Expr
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Unary(Expr):
    op: UnaryOp
    operand: Expr
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class BoolOp(Expr):
    op: BoolOpKind
    values: List[Expr]
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Compare(Expr):
    left: Expr
    ops: List[CompareOp]
    comparators: List[Expr]
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Param:
    name: str
    annotation: Optional[Expr] = None
    default: Optional[Expr] = None
    kind: ParamKind = ParamKind.NORMAL
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Lambda(Expr):
    params: List[Param]
    body: Expr
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class IfExpr(Expr):
    test: Expr
    body: Expr
    orelse: Expr
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Keyword:
    name: Optional[str]          # None for **mapping
    value: Expr
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Call(Expr):
    func: Expr
    args: List[Expr] = field(default_factory=list)
    keywords: List[Keyword] = field(default_factory=list)
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class TupleExpr(Expr):
    elements: List[Expr]
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class ListExpr(Expr):
    elements: List[Expr]
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class SetExpr(Expr):
    elements: List[Expr]
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class DictEntry:
    key: Optional[Expr]          # None for **mapping
    value: Expr
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class DictExpr(Expr):
    entries: List[DictEntry]
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Attribute(Expr):
    value: Expr
    attr: str
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Subscript(Expr):
    value: Expr
    index: Expr
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Slice(Expr):
    lower: Optional[Expr] = None
    upper: Optional[Expr] = None
    step: Optional[Expr] = None
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class ComprehensionClause:
    target: Expr
    iter: Expr
    ifs: List[Expr] = field(default_factory=list)
    is_async: bool = False
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Comprehension(Expr):
    kind: ComprehensionKind
    element: Expr                # the value expression for dict comprehensions
    clauses: List[ComprehensionClause]
    key: Optional[Expr] = None   # dict comprehensions only
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Grouped(Expr):
    expr: Expr
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class FStringPart:
    kind: FStringPartKind
    text: str = ""               # literal text (already unescaped)
    expr: Optional[Expr] = None
    conversion: str = ""         # "", "r", "s" or "a"
    format_spec: str = ""
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class FString(Expr):
    parts: List[FStringPart]
    quote: str = '"'
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class NamedExpr(Expr):
    target: str
    value: Expr
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Yield(Expr):
    value: Optional[Expr] = None
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class YieldFrom(Expr):
    value: Expr
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Await(Expr):
    value: Expr
    meta: NodeMeta = field(default_factory=NodeMeta)


# ── Patterns (match arms) ────────────────────────────────────────────────────

class Pattern:
    """Marker base for the small pattern subset accepted in case arms."""
    meta: NodeMeta


@dataclass
class WildcardPattern(Pattern):
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class CapturePattern(Pattern):
    name: str
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class LiteralPattern(Pattern):
    literal: Literal
    meta: NodeMeta = field(default_factory=NodeMeta)


# ── Blocks ───────────────────────────────────────────────────────────────────

class Stmt:
    """Marker base for every statement variant."""
    meta: NodeMeta


@dataclass
class Block:
    statements: List[Stmt] = field(default_factory=list)
    indent_level: int = 0


# ── Statements ───────────────────────────────────────────────────────────────

@dataclass
class ElifClause:
    test: Expr
    body: Block
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class If(Stmt):
    test: Expr
    body: Block
    elifs: List[ElifClause] = field(default_factory=list)
    else_body: Optional[Block] = None
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class While(Stmt):
    test: Expr
    body: Block
    else_body: Optional[Block] = None
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class For(Stmt):
    target: Expr
    iter: Expr
    body: Block
    else_body: Optional[Block] = None
    is_async: bool = False
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class MatchCase:
    pattern: Pattern
    body: Block
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Match(Stmt):
    subject: Expr
    cases: List[MatchCase]
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class FunctionDef(Stmt):
    name: str
    params: List[Param]
    body: Block
    decorators: List[Expr] = field(default_factory=list)
    return_type: Optional[Expr] = None
    is_async: bool = False
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class ClassDef(Stmt):
    name: str
    bases: List[Expr]
    body: Block
    decorators: List[Expr] = field(default_factory=list)
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Assign(Stmt):
    targets: List[Expr]          # a = b = 1 has two targets
    value: Expr
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class AnnAssign(Stmt):
    target: Expr
    annotation: Expr
    value: Optional[Expr] = None
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class AugAssign(Stmt):
    target: Expr
    op: BinaryOp
    value: Expr
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class ExprStmt(Stmt):
    value: Expr
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Pass(Stmt):
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Return(Stmt):
    value: Optional[Expr] = None
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Break(Stmt):
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Continue(Stmt):
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class ImportName:
    name: str
    alias: Optional[str] = None
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Import(Stmt):
    module: str                  # "" for plain `import a, b`; may carry leading dots
    names: List[ImportName]
    is_from: bool = False
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class ExceptHandler:
    type: Optional[Expr]
    name: Optional[str]
    body: Block
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Try(Stmt):
    body: Block
    handlers: List[ExceptHandler] = field(default_factory=list)
    else_body: Optional[Block] = None
    finally_body: Optional[Block] = None
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class WithItem:
    context: Expr
    name: Optional[str] = None
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class With(Stmt):
    items: List[WithItem]
    body: Block
    is_async: bool = False
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Assert(Stmt):
    test: Expr
    msg: Optional[Expr] = None
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Raise(Stmt):
    exception: Optional[Expr] = None
    cause: Optional[Expr] = None
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Delete(Stmt):
    targets: List[Expr]
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Global(Stmt):
    names: List[str]
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Nonlocal(Stmt):
    names: List[str]
    meta: NodeMeta = field(default_factory=NodeMeta)


@dataclass
class Empty(Stmt):
    source: EmptySource = EmptySource.SOURCE
    meta: NodeMeta = field(default_factory=NodeMeta)


# ── Program ──────────────────────────────────────────────────────────────────

@dataclass
class Program:
    body: Block
    indent_width: int = 4
    dirty: bool = False          # True when the tree has not been rendered back to text yet
    source: Optional[str] = None # original text, kept for lossless rendering
    meta: NodeMeta = field(default_factory=NodeMeta)
