"""
Block vocabulary — one node type per IR statement/expression variant.

Import this module once as a side-effect to register every block type with
the Node registry so the workspace can instantiate them by name.

Slot conventions:
    UPPER_CASE names are connection slots (value or statement).
    lower_case names are scalar fields edited in place.
    Indexed slots/fields (ARG0, PARAM1 ...) are regenerated from count fields.
"""
from __future__ import annotations

from typing import Any, Dict, List

from blocksync.core.Node import (
    EntryNode,
    ExpressionNode,
    Node,
    Shape,
    StatementNode,
    indexed,
)

from . import names


def _count(node: Node, field_name: str) -> int:
    return max(0, int(node.fields.get(field_name, 0) or 0))


# ── Structure ────────────────────────────────────────────────────────────────

@Node.register(names.ENTRY)
class EntryBlock(EntryNode):
    STATEMENT_SLOTS = ("BODY",)


@Node.register(names.SYNC_ERROR)
class SyncErrorBlock(StatementNode):
    FIELDS = {"message": ""}


# ── Control flow ─────────────────────────────────────────────────────────────

@Node.register(names.IF)
class IfBlock(StatementNode):
    VALUE_SLOTS = ("COND",)
    STATEMENT_SLOTS = ("BODY",)


@Node.register(names.ELIF)
class ElifBlock(StatementNode):
    VALUE_SLOTS = ("COND",)
    STATEMENT_SLOTS = ("BODY",)


@Node.register(names.ELSE)
class ElseBlock(StatementNode):
    STATEMENT_SLOTS = ("BODY",)


@Node.register(names.WHILE)
class WhileBlock(StatementNode):
    VALUE_SLOTS = ("COND",)
    STATEMENT_SLOTS = ("BODY", "ELSE_BODY")
    FIELDS = {"has_else": False}


@Node.register(names.FOR)
class ForBlock(StatementNode):
    VALUE_SLOTS = ("TARGET", "ITER")
    STATEMENT_SLOTS = ("BODY", "ELSE_BODY")
    FIELDS = {"is_async": False, "has_else": False}


@Node.register(names.MATCH)
class MatchBlock(StatementNode):
    VALUE_SLOTS = ("SUBJECT",)
    STATEMENT_SLOTS = ("CASES",)


@Node.register(names.CASE)
class CaseBlock(StatementNode):
    VALUE_SLOTS = ("PATTERN",)
    STATEMENT_SLOTS = ("BODY",)


@Node.register(names.TRY)
class TryBlock(StatementNode):
    STATEMENT_SLOTS = ("BODY", "ELSE_BODY", "FINALLY_BODY")
    FIELDS = {"handler_count": 0, "has_else": False, "has_finally": False}
    SHAPE_FIELDS = ("handler_count",)

    def dynamic_shape(self) -> Shape:
        n = _count(self, "handler_count")
        fields = {name: "" for name in indexed("EXCEPT_NAME", n)}
        return indexed("EXCEPT_TYPE", n), indexed("EXCEPT_BODY", n), fields


@Node.register(names.WITH)
class WithBlock(StatementNode):
    STATEMENT_SLOTS = ("BODY",)
    FIELDS = {"is_async": False, "item_count": 1}
    SHAPE_FIELDS = ("item_count",)

    def dynamic_shape(self) -> Shape:
        n = _count(self, "item_count")
        return indexed("CONTEXT", n), [], {name: "" for name in indexed("NAME", n)}


# ── Definitions ──────────────────────────────────────────────────────────────

def _param_fields(n: int) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for i in range(n):
        fields[f"PARAM{i}"] = ""
        fields[f"PARAM_KIND{i}"] = "normal"
    return fields


@Node.register(names.FUNCTION_DEF)
class FunctionDefBlock(StatementNode):
    VALUE_SLOTS = ("RETURN_TYPE",)
    STATEMENT_SLOTS = ("BODY",)
    FIELDS = {"name": "", "is_async": False, "item_count": 0, "decorator_count": 0}
    SHAPE_FIELDS = ("item_count", "decorator_count")

    def dynamic_shape(self) -> Shape:
        n = _count(self, "item_count")
        values = indexed("ANNOTATION", n) + indexed("DEFAULT", n)
        values += indexed("DECORATOR", _count(self, "decorator_count"))
        return values, [], _param_fields(n)


@Node.register(names.CLASS_DEF)
class ClassDefBlock(StatementNode):
    STATEMENT_SLOTS = ("BODY",)
    FIELDS = {"name": "", "item_count": 0, "decorator_count": 0}
    SHAPE_FIELDS = ("item_count", "decorator_count")

    def dynamic_shape(self) -> Shape:
        values = indexed("BASE", _count(self, "item_count"))
        values += indexed("DECORATOR", _count(self, "decorator_count"))
        return values, [], {}


# ── Simple statements ────────────────────────────────────────────────────────

@Node.register(names.VAR_SET)
class VarSetBlock(StatementNode):
    VALUE_SLOTS = ("VALUE",)
    FIELDS = {"name": ""}


@Node.register(names.ASSIGN)
class AssignBlock(StatementNode):
    VALUE_SLOTS = ("VALUE",)
    FIELDS = {"item_count": 1}
    SHAPE_FIELDS = ("item_count",)

    def dynamic_shape(self) -> Shape:
        return indexed("TARGET", _count(self, "item_count")), [], {}


@Node.register(names.ANN_ASSIGN)
class AnnAssignBlock(StatementNode):
    VALUE_SLOTS = ("TARGET", "ANNOTATION", "VALUE")


@Node.register(names.AUG_ASSIGN)
class AugAssignBlock(StatementNode):
    VALUE_SLOTS = ("TARGET", "VALUE")
    FIELDS = {"op": "+"}


@Node.register(names.EXPR_STMT)
class ExprStmtBlock(StatementNode):
    VALUE_SLOTS = ("EXPR",)


@Node.register(names.PASS)
class PassBlock(StatementNode):
    pass


@Node.register(names.BREAK)
class BreakBlock(StatementNode):
    pass


@Node.register(names.CONTINUE)
class ContinueBlock(StatementNode):
    pass


@Node.register(names.RETURN)
class ReturnBlock(StatementNode):
    VALUE_SLOTS = ("VALUE",)


@Node.register(names.IMPORT)
class ImportBlock(StatementNode):
    FIELDS = {"module": "", "is_from": False, "item_count": 1}
    SHAPE_FIELDS = ("item_count",)

    def dynamic_shape(self) -> Shape:
        n = _count(self, "item_count")
        fields: Dict[str, Any] = {}
        for i in range(n):
            fields[f"NAME{i}"] = ""
            fields[f"ALIAS{i}"] = ""
        return [], [], fields


@Node.register(names.ASSERT)
class AssertBlock(StatementNode):
    VALUE_SLOTS = ("CONDITION", "MESSAGE")


@Node.register(names.RAISE)
class RaiseBlock(StatementNode):
    VALUE_SLOTS = ("EXCEPTION", "CAUSE")


@Node.register(names.DELETE)
class DeleteBlock(StatementNode):
    FIELDS = {"item_count": 1}
    SHAPE_FIELDS = ("item_count",)

    def dynamic_shape(self) -> Shape:
        return indexed("TARGET", _count(self, "item_count")), [], {}


@Node.register(names.GLOBAL)
class GlobalBlock(StatementNode):
    FIELDS = {"names": ""}   # comma separated


@Node.register(names.NONLOCAL)
class NonlocalBlock(StatementNode):
    FIELDS = {"names": ""}


@Node.register(names.PRINT)
class PrintBlock(StatementNode):
    VALUE_SLOTS = ("VALUE",)


@Node.register(names.WAIT)
class WaitBlock(StatementNode):
    VALUE_SLOTS = ("VALUE",)


# ── Atoms ────────────────────────────────────────────────────────────────────

@Node.register(names.IDENTIFIER)
class IdentifierBlock(ExpressionNode):
    FIELDS = {"name": ""}


@Node.register(names.NUMBER)
class NumberBlock(ExpressionNode):
    FIELDS = {"value": "0"}   # source spelling


@Node.register(names.STRING)
class StringBlock(ExpressionNode):
    FIELDS = {"value": "", "quote": '"', "raw": ""}

    def set_field(self, name: str, value: Any) -> None:
        # The recorded source spelling no longer matches once the text is edited.
        if name in ("value", "quote") and self.fields.get(name) != value:
            self.fields["raw"] = ""
        super().set_field(name, value)


@Node.register(names.BOOL)
class BoolBlock(ExpressionNode):
    FIELDS = {"value": False}


@Node.register(names.NONE)
class NoneBlock(ExpressionNode):
    pass


# ── Operators ────────────────────────────────────────────────────────────────

@Node.register(names.BINARY)
class BinaryBlock(ExpressionNode):
    VALUE_SLOTS = ("LEFT", "RIGHT")
    FIELDS = {"op": "+"}


@Node.register(names.UNARY)
class UnaryBlock(ExpressionNode):
    VALUE_SLOTS = ("OPERAND",)
    FIELDS = {"op": "-"}


@Node.register(names.BOOLOP)
class BoolOpBlock(ExpressionNode):
    FIELDS = {"op": "and", "item_count": 2}
    SHAPE_FIELDS = ("item_count",)

    def dynamic_shape(self) -> Shape:
        return indexed("ITEM", _count(self, "item_count")), [], {}


@Node.register(names.COMPARE)
class CompareBlock(ExpressionNode):
    VALUE_SLOTS = ("LEFT",)
    FIELDS = {"item_count": 1}
    SHAPE_FIELDS = ("item_count",)

    def dynamic_shape(self) -> Shape:
        n = _count(self, "item_count")
        return indexed("CMP", n), [], {name: "==" for name in indexed("OP", n)}


@Node.register(names.IFEXPR)
class IfExprBlock(ExpressionNode):
    VALUE_SLOTS = ("COND", "THEN", "ELSE")


@Node.register(names.LAMBDA)
class LambdaBlock(ExpressionNode):
    VALUE_SLOTS = ("EXPR",)
    FIELDS = {"item_count": 0}
    SHAPE_FIELDS = ("item_count",)

    def dynamic_shape(self) -> Shape:
        n = _count(self, "item_count")
        return indexed("DEFAULT", n), [], _param_fields(n)


@Node.register(names.NAMED_EXPR)
class NamedExprBlock(ExpressionNode):
    VALUE_SLOTS = ("VALUE",)
    FIELDS = {"name": ""}


@Node.register(names.YIELD)
class YieldBlock(ExpressionNode):
    VALUE_SLOTS = ("VALUE",)


@Node.register(names.YIELD_FROM)
class YieldFromBlock(ExpressionNode):
    VALUE_SLOTS = ("VALUE",)


@Node.register(names.AWAIT)
class AwaitBlock(ExpressionNode):
    VALUE_SLOTS = ("VALUE",)


# ── Calls and access ─────────────────────────────────────────────────────────

@Node.register(names.CALL)
class CallBlock(ExpressionNode):
    VALUE_SLOTS = ("CALLEE",)
    FIELDS = {"item_count": 0, "keyword_count": 0}
    SHAPE_FIELDS = ("item_count", "keyword_count")

    def dynamic_shape(self) -> Shape:
        k = _count(self, "keyword_count")
        values = indexed("ARG", _count(self, "item_count")) + indexed("KWARG", k)
        return values, [], {name: "" for name in indexed("KWARG_NAME", k)}


@Node.register(names.ATTRIBUTE)
class AttributeBlock(ExpressionNode):
    VALUE_SLOTS = ("VALUE",)
    FIELDS = {"attr": ""}


@Node.register(names.SUBSCRIPT)
class SubscriptBlock(ExpressionNode):
    VALUE_SLOTS = ("VALUE", "INDEX")


@Node.register(names.SLICE)
class SliceBlock(ExpressionNode):
    VALUE_SLOTS = ("LOWER", "UPPER", "STEP")


@Node.register(names.GROUPED)
class GroupedBlock(ExpressionNode):
    VALUE_SLOTS = ("EXPR",)


# ── Collections ──────────────────────────────────────────────────────────────

class _ItemsBlock(ExpressionNode):
    FIELDS = {"item_count": 0}
    SHAPE_FIELDS = ("item_count",)

    def dynamic_shape(self) -> Shape:
        return indexed("ITEM", _count(self, "item_count")), [], {}


@Node.register(names.TUPLE)
class TupleBlock(_ItemsBlock):
    pass


@Node.register(names.LIST)
class ListBlock(_ItemsBlock):
    pass


@Node.register(names.SET)
class SetBlock(_ItemsBlock):
    pass


@Node.register(names.DICT)
class DictBlock(ExpressionNode):
    FIELDS = {"item_count": 0}
    SHAPE_FIELDS = ("item_count",)

    def dynamic_shape(self) -> Shape:
        n = _count(self, "item_count")
        return indexed("KEY", n) + indexed("VALUE", n), [], {}


@Node.register(names.COMPREHENSION)
class ComprehensionBlock(ExpressionNode):
    """
    One block for every comprehension flavour. Each for-clause i owns
    TARGET{i}/ITER{i} and IF_COUNT{i} filter slots named IF{i}_{j}.
    """
    VALUE_SLOTS = ("ELEMENT", "KEY")
    FIELDS = {"kind": "list", "item_count": 1}
    SHAPE_FIELDS = ("item_count",)

    def is_shape_field(self, name: str) -> bool:
        return name in self.SHAPE_FIELDS or name.startswith("IF_COUNT")

    def dynamic_shape(self) -> Shape:
        values: List[str] = []
        fields: Dict[str, Any] = {}
        for i in range(_count(self, "item_count")):
            values += [f"TARGET{i}", f"ITER{i}"]
            values += [f"IF{i}_{j}" for j in range(_count(self, f"IF_COUNT{i}"))]
            fields[f"IF_COUNT{i}"] = 0
            fields[f"IS_ASYNC{i}"] = False
        return values, [], fields


@Node.register(names.FSTRING)
class FStringBlock(ExpressionNode):
    FIELDS = {"quote": '"', "item_count": 0}
    SHAPE_FIELDS = ("item_count",)

    def dynamic_shape(self) -> Shape:
        n = _count(self, "item_count")
        fields: Dict[str, Any] = {}
        for i in range(n):
            fields[f"PART_KIND{i}"] = "literal"
            fields[f"PART_TEXT{i}"] = ""
            fields[f"CONVERSION{i}"] = ""
            fields[f"FORMAT_SPEC{i}"] = ""
        return indexed("PART", n), [], fields


# ── Specialized builtin calls ────────────────────────────────────────────────

@Node.register(names.RANDOM)
class RandomBlock(ExpressionNode):
    pass


@Node.register(names.ROUND)
class RoundBlock(ExpressionNode):
    VALUE_SLOTS = ("VALUE",)


@Node.register(names.RANGE)
class RangeBlock(ExpressionNode):
    VALUE_SLOTS = ("START", "STOP", "STEP")


@Node.register(names.LEN)
class LenBlock(ExpressionNode):
    VALUE_SLOTS = ("OBJ",)


@Node.register(names.INPUT)
class InputBlock(ExpressionNode):
    VALUE_SLOTS = ("PROMPT",)


@Node.register(names.TYPE_CONVERT)
class TypeConvertBlock(ExpressionNode):
    VALUE_SLOTS = ("VALUE",)
    FIELDS = {"type": "int"}


@Node.register(names.ENUMERATE)
class EnumerateBlock(ExpressionNode):
    VALUE_SLOTS = ("ITERABLE", "START")


@Node.register(names.ZIP)
class ZipBlock(ExpressionNode):
    FIELDS = {"item_count": 2}
    SHAPE_FIELDS = ("item_count",)

    def dynamic_shape(self) -> Shape:
        return indexed("ITER", _count(self, "item_count")), [], {}


@Node.register(names.SORTED)
class SortedBlock(ExpressionNode):
    VALUE_SLOTS = ("ITERABLE",)


@Node.register(names.REVERSED)
class ReversedBlock(ExpressionNode):
    VALUE_SLOTS = ("ITERABLE",)


@Node.register(names.MATH_FUNC)
class MathFuncBlock(ExpressionNode):
    VALUE_SLOTS = ("VALUE",)
    FIELDS = {"func": "abs"}


@Node.register(names.ISINSTANCE)
class IsInstanceBlock(ExpressionNode):
    VALUE_SLOTS = ("OBJ", "TYPE")


@Node.register(names.TYPE_CHECK)
class TypeCheckBlock(ExpressionNode):
    VALUE_SLOTS = ("OBJ",)
