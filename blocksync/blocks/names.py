"""Block type names of the fixed vocabulary."""

# ── Structure ────────────────────────────────────────────────────────────────
ENTRY = "event_start"
SYNC_ERROR = "stmt_sync_error"

# ── Statements ───────────────────────────────────────────────────────────────
IF = "stmt_if"
ELIF = "stmt_elif"
ELSE = "stmt_else"
WHILE = "stmt_while"
FOR = "stmt_for"
MATCH = "stmt_match"
CASE = "stmt_case"
FUNCTION_DEF = "stmt_function_def"
CLASS_DEF = "stmt_class_def"
VAR_SET = "stmt_var_set"
ASSIGN = "stmt_assign"
ANN_ASSIGN = "stmt_ann_assign"
AUG_ASSIGN = "stmt_aug_assign"
EXPR_STMT = "stmt_expr"
PASS = "stmt_pass"
RETURN = "stmt_return"
BREAK = "stmt_break"
CONTINUE = "stmt_continue"
IMPORT = "stmt_import"
TRY = "stmt_try"
WITH = "with_block"
ASSERT = "assert_stmt"
RAISE = "raise_stmt"
DELETE = "del_stmt"
GLOBAL = "global_stmt"
NONLOCAL = "nonlocal_stmt"
PRINT = "stmt_print"
WAIT = "stmt_wait"

# ── Expressions ──────────────────────────────────────────────────────────────
IDENTIFIER = "expr_identifier"
NUMBER = "expr_number"
STRING = "expr_string"
BOOL = "expr_bool"
NONE = "expr_none"
BINARY = "expr_binary"
UNARY = "expr_unary"
BOOLOP = "expr_boolop"
COMPARE = "expr_compare"
IFEXPR = "expr_ifexpr"
LAMBDA = "expr_lambda"
CALL = "expr_call"
TUPLE = "expr_tuple"
LIST = "expr_list"
DICT = "expr_dict"
SET = "expr_set"
ATTRIBUTE = "expr_attribute"
SUBSCRIPT = "expr_subscript"
SLICE = "expr_slice"
GROUPED = "expr_grouped"
COMPREHENSION = "expr_comprehension"
FSTRING = "expr_fstring"
NAMED_EXPR = "expr_named_expr"
YIELD = "expr_yield"
YIELD_FROM = "expr_yield_from"
AWAIT = "expr_await"

# ── Specialized builtin calls ────────────────────────────────────────────────
RANDOM = "expr_random"
ROUND = "expr_round"
RANGE = "expr_range"
LEN = "expr_len"
INPUT = "expr_input"
TYPE_CONVERT = "expr_type_convert"
ENUMERATE = "expr_enumerate"
ZIP = "expr_zip"
SORTED = "expr_sorted"
REVERSED = "expr_reversed"
MATH_FUNC = "expr_math_func"
ISINSTANCE = "expr_isinstance"
TYPE_CHECK = "expr_type_check"

# if-chain continuations
CONTINUATIONS = frozenset({ELIF, ELSE})
