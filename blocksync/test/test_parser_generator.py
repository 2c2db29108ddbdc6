import pytest

from blocksync.ir import nodes as ir
from blocksync.language.errors import ParseError, extract_error_line
from blocksync.language.generator import RenderMode, Renderer, generate_source
from blocksync.language.parser import parse_source


def pretty(source):
    return generate_source(parse_source(source), RenderMode.PRETTY)


class TestParser:

    def test_assignment_shape(self):
        program = parse_source("x = 1")
        (stmt,) = program.body.statements
        assert isinstance(stmt, ir.Assign)
        (target,) = stmt.targets
        assert isinstance(target, ir.Identifier) and target.name == "x"
        assert stmt.value.kind == ir.LiteralKind.NUMBER
        assert stmt.value.raw == "1"
        assert not program.dirty
        assert program.source == "x = 1"

    def test_spans_are_one_based_lines(self):
        program = parse_source("a = 1\nb = 22\n")
        second = program.body.statements[1]
        assert (second.meta.span.start.line, second.meta.span.start.column) == (2, 0)
        assert (second.meta.span.end.line, second.meta.span.end.column) == (2, 6)
        assert second.meta.span.start.offset == 6

    def test_literal_kinds(self):
        program = parse_source("a = 'hi'\nb = True\nc = None\nd = 0x1F\n")
        literals = [s.value for s in program.body.statements]
        assert [(l.kind, l.raw, l.value) for l in literals] == [
            (ir.LiteralKind.STRING, "'hi'", "hi"),
            (ir.LiteralKind.BOOL, "True", True),
            (ir.LiteralKind.NONE, "None", None),
            (ir.LiteralKind.NUMBER, "0x1F", None),
        ]

    def test_elif_detected(self):
        (stmt,) = parse_source("if a:\n    pass\nelif b:\n    pass\nelse:\n    x = 1\n").body.statements
        assert [c.test.name for c in stmt.elifs] == ["b"]
        assert isinstance(stmt.else_body.statements[0], ir.Assign)

    def test_nested_if_in_else_is_not_elif(self):
        (stmt,) = parse_source("if a:\n    pass\nelse:\n    if b:\n        pass\n").body.statements
        assert stmt.elifs == []
        assert isinstance(stmt.else_body.statements[0], ir.If)

    def test_comment_lines_become_empty_statements(self):
        statements = parse_source("# header\n\nx = 1  # trailing\n").body.statements
        assert [type(s) for s in statements] == [ir.Empty, ir.Empty, ir.Assign]
        assert statements[0].meta.trailing_trivia[0].text == "# header"
        assert statements[1].meta.trailing_trivia == []
        assert [t.text for t in statements[2].meta.trailing_trivia] == ["  ", "# trailing"]

    def test_header_comment_attached_to_compound(self):
        (stmt,) = parse_source("while x:  # spin\n    pass\n").body.statements
        assert stmt.meta.trailing_trivia[-1].text == "# spin"

    def test_comment_inside_body_stays_in_body(self):
        (fn,) = parse_source("def f():\n    # note\n    return 1\n").body.statements
        assert isinstance(fn.body.statements[0], ir.Empty)
        assert fn.body.indent_level == 1

    def test_match_cases(self):
        (stmt,) = parse_source(
            "match x:\n    case 1:\n        pass\n    case -2:\n        pass\n"
            "    case None:\n        pass\n    case y:\n        pass\n    case _:\n        pass\n"
        ).body.statements
        patterns = [c.pattern for c in stmt.cases]
        assert [type(p) for p in patterns] == [
            ir.LiteralPattern, ir.LiteralPattern, ir.LiteralPattern, ir.CapturePattern, ir.WildcardPattern,
        ]
        assert patterns[1].literal.raw == "-2"
        assert stmt.cases[0].body.indent_level == 2

    def test_keyword_only_params_get_bare_star(self):
        (fn,) = parse_source("def f(a, *, key=1):\n    pass\n").body.statements
        assert [(p.name, p.kind) for p in fn.params] == [
            ("a", ir.ParamKind.NORMAL), ("", ir.ParamKind.STAR), ("key", ir.ParamKind.NORMAL),
        ]
        assert fn.params[2].default.raw == "1"

    def test_syntax_error_reports_line(self):
        with pytest.raises(ParseError) as info:
            parse_source("x = 1\ny = (\n")
        assert info.value.line == 2
        assert extract_error_line(str(info.value)) == 2

    @pytest.mark.parametrize("source, what", [
        ("f(*args)\n", "starred argument"),
        ("x = ...\n", "ellipsis"),
        ("def f(a, /, b):\n    pass\n", "positional-only parameter"),
        ("match x:\n    case 1 if y:\n        pass\n", "case guard"),
        ("match x:\n    case [a, b]:\n        pass\n", "pattern MatchSequence"),
        ("class A(metaclass=M):\n    pass\n", "class keyword argument"),
        ("with a as (b, c):\n    pass\n", "with-item target other than a name"),
    ])
    def test_unsupported_syntax(self, source, what):
        with pytest.raises(ParseError) as info:
            parse_source(source)
        assert f"unsupported syntax: {what}" in str(info.value)
        assert str(info.value).startswith("line ")


class TestGenerator:

    def test_lossless_returns_source_verbatim(self):
        source = "x=1   # keep\nif   a :\n  pass\n"
        assert generate_source(parse_source(source), RenderMode.LOSSLESS) == source

    def test_pretty_normalizes_layout(self):
        assert pretty("x=1   # keep\nif   a :\n  pass\n") == "x = 1   # keep\nif a:\n    pass\n"

    def test_dirty_program_rendered_even_in_lossless_mode(self):
        program = parse_source("x=1\n")
        program.dirty = True
        assert generate_source(program, RenderMode.LOSSLESS) == "x = 1\n"

    def test_blank_and_comment_lines_preserved(self):
        source = "# header\n\nx = 1\n\n\ndef f():\n    # inside\n    return x\n"
        assert pretty(source) == source

    def test_empty_block_renders_pass(self):
        program = ir.Program(ir.Block([ir.If(ir.Identifier("a"), ir.Block([], 1))]))
        assert generate_source(program, RenderMode.PRETTY) == "if a:\n    pass\n"

    def test_empty_program(self):
        assert generate_source(ir.Program(ir.Block([])), RenderMode.PRETTY) == ""

    def test_indent_width(self):
        program = parse_source("for i in x:\n    pass\n", indent_width=2)
        assert generate_source(program, RenderMode.PRETTY) == "for i in x:\n  pass\n"

    @pytest.mark.parametrize("source", [
        "(a + b) * c\n",
        "a - (b - c)\n",
        "a - b - c\n",
        "-x ** 2\n",
        "(-x) ** 2\n",
        "2 ** -1\n",
        "a ** b ** c\n",
        "(a ** b) ** c\n",
        "not (a and b)\n",
        "(a or b) and c\n",
        "a < b < c\n",
        "(a < b) == c\n",
        "x = a if b else c\n",
        "f((1,))\n",
        "print(a, b)\n",
        "a[1:2, ::3]\n",
        "x = [i * 2 for i in range(10) if i % 2]\n",
        "d = {**a, 'k': 1}\n",
        "f'{x!r:>10} {{literal}}'\n",
        "if (n := len(a)) > 10:\n    pass\n",
        "x = lambda a, b=1: a + b\n",
        "t = ()\n",
        "u = 1, 2\n",
        "del items[0], cache\n",
        "raise ValueError('bad') from err\n",
        "from ..pkg import a as b, c\n",
    ])
    def test_pretty_is_canonical(self, source):
        assert pretty(source) == source

    def test_single_element_tuple_in_statement(self):
        assert pretty("y = (x,)\n") == "y = x,\n"

    def test_literal_without_raw_spelled_from_value(self):
        renderer = Renderer()
        assert renderer.literal(ir.Literal(ir.LiteralKind.STRING, "", 'say "hi"')) == '"say \\"hi\\""'
        assert renderer.literal(ir.Literal(ir.LiteralKind.BOOL, "", False)) == "False"
