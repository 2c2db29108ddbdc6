import pytest

from blocksync.ir import nodes as ir
from blocksync.ir.serialize import TAG, dumps, from_dict, loads, to_dict
from blocksync.ir.walk import children, iter_nodes, span_violations, strip_meta, structurally_equal
from blocksync.language.parser import parse_source

SAMPLE = (
    "import math\n"
    "\n"
    "@trace\n"
    "def area(r: float = 1.0) -> float:\n"
    "    # circle\n"
    "    return math.pi * r ** 2\n"
    "\n"
    "for i, v in enumerate([1, 2]):\n"
    "    print(f\"{i}: {v!r:>4}\")  # show\n"
    "match area():\n"
    "    case 0:\n"
    "        pass\n"
    "    case other:\n"
    "        del other\n"
)


def _assign(name, raw, node_id=0):
    return ir.Assign([ir.Identifier(name)], ir.Literal(ir.LiteralKind.NUMBER, raw),
                     meta=ir.NodeMeta(id=node_id))


class TestSerialize:

    def test_dumps_loads_preserves_tree(self):
        program = parse_source(SAMPLE)
        restored = loads(dumps(program))

        assert restored == program
        assert dumps(restored) == dumps(program)

    @pytest.mark.parametrize("source", [
        "x = 1\ny = 'hi'\nz = True\nw = None\n",
        "data = b'\\x00raw'\n",
        "def f(a, b=2, *args, c, **kwargs):\n    pass\n",
        "def g(a, *, key=None):\n    return key\n",
        "evens = [n for n in range(10) if n % 2 == 0]\n",
        "squares = {n: n * n for n in items}\nseen = {n for n in items}\ntotal = sum(n for n in items)\n",
        "label = f\"{name!r:>8} = {value}\"\n",
        "match code:\n    case 200:\n        ok = True\n    case None:\n        ok = False\n",
    ])
    def test_kind_fields_survive_round_trip(self, source):
        program = parse_source(source)
        assert loads(dumps(program)) == program

    def test_enums_written_as_values(self):
        data = to_dict(ir.Binary(ir.Identifier("a"), ir.BinaryOp.POW, ir.Identifier("b")))
        assert data[TAG] == "Binary"
        assert data["op"] == "**"
        assert from_dict(data).op is ir.BinaryOp.POW

    def test_unknown_class_rejected(self):
        try:
            from_dict({TAG: "Spaceship"})
        except ValueError as e:
            assert "Spaceship" in str(e)
        else:
            raise AssertionError("expected ValueError")


class TestWalk:

    def test_iter_nodes_is_preorder(self):
        program = parse_source("x = a + 1\n")
        kinds = [type(n).__name__ for n in iter_nodes(program)]
        assert kinds == ["Program", "Assign", "Identifier", "Binary", "Identifier", "Literal"]

    def test_ids_follow_preorder(self):
        program = parse_source("x = a + 1\n")
        ids = [n.meta.id for n in iter_nodes(program)]
        assert ids == sorted(ids)

    def test_children_look_through_blocks(self):
        program = parse_source("while x:\n    y = 1\n    break\n")
        loop = program.body.statements[0]
        kinds = [type(c).__name__ for c in children(loop)]
        assert kinds == ["Identifier", "Assign", "Break"]

    def test_parsed_spans_nest(self):
        assert span_violations(parse_source(SAMPLE)) == []


class TestStructuralEquality:

    def test_metadata_ignored(self):
        a = ir.Program(ir.Block([_assign("x", "1", node_id=5)]), meta=ir.NodeMeta(id=1))
        b = ir.Program(ir.Block([_assign("x", "1", node_id=99)]), dirty=True, source="x = 1\n",
                       meta=ir.NodeMeta(id=42))
        assert structurally_equal(a, b)

    def test_empty_statements_ignored(self):
        a = ir.Block([_assign("x", "1"), ir.Empty(), _assign("y", "2")])
        b = ir.Block([_assign("x", "1"), _assign("y", "2"), ir.Empty(ir.EmptySource.GENERATED)])
        assert structurally_equal(a, b)

    def test_content_compared(self):
        assert not structurally_equal(ir.Block([_assign("x", "1")]), ir.Block([_assign("x", "2")]))
        assert not structurally_equal(ir.Block([_assign("x", "1")], 0), ir.Block([_assign("x", "1")], 1))

    def test_strip_meta_drops_rendering_state(self):
        data = strip_meta(ir.Program(ir.Block([]), dirty=True, source="", meta=ir.NodeMeta(id=7)))
        assert data == {TAG: "Program", "body": {TAG: "Block", "statements": [], "indent_level": 0}}
