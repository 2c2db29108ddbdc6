"""Generic traversal helpers over IR trees."""
from __future__ import annotations

import dataclasses
from typing import Any, Iterator, List, Tuple

from .nodes import Block, Empty, NodeMeta, Program
from .serialize import TAG, to_dict

# Program fields that describe rendering state rather than program shape.
_PROGRAM_STATE_FIELDS = ("dirty", "source", "indent_width")


def _is_node(obj: Any) -> bool:
    return (
        dataclasses.is_dataclass(obj)
        and not isinstance(obj, type)
        and isinstance(getattr(obj, "meta", None), NodeMeta)
    )


def children(node: Any) -> Iterator[Any]:
    """Yield the direct child nodes of *node*, looking through Blocks and lists."""
    for f in dataclasses.fields(node):
        if f.name == "meta":
            continue
        yield from _nodes_in(getattr(node, f.name))


def _nodes_in(value: Any) -> Iterator[Any]:
    if _is_node(value):
        yield value
    elif isinstance(value, Block):
        for stmt in value.statements:
            yield from _nodes_in(stmt)
    elif isinstance(value, list):
        for item in value:
            yield from _nodes_in(item)


def iter_nodes(root: Any) -> Iterator[Any]:
    """Pre-order walk over every node carrying metadata, *root* included."""
    stack = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, Block):
            stack.extend(reversed(node.statements))
            continue
        yield node
        stack.extend(reversed(list(children(node))))


def max_id(root: Any) -> int:
    return max((node.meta.id for node in iter_nodes(root)), default=0)


def all_ids(root: Any) -> List[int]:
    return [node.meta.id for node in iter_nodes(root)]


def strip_meta(node: Any) -> Any:
    """
    Serialized form of *node* with metadata and Empty placeholder statements
    removed: the shape and literal content only.
    """
    data = to_dict(node)
    if isinstance(node, Program):
        for name in _PROGRAM_STATE_FIELDS:
            data.pop(name, None)
    return _strip(data)


def _strip(data: Any) -> Any:
    if isinstance(data, dict):
        return {
            key: _strip(value)
            for key, value in data.items()
            if key != "meta"
        }
    if isinstance(data, list):
        return [
            _strip(item)
            for item in data
            if not (isinstance(item, dict) and item.get(TAG) == Empty.__name__)
        ]
    return data


def structurally_equal(a: Any, b: Any) -> bool:
    return strip_meta(a) == strip_meta(b)


def span_violations(root: Any) -> List[Tuple[Any, Any]]:
    """Return (parent, child) pairs whose child span escapes the parent span."""
    bad = []
    for node in iter_nodes(root):
        span = node.meta.span
        if span is None:
            continue
        for child in children(node):
            child_span = child.meta.span
            if child_span is not None and not span.contains(child_span):
                bad.append((node, child))
    return bad
