"""
JSON codec for IR trees.

Every dataclass is written as a dict tagged with ``"node": <class name>``
(``TAG``). Several node classes have a ``kind`` field of their own, so the
tag must not share that key. Enums are written as their values and restored from the field annotations.
``dumps`` is deterministic (sorted keys, compact separators) so two trees
serialize to identical strings exactly when they are equal.
"""
from __future__ import annotations

import dataclasses
import json
import typing
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Union

from . import nodes

TAG = "node"

_CLASSES: Dict[str, type] = {
    name: obj
    for name, obj in vars(nodes).items()
    if isinstance(obj, type) and dataclasses.is_dataclass(obj)
}


def to_dict(node: Any) -> Any:
    if dataclasses.is_dataclass(node) and not isinstance(node, type):
        out: Dict[str, Any] = {TAG: type(node).__name__}
        for f in dataclasses.fields(node):
            out[f.name] = to_dict(getattr(node, f.name))
        return out
    if isinstance(node, Enum):
        return node.value
    if isinstance(node, (list, tuple)):
        return [to_dict(item) for item in node]
    return node


def from_dict(data: Dict[str, Any]) -> Any:
    name = data.get(TAG)
    cls = _CLASSES.get(name)
    if cls is None:
        raise ValueError(f"Unknown IR node class '{name}'")
    hints = _hints(cls)
    kwargs = {}
    for f in dataclasses.fields(cls):
        if f.name in data:
            kwargs[f.name] = _decode(data[f.name], hints[f.name])
    return cls(**kwargs)


def dumps(node: Any) -> str:
    return json.dumps(to_dict(node), sort_keys=True, separators=(",", ":"))


def loads(text: str) -> Any:
    return from_dict(json.loads(text))


# ── Helpers ──────────────────────────────────────────────────────────────────

@lru_cache(maxsize=None)
def _hints(cls: type) -> Dict[str, Any]:
    return typing.get_type_hints(cls)


def _unwrap_optional(hint: Any) -> Any:
    if typing.get_origin(hint) is Union:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _decode(value: Any, hint: Any) -> Any:
    if value is None:
        return None
    hint = _unwrap_optional(hint)
    if isinstance(value, dict) and TAG in value:
        return from_dict(value)
    if isinstance(value, list):
        args = typing.get_args(hint)
        inner = args[0] if args else Any
        return [_decode(item, inner) for item in value]
    if isinstance(hint, type) and issubclass(hint, Enum):
        return hint(value)
    return value
