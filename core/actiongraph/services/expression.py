"""A small jq-like path-query evaluator.

Supported syntax, stages separated by ``|`` and applied left to right:

    .                   identity
    .a.b[0]             field access with an optional list index per token
    .[2]                index into the input itself
    keys                mapping -> list of keys
    to_entries          mapping -> [{"key": k, "value": v}, ...]
    length              list / mapping / string -> size

Example:
    >>> evaluate({"query": {"pages": {"12": {"extract": "x"}}}},
    ...          ".query.pages | to_entries | .[0].value.extract")
    'x'

Indexing past the end of a list (or indexing a non-list) yields ``None``
instead of failing; a missing field is always an error.
"""

from __future__ import annotations

import re
from typing import Any, Callable

_INDEX = re.compile(r"\[(\d+)\]")


class ExpressionError(ValueError):
    """Raised when an expression cannot be applied to its input."""


def _to_entries(data: Any) -> list[dict[str, Any]]:
    if not isinstance(data, dict):
        raise ExpressionError("to_entries requires object input")
    return [{"key": key, "value": value} for key, value in data.items()]


def _keys(data: Any) -> list[str]:
    if not isinstance(data, dict):
        raise ExpressionError("keys requires object input")
    return list(data.keys())


def _length(data: Any) -> int:
    if isinstance(data, (list, dict, str)):
        return len(data)
    raise ExpressionError("length requires array, object, or string")


BUILTINS: dict[str, Callable[[Any], Any]] = {
    "to_entries": _to_entries,
    "keys": _keys,
    "length": _length,
}


def evaluate(data: Any, expression: str) -> Any:
    """Evaluate ``expression`` against ``data``."""
    if not expression or expression == ".":
        return data

    current = data
    for stage in expression.split("|"):
        current = evaluate_stage(current, stage.strip())
    return current


def evaluate_stage(data: Any, stage: str) -> Any:
    if not stage or stage == ".":
        return data

    builtin = BUILTINS.get(stage)
    if builtin is not None:
        return builtin(data)

    if not stage.startswith("."):
        raise ExpressionError(f"expression must start with '.', got: {stage}")

    current = data
    for token in stage[1:].split("."):
        if not token:
            continue

        bracket = token.find("[")
        if bracket == -1:
            current = _field(current, token)
            continue

        head, index_part = token[:bracket], token[bracket:]
        if head:
            current = _field(current, head)
        match = _INDEX.match(index_part)
        if match is None:
            raise ExpressionError(f"invalid index: {index_part}")
        index = int(match.group(1))
        if not isinstance(current, list) or index >= len(current):
            return None
        current = current[index]
    return current


def _field(data: Any, name: str) -> Any:
    if not isinstance(data, dict) or name not in data:
        raise ExpressionError(f"field not found: {name}")
    return data[name]
