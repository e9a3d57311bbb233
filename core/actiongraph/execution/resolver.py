"""Input template resolution: query substitution and $ref lookup."""

from __future__ import annotations

import json
import re
import sys
from typing import Any

from actiongraph.execution.errors import ResolutionError

REF_KEY = "$ref"
QUERY_TOKEN = "{query}"

_INDEXED_TOKEN = re.compile(r"^(?P<head>[^\[\]]*)\[(?P<index>[^\]]*)\]$")


class ReferenceResolver:
    """Turns a node's raw input template into concrete input.

    Two phases, always in this order:
    1. every ``{query}`` token is replaced with the literal query string;
    2. ``{"$ref": "$.nodes.<id>.output.<field>..."}`` objects are replaced with
       values from previously produced node outputs.

    Phase 1 is a plain text replacement over the JSON-serialized template, so a
    query containing characters such as ``"`` or ``\\`` changes the template's
    structure. Such a query fails here with ResolutionError rather than being
    escaped.
    """

    def __init__(self, query_token: str = QUERY_TOKEN) -> None:
        self.query_token = query_token

    def resolve(
        self,
        template: dict[str, Any],
        query: str,
        context: dict[str, dict[str, Any]],
    ) -> dict[str, Any]:
        substituted = self.substitute_query(template, query)
        return self.resolve_input(substituted, context)

    def substitute_query(self, template: dict[str, Any], query: str) -> dict[str, Any]:
        serialized = json.dumps(template)
        replaced = serialized.replace(self.query_token, query)
        try:
            return json.loads(replaced)
        except json.JSONDecodeError as exc:
            raise ResolutionError(f"Query substitution produced invalid input: {exc}") from exc

    def resolve_input(self, value: Any, context: dict[str, dict[str, Any]]) -> Any:
        if isinstance(value, dict):
            if len(value) == 1 and isinstance(value.get(REF_KEY), str):
                return self.resolve_ref(value[REF_KEY], context)
            return {key: self.resolve_input(item, context) for key, item in value.items()}
        if isinstance(value, list):
            return [self.resolve_input(item, context) for item in value]
        return value

    def resolve_ref(self, path: str, context: dict[str, dict[str, Any]]) -> Any:
        """Walk ``$.nodes.<id>.output.<token>[.<token>...]`` against the context.

        A token may carry one trailing ``[N]`` index. Missing fields, indices out
        of range and indices applied to non-lists are all fatal.
        """
        parts = path.split(".")
        if len(parts) < 5 or parts[0] != "$" or parts[1] != "nodes" or parts[3] != "output":
            raise ResolutionError(f"Unsupported $ref path: {path}")

        node_id = parts[2]
        if node_id not in context:
            raise ResolutionError(f"$ref to unknown node: {node_id}")

        sys.stderr.write(f"[RESOLVER] Resolving {path}\n")
        sys.stderr.flush()

        value: Any = context[node_id]
        for token in parts[4:]:
            match = _INDEXED_TOKEN.match(token)
            if match is None:
                value = _field(value, token, path)
                continue

            head = match.group("head")
            if head:
                value = _field(value, head, path)
            try:
                index = int(match.group("index"))
            except ValueError:
                raise ResolutionError(f"Malformed $ref index in {path}: {token}") from None
            if not isinstance(value, list) or index < 0 or index >= len(value):
                raise ResolutionError(f"$ref index out of range: {path}")
            value = value[index]
        return value


def _field(value: Any, name: str, path: str) -> Any:
    if not name or not isinstance(value, dict) or name not in value:
        raise ResolutionError(f"$ref field not found: {path}")
    return value[name]
