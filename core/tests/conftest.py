"""Shared helpers for actiongraph tests."""

from __future__ import annotations

from typing import Any

import pytest

from actiongraph.domain.models import WorkflowDefinition
from actiongraph.registry import ActionRegistry


def build_workflow(nodes: list[dict[str, Any]], name: str = "test_flow") -> WorkflowDefinition:
    """Build a definition from camelCase node dicts, the way authors write them."""
    return WorkflowDefinition.model_validate(
        {
            "metadata": {
                "name": name,
                "description": "test workflow",
                "principal": {"id": "system:test", "permissions": []},
                "termination": {"maxNodes": 10, "maxRuntimeMs": 10000, "warnAtPct": 80},
            },
            "nodes": nodes,
        }
    )


class FlakyHandler:
    """Fails ``failures`` times, then returns ``output``. Counts calls."""

    def __init__(self, failures: int, output: dict[str, Any] | None = None) -> None:
        self.failures = failures
        self.output = output if output is not None else {"ok": True}
        self.calls = 0

    async def __call__(self, node, input, signal):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"boom {self.calls}")
        return self.output


@pytest.fixture
def registry() -> ActionRegistry:
    return ActionRegistry()
