"""Workflow execution engine.

This package provides:
- Topological sequencing of nodes (sequencer.py)
- Input resolution: {query} substitution and $ref lookup (resolver.py)
- The retry/timeout execution loop (engine.py)
- The error taxonomy shared by all of the above (errors.py)

The engine depends on ``actiongraph.registry``, which in turn imports the
error types from here, so the engine symbols are loaded lazily.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

__all__ = ["ExecutionContext", "ExecutionEngine"]


if TYPE_CHECKING:
    from actiongraph.execution.engine import ExecutionContext as ExecutionContext
    from actiongraph.execution.engine import ExecutionEngine as ExecutionEngine


def __getattr__(name: str) -> Any:
    if name in {"ExecutionContext", "ExecutionEngine"}:
        from actiongraph.execution.engine import ExecutionContext, ExecutionEngine

        return {"ExecutionContext": ExecutionContext, "ExecutionEngine": ExecutionEngine}[name]
    raise AttributeError(name)
