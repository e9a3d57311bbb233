"""actiongraph core package.

Runs declarative DAGs of action nodes: topological ordering, $ref wiring
between node outputs, per-node retry/backoff/timeout and a structured
execution report.

Important: importing the engine loads the built-in action library (httpx,
LangChain). To keep lightweight imports such as ``actiongraph.domain.models``
or ``actiongraph.services.expression`` cheap, engine symbols are resolved
lazily.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

__version__ = "0.1.0"

__all__ = ["ExecutionEngine", "WorkflowRunner", "__version__", "execute_workflow"]


if TYPE_CHECKING:
    from .execution.engine import ExecutionEngine as ExecutionEngine
    from .runner import WorkflowRunner as WorkflowRunner
    from .runner import execute_workflow as execute_workflow


def __getattr__(name: str) -> Any:
    if name == "ExecutionEngine":
        from .execution.engine import ExecutionEngine

        return ExecutionEngine
    if name in {"WorkflowRunner", "execute_workflow"}:
        from .runner import WorkflowRunner, execute_workflow

        return {"WorkflowRunner": WorkflowRunner, "execute_workflow": execute_workflow}[name]
    raise AttributeError(name)
