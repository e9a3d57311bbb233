"""actiongraph workflow runner.

Entry point used by the CLI and the HTTP trigger: look a workflow up by name
(or take a definition directly), run it through the ExecutionEngine and hand
back the ExecutionResult.

Runs are independent: every call creates its own execution context, so one
runner (and the process-wide action registry) can serve concurrent runs.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Mapping

from actiongraph.catalog import WORKFLOWS
from actiongraph.config import settings
from actiongraph.domain.models import ExecutionResult, WorkflowDefinition
from actiongraph.execution.engine import ExecutionEngine
from actiongraph.execution.errors import UnknownWorkflowError


class WorkflowRunner:
    """Runs catalog workflows by name.

    Example:
        ```python
        runner = WorkflowRunner()
        result = await runner.run("book_search", "dune")
        if result.success:
            print(result.node_executions[-1].output_data)
        else:
            print(f"Error: {result.error}")
        ```
    """

    def __init__(
        self,
        *,
        engine: ExecutionEngine | None = None,
        catalog: Mapping[str, WorkflowDefinition] | None = None,
    ) -> None:
        self.engine = engine or ExecutionEngine(enforce_timeouts=settings.enforce_timeouts)
        self.catalog = catalog if catalog is not None else WORKFLOWS

    def get_workflow(self, name: str) -> WorkflowDefinition:
        workflow = self.catalog.get(name)
        if workflow is None:
            raise UnknownWorkflowError(name)
        return workflow

    async def run(self, workflow_name: str, query: str) -> ExecutionResult:
        """Execute a catalog workflow.

        Raises:
            UnknownWorkflowError: If ``workflow_name`` is not in the catalog.
                Everything that happens once the workflow is found is reported
                through the returned ExecutionResult instead.
        """
        workflow = self.get_workflow(workflow_name)
        return await self.run_definition(workflow, query)

    async def run_definition(self, workflow: WorkflowDefinition, query: str) -> ExecutionResult:
        sys.stderr.write(f"[RUNNER] Running '{workflow.metadata.name}' with query={query!r}\n")
        sys.stderr.flush()
        result = await self.engine.execute(workflow, query)
        sys.stderr.write(
            f"[RUNNER] '{workflow.metadata.name}' finished: success={result.success} "
            f"in {result.execution_time_ms}ms\n"
        )
        sys.stderr.flush()
        return result


async def execute_workflow(workflow: WorkflowDefinition, query: str) -> ExecutionResult:
    """Run a definition with a default engine."""
    return await ExecutionEngine(enforce_timeouts=settings.enforce_timeouts).execute(workflow, query)


def run_workflow_sync(workflow_name: str, query: str) -> ExecutionResult:
    """Synchronous wrapper around :meth:`WorkflowRunner.run`.

    Example:
        ```python
        result = run_workflow_sync("wiki_summary", "Alan Turing")
        print(result.success)
        ```
    """
    runner = WorkflowRunner()
    return asyncio.run(runner.run(workflow_name, query))
