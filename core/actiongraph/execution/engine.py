"""Execution engine: sequential DAG execution with retry and timeout policies."""

from __future__ import annotations

import asyncio
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from actiongraph.domain.models import (
    ExecutionResult,
    LogEntry,
    LogLevel,
    NodeExecution,
    WorkflowDefinition,
    WorkflowNode,
)
from actiongraph.execution.errors import (
    AttemptsExhaustedError,
    DispatchError,
    HandlerError,
    NodeTimeoutError,
    ResolutionError,
    WorkflowError,
)
from actiongraph.execution.resolver import ReferenceResolver
from actiongraph.execution.sequencer import sequence
from actiongraph.registry import ActionHandler, ActionRegistry, CancellationSignal, get_global_registry


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%H:%M:%S")


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


@dataclass
class ExecutionContext:
    """State of a single workflow run.

    ``node_outputs`` only grows during the run; ``logs`` and ``node_executions``
    are append-only. Nothing here is shared between runs.
    """

    workflow: WorkflowDefinition
    query: str
    node_outputs: dict[str, dict[str, Any]] = field(default_factory=dict)
    logs: list[LogEntry] = field(default_factory=list)
    node_executions: list[NodeExecution] = field(default_factory=list)
    started_at: float = field(default_factory=time.perf_counter)

    def log(self, level: LogLevel, message: str, node_id: str | None = None) -> None:
        self.logs.append(LogEntry(timestamp=_timestamp(), level=level, message=message, node_id=node_id))

    def record(self, node: WorkflowNode, **kwargs: Any) -> None:
        self.node_executions.append(NodeExecution(node_id=node.id, action=node.action_ref, **kwargs))

    def result(self, error: str | None = None, execution_time_ms: int | None = None) -> ExecutionResult:
        if execution_time_ms is None:
            execution_time_ms = _elapsed_ms(self.started_at)
        return ExecutionResult(
            success=error is None,
            logs=list(self.logs),
            node_executions=list(self.node_executions),
            execution_time_ms=execution_time_ms,
            error=error,
        )


class ExecutionEngine:
    """Runs a workflow definition against a query.

    This engine:
    1. Orders nodes topologically (a cycle aborts before anything runs)
    2. For each node: looks up its handler, resolves its input against the
       outputs produced so far, then invokes the handler under the node's
       retry/backoff/timeout policy
    3. Stops at the first fatal condition
    4. Always returns an ExecutionResult; it never raises to the caller

    Timeouts are checked after the handler returns by default, so an overrunning
    handler is not interrupted. With ``enforce_timeouts=True`` each attempt is
    bounded by ``asyncio.wait_for`` and its CancellationSignal is set on expiry.
    """

    def __init__(
        self,
        registry: ActionRegistry | None = None,
        *,
        resolver: ReferenceResolver | None = None,
        enforce_timeouts: bool = False,
    ) -> None:
        self.registry = registry if registry is not None else get_global_registry()
        self.resolver = resolver or ReferenceResolver()
        self.enforce_timeouts = enforce_timeouts

    async def execute(self, workflow: WorkflowDefinition, query: str) -> ExecutionResult:
        """Execute ``workflow`` with ``query`` substituted into node inputs."""
        ctx = ExecutionContext(workflow=workflow, query=query)
        ctx.log("info", f"Starting workflow: {workflow.metadata.name}")
        ctx.log("info", f"Query: {query}")

        sys.stderr.write(f"[ENGINE] Starting workflow '{workflow.metadata.name}'\n")
        sys.stderr.flush()

        try:
            order = sequence(workflow.nodes)
            sys.stderr.write(f"[ENGINE] Execution order: {order}\n")
            sys.stderr.flush()
            await self._execute_nodes(ctx, order)
        except WorkflowError as e:
            sys.stderr.write(f"[ENGINE] Workflow '{workflow.metadata.name}' failed: {type(e).__name__}: {e}\n")
            sys.stderr.flush()
            if not isinstance(e, (DispatchError, ResolutionError, AttemptsExhaustedError)):
                # Node-level failures already logged themselves.
                ctx.log("error", str(e))
            return ctx.result(error=str(e))
        except Exception as e:  # noqa: BLE001
            error_msg = f"Internal engine error: {type(e).__name__}: {e}"
            sys.stderr.write(f"[ENGINE] {error_msg}\n")
            sys.stderr.flush()
            ctx.log("error", error_msg)
            return ctx.result(error=error_msg)

        execution_time_ms = _elapsed_ms(ctx.started_at)
        ctx.log("success", f"Workflow completed in {execution_time_ms}ms")
        sys.stderr.write(f"[ENGINE] Graph execution completed in {execution_time_ms}ms\n")
        sys.stderr.flush()
        return ctx.result(execution_time_ms=execution_time_ms)

    async def _execute_nodes(self, ctx: ExecutionContext, order: list[str]) -> None:
        for node_id in order:
            node = ctx.workflow.get_node(node_id)
            if node is None:
                raise WorkflowError(f"Node {node_id} not found in workflow")
            await self._execute_node(ctx, node)

    async def _execute_node(self, ctx: ExecutionContext, node: WorkflowNode) -> None:
        # dispatch
        try:
            handler = self.registry.require(node.action_ref)
        except DispatchError as e:
            ctx.log("error", str(e), node.id)
            ctx.record(node, status="error", duration_ms=0, error=str(e))
            raise

        ctx.log("running", f"Starting {node.id} ({node.action_ref})", node.id)

        # input resolution
        try:
            resolved_input = self.resolver.resolve(node.input, ctx.query, ctx.node_outputs)
        except ResolutionError as e:
            ctx.log("error", f"Input resolution failed for {node.id}: {e}", node.id)
            ctx.record(node, status="error", duration_ms=0, error=str(e))
            raise

        # attempts
        max_attempts = node.max_attempts
        last_error = ""
        duration_ms = 0
        for attempt in range(1, max_attempts + 1):
            started = time.perf_counter()
            try:
                output = await self._attempt(node, handler, resolved_input)
                duration_ms = _elapsed_ms(started)
                if node.timeout_ms and duration_ms > node.timeout_ms:
                    raise NodeTimeoutError(duration_ms, node.timeout_ms, node_id=node.id)
            except HandlerError as e:
                duration_ms = _elapsed_ms(started)
                last_error = str(e)
            else:
                # success
                ctx.node_outputs[node.id] = output
                ctx.record(
                    node,
                    status="success",
                    duration_ms=duration_ms,
                    input_data=resolved_input,
                    output_data=output,
                )
                ctx.log("success", f"Completed {node.id} in {duration_ms}ms", node.id)
                sys.stderr.write(f"[ENGINE] Node {node.id} completed on attempt {attempt}\n")
                sys.stderr.flush()
                return

            sys.stderr.write(f"[ENGINE] Node {node.id} attempt {attempt}/{max_attempts} failed: {last_error}\n")
            sys.stderr.flush()
            if attempt < max_attempts:
                ctx.log("info", f"Retrying {node.id} (attempt {attempt}/{max_attempts}): {last_error}", node.id)
                await asyncio.sleep(node.backoff_ms / 1000)

        # exhausted
        ctx.log("error", f"Failed {node.id}: {last_error}", node.id)
        ctx.record(node, status="error", duration_ms=duration_ms, error=last_error)
        raise AttemptsExhaustedError(node.id, max_attempts, last_error)

    async def _attempt(
        self,
        node: WorkflowNode,
        handler: ActionHandler,
        resolved_input: dict[str, Any],
    ) -> dict[str, Any]:
        """Invoke the handler once, translating any failure into HandlerError."""
        signal = CancellationSignal()
        try:
            if self.enforce_timeouts and node.timeout_ms:
                return await self._attempt_with_deadline(node, handler, resolved_input, signal)
            return await handler(node, resolved_input, signal)
        except HandlerError:
            raise
        except asyncio.CancelledError as e:
            # Only a cancellation aimed at the engine's own task propagates.
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            raise HandlerError.from_exception(e, node_id=node.id) from e
        except Exception as e:  # noqa: BLE001
            raise HandlerError.from_exception(e, node_id=node.id) from e

    async def _attempt_with_deadline(
        self,
        node: WorkflowNode,
        handler: ActionHandler,
        resolved_input: dict[str, Any],
        signal: CancellationSignal,
    ) -> dict[str, Any]:
        assert node.timeout_ms is not None
        started = time.perf_counter()
        try:
            return await asyncio.wait_for(
                handler(node, resolved_input, signal),
                timeout=node.timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            signal.cancel(reason="timeout")
            raise NodeTimeoutError(_elapsed_ms(started), node.timeout_ms, node_id=node.id) from None
