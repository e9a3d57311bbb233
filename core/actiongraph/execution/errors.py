"""Error taxonomy for workflow execution.

Fatal conditions (cycle, dispatch, resolution, exhausted attempts) abort the
whole run. HandlerError and NodeTimeoutError are per-attempt failures that
the engine retries according to the node's policy. None of these escape
``ExecutionEngine.execute``; they are translated into the ExecutionResult.
"""

from __future__ import annotations


class WorkflowError(Exception):
    """Base class for all engine-level failures."""


class CycleError(WorkflowError):
    """The node set cannot be linearized."""

    def __init__(self, node_ids: list[str]) -> None:
        self.node_ids = list(node_ids)
        super().__init__(f"Cycle detected: {', '.join(self.node_ids)}")


class DispatchError(WorkflowError):
    """No handler is registered for an action reference. Never retried."""

    def __init__(self, action_ref: str) -> None:
        self.action_ref = action_ref
        super().__init__(f"Action not implemented: {action_ref}")


class ResolutionError(WorkflowError, ValueError):
    """A node's input template could not be made concrete."""


class HandlerError(WorkflowError):
    """A handler attempt failed. Retryable."""

    def __init__(self, message: str, *, node_id: str | None = None) -> None:
        self.node_id = node_id
        super().__init__(message)

    @classmethod
    def from_exception(cls, exc: BaseException, *, node_id: str | None = None) -> "HandlerError":
        message = str(exc) or type(exc).__name__
        err = cls(message, node_id=node_id)
        err.__cause__ = exc
        return err


class NodeTimeoutError(HandlerError):
    """A handler attempt overran the node's declared timeout."""

    def __init__(self, duration_ms: int, timeout_ms: int, *, node_id: str | None = None) -> None:
        self.duration_ms = duration_ms
        self.timeout_ms = timeout_ms
        super().__init__(f"Timeout exceeded: {duration_ms}ms > {timeout_ms}ms", node_id=node_id)


class AttemptsExhaustedError(WorkflowError):
    """Every attempt allowed by the retry policy failed."""

    def __init__(self, node_id: str, attempts: int, last_error: str) -> None:
        self.node_id = node_id
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(last_error)


class UnknownWorkflowError(KeyError):
    """Raised by the catalog for an unregistered workflow name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unknown workflow: {self.name}"
