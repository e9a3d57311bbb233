"""Pydantic domain models for actiongraph workflows.

These models are the stable contract between the workflow catalog, the
execution engine and the HTTP/CLI layers:
- WorkflowDefinition / WorkflowNode: what to run (read-only to the engine)
- NodeExecution / LogEntry / ExecutionResult: what happened

Python attributes are snake_case; the wire format (catalog JSON files, HTTP
payloads) is camelCase, matching how workflow authors write definitions.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

_MODEL_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class RetryPolicy(BaseModel):
    """Per-node retry policy."""

    model_config = _MODEL_CONFIG

    max_attempts: int = Field(default=1, ge=1, description="Total attempts, including the first")
    backoff_ms: int = Field(default=0, ge=0, description="Delay between attempts")


class Principal(BaseModel):
    """Owner of a workflow. Permissions are declared, not enforced."""

    model_config = _MODEL_CONFIG

    id: str
    permissions: list[str] = Field(default_factory=list)


class TerminationLimits(BaseModel):
    model_config = _MODEL_CONFIG

    max_nodes: int
    max_runtime_ms: int
    warn_at_pct: int


class WorkflowMetadata(BaseModel):
    model_config = _MODEL_CONFIG

    name: str
    description: str = ""
    risk: str = "low"
    principal: Principal
    termination: TerminationLimits


class WorkflowNode(BaseModel):
    """One step of a workflow, bound to an action and its dependencies."""

    model_config = _MODEL_CONFIG

    id: str = Field(..., description="Unique identifier within the workflow")
    action_ref: str = Field(..., description="Registry key of the handler to invoke")
    schema_version: str = "v1"
    input: dict[str, Any] = Field(
        default_factory=dict,
        description="Input template; may contain {query} tokens and $ref objects",
    )
    depends_on: list[str] = Field(default_factory=list)
    timeout_ms: int | None = Field(default=None, ge=0, description="0 or unset disables the timeout")
    retry: RetryPolicy | None = None

    @property
    def max_attempts(self) -> int:
        return self.retry.max_attempts if self.retry else 1

    @property
    def backoff_ms(self) -> int:
        return self.retry.backoff_ms if self.retry else 0


class WorkflowDefinition(BaseModel):
    """A complete workflow: metadata plus an ordered collection of nodes."""

    model_config = _MODEL_CONFIG

    kind: Literal["process"] = "process"
    version: str = "1"
    metadata: WorkflowMetadata
    nodes: list[WorkflowNode] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_node_ids(self) -> "WorkflowDefinition":
        seen: set[str] = set()
        duplicates: list[str] = []
        for node in self.nodes:
            if node.id in seen and node.id not in duplicates:
                duplicates.append(node.id)
            seen.add(node.id)
        if duplicates:
            raise ValueError(f"Duplicate node ids: {', '.join(duplicates)}")
        return self

    def get_node(self, node_id: str) -> WorkflowNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


# ---------------------------------------------------------------------------
# Execution report
# ---------------------------------------------------------------------------


LogLevel = Literal["info", "running", "success", "error"]
NodeStatus = Literal["success", "error"]


class LogEntry(BaseModel):
    """A single human-readable line of the execution log."""

    model_config = _MODEL_CONFIG

    timestamp: str
    level: LogLevel
    message: str
    node_id: str | None = None


class NodeExecution(BaseModel):
    """Outcome of one node that actually ran (or failed before dispatch)."""

    model_config = _MODEL_CONFIG

    node_id: str
    action: str
    status: NodeStatus
    duration_ms: int = 0
    input_data: Any = None
    output_data: Any = None
    error: str | None = None


class ExecutionResult(BaseModel):
    """Terminal artifact of a workflow run, produced exactly once per run."""

    model_config = _MODEL_CONFIG

    success: bool
    logs: list[LogEntry] = Field(default_factory=list)
    node_executions: list[NodeExecution] = Field(default_factory=list)
    execution_time_ms: int = 0
    error: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready camelCase representation, as served over HTTP.

        Unset optional fields (error, nodeId, inputData, ...) are omitted; values
        inside node inputs/outputs are left untouched.
        """
        payload = self.model_dump(mode="json", by_alias=True)
        if payload["error"] is None:
            del payload["error"]
        for entry in payload["logs"]:
            if entry["nodeId"] is None:
                del entry["nodeId"]
        for record in payload["nodeExecutions"]:
            for key in ("inputData", "outputData", "error"):
                if record[key] is None:
                    del record[key]
        return payload


# ---------------------------------------------------------------------------
# Catalog inspection
# ---------------------------------------------------------------------------


class ActionSchema(BaseModel):
    """Declared input/output schema of an action (documentation only)."""

    model_config = _MODEL_CONFIG

    title: str
    input_schema: dict[str, Any] = Field(default_factory=dict)
    output_schema: dict[str, Any] = Field(default_factory=dict)


class WorkflowInfo(BaseModel):
    model_config = _MODEL_CONFIG

    name: str
    description: str
