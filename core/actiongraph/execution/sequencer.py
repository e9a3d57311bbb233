"""Topological ordering of workflow nodes."""

from __future__ import annotations

import sys
from collections import deque
from dataclasses import dataclass, field

from actiongraph.domain.models import WorkflowNode
from actiongraph.execution.errors import CycleError


@dataclass(frozen=True)
class SequencePlan:
    """Result of sequencing: a linear order plus any nodes that could not be placed."""

    order: list[str] = field(default_factory=list)
    cycles: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.cycles


def topological_sort(nodes: list[WorkflowNode]) -> SequencePlan:
    """Kahn's algorithm over ``depends_on`` edges.

    Ready nodes are processed FIFO in declaration order, so the output is
    deterministic when several valid orders exist. A dependency on an id that
    is not in ``nodes`` is never satisfied; the dependent ends up in
    ``cycles`` together with everything downstream of it.
    """
    indegree: dict[str, int] = {}
    dependents: dict[str, list[str]] = {node.id: [] for node in nodes}

    for node in nodes:
        deps = list(dict.fromkeys(node.depends_on))
        indegree[node.id] = len(deps)
        for dep in deps:
            if dep in dependents:
                dependents[dep].append(node.id)

    queue = deque(node_id for node_id, degree in indegree.items() if degree == 0)
    order: list[str] = []

    while queue:
        current = queue.popleft()
        order.append(current)
        for dependent in dependents[current]:
            indegree[dependent] -= 1
            if indegree[dependent] == 0:
                queue.append(dependent)

    cycles = [node_id for node_id, degree in indegree.items() if degree > 0]
    return SequencePlan(order=order, cycles=cycles)


def sequence(nodes: list[WorkflowNode]) -> list[str]:
    """Return an execution order or raise CycleError naming the unorderable nodes."""
    plan = topological_sort(nodes)
    if not plan.ok:
        sys.stderr.write(f"[SEQUENCER] Unorderable nodes: {plan.cycles}\n")
        sys.stderr.flush()
        raise CycleError(plan.cycles)
    return plan.order
