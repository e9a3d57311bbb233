#!/usr/bin/env python3
"""Demo script for the workflow runner.

Registers a custom action, then runs a JSON workflow file and a catalog
workflow through the runner:

    poetry run python core/examples/run_demo.py "hello world"
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

from actiongraph.catalog import load_workflow_file
from actiongraph.registry import register_action
from actiongraph.runner import WorkflowRunner

_attempts = 0


@register_action("demo.shout")
async def shout(node, input, signal):
    """Upper-case ``text``; fails on the first attempt to show retries."""

    global _attempts
    _attempts += 1
    if _attempts == 1:
        raise RuntimeError("warming up")
    return {"text": str(input["text"]).upper()}


async def demo(query: str) -> None:
    print("=" * 60)
    print("actiongraph Workflow Runner - Demo")
    print("=" * 60)

    runner = WorkflowRunner()
    workflow = load_workflow_file(Path(__file__).parent / "shout_pipeline.json")
    print(f"\n▶ Executing workflow: {workflow.metadata.name}")
    print(f"  Query: {query}")

    result = await runner.run_definition(workflow, query)

    print("\n" + "─" * 60)
    for entry in result.logs:
        print(f"  [{entry.timestamp}] {entry.level:<7} {entry.message}")
    if result.success:
        print("✓ Success!")
        print(f"  Output: {json.dumps(result.node_executions[-1].output_data)}")
    else:
        print("✗ Error!")
        print(f"  {result.error}")
    print("─" * 60)


if __name__ == "__main__":
    asyncio.run(demo(sys.argv[1] if len(sys.argv) > 1 else "hello world"))
