"""Core utility actions: passthrough and file output."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from actiongraph.domain.models import WorkflowNode
from actiongraph.registry import CancellationSignal, register_action


@register_action("plugin.core.echo")
async def echo(node: WorkflowNode, input: dict[str, Any], signal: CancellationSignal) -> dict[str, Any]:
    return {"data": input.get("data")}


@register_action("plugin.files.write")
async def write_file(node: WorkflowNode, input: dict[str, Any], signal: CancellationSignal) -> dict[str, Any]:
    """Write ``content`` to ``path`` as UTF-8, creating parent directories."""
    path = input.get("path")
    content = input.get("content")
    if not isinstance(path, str) or not path:
        raise ValueError("'path' must be a non-empty string")
    if not isinstance(content, str):
        raise ValueError("'content' must be a string")

    target = Path(path)
    data = content.encode("utf8")

    def _write() -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    await asyncio.to_thread(_write)
    return {"bytesWritten": len(data)}
