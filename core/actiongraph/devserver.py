"""actiongraph HTTP trigger.

A tiny JSON API around the workflow runner so a UI (or curl) can pick a
workflow, submit a query and get the execution report back.

Endpoints (JSON):
- GET  /health
- GET  /api/workflows                 catalog listing (+ preset queries)
- GET  /api/workflows/<name>          definition and execution order
- GET  /api/registry                  declared action schemas
- POST /api/execute                   {"workflowName": str, "query": str}

Status codes for /api/execute:
- 400 when workflowName or query is missing
- 404 for an unknown workflow
- 200 with the ExecutionResult (also when the workflow itself failed)
- 500 for anything else

Run:
- python -m actiongraph.devserver --port 8787

Note: This is a dev utility, not a production server.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from actiongraph.catalog import ACTION_SCHEMAS, PRESET_QUERIES, WORKFLOW_INFO
from actiongraph.config import settings
from actiongraph.execution.errors import UnknownWorkflowError
from actiongraph.execution.sequencer import topological_sort
from actiongraph.runner import WorkflowRunner


class _BadRequest(ValueError):
    pass


def main(argv: list[str] | None = None) -> None:
    """Entry point for `python -m actiongraph.devserver`."""

    parser = argparse.ArgumentParser(description="actiongraph HTTP trigger")
    parser.add_argument(
        "--host",
        default=settings.host,
        help=f"Host to bind (default: {settings.host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"Port to bind (default: {settings.port})",
    )
    args = parser.parse_args(argv)
    serve(args.host, args.port)


def serve(host: str, port: int, runner: WorkflowRunner | None = None) -> None:
    server = make_server(host, port, runner)
    sys.stderr.write(f"actiongraph devserver listening on http://{host}:{server.server_port}\n")
    sys.stderr.flush()
    server.serve_forever()


def make_server(host: str, port: int, runner: WorkflowRunner | None = None) -> ThreadingHTTPServer:
    handler = _make_handler(runner or WorkflowRunner())
    return ThreadingHTTPServer((host, port), handler)


def _make_handler(runner: WorkflowRunner) -> type[BaseHTTPRequestHandler]:
    class Handler(BaseHTTPRequestHandler):
        def _send_json(self, status: int, payload: Any) -> None:
            body = json.dumps(payload, ensure_ascii=False).encode("utf8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            self.send_header("Access-Control-Allow-Origin", "*")
            self.send_header("Access-Control-Allow-Headers", "content-type")
            self.send_header("Access-Control-Allow-Methods", "GET,POST,OPTIONS")
            self.end_headers()
            self.wfile.write(body)

        def _read_json(self) -> dict[str, Any]:
            length = int(self.headers.get("Content-Length", "0") or "0")
            raw = self.rfile.read(length) if length > 0 else b"{}"
            try:
                parsed = json.loads(raw.decode("utf8"))
            except Exception as exc:  # noqa: BLE001
                raise _BadRequest(f"Invalid JSON: {exc}") from exc
            if not isinstance(parsed, dict):
                raise _BadRequest("Body must be a JSON object")
            return parsed

        def do_OPTIONS(self) -> None:  # noqa: N802
            self.send_response(204)
            self.send_header("Access-Control-Allow-Origin", "*")
            self.send_header("Access-Control-Allow-Headers", "content-type")
            self.send_header("Access-Control-Allow-Methods", "GET,POST,OPTIONS")
            self.end_headers()

        def do_GET(self) -> None:  # noqa: N802
            if self.path in {"/", "/health"}:
                self._send_json(
                    200,
                    {
                        "ok": True,
                        "endpoints": {
                            "workflows": "/api/workflows",
                            "registry": "/api/registry",
                            "execute": "/api/execute",
                        },
                    },
                )
                return
            if self.path == "/api/workflows":
                listing = []
                for name, workflow in runner.catalog.items():
                    info = WORKFLOW_INFO.get(name)
                    listing.append(
                        {
                            "id": name,
                            "name": info.name if info else workflow.metadata.name,
                            "description": info.description if info else workflow.metadata.description,
                            "nodes": len(workflow.nodes),
                            "presetQueries": PRESET_QUERIES.get(name, []),
                        }
                    )
                self._send_json(200, {"workflows": listing})
                return
            if self.path.startswith("/api/workflows/"):
                name = self.path[len("/api/workflows/"):]
                try:
                    workflow = runner.get_workflow(name)
                except UnknownWorkflowError as exc:
                    self._send_json(404, {"error": str(exc)})
                    return
                plan = topological_sort(workflow.nodes)
                self._send_json(
                    200,
                    {
                        "workflow": workflow.model_dump(mode="json", by_alias=True),
                        "order": plan.order,
                        "cycles": plan.cycles,
                    },
                )
                return
            if self.path == "/api/registry":
                self._send_json(
                    200,
                    {ref: schema.model_dump(by_alias=True) for ref, schema in ACTION_SCHEMAS.items()},
                )
                return
            self._send_json(404, {"error": "not_found"})

        def do_POST(self) -> None:  # noqa: N802
            if self.path != "/api/execute":
                self._send_json(404, {"error": "not_found"})
                return
            try:
                body = self._read_json()
                workflow_name = body.get("workflowName")
                query = body.get("query")
                if not workflow_name or not query:
                    raise _BadRequest("Missing workflowName or query")
                if not isinstance(workflow_name, str) or not isinstance(query, str):
                    raise _BadRequest("workflowName and query must be strings")

                sys.stderr.write(f"[API] Executing workflow '{workflow_name}'\n")
                sys.stderr.flush()
                result = asyncio.run(runner.run(workflow_name, query))
                sys.stderr.write(f"[API] Workflow '{workflow_name}' completed: success={result.success}\n")
                sys.stderr.flush()
                self._send_json(200, result.to_payload())
            except _BadRequest as exc:
                self._send_json(400, {"error": str(exc)})
            except UnknownWorkflowError as exc:
                self._send_json(404, {"error": str(exc)})
            except Exception as exc:  # noqa: BLE001
                sys.stderr.write(f"[API] ERROR: {type(exc).__name__}: {exc}\n")
                sys.stderr.flush()
                self._send_json(500, {"error": str(exc) or "Internal server error"})

        def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
            # Keep devserver quiet.
            return

    return Handler


if __name__ == "__main__":
    main()
