"""HTTP GET action (plugin.http.get)."""

from __future__ import annotations

import sys
from typing import Any

import httpx

from actiongraph.config import settings
from actiongraph.domain.models import WorkflowNode
from actiongraph.registry import CancellationSignal, register_action


def _param_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class HttpGetAction:
    """Fetch a URL with query params and headers.

    Input:
        url: Absolute URL (required)
        params: Optional query parameters, merged into the URL's query string
        headers: Optional request headers

    Output:
        status: HTTP status code (non-2xx responses are returned, not raised)
        body: Parsed JSON when the content type mentions json, else text
    """

    def __init__(
        self,
        *,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_s = timeout_s if timeout_s is not None else settings.http_timeout_s
        self.transport = transport

    async def __call__(
        self,
        node: WorkflowNode,
        input: dict[str, Any],
        signal: CancellationSignal,
    ) -> dict[str, Any]:
        url = input.get("url")
        if not isinstance(url, str) or not url:
            raise ValueError("'url' must be a non-empty string")

        params = {key: _param_value(value) for key, value in (input.get("params") or {}).items()}
        headers = {"User-Agent": settings.user_agent}
        headers.update(input.get("headers") or {})

        request_url = httpx.URL(url).copy_merge_params(params)

        sys.stderr.write(f"[HTTP] {node.id}: GET {request_url} params={list(params)}\n")
        sys.stderr.flush()

        async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
            response = await client.get(request_url, headers=headers)

        content_type = response.headers.get("content-type", "")
        body: Any = response.json() if "json" in content_type else response.text

        sys.stderr.write(f"[HTTP] {node.id}: {response.status_code} ({content_type or 'no content-type'})\n")
        sys.stderr.flush()
        return {"status": response.status_code, "body": body}


http_get = HttpGetAction()
register_action("plugin.http.get")(http_get)
