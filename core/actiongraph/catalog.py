"""Static workflow catalog.

Each workflow is a DAG of nodes that execute sequentially. Definitions are
written in the wire format (camelCase) and validated into
``WorkflowDefinition`` at import, so a malformed entry fails fast.

``ACTION_SCHEMAS`` documents the input/output contract of each action. It is
served for inspection only; the engine does not enforce it.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from actiongraph.domain.models import ActionSchema, WorkflowDefinition, WorkflowInfo
from actiongraph.execution.errors import UnknownWorkflowError


def _demo_metadata(name: str, description: str, *, max_nodes: int, max_runtime_ms: int) -> dict[str, Any]:
    return {
        "name": name,
        "description": description,
        "risk": "low",
        "principal": {"id": "system:demo", "permissions": ["read:http"]},
        "termination": {"maxNodes": max_nodes, "maxRuntimeMs": max_runtime_ms, "warnAtPct": 80},
    }


_RAW_WORKFLOWS: dict[str, dict[str, Any]] = {
    "arxiv_search": {
        "kind": "process",
        "version": "1",
        "metadata": _demo_metadata(
            "arxiv_search",
            "Search arXiv for papers and extract results",
            max_nodes=5,
            max_runtime_ms=30000,
        ),
        "nodes": [
            {
                "id": "fetch_arxiv",
                "actionRef": "plugin.http.get",
                "schemaVersion": "v1",
                "input": {
                    "url": "https://export.arxiv.org/api/query",
                    "params": {"search_query": "all:{query}", "start": 0, "max_results": 5},
                    "headers": {"Accept": "application/atom+xml"},
                },
                "timeoutMs": 15000,
                "retry": {"maxAttempts": 2, "backoffMs": 1000},
            },
            {
                "id": "parse_xml",
                "actionRef": "plugin.transform.xml2json",
                "schemaVersion": "v1",
                "dependsOn": ["fetch_arxiv"],
                "input": {"xml": {"$ref": "$.nodes.fetch_arxiv.output.body"}},
            },
        ],
    },
    "wiki_summary": {
        "kind": "process",
        "version": "1",
        "metadata": _demo_metadata(
            "wiki_summary",
            "Search Wikipedia and summarize top result",
            max_nodes=10,
            max_runtime_ms=60000,
        ),
        "nodes": [
            {
                "id": "search_wiki",
                "actionRef": "plugin.http.get",
                "schemaVersion": "v1",
                "input": {
                    "url": "https://en.wikipedia.org/w/api.php",
                    "params": {
                        "action": "query",
                        "list": "search",
                        "srsearch": "{query}",
                        "srlimit": 3,
                        "format": "json",
                    },
                },
                "retry": {"maxAttempts": 2, "backoffMs": 1000},
                "timeoutMs": 15000,
            },
            {
                "id": "extract_title",
                "actionRef": "plugin.transform.jq",
                "schemaVersion": "v1",
                "dependsOn": ["search_wiki"],
                "input": {
                    "data": {"$ref": "$.nodes.search_wiki.output.body"},
                    "expression": ".query.search[0].title",
                },
            },
            {
                "id": "fetch_extract",
                "actionRef": "plugin.http.get",
                "schemaVersion": "v1",
                "dependsOn": ["extract_title"],
                "input": {
                    "url": "https://en.wikipedia.org/w/api.php",
                    "params": {
                        "action": "query",
                        "prop": "extracts",
                        "explaintext": 1,
                        "exintro": 1,
                        "titles": {"$ref": "$.nodes.extract_title.output.result"},
                        "format": "json",
                    },
                },
                "timeoutMs": 15000,
            },
            {
                "id": "extract_content",
                "actionRef": "plugin.transform.jq",
                "schemaVersion": "v1",
                "dependsOn": ["fetch_extract"],
                "input": {
                    "data": {"$ref": "$.nodes.fetch_extract.output.body"},
                    "expression": ".query.pages | to_entries | .[0].value.extract",
                },
            },
        ],
    },
    "book_search": {
        "kind": "process",
        "version": "1",
        "metadata": _demo_metadata(
            "book_search",
            "Search Open Library for books and authors",
            max_nodes=5,
            max_runtime_ms=30000,
        ),
        "nodes": [
            {
                "id": "search_books",
                "actionRef": "plugin.http.get",
                "schemaVersion": "v1",
                "input": {
                    "url": "https://openlibrary.org/search.json",
                    "params": {
                        "q": "{query}",
                        "limit": 5,
                        "fields": "key,title,author_name,first_publish_year,subject,cover_i",
                    },
                },
                "timeoutMs": 15000,
                "retry": {"maxAttempts": 2, "backoffMs": 1000},
            },
            {
                "id": "extract_books",
                "actionRef": "plugin.transform.jq",
                "schemaVersion": "v1",
                "dependsOn": ["search_books"],
                "input": {
                    "data": {"$ref": "$.nodes.search_books.output.body"},
                    "expression": ".docs",
                },
            },
        ],
    },
}

WORKFLOWS: dict[str, WorkflowDefinition] = {
    name: WorkflowDefinition.model_validate(raw) for name, raw in _RAW_WORKFLOWS.items()
}

WORKFLOW_INFO: dict[str, WorkflowInfo] = {
    "arxiv_search": WorkflowInfo(
        name="arXiv Search",
        description="Search arXiv for academic papers and parse results",
    ),
    "wiki_summary": WorkflowInfo(
        name="Wikipedia Summary",
        description="Search Wikipedia and extract article summaries",
    ),
    "book_search": WorkflowInfo(
        name="Book Search",
        description="Search Open Library for books by title or author",
    ),
}

PRESET_QUERIES: dict[str, list[str]] = {
    "arxiv_search": ["transformer", "reinforcement learning", "LLM agents"],
    "wiki_summary": ["generative AI", "neural networks", "Alan Turing"],
    "book_search": ["dune", "artificial intelligence", "Isaac Asimov"],
}

ACTION_SCHEMAS: dict[str, ActionSchema] = {
    "plugin.http.get": ActionSchema(
        title="HTTP GET Request",
        input_schema={
            "type": "object",
            "required": ["url"],
            "properties": {
                "url": {"type": "string"},
                "params": {"type": "object"},
                "headers": {"type": "object"},
            },
        },
        output_schema={
            "type": "object",
            "required": ["status", "body"],
            "properties": {"status": {"type": "integer"}, "body": {}},
        },
    ),
    "plugin.transform.xml2json": ActionSchema(
        title="Transform XML to JSON",
        input_schema={"type": "object", "required": ["xml"], "properties": {"xml": {"type": "string"}}},
        output_schema={"type": "object", "required": ["json"], "properties": {"json": {}}},
    ),
    "plugin.transform.jq": ActionSchema(
        title="JQ Transform",
        input_schema={
            "type": "object",
            "required": ["data", "expression"],
            "properties": {"data": {}, "expression": {"type": "string"}},
        },
        output_schema={"type": "object", "required": ["result"], "properties": {"result": {}}},
    ),
    "plugin.llm.complete": ActionSchema(
        title="LLM Completion",
        input_schema={
            "type": "object",
            "required": ["prompt"],
            "properties": {"prompt": {"type": "string"}, "model": {"type": "string"}},
        },
        output_schema={"type": "object", "required": ["text"], "properties": {"text": {"type": "string"}}},
    ),
    "plugin.core.echo": ActionSchema(
        title="Echo (passthrough)",
        input_schema={"type": "object", "properties": {"data": {}}},
        output_schema={"type": "object", "properties": {"data": {}}},
    ),
    "plugin.files.write": ActionSchema(
        title="Write File",
        input_schema={
            "type": "object",
            "required": ["path", "content"],
            "properties": {"path": {"type": "string"}, "content": {"type": "string"}},
        },
        output_schema={
            "type": "object",
            "required": ["bytesWritten"],
            "properties": {"bytesWritten": {"type": "integer"}},
        },
    ),
}


def get_workflow(name: str) -> WorkflowDefinition:
    """Look up a catalog workflow by name.

    Raises:
        UnknownWorkflowError: If ``name`` is not in the catalog
    """
    try:
        return WORKFLOWS[name]
    except KeyError:
        raise UnknownWorkflowError(name) from None


def load_workflow_file(path: str | Path) -> WorkflowDefinition:
    """Load and validate a workflow definition from a JSON file."""
    path = Path(path)
    raw = json.loads(path.read_text(encoding="utf8"))
    return WorkflowDefinition.model_validate(raw)
