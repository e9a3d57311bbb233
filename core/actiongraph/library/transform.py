"""Transform actions: XML to JSON and jq-style queries."""

from __future__ import annotations

import io
import re
import xml.etree.ElementTree as ET
from typing import Any

from actiongraph.domain.models import WorkflowNode
from actiongraph.registry import CancellationSignal, register_action
from actiongraph.services.expression import evaluate

ATTRIBUTE_PREFIX = "@_"
TEXT_KEY = "#text"

_NUMBER = re.compile(r"^-?(0|[1-9]\d*)(\.\d+)?([eE][+-]?\d+)?$")


def _coerce(text: str) -> Any:
    if text == "true":
        return True
    if text == "false":
        return False
    match = _NUMBER.match(text)
    if match is None:
        return text
    if match.group(2) is None and match.group(3) is None:
        return int(text)
    return float(text)


def xml_to_dict(xml: str) -> dict[str, Any]:
    """Convert an XML document to nested dicts.

    Conventions:
    - attributes become ``@_name`` keys (namespace declarations included)
    - an element holding only text collapses to that text, with numeric and
      boolean text coerced
    - text alongside attributes or children goes under ``#text``
    - repeated child tags become lists, in document order
    - namespaced tags keep their declared prefix (``arxiv:primary_category``)

    Raises:
        ValueError: If the document is not well-formed
    """
    prefixes: dict[str, str] = {}
    pending_ns: list[tuple[str, str]] = []
    declared: dict[int, list[tuple[str, str]]] = {}
    root: ET.Element | None = None

    try:
        for event, item in ET.iterparse(io.StringIO(xml), events=("start-ns", "start")):
            if event == "start-ns":
                prefix, uri = item
                prefixes.setdefault(uri, prefix)
                pending_ns.append((prefix, uri))
                continue
            if root is None:
                root = item
            if pending_ns:
                declared[id(item)] = pending_ns
                pending_ns = []
    except ET.ParseError as exc:
        raise ValueError(f"Invalid XML: {exc}") from exc

    if root is None:
        raise ValueError("Invalid XML: no root element")

    def name_of(tag: str) -> str:
        if tag.startswith("{"):
            uri, local = tag[1:].split("}", 1)
            prefix = prefixes.get(uri, "")
            return f"{prefix}:{local}" if prefix else local
        return tag

    def convert(element: ET.Element) -> Any:
        result: dict[str, Any] = {}
        for prefix, uri in declared.get(id(element), []):
            result[f"{ATTRIBUTE_PREFIX}xmlns:{prefix}" if prefix else f"{ATTRIBUTE_PREFIX}xmlns"] = uri
        for key, value in element.attrib.items():
            result[ATTRIBUTE_PREFIX + name_of(key)] = value

        for child in element:
            key = name_of(child.tag)
            value = convert(child)
            if key not in result:
                result[key] = value
            elif isinstance(result[key], list):
                result[key].append(value)
            else:
                result[key] = [result[key], value]

        text = (element.text or "").strip()
        if not result:
            return _coerce(text) if text else ""
        if text:
            result[TEXT_KEY] = _coerce(text)
        return result

    return {name_of(root.tag): convert(root)}


@register_action("plugin.transform.xml2json")
async def xml2json(node: WorkflowNode, input: dict[str, Any], signal: CancellationSignal) -> dict[str, Any]:
    xml = input.get("xml")
    if not isinstance(xml, str) or not xml:
        raise ValueError("'xml' must be a non-empty string")
    return {"json": xml_to_dict(xml)}


@register_action("plugin.transform.jq")
async def jq(node: WorkflowNode, input: dict[str, Any], signal: CancellationSignal) -> dict[str, Any]:
    expression = input.get("expression")
    if not isinstance(expression, str):
        raise ValueError("'expression' must be string")
    return {"result": evaluate(input.get("data"), expression)}
