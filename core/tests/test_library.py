"""Tests for the built-in action handlers."""

from __future__ import annotations

import json
import textwrap
from types import SimpleNamespace

import httpx
import pytest

from actiongraph.config import Settings, settings
from actiongraph.domain.models import WorkflowNode
from actiongraph.library import core, llm, transform
from actiongraph.library.credentials import CredentialsManager, MissingCredentialsError
from actiongraph.library.http import HttpGetAction
from actiongraph.registry import CancellationSignal
from actiongraph.services.expression import ExpressionError


def _node(action_ref: str) -> WorkflowNode:
    return WorkflowNode(id="n", action_ref=action_ref)


class TestHttpGet:
    @pytest.mark.asyncio
    async def test_json_body_is_decoded(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"docs": [{"title": "Dune"}]})

        action = HttpGetAction(transport=httpx.MockTransport(handler))
        output = await action(
            _node("plugin.http.get"),
            {
                "url": "https://openlibrary.org/search.json",
                "params": {"q": "dune", "limit": 5},
                "headers": {"X-Test": "1"},
            },
            CancellationSignal(),
        )

        assert output == {"status": 200, "body": {"docs": [{"title": "Dune"}]}}
        request = seen[0]
        assert request.method == "GET"
        assert request.url.params["q"] == "dune"
        assert request.url.params["limit"] == "5"
        assert request.headers["X-Test"] == "1"
        assert request.headers["User-Agent"] == "agentic-workflow-engine"

    @pytest.mark.asyncio
    async def test_non_json_body_is_text(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<feed/>", headers={"content-type": "application/atom+xml"})

        action = HttpGetAction(transport=httpx.MockTransport(handler))
        output = await action(_node("plugin.http.get"), {"url": "https://export.arxiv.org/api/query"}, CancellationSignal())

        assert output == {"status": 200, "body": "<feed/>"}

    @pytest.mark.asyncio
    async def test_error_status_is_returned_not_raised(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="unavailable")

        action = HttpGetAction(transport=httpx.MockTransport(handler))
        output = await action(_node("plugin.http.get"), {"url": "https://example.org"}, CancellationSignal())

        assert output["status"] == 503

    @pytest.mark.asyncio
    async def test_params_merge_with_url_query(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        action = HttpGetAction(transport=httpx.MockTransport(handler))
        await action(
            _node("plugin.http.get"),
            {"url": "https://example.org/api?format=json", "params": {"flag": True}},
            CancellationSignal(),
        )

        assert seen[0].url.params["format"] == "json"
        assert seen[0].url.params["flag"] == "true"

    @pytest.mark.asyncio
    async def test_url_query_kept_without_params(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        action = HttpGetAction(transport=httpx.MockTransport(handler))
        await action(_node("plugin.http.get"), {"url": "https://example.org/api?format=json"}, CancellationSignal())

        assert str(seen[0].url) == "https://example.org/api?format=json"

    @pytest.mark.asyncio
    async def test_params_override_url_query_key(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        action = HttpGetAction(transport=httpx.MockTransport(handler))
        await action(
            _node("plugin.http.get"),
            {"url": "https://example.org/api?limit=1&format=json", "params": {"limit": 5}},
            CancellationSignal(),
        )

        assert seen[0].url.params.get_list("limit") == ["5"]
        assert seen[0].url.params["format"] == "json"

    @pytest.mark.asyncio
    async def test_user_agent_follows_settings(self, monkeypatch):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        monkeypatch.setattr(settings, "user_agent", "custom-agent")
        action = HttpGetAction(transport=httpx.MockTransport(handler))
        await action(_node("plugin.http.get"), {"url": "https://example.org"}, CancellationSignal())

        assert seen[0].headers["User-Agent"] == "custom-agent"

    @pytest.mark.asyncio
    async def test_transport_errors_propagate(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        action = HttpGetAction(transport=httpx.MockTransport(handler))
        with pytest.raises(httpx.ConnectError):
            await action(_node("plugin.http.get"), {"url": "https://example.org"}, CancellationSignal())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", [None, "", 42])
    async def test_url_is_required(self, url):
        with pytest.raises(ValueError, match="'url' must be a non-empty string"):
            await HttpGetAction()(_node("plugin.http.get"), {"url": url}, CancellationSignal())


class TestXml2Json:
    def test_atom_feed(self):
        xml = textwrap.dedent(
            """\
            <?xml version="1.0" encoding="UTF-8"?>
            <feed xmlns="http://www.w3.org/2005/Atom" xmlns:opensearch="http://a9.com/-/spec/opensearch/1.1/">
              <opensearch:totalResults>2</opensearch:totalResults>
              <entry>
                <title>One</title>
                <link href="http://arxiv.org/abs/1" rel="alternate"/>
              </entry>
              <entry>
                <title>Two</title>
              </entry>
            </feed>
            """
        )

        assert transform.xml_to_dict(xml) == {
            "feed": {
                "@_xmlns": "http://www.w3.org/2005/Atom",
                "@_xmlns:opensearch": "http://a9.com/-/spec/opensearch/1.1/",
                "opensearch:totalResults": 2,
                "entry": [
                    {"title": "One", "link": {"@_href": "http://arxiv.org/abs/1", "@_rel": "alternate"}},
                    {"title": "Two"},
                ],
            }
        }

    def test_text_with_attributes(self):
        assert transform.xml_to_dict('<a id="1">hello</a>') == {"a": {"@_id": "1", "#text": "hello"}}

    def test_scalar_coercion(self):
        xml = "<r><i>42</i><f>1.5</f><t>true</t><s>007x</s><e/></r>"
        assert transform.xml_to_dict(xml) == {"r": {"i": 42, "f": 1.5, "t": True, "s": "007x", "e": ""}}

    def test_invalid_xml(self):
        with pytest.raises(ValueError, match="Invalid XML"):
            transform.xml_to_dict("<open>")

    @pytest.mark.asyncio
    async def test_handler(self):
        output = await transform.xml2json(_node("plugin.transform.xml2json"), {"xml": "<a>1</a>"}, CancellationSignal())
        assert output == {"json": {"a": 1}}

    @pytest.mark.asyncio
    async def test_handler_requires_xml(self):
        with pytest.raises(ValueError, match="'xml' must be a non-empty string"):
            await transform.xml2json(_node("plugin.transform.xml2json"), {}, CancellationSignal())


class TestJq:
    @pytest.mark.asyncio
    async def test_handler(self):
        output = await transform.jq(
            _node("plugin.transform.jq"),
            {"data": {"query": {"search": [{"title": "Alan Turing"}]}}, "expression": ".query.search[0].title"},
            CancellationSignal(),
        )
        assert output == {"result": "Alan Turing"}

    @pytest.mark.asyncio
    async def test_expression_must_be_string(self):
        with pytest.raises(ValueError, match="'expression' must be string"):
            await transform.jq(_node("plugin.transform.jq"), {"data": {}, "expression": 1}, CancellationSignal())

    @pytest.mark.asyncio
    async def test_evaluation_errors_propagate(self):
        with pytest.raises(ExpressionError):
            await transform.jq(_node("plugin.transform.jq"), {"data": {}, "expression": ".missing"}, CancellationSignal())


class TestCoreActions:
    @pytest.mark.asyncio
    async def test_echo(self):
        output = await core.echo(_node("plugin.core.echo"), {"data": [1, 2]}, CancellationSignal())
        assert output == {"data": [1, 2]}

    @pytest.mark.asyncio
    async def test_write_file(self, tmp_path):
        target = tmp_path / "out" / "report.json"
        content = json.dumps({"title": "Dune ✓"})

        output = await core.write_file(
            _node("plugin.files.write"),
            {"path": str(target), "content": content},
            CancellationSignal(),
        )

        assert target.read_text(encoding="utf8") == content
        assert output == {"bytesWritten": len(content.encode("utf8"))}

    @pytest.mark.asyncio
    async def test_write_file_validates_input(self, tmp_path):
        with pytest.raises(ValueError, match="'content' must be a string"):
            await core.write_file(
                _node("plugin.files.write"),
                {"path": str(tmp_path / "x"), "content": 5},
                CancellationSignal(),
            )


class _FakeChat:
    instances: list["_FakeChat"] = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.messages = None
        _FakeChat.instances.append(self)

    async def ainvoke(self, messages):
        self.messages = messages
        return SimpleNamespace(content="a short answer")


class TestLlmComplete:
    @pytest.fixture(autouse=True)
    def fake_chat(self, monkeypatch):
        _FakeChat.instances.clear()
        monkeypatch.setattr(llm, "ChatOpenAI", _FakeChat)
        self.credentials = CredentialsManager(Settings(openai_api_key=None))
        self.credentials.set_credentials("openai", {"api_key": "sk-test"})
        monkeypatch.setattr(llm, "credentials_manager", self.credentials)

    @pytest.mark.asyncio
    async def test_complete(self):
        output = await llm.complete(
            _node("plugin.llm.complete"),
            {"prompt": "Summarize Dune", "model": "gpt-4o", "system": "Be brief."},
            CancellationSignal(),
        )

        assert output == {"text": "a short answer"}
        chat = _FakeChat.instances[0]
        assert chat.kwargs["model"] == "gpt-4o"
        assert chat.kwargs["openai_api_key"] == "sk-test"
        assert [m.content for m in chat.messages] == ["Be brief.", "Summarize Dune"]

    @pytest.mark.asyncio
    async def test_prompt_required(self):
        with pytest.raises(ValueError, match="'prompt' must be a non-empty string"):
            await llm.complete(_node("plugin.llm.complete"), {}, CancellationSignal())

    def test_unsupported_provider(self):
        with pytest.raises(ValueError, match="Unsupported provider"):
            llm.llm_model(provider="nope")

    def test_missing_api_key(self):
        self.credentials.clear("openai")
        with pytest.raises(MissingCredentialsError, match="No API key configured for provider 'openai'"):
            llm.llm_model()


class TestCredentialsManager:
    def test_seeded_from_settings(self):
        manager = CredentialsManager(Settings(openai_api_key="sk-env"))
        assert manager.get_api_key("openai") == "sk-env"
        assert manager.providers() == ["openai"]

    def test_empty_without_key(self):
        manager = CredentialsManager(Settings(openai_api_key=None))
        assert manager.providers() == []
        assert manager.get_api_key("openai") is None
        assert manager.get_credentials("openai") == {}

    def test_instances_do_not_share_state(self):
        first = CredentialsManager(Settings(openai_api_key=None))
        second = CredentialsManager(Settings(openai_api_key=None))
        first.set_credentials("anthropic", {"api_key": "k"})

        assert second.providers() == []
        assert first.require_api_key("anthropic") == "k"
