"""
Tests for the OpenAI-compatible provider, with a mocked AsyncOpenAI client.
"""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from wayfinder_agent.errors import ProviderRejectedError, ProviderUnavailableError
from wayfinder_agent.models import (
    AssistantResponse,
    Invocation,
    Outcome,
    ToolCalls,
    ToolResults,
    UserInput,
)
from wayfinder_agent.providers.openai_compat import OpenAICompatibleProvider, build_messages
from wayfinder_agent.tools.registry import ToolDescriptor

REQUEST = httpx.Request("POST", "http://llm.local/v1/chat/completions")

SEARCH_TOOL = ToolDescriptor(name="search", description="Find places", handler=lambda args: None)


def _tool_call(call_id: str, name: str, arguments: str):
    return SimpleNamespace(
        id=call_id,
        type="function",
        function=SimpleNamespace(name=name, arguments=arguments),
    )


def _completion(content=None, tool_calls=None, finish_reason="stop"):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason=finish_reason)])


def _provider(*responses):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=list(responses))
    return OpenAICompatibleProvider(model="test-model", client=client), client.chat.completions.create


class TestMessages:
    """Tests for the history mapping."""

    def test_history_mapping(self):
        history = [
            UserInput(text="coffee?"),
            ToolCalls(invocations=[Invocation("search", {"term": "coffee"}, "call_abc")]),
            ToolResults(results=[Outcome("search", value=[{"poiId": 108}])]),
            AssistantResponse(text="Starbucks."),
        ]

        messages = build_messages(history, "Be helpful.")

        assert messages[0] == {"role": "system", "content": "Be helpful."}
        assert messages[1] == {"role": "user", "content": "coffee?"}
        assert messages[2]["role"] == "assistant"
        assert messages[2]["tool_calls"] == [
            {
                "id": "call_abc",
                "type": "function",
                "function": {"name": "search", "arguments": json.dumps({"term": "coffee"})},
            }
        ]
        assert messages[3] == {
            "role": "tool",
            "tool_call_id": "call_abc",
            "content": json.dumps({"result": [{"poiId": 108}]}),
        }
        assert messages[4] == {"role": "assistant", "content": "Starbucks."}

    def test_missing_token_gets_deterministic_id(self):
        """Calls without a token get an id their results can point back at."""
        history = [
            UserInput(text="q"),
            ToolCalls(invocations=[Invocation("a"), Invocation("b")]),
            ToolResults(results=[Outcome("a", value=1), Outcome("b", error="nope")]),
        ]

        messages = build_messages(history, "")

        ids = [call["id"] for call in messages[1]["tool_calls"]]
        assert ids == ["call_1_0", "call_1_1"]
        assert [m["tool_call_id"] for m in messages[2:]] == ids
        assert json.loads(messages[3]["content"]) == {"error": "nope"}

    def test_no_instruction_no_system_message(self):
        assert build_messages([UserInput(text="q")], "") == [{"role": "user", "content": "q"}]


class TestGenerate:
    """Tests for request building and response parsing."""

    def test_text_response(self):
        provider, create = _provider(_completion(content="Level 2."))

        result = asyncio.run(provider.generate([UserInput(text="q")], [SEARCH_TOOL], ""))

        assert result.text == "Level 2."
        assert create.call_args.kwargs["tools"][0]["function"]["name"] == "search"
        assert create.call_args.kwargs["model"] == "test-model"

    def test_no_tools_omits_tools_parameter(self):
        provider, create = _provider(_completion(content="ok"))

        asyncio.run(provider.generate([UserInput(text="q")], [], ""))

        assert "tools" not in create.call_args.kwargs

    def test_tool_call_ids_become_tokens(self):
        provider, _ = _provider(
            _completion(
                tool_calls=[_tool_call("call_1", "search", '{"term": "gate"}')],
                finish_reason="tool_calls",
            )
        )

        result = asyncio.run(provider.generate([UserInput(text="q")], [SEARCH_TOOL], ""))

        assert result.invocations == [Invocation("search", {"term": "gate"}, "call_1")]

    def test_sloppy_arguments_are_repaired(self):
        provider, _ = _provider(
            _completion(tool_calls=[_tool_call("c", "search", "{'term': 'gate',}")])
        )

        result = asyncio.run(provider.generate([UserInput(text="q")], [SEARCH_TOOL], ""))

        assert result.invocations[0].args == {"term": "gate"}

    def test_empty_arguments(self):
        provider, _ = _provider(_completion(tool_calls=[_tool_call("c", "getCategories", "")]))

        result = asyncio.run(provider.generate([UserInput(text="q")], [SEARCH_TOOL], ""))

        assert result.invocations[0].args == {}

    def test_tool_calls_finish_without_calls_is_retried(self):
        provider, create = _provider(
            _completion(finish_reason="tool_calls"),
            _completion(content="ok"),
        )

        result = asyncio.run(provider.generate([UserInput(text="q")], [SEARCH_TOOL], ""))

        assert result.text == "ok"
        assert create.await_count == 2

    def test_token_replayed_as_call_id(self):
        provider, create = _provider(
            _completion(tool_calls=[_tool_call("call_xyz", "search", "{}")], finish_reason="tool_calls"),
            _completion(content="done"),
        )

        async def two_steps():
            first = await provider.generate([UserInput(text="q")], [SEARCH_TOOL], "")
            history = [
                UserInput(text="q"),
                ToolCalls(invocations=first.invocations),
                ToolResults(results=[Outcome("search", value=[])]),
            ]
            await provider.generate(history, [SEARCH_TOOL], "")

        asyncio.run(two_steps())

        sent = create.call_args_list[1].kwargs["messages"]
        assert sent[1]["tool_calls"][0]["id"] == "call_xyz"
        assert sent[2]["tool_call_id"] == "call_xyz"


class TestErrors:
    """Tests for SDK error mapping."""

    def test_connection_error_is_unavailable(self):
        provider, _ = _provider(openai.APIConnectionError(request=REQUEST))

        with pytest.raises(ProviderUnavailableError):
            asyncio.run(provider.generate([UserInput(text="q")], [], ""))

    def test_server_error_is_unavailable(self):
        error = openai.InternalServerError(
            "boom", response=httpx.Response(500, request=REQUEST), body=None
        )
        provider, _ = _provider(error)

        with pytest.raises(ProviderUnavailableError) as exc_info:
            asyncio.run(provider.generate([UserInput(text="q")], [], ""))

        assert exc_info.value.status_code == 500

    def test_client_error_is_rejected(self):
        error = openai.AuthenticationError(
            "bad key", response=httpx.Response(401, request=REQUEST), body={"error": "bad key"}
        )
        provider, create = _provider(error)

        with pytest.raises(ProviderRejectedError) as exc_info:
            asyncio.run(provider.generate([UserInput(text="q")], [], ""))

        assert exc_info.value.status_code == 401
        assert create.await_count == 1
