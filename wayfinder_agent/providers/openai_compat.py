"""
OpenAI-compatible provider (OpenAI, vLLM, Ollama, LiteLLM, ...).

Uses native chat-completions tool calling.  The tool call ``id`` doubles as
the continuation token, so a replayed ``ToolCalls`` message carries the same
ids the server issued and each ``tool`` message can point back at its call.
"""

import json
import logging
from typing import Any, Optional, Sequence

import json_repair
import openai
from openai import AsyncOpenAI

from ..errors import (
    MalformedResponseError,
    ProviderRejectedError,
    ProviderUnavailableError,
)
from ..models import (
    AssistantResponse,
    Invocation,
    Message,
    ToolCalls,
    ToolResults,
    UserInput,
)
from ..tools.registry import ToolDescriptor
from .base import GenerateResult, ModelProvider

logger = logging.getLogger(__name__)


def _call_id(message_index: int, position: int, invocation: Invocation) -> str:
    if invocation.continuation_token:
        return invocation.continuation_token
    return f"call_{message_index}_{position}"


def build_messages(history: Sequence[Message], instruction: str) -> list[dict]:
    """Translate the conversation history into chat-completions messages."""
    messages: list[dict] = []
    if instruction:
        messages.append({"role": "system", "content": instruction})

    last_call_ids: list[str] = []
    for index, message in enumerate(history):
        if isinstance(message, UserInput):
            messages.append({"role": "user", "content": message.text})
        elif isinstance(message, AssistantResponse):
            messages.append({"role": "assistant", "content": message.text})
        elif isinstance(message, ToolCalls):
            last_call_ids = [
                _call_id(index, pos, inv) for pos, inv in enumerate(message.invocations)
            ]
            messages.append(
                {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [
                        {
                            "id": call_id,
                            "type": "function",
                            "function": {
                                "name": inv.name,
                                "arguments": json.dumps(inv.args),
                            },
                        }
                        for call_id, inv in zip(last_call_ids, message.invocations)
                    ],
                }
            )
        elif isinstance(message, ToolResults):
            for call_id, outcome in zip(last_call_ids, message.results):
                payload = (
                    {"error": outcome.error}
                    if outcome.error is not None
                    else {"result": outcome.value}
                )
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": call_id,
                        "content": json.dumps(payload, default=str),
                    }
                )
    return messages


def build_tools(tools: Sequence[ToolDescriptor]) -> list[dict]:
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.input_schema,
            },
        }
        for tool in tools
    ]


def _parse_arguments(name: str, raw: Optional[str]) -> dict:
    if not raw or not raw.strip():
        return {}
    parsed = json_repair.loads(raw)
    if not isinstance(parsed, dict):
        raise MalformedResponseError(f"Unparseable arguments for tool '{name}': {raw[:200]}")
    return parsed


class OpenAICompatibleProvider(ModelProvider):
    """Model provider for any OpenAI-compatible chat-completions endpoint."""

    name = "openai"

    def __init__(
        self,
        model: str,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        timeout: float = 60,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.temperature = temperature
        self.client = client or AsyncOpenAI(
            base_url=base_url or None,
            api_key=api_key or "dummy",  # local servers don't require auth
            timeout=timeout,
        )

    async def _generate_once(
        self,
        history: Sequence[Message],
        tools: Sequence[ToolDescriptor],
        instruction: str,
    ) -> GenerateResult:
        create_kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": build_messages(history, instruction),
            "temperature": self.temperature,
        }
        if tools:
            create_kwargs["tools"] = build_tools(tools)

        try:
            response = await self.client.chat.completions.create(**create_kwargs)
        except (openai.APIConnectionError, openai.InternalServerError) as e:
            logger.error(f"OpenAI-compatible call failed: {e}")
            raise ProviderUnavailableError(
                f"OpenAI-compatible call failed: {e}",
                status_code=getattr(e, "status_code", None),
            ) from e
        except openai.APIStatusError as e:
            logger.error(f"OpenAI-compatible call failed with status {e.status_code}: {e}")
            error_cls = ProviderUnavailableError if e.status_code >= 500 else ProviderRejectedError
            raise error_cls(
                f"OpenAI-compatible API error: {e.status_code}",
                status_code=e.status_code,
                response_body=str(e.body) if e.body is not None else None,
            ) from e

        if not response.choices:
            return GenerateResult()

        choice = response.choices[0]
        tool_calls = choice.message.tool_calls or []
        if choice.finish_reason == "tool_calls" and not tool_calls:
            raise MalformedResponseError("finish_reason is 'tool_calls' but no tool calls returned")

        invocations = [
            Invocation(
                name=call.function.name,
                args=_parse_arguments(call.function.name, call.function.arguments),
                continuation_token=call.id,
            )
            for call in tool_calls
        ]
        return GenerateResult(text=choice.message.content, invocations=invocations or None)

    async def close(self) -> None:
        await self.client.close()
