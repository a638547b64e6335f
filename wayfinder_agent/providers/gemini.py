"""
Gemini provider over the ``generateContent`` REST API.

Gemini returns a ``thoughtSignature`` next to each ``functionCall`` part.
The signature is kept as the invocation's continuation token and sent back
on the same part whenever that call is replayed from history; without it
the model loses its reasoning context between steps.
"""

import logging
from typing import Any, Optional, Sequence

import httpx

from ..errors import (
    MalformedResponseError,
    ProviderRejectedError,
    ProviderUnavailableError,
)
from ..models import (
    AssistantResponse,
    Invocation,
    Message,
    Outcome,
    ToolCalls,
    ToolResults,
    UserInput,
)
from ..tools.registry import ToolDescriptor
from .base import GenerateResult, ModelProvider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash"

MALFORMED_FINISH_REASON = "MALFORMED_FUNCTION_CALL"


def _outcome_payload(outcome: Outcome) -> dict:
    if outcome.error is not None:
        return {"error": outcome.error}
    return {"result": outcome.value}


def build_contents(history: Sequence[Message]) -> list[dict]:
    """Translate the conversation history into Gemini ``contents``."""
    contents = []
    for message in history:
        if isinstance(message, UserInput):
            contents.append({"role": "user", "parts": [{"text": message.text}]})
        elif isinstance(message, AssistantResponse):
            contents.append({"role": "model", "parts": [{"text": message.text}]})
        elif isinstance(message, ToolCalls):
            parts = []
            for inv in message.invocations:
                part: dict[str, Any] = {"functionCall": {"name": inv.name, "args": inv.args}}
                if inv.continuation_token is not None:
                    part["thoughtSignature"] = inv.continuation_token
                parts.append(part)
            contents.append({"role": "model", "parts": parts})
        elif isinstance(message, ToolResults):
            contents.append(
                {
                    "role": "user",
                    "parts": [
                        {
                            "functionResponse": {
                                "name": outcome.name,
                                "response": _outcome_payload(outcome),
                            }
                        }
                        for outcome in message.results
                    ],
                }
            )
    return contents


def build_function_declarations(tools: Sequence[ToolDescriptor]) -> list[dict]:
    return [
        {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.input_schema,
        }
        for tool in tools
    ]


def parse_response(data: dict) -> GenerateResult:
    """
    Parse a ``generateContent`` response body.

    Raises:
        MalformedResponseError: If the model produced a malformed function call.
    """
    candidates = data.get("candidates") or []
    if not candidates:
        return GenerateResult()

    candidate = candidates[0]
    if candidate.get("finishReason") == MALFORMED_FINISH_REASON:
        raise MalformedResponseError(
            f"Gemini finished with {MALFORMED_FINISH_REASON}",
            response_body=str(candidate.get("finishMessage", "")) or None,
        )

    parts = (candidate.get("content") or {}).get("parts") or []
    text = None
    invocations = []
    for part in parts:
        if "functionCall" in part:
            call = part["functionCall"]
            invocations.append(
                Invocation(
                    name=call.get("name", ""),
                    args=dict(call.get("args") or {}),
                    continuation_token=part.get("thoughtSignature"),
                )
            )
        elif "text" in part:
            text = part["text"]

    return GenerateResult(text=text, invocations=invocations or None)


class GeminiProvider(ModelProvider):
    """Model provider for Google's Gemini API."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.7,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            logger.warning("Gemini API key is not set; requests will be rejected")
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def build_request(
        self,
        history: Sequence[Message],
        tools: Sequence[ToolDescriptor],
        instruction: str,
    ) -> dict:
        body: dict[str, Any] = {
            "contents": build_contents(history),
            "generationConfig": {"temperature": self.temperature},
        }
        if tools:
            body["tools"] = [{"functionDeclarations": build_function_declarations(tools)}]
        if instruction:
            body["systemInstruction"] = {"parts": [{"text": instruction}]}
        return body

    async def _generate_once(
        self,
        history: Sequence[Message],
        tools: Sequence[ToolDescriptor],
        instruction: str,
    ) -> GenerateResult:
        body = self.build_request(history, tools, instruction)
        logger.debug(
            f"Gemini request: {len(body['contents'])} content(s), {len(tools)} tool(s)"
        )

        try:
            response = await self._get_client().post(
                self.endpoint,
                json=body,
                headers={"x-goog-api-key": self.api_key},
            )
        except httpx.TransportError as e:
            logger.error(f"Gemini request failed: {e}")
            raise ProviderUnavailableError(f"Gemini request failed: {e}") from e

        if response.status_code >= 500:
            raise ProviderUnavailableError(
                f"Gemini API error: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )
        if response.status_code >= 400:
            raise ProviderRejectedError(
                f"Gemini API error: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderUnavailableError(
                "Gemini returned a response that is not valid JSON",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

        return parse_response(data)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
