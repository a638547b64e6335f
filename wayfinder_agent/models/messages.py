"""
Conversation ledger types.

The history is a closed tagged union of four message kinds.  Each kind
carries a ``type`` discriminator and a ``role`` so the serialized form
stays self-describing across process restarts::

    {"type": "user_input", "role": "user", "content": "Where is the bathroom?"}
    {"type": "tool_calls", "role": "assistant", "content": [{"name": "search", ...}]}
    {"type": "tool_results", "role": "user", "content": [{"name": "search", ...}]}
    {"type": "assistant_response", "role": "assistant", "content": "Level 2."}
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable, Optional, Union


@dataclass(frozen=True)
class Invocation:
    """A single tool call requested by the model.

    ``continuation_token`` is opaque provider metadata (e.g. a reasoning
    signature or a call id).  It is stored and replayed verbatim.
    """

    name: str
    args: dict[str, Any] = field(default_factory=dict)
    continuation_token: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "args": self.args,
            "continuation_token": self.continuation_token,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Invocation":
        return cls(
            name=data["name"],
            args=dict(data.get("args") or {}),
            continuation_token=data.get("continuation_token"),
        )


@dataclass(frozen=True)
class Outcome:
    """Normalized result of executing one invocation."""

    name: str
    value: Any = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.value is not None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict:
        # Both fields are always present, null when absent.
        return {"name": self.name, "value": self.value, "error": self.error}

    @classmethod
    def from_dict(cls, data: dict) -> "Outcome":
        return cls(
            name=data["name"],
            value=data.get("value"),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class UserInput:
    """Text submitted by the user at the start of a turn."""

    text: str
    type: ClassVar[str] = "user_input"
    role: ClassVar[str] = "user"


@dataclass(frozen=True)
class AssistantResponse:
    """Final text the model (or the exhaustion fallback) ended a turn with."""

    text: str
    type: ClassVar[str] = "assistant_response"
    role: ClassVar[str] = "assistant"


@dataclass(frozen=True)
class ToolCalls:
    """One batch of tool invocations requested in a single model step."""

    invocations: tuple[Invocation, ...]
    type: ClassVar[str] = "tool_calls"
    role: ClassVar[str] = "assistant"

    def __post_init__(self):
        object.__setattr__(self, "invocations", tuple(self.invocations))


@dataclass(frozen=True)
class ToolResults:
    """Outcomes for the immediately preceding ``ToolCalls``, position by position."""

    results: tuple[Outcome, ...]
    type: ClassVar[str] = "tool_results"
    role: ClassVar[str] = "user"

    def __post_init__(self):
        object.__setattr__(self, "results", tuple(self.results))


Message = Union[UserInput, AssistantResponse, ToolCalls, ToolResults]


def message_to_dict(message: Message) -> dict:
    """Serialize a message into its persisted JSON-compatible form."""
    if isinstance(message, (UserInput, AssistantResponse)):
        content: Any = message.text
    elif isinstance(message, ToolCalls):
        content = [inv.to_dict() for inv in message.invocations]
    elif isinstance(message, ToolResults):
        content = [outcome.to_dict() for outcome in message.results]
    else:
        raise TypeError(f"Not a message: {message!r}")
    return {"type": message.type, "role": message.role, "content": content}


def message_from_dict(data: dict) -> Message:
    """Rebuild a message from :func:`message_to_dict` output."""
    kind = data.get("type")
    content = data.get("content")
    if kind == UserInput.type:
        return UserInput(text=content or "")
    if kind == AssistantResponse.type:
        return AssistantResponse(text=content or "")
    if kind == ToolCalls.type:
        return ToolCalls(invocations=tuple(Invocation.from_dict(c) for c in content or []))
    if kind == ToolResults.type:
        return ToolResults(results=tuple(Outcome.from_dict(c) for c in content or []))
    raise ValueError(f"Unknown message type: {kind!r}")


def history_to_list(messages: Iterable[Message]) -> list[dict]:
    return [message_to_dict(m) for m in messages]


def history_from_list(items: Iterable[dict]) -> list[Message]:
    return [message_from_dict(item) for item in items]
