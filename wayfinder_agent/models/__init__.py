"""
Data models for the Wayfinder agent.
"""

from .messages import (
    Invocation,
    Outcome,
    UserInput,
    AssistantResponse,
    ToolCalls,
    ToolResults,
    Message,
    message_to_dict,
    message_from_dict,
    history_to_list,
    history_from_list,
)

__all__ = [
    "Invocation",
    "Outcome",
    "UserInput",
    "AssistantResponse",
    "ToolCalls",
    "ToolResults",
    "Message",
    "message_to_dict",
    "message_from_dict",
    "history_to_list",
    "history_from_list",
]
