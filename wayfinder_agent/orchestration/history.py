"""
Append-only conversation ledger.

The store enforces the pairing rule as messages arrive: a ``ToolResults``
may only follow a ``ToolCalls`` with the same number of entries and the
same tool names in the same order, and nothing else may follow a
``ToolCalls``.
"""

import logging
from typing import Iterable, Iterator

from ..models import (
    Message,
    ToolCalls,
    ToolResults,
    history_from_list,
    history_to_list,
)

logger = logging.getLogger(__name__)


class HistoryStore:
    """Ordered, append-only sequence of conversation messages."""

    def __init__(self, messages: Iterable[Message] = ()):
        self._messages: list[Message] = []
        for message in messages:
            self.append(message)

    @classmethod
    def from_list(cls, items: Iterable[dict]) -> "HistoryStore":
        """Restore a store from its serialized form (see ``to_list``)."""
        return cls(history_from_list(items))

    def to_list(self) -> list[dict]:
        return history_to_list(self._messages)

    def append(self, message: Message) -> None:
        """Append a message, validating tool call/result pairing."""
        previous = self._messages[-1] if self._messages else None

        if isinstance(message, ToolResults):
            if not isinstance(previous, ToolCalls):
                raise ValueError("tool_results must directly follow tool_calls")
            call_names = [inv.name for inv in previous.invocations]
            result_names = [outcome.name for outcome in message.results]
            if call_names != result_names:
                raise ValueError(
                    f"tool_results {result_names} do not match tool_calls {call_names}"
                )
        elif isinstance(previous, ToolCalls):
            raise ValueError(f"{message.type} cannot follow unanswered tool_calls")

        self._messages.append(message)

    def snapshot(self) -> list[Message]:
        """A copy of the messages; mutating it does not affect the store."""
        return list(self._messages)

    def clear(self) -> None:
        logger.debug("Clearing %d message(s) from history", len(self._messages))
        self._messages = []

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]
