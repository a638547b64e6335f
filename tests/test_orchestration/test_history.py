"""
Tests for the HistoryStore.
"""

import pytest

from wayfinder_agent.models import (
    AssistantResponse,
    Invocation,
    Outcome,
    ToolCalls,
    ToolResults,
    UserInput,
)
from wayfinder_agent.orchestration.history import HistoryStore


class TestPairing:
    """Tests for tool call/result pairing enforcement."""

    def test_valid_sequence(self):
        """A well-formed exchange is accepted."""
        store = HistoryStore()
        store.append(UserInput(text="hi"))
        store.append(ToolCalls(invocations=[Invocation("a"), Invocation("b")]))
        store.append(ToolResults(results=[Outcome("a", value=1), Outcome("b", error="x")]))
        store.append(AssistantResponse(text="done"))

        assert len(store) == 4

    def test_results_without_calls_rejected(self):
        """Tool results must directly follow tool calls."""
        store = HistoryStore([UserInput(text="hi")])

        with pytest.raises(ValueError):
            store.append(ToolResults(results=[Outcome("a", value=1)]))

    def test_mismatched_names_rejected(self):
        """Results must match the calls position by position."""
        store = HistoryStore([UserInput(text="hi"), ToolCalls(invocations=[Invocation("a")])])

        with pytest.raises(ValueError, match="do not match"):
            store.append(ToolResults(results=[Outcome("b", value=1)]))

    def test_mismatched_count_rejected(self):
        store = HistoryStore([UserInput(text="hi"), ToolCalls(invocations=[Invocation("a")])])

        with pytest.raises(ValueError):
            store.append(ToolResults(results=[Outcome("a", value=1), Outcome("a", value=2)]))

    def test_unanswered_calls_block_other_messages(self):
        """Nothing but results may follow tool calls."""
        store = HistoryStore([UserInput(text="hi"), ToolCalls(invocations=[Invocation("a")])])

        with pytest.raises(ValueError, match="unanswered"):
            store.append(AssistantResponse(text="oops"))


class TestStore:
    """Tests for snapshot, clear and persistence."""

    def test_snapshot_is_a_copy(self):
        store = HistoryStore([UserInput(text="hi")])

        snapshot = store.snapshot()
        snapshot.append(UserInput(text="injected"))

        assert len(store) == 1

    def test_clear(self):
        store = HistoryStore([UserInput(text="hi")])
        store.clear()
        assert len(store) == 0

    def test_round_trip_through_list(self):
        """to_list/from_list restore the same messages."""
        store = HistoryStore(
            [
                UserInput(text="coffee"),
                ToolCalls(invocations=[Invocation("search", {"term": "coffee"}, "sig")]),
                ToolResults(results=[Outcome("search", value=[])]),
                AssistantResponse(text="none found"),
            ]
        )

        restored = HistoryStore.from_list(store.to_list())

        assert restored.snapshot() == store.snapshot()

    def test_from_list_validates(self):
        """Restoring a corrupted layout fails loudly."""
        with pytest.raises(ValueError):
            HistoryStore.from_list(
                [{"type": "tool_results", "role": "user", "content": [{"name": "a", "value": 1}]}]
            )
