"""
Tests for the ToolExecutor.

The executor never raises: every handler result or failure comes back as
an Outcome.
"""

import asyncio

from wayfinder_agent.models import Invocation, Outcome
from wayfinder_agent.orchestration.executor import ToolExecutor
from wayfinder_agent.tools.registry import ToolDescriptor, ToolRegistry


def test_sync_handler_value(registry, counter):
    """A sync handler's return value becomes the outcome value."""
    outcome = asyncio.run(ToolExecutor(registry).execute(Invocation("find", {"term": "coffee"})))

    assert outcome == Outcome(name="find", value=[{"poiId": 108, "name": "coffee place"}])
    assert counter.calls == [{"tool": "find", "term": "coffee"}]


def test_async_handler_is_awaited(registry):
    """A coroutine handler is awaited."""
    outcome = asyncio.run(ToolExecutor(registry).execute(Invocation("details", {"poiId": 108})))

    assert outcome.value == {"poiId": 108, "name": "Starbucks"}
    assert outcome.error is None


def test_tool_error_becomes_outcome_error(registry):
    """A ToolError is captured as the outcome error."""
    outcome = asyncio.run(ToolExecutor(registry).execute(Invocation("broken")))

    assert outcome == Outcome(name="broken", error="venue map unavailable")


def test_unknown_tool(registry, counter):
    """An unknown tool yields an error outcome and runs nothing."""
    outcome = asyncio.run(ToolExecutor(registry).execute(Invocation("teleport")))

    assert outcome == Outcome(name="teleport", error="Unknown tool: teleport")
    assert counter.calls == []


def test_any_exception_is_captured():
    """Unexpected exceptions are captured too."""

    def explode(args):
        raise KeyError("poiId")

    registry = ToolRegistry([ToolDescriptor(name="explode", description="", handler=explode)])
    outcome = asyncio.run(ToolExecutor(registry).execute(Invocation("explode")))

    assert outcome.failed
    assert "poiId" in outcome.error


def test_empty_exception_message_uses_class_name():
    """An exception without a message is reported by its class name."""

    def explode(args):
        raise RuntimeError()

    registry = ToolRegistry([ToolDescriptor(name="explode", description="", handler=explode)])
    outcome = asyncio.run(ToolExecutor(registry).execute(Invocation("explode")))

    assert outcome.error == "RuntimeError"


def test_handler_receives_copy_of_args():
    """Handlers cannot mutate the recorded invocation arguments."""

    def mutate(args):
        args["injected"] = True
        return "ok"

    registry = ToolRegistry([ToolDescriptor(name="mutate", description="", handler=mutate)])
    invocation = Invocation("mutate", {"term": "x"})
    asyncio.run(ToolExecutor(registry).execute(invocation))

    assert invocation.args == {"term": "x"}



def test_handler_cannot_mutate_nested_args():
    """Nested argument objects are copied too, so the ledger keeps what the model sent."""

    def widen(args):
        args["near"]["radius"] = 5000
        return "ok"

    registry = ToolRegistry([ToolDescriptor(name="widen", description="", handler=widen)])
    invocation = Invocation("widen", {"near": {"poiId": 108, "radius": 50}})
    asyncio.run(ToolExecutor(registry).execute(invocation))

    assert invocation.args == {"near": {"poiId": 108, "radius": 50}}


def test_execute_all_preserves_order(registry, counter):
    """Invocations run sequentially in the given order."""
    invocations = [
        Invocation("details", {"poiId": 1}),
        Invocation("broken"),
        Invocation("find", {"term": "gate"}),
    ]

    outcomes = asyncio.run(ToolExecutor(registry).execute_all(invocations))

    assert [o.name for o in outcomes] == ["details", "broken", "find"]
    assert [c["tool"] for c in counter.calls] == ["details", "broken", "find"]
    assert outcomes[1].failed
    assert outcomes[2].succeeded
