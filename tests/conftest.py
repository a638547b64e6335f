"""
Pytest configuration and fixtures for Wayfinder agent tests.
"""

from typing import Sequence, Union

import pytest

from wayfinder_agent.errors import ToolError
from wayfinder_agent.models import Invocation, Message
from wayfinder_agent.providers.base import GenerateResult, ModelProvider
from wayfinder_agent.tools.registry import ToolDescriptor, ToolRegistry
from wayfinder_agent.tools.static_venue import StaticVenueMap
from wayfinder_agent.tracing import shutdown_tracing


class ScriptedProvider(ModelProvider):
    """
    Provider that replays a fixed script of responses.

    Each script entry is a ``GenerateResult`` to return or an exception to
    raise.  Every call is recorded so tests can inspect what the loop sent.
    Once the script runs out the last entry is repeated.
    """

    name = "scripted"

    def __init__(self, script: Sequence[Union[GenerateResult, Exception]]):
        self.script = list(script)
        self.calls: list[dict] = []

    async def _generate_once(self, history, tools, instruction) -> GenerateResult:
        self.calls.append(
            {
                "history": list(history),
                "tools": [tool.name for tool in tools],
                "instruction": instruction,
            }
        )
        index = min(len(self.calls) - 1, len(self.script) - 1)
        step = self.script[index]
        if isinstance(step, Exception):
            raise step
        return step


def text(value: str) -> GenerateResult:
    return GenerateResult(text=value)


def calls(*invocations: Invocation) -> GenerateResult:
    return GenerateResult(invocations=list(invocations))


class CallCounter:
    """Records each handler call, for exactly-once checks."""

    def __init__(self):
        self.calls: list[dict] = []


@pytest.fixture
def counter():
    return CallCounter()


@pytest.fixture
def registry(counter):
    """Registry with a sync tool, an async tool and a failing tool."""

    def find(args: dict):
        counter.calls.append({"tool": "find", **args})
        return [{"poiId": 108, "name": f"{args.get('term', '')} place"}]

    async def details(args: dict):
        counter.calls.append({"tool": "details", **args})
        return {"poiId": args.get("poiId"), "name": "Starbucks"}

    def broken(args: dict):
        counter.calls.append({"tool": "broken", **args})
        raise ToolError("venue map unavailable")

    return ToolRegistry(
        [
            ToolDescriptor(name="find", description="Find places", handler=find),
            ToolDescriptor(name="details", description="Place details", handler=details),
            ToolDescriptor(name="broken", description="Always fails", handler=broken),
        ]
    )


VENUE_DATA = {
    "name": "Test Airport",
    "buildings": [
        {
            "id": "terminal-a",
            "name": "Terminal A",
            "levels": [
                {"id": "terminal-a-departures", "name": "Departures", "ordinal": 1},
            ],
        },
        {
            "id": "terminal-b",
            "name": "Terminal B",
            "levels": [{"id": "terminal-b-departures", "name": "Departures"}],
        },
    ],
    "pois": [
        {
            "id": 108,
            "name": "Starbucks",
            "category": "eat.coffee",
            "keywords": ["coffee", "espresso"],
            "building_id": "terminal-a",
            "floor_id": "terminal-a-departures",
            "after_security": True,
            "lat": 33.94160,
            "lng": -118.40850,
        },
        {
            "id": 135,
            "name": "Restroom near A10",
            "category": "restroom",
            "keywords": ["toilet", "bathroom"],
            "building_id": "terminal-a",
            "floor_id": "terminal-a-departures",
            "after_security": True,
            "lat": 33.94195,
            "lng": -118.40805,
        },
        {
            "id": 140,
            "name": "Hudson News",
            "category": "shop.news",
            "description": "Snacks and travel essentials.",
            "building_id": "terminal-a",
            "floor_id": "terminal-a-departures",
            "after_security": False,
            "lat": 33.94120,
            "lng": -118.40900,
        },
        {
            "id": 201,
            "name": "Peet's Coffee",
            "category": "eat.coffee",
            "building_id": "terminal-b",
            "floor_id": "terminal-b-departures",
            "after_security": True,
            "lat": 33.94400,
            "lng": -118.40500,
        },
    ],
    "security_checkpoints": [
        {"id": "checkpoint-a", "name": "Terminal A Security", "wait_minutes": 12},
        {"id": "checkpoint-b", "name": "Terminal B Security", "closed": True},
    ],
}


@pytest.fixture
def venue_map():
    return StaticVenueMap.from_dict(VENUE_DATA)


@pytest.fixture(autouse=True)
def reset_tracing():
    """Make sure no tracing client leaks between tests."""
    shutdown_tracing()
    yield
    shutdown_tracing()
