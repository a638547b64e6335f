"""
Tests for the exhaustion message rule.
"""

from wayfinder_agent.models import Invocation, Outcome
from wayfinder_agent.orchestration.exhaustion import (
    FAILED_MESSAGE,
    NOTHING_EXPLORED_MESSAGE,
    build_exhaustion_message,
)


def test_nothing_explored():
    """No outcomes at all asks clarifying questions."""
    assert build_exhaustion_message([], []) == NOTHING_EXPLORED_MESSAGE


def test_only_none_values_counts_as_nothing_explored():
    """Outcomes without value or error count as neither succeeded nor failed."""
    message = build_exhaustion_message([Outcome("showPOI")], [Invocation("showPOI")])
    assert message == NOTHING_EXPLORED_MESSAGE


def test_all_succeeded_names_tools_in_order():
    """Successful exploration lists the tools called, comma-joined in order."""
    invocations = [Invocation("search"), Invocation("getPOIDetails"), Invocation("search")]
    outcomes = [Outcome(i.name, value={}) for i in invocations]

    message = build_exhaustion_message(outcomes, invocations)

    assert "(called: search, getPOIDetails, search)" in message
    assert "directions" in message


def test_any_failure_apologizes():
    """A single failure switches to the apology message."""
    invocations = [Invocation("search"), Invocation("showDirections")]
    outcomes = [Outcome("search", value=[]), Outcome("showDirections", error="no route")]

    message = build_exhaustion_message(outcomes, invocations)

    assert message == FAILED_MESSAGE
    assert message.startswith("I'm sorry")
