"""
Fallback answer for a turn that ran out of iterations.

This is the only user-visible text the loop produces by itself, so the
wording is fixed and selected by a simple count of succeeded and failed
outcomes.
"""

from typing import Sequence

from ..models import Invocation, Outcome

NOTHING_EXPLORED_MESSAGE = """I wasn't able to explore much before running out of iteration space. Could you help me refine your request? For example:
- Are you looking for a specific type of location (restaurant, restroom, exit, etc.)?
- Do you have a building or floor in mind?
- Can you describe what you're looking for in different words?

With a bit more detail, I should be able to give you a much better answer!"""

EXPLORED_MESSAGE_TEMPLATE = """I've explored the venue and found some information (called: {tool_names}), but I'm running low on thinking space.

Based on the results, could you clarify:
- Which of the results interests you most?
- Are you looking for something more specific?
- Would you like more detail or directions to one of these locations?

Feel free to ask me to dig deeper. I can continue from where I left off!"""

FAILED_MESSAGE = """I'm sorry, I tried searching for what you're looking for, but hit some limits before I could fully complete it. Let me ask a few clarifying questions:
- What specific location or amenity are you searching for?
- Do you know which building or floor it might be in?
- Is there a different way you'd describe what you're looking for?

Let me try again with that extra info. I'm usually pretty good at finding things!"""


def build_exhaustion_message(
    outcomes: Sequence[Outcome],
    invocations: Sequence[Invocation],
) -> str:
    """
    Build the conversational message used when the iteration ceiling is hit.

    Args:
        outcomes: Every outcome accumulated during the turn.
        invocations: Every invocation accumulated during the turn, in call order.

    Returns:
        The fallback message text.
    """
    succeeded = sum(1 for o in outcomes if o.succeeded)
    failed = sum(1 for o in outcomes if o.failed)

    if succeeded == 0 and failed == 0:
        return NOTHING_EXPLORED_MESSAGE

    if failed > 0:
        return FAILED_MESSAGE

    tool_names = ", ".join(inv.name for inv in invocations)
    return EXPLORED_MESSAGE_TEMPLATE.format(tool_names=tool_names)
