"""
Iteration policy: how much pressure to put on the model to conclude.

Early iterations get the full tool menu and no extra guidance.  The
iteration before the ceiling gets a soft warning with the exact number of
iterations left.  At the ceiling the tools are withdrawn entirely, which
leaves the provider no way to request another call.
"""

from dataclasses import dataclass

DEFAULT_CEILING = 10


@dataclass(frozen=True)
class IterationDecision:
    """Whether to offer tools this iteration, and guidance for the instruction."""

    offer_tools: bool
    guidance: str = ""


def decide(iteration: int, ceiling: int = DEFAULT_CEILING) -> IterationDecision:
    """
    Map the current (1-indexed) iteration to a tool offer and guidance text.

    Args:
        iteration: Current iteration number, starting at 1.
        ceiling: Maximum number of iterations in a turn.

    Returns:
        IterationDecision for this iteration.
    """
    if iteration >= ceiling:
        return IterationDecision(
            offer_tools=False,
            guidance=(
                "You have no iterations left. Provide your final answer now, "
                "based on the information already gathered, or ask clarifying "
                "questions to help refine future searches."
            ),
        )

    if iteration >= ceiling - 1:
        remaining = ceiling - iteration
        return IterationDecision(
            offer_tools=True,
            guidance=(
                f"Note: You have {remaining} iteration(s) remaining. "
                "Prioritize gathering the most critical information and "
                "prepare to conclude with a final answer."
            ),
        )

    return IterationDecision(offer_tools=True)


def build_instruction(base_instruction: str, decision: IterationDecision) -> str:
    """Append the decision's guidance to the base behavioral instruction."""
    if not decision.guidance:
        return base_instruction
    if not base_instruction:
        return decision.guidance
    return f"{base_instruction}\n\n{decision.guidance}"
