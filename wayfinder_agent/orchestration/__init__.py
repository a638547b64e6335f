"""
Orchestration package: the turn loop and the pieces it drives.
"""

from .exhaustion import build_exhaustion_message
from .executor import ToolExecutor
from .history import HistoryStore
from .loop import IterationRecord, OrchestrationLoop, TurnResult
from .policy import DEFAULT_CEILING, IterationDecision, build_instruction, decide

__all__ = [
    "OrchestrationLoop",
    "TurnResult",
    "IterationRecord",
    "ToolExecutor",
    "HistoryStore",
    "IterationDecision",
    "DEFAULT_CEILING",
    "decide",
    "build_instruction",
    "build_exhaustion_message",
]
