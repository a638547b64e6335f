"""
Core orchestration loop.

One call to ``handle_turn`` drives the model through up to ``ceiling``
iterations.  Each iteration asks the provider for the next step; tool
requests are executed in order and recorded in the history as a
``ToolCalls`` message followed by its ``ToolResults``.  The turn ends when
the model answers with text, or when the ceiling is reached, in which case
a fixed fallback message is synthesized from what the tools returned.

Provider failures propagate to the caller.  Tool failures never do: they
are handed back to the model as ``Outcome.error`` strings.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Optional

from ..errors import TurnInProgressError
from ..models import (
    AssistantResponse,
    Invocation,
    Message,
    Outcome,
    ToolCalls,
    ToolResults,
    UserInput,
)
from ..providers.base import GenerateResult, ModelProvider
from ..tools.registry import ToolRegistry
from ..tracing import TracingContext
from .exhaustion import build_exhaustion_message
from .executor import ToolExecutor
from .history import HistoryStore
from .policy import DEFAULT_CEILING, IterationDecision, build_instruction, decide

logger = logging.getLogger(__name__)


@dataclass
class IterationRecord:
    """Trace of a single iteration within a turn."""

    iteration: int
    offered_tools: bool
    invocations: list[Invocation] = field(default_factory=list)
    outcomes: list[Outcome] = field(default_factory=list)
    final_text: Optional[str] = None


@dataclass
class TurnResult:
    """Result of a complete turn."""

    final_text: str
    invocations: list[Invocation] = field(default_factory=list)
    outcomes: list[Outcome] = field(default_factory=list)
    iterations: int = 0
    exhausted: bool = False

    def to_dict(self) -> dict:
        return {
            "final_text": self.final_text,
            "invocations": [inv.to_dict() for inv in self.invocations],
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
            "iterations": self.iterations,
        }


class OrchestrationLoop:
    """
    Conversation session driving a model provider and a set of tools.

    Per-iteration flow:
        1. Ask the iteration policy whether to offer tools, and for guidance
        2. Call the provider with the full history
        3. Text: append it as the answer and return
        4. Invocations: execute them in order, append calls and results
        5. At the ceiling: synthesize the exhaustion message and return

    The history persists across turns; everything else is per turn.
    """

    def __init__(
        self,
        provider: ModelProvider,
        registry: ToolRegistry,
        instruction: str = "",
        ceiling: int = DEFAULT_CEILING,
        history: Optional[HistoryStore] = None,
        tracing_context: Optional[TracingContext] = None,
        execution_id: Optional[str] = None,
    ):
        if ceiling < 1:
            raise ValueError(f"ceiling must be at least 1, got {ceiling}")
        self.provider = provider
        self.registry = registry
        self.instruction = instruction
        self.ceiling = ceiling
        self.history = history if history is not None else HistoryStore()
        self.tracing_context = tracing_context
        self.execution_id = execution_id
        self.executor = ToolExecutor(
            registry,
            tracing_context=tracing_context,
            execution_id=execution_id,
        )

        self.records: list[IterationRecord] = []
        self._in_turn = False

    @property
    def _id_prefix(self) -> str:
        return f"[{self.execution_id}] " if self.execution_id else ""

    async def handle_turn(self, user_text: str) -> TurnResult:
        """
        Process one user message through the loop.

        Args:
            user_text: The user's message.

        Returns:
            TurnResult with the final text and every invocation/outcome.

        Raises:
            ProviderUnavailableError, ProviderRejectedError: from the provider.
            TurnInProgressError: if a turn is already running on this loop.
        """
        if self._in_turn:
            raise TurnInProgressError()
        self._in_turn = True
        try:
            if self.tracing_context:
                return await self._run_with_tracing(user_text)
            return await self._run_loop(user_text)
        finally:
            self._in_turn = False

    async def _run_with_tracing(self, user_text: str) -> TurnResult:
        """Run the turn inside a tracing root span."""
        self.tracing_context.start_trace(
            name="turn",
            query=user_text,
            metadata={"ceiling": self.ceiling, "provider": self.provider.name},
        )
        try:
            result = await self._run_loop(user_text)
        except Exception as e:
            self.tracing_context.end_trace(output=str(e), status="error")
            raise
        self.tracing_context.end_trace(
            output=result.final_text[:500],
            metadata={"iterations": result.iterations, "exhausted": result.exhausted},
        )
        return result

    async def _run_loop(self, user_text: str) -> TurnResult:
        logger.info("%sUser: %r", self._id_prefix, user_text)

        self.history.append(UserInput(text=user_text))
        self.records = []
        all_invocations: list[Invocation] = []
        all_outcomes: list[Outcome] = []
        iteration = 0

        while True:
            iteration += 1
            decision = decide(iteration, self.ceiling)
            record = IterationRecord(iteration=iteration, offered_tools=decision.offer_tools)
            self.records.append(record)
            logger.debug("%sIteration %d/%d", self._id_prefix, iteration, self.ceiling)

            response = await self._generate(iteration, decision)

            if response.has_text or not response.has_invocations:
                text = response.text or ""
                if not text and iteration >= self.ceiling:
                    return self._exhaust(iteration, all_invocations, all_outcomes)
                return self._conclude(iteration, text, all_invocations, all_outcomes)

            invocations = list(response.invocations)
            logger.info(
                "%sModel called %d tool(s): %s",
                self._id_prefix,
                len(invocations),
                ", ".join(inv.name for inv in invocations),
            )
            outcomes = await self.executor.execute_all(invocations)

            self.history.append(ToolCalls(invocations=tuple(invocations)))
            self.history.append(ToolResults(results=tuple(outcomes)))
            all_invocations.extend(invocations)
            all_outcomes.extend(outcomes)
            record.invocations = invocations
            record.outcomes = outcomes

            if iteration >= self.ceiling:
                return self._exhaust(iteration, all_invocations, all_outcomes)

    async def _generate(self, iteration: int, decision: IterationDecision) -> GenerateResult:
        """Call the provider for one iteration."""
        tools = self.registry.list() if decision.offer_tools else []
        instruction = build_instruction(self.instruction, decision)
        history = self.history.snapshot()

        if not self.tracing_context:
            return await self.provider.generate(history, tools, instruction)

        with self.tracing_context.generation(
            name=f"iteration_{iteration}",
            model=self.provider.name,
            input={"messages": len(history), "tools": [t.name for t in tools]},
        ) as gen:
            try:
                response = await self.provider.generate(history, tools, instruction)
            except Exception:
                gen.set_status("error")
                raise
            gen.set_output(
                response.text
                if response.has_text
                else [inv.to_dict() for inv in response.invocations or []]
            )
            return response

    def _conclude(
        self,
        iteration: int,
        text: str,
        invocations: list[Invocation],
        outcomes: list[Outcome],
    ) -> TurnResult:
        if text:
            self.history.append(AssistantResponse(text=text))
        self.records[-1].final_text = text
        logger.info("%sAssistant: %r", self._id_prefix, text)
        self._log_trace_summary()
        return TurnResult(
            final_text=text,
            invocations=list(invocations),
            outcomes=list(outcomes),
            iterations=iteration,
        )

    def _exhaust(
        self,
        iteration: int,
        invocations: list[Invocation],
        outcomes: list[Outcome],
    ) -> TurnResult:
        logger.warning("%sHit max iterations (%d), stopping loop", self._id_prefix, self.ceiling)
        text = build_exhaustion_message(outcomes, invocations)
        self.history.append(AssistantResponse(text=text))
        self.records[-1].final_text = text
        self._log_trace_summary()
        return TurnResult(
            final_text=text,
            invocations=list(invocations),
            outcomes=list(outcomes),
            iterations=iteration,
            exhausted=True,
        )

    def _log_trace_summary(self) -> None:
        """Log a compact trace summary."""
        logger.info("%s%s", self._id_prefix, "─" * 50)
        logger.info("%sTRACE SUMMARY", self._id_prefix)
        for record in self.records:
            if record.final_text is not None:
                logger.info("%sIteration %d [FINAL]", self._id_prefix, record.iteration)
                continue
            for outcome in record.outcomes:
                if outcome.failed:
                    logger.info(
                        "%sIteration %d: %s -> error: %s",
                        self._id_prefix,
                        record.iteration,
                        outcome.name,
                        outcome.error,
                    )
                else:
                    logger.info(
                        "%sIteration %d: %s -> ok", self._id_prefix, record.iteration, outcome.name
                    )
        logger.info("%sAgent finished in %d iteration(s)", self._id_prefix, len(self.records))

    def get_history(self) -> list[Message]:
        """Deep copy of the conversation history, invocation arguments included."""
        return copy.deepcopy(self.history.snapshot())

    def reset_history(self) -> None:
        """Clear the conversation history."""
        self.history.clear()

    def get_trace(self) -> list[dict]:
        """
        Get a trace of the iterations of the last turn.

        Returns:
            List of iteration dictionaries.
        """
        return [
            {
                "iteration": r.iteration,
                "offered_tools": r.offered_tools,
                "invocations": [inv.to_dict() for inv in r.invocations],
                "outcomes": [outcome.to_dict() for outcome in r.outcomes],
                "final_text": r.final_text,
            }
            for r in self.records
        ]
