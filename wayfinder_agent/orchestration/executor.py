"""
Tool execution with uniform result normalization.

Whatever happens inside a handler (a return value, a ToolError, any other
exception) comes back as an ``Outcome``.  The executor never raises.
"""

import copy
import inspect
import logging
from typing import Iterable, Optional

from ..errors import UnknownToolError
from ..models import Invocation, Outcome
from ..tools.registry import ToolRegistry
from ..tracing import TracingContext

logger = logging.getLogger(__name__)


class ToolExecutor:
    """Resolves invocations against a registry and runs their handlers."""

    def __init__(
        self,
        registry: ToolRegistry,
        tracing_context: Optional[TracingContext] = None,
        execution_id: Optional[str] = None,
    ):
        self.registry = registry
        self.tracing_context = tracing_context
        self.execution_id = execution_id

    async def execute(self, invocation: Invocation) -> Outcome:
        """
        Execute a single invocation.

        Args:
            invocation: The tool call requested by the model.

        Returns:
            Outcome with either ``value`` or ``error`` set.
        """
        id_prefix = f"[{self.execution_id}] " if self.execution_id else ""

        tool = self.registry.get(invocation.name)
        if tool is None:
            logger.error("%sTool not found: %s", id_prefix, invocation.name)
            return Outcome(
                name=invocation.name,
                error=str(UnknownToolError(invocation.name)),
            )

        if self.tracing_context:
            with self.tracing_context.span(
                name=f"tool:{invocation.name}",
                input=invocation.args,
            ) as span:
                outcome = await self._run_handler(invocation, tool.handler, id_prefix)
                if outcome.failed:
                    span.set_status("error")
                span.set_output({"value": outcome.value, "error": outcome.error})
                return outcome

        return await self._run_handler(invocation, tool.handler, id_prefix)

    async def execute_all(self, invocations: Iterable[Invocation]) -> list[Outcome]:
        """Execute invocations one after another, preserving order."""
        outcomes = []
        for invocation in invocations:
            outcomes.append(await self.execute(invocation))
        return outcomes

    @staticmethod
    async def _run_handler(invocation: Invocation, handler, id_prefix: str) -> Outcome:
        logger.info("%sExecuting tool: %s %s", id_prefix, invocation.name, invocation.args)
        try:
            value = handler(copy.deepcopy(invocation.args))
            if inspect.isawaitable(value):
                value = await value
        except Exception as e:
            error_msg = str(e) or type(e).__name__
            logger.error("%sTool failed: %s: %s", id_prefix, invocation.name, error_msg)
            return Outcome(name=invocation.name, error=error_msg)

        logger.debug("%sTool result: %s -> %r", id_prefix, invocation.name, value)
        return Outcome(name=invocation.name, value=value)
