"""
Model provider contract.

A provider turns (history, tools, instruction) into either final text or a
list of requested tool invocations.  Each concrete provider translates the
tagged-union history into its own wire format and back, and is the only
place where continuation tokens are interpreted.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from ..errors import MalformedResponseError, ProviderUnavailableError
from ..models import Invocation, Message
from ..tools.registry import ToolDescriptor

logger = logging.getLogger(__name__)


@dataclass
class GenerateResult:
    """Response from a single model call."""

    text: Optional[str] = None
    invocations: Optional[list[Invocation]] = None

    @property
    def has_text(self) -> bool:
        return bool(self.text)

    @property
    def has_invocations(self) -> bool:
        return bool(self.invocations)


class ModelProvider(ABC):
    """
    Base class for model providers.

    Subclasses implement ``_generate_once``.  When it raises
    ``MalformedResponseError`` the call is repeated, at most
    ``max_malformed_retries`` times; any other error propagates unchanged.
    An empty ``tools`` sequence means the provider must not offer any tool
    declarations to the model.
    """

    name: str = "provider"
    max_malformed_retries: int = 1

    async def generate(
        self,
        history: Sequence[Message],
        tools: Sequence[ToolDescriptor],
        instruction: str,
    ) -> GenerateResult:
        """
        Generate the next model step.

        Args:
            history: Complete conversation history, oldest first.
            tools: Tools the model may call this step (may be empty).
            instruction: Behavioral (system) instruction.

        Returns:
            GenerateResult with text and/or invocations.

        Raises:
            ProviderUnavailableError: Transport or server failure.
            ProviderRejectedError: Authentication or validation failure.
        """
        attempt = 0
        while True:
            try:
                return await self._generate_once(history, tools, instruction)
            except MalformedResponseError as e:
                if attempt >= self.max_malformed_retries:
                    raise ProviderUnavailableError(
                        f"{self.name} returned a malformed response after "
                        f"{attempt + 1} attempt(s): {e}",
                        status_code=e.status_code,
                        response_body=e.response_body,
                    ) from e
                attempt += 1
                logger.error(
                    "%s returned a malformed function call, retrying (%d/%d)",
                    self.name,
                    attempt,
                    self.max_malformed_retries,
                )

    @abstractmethod
    async def _generate_once(
        self,
        history: Sequence[Message],
        tools: Sequence[ToolDescriptor],
        instruction: str,
    ) -> GenerateResult:
        """Perform one request/response round with the provider."""

    async def close(self) -> None:
        """Release any underlying client resources."""
