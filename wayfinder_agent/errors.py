"""
Exception hierarchy for the Wayfinder agent.

Provider errors propagate to the caller of ``handle_turn``.  Tool errors
never escape the executor; they are converted into ``Outcome.error``
strings and handed back to the model.  Registry errors are programmer
errors raised at setup time.
"""

from typing import Optional


class WayfinderError(Exception):
    """Base class for all Wayfinder agent errors."""


# =============================================================================
# Provider errors
# =============================================================================


class ProviderError(WayfinderError):
    """A model provider failed to produce a response."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class ProviderUnavailableError(ProviderError):
    """Transient transport or server-side (5xx) failure."""


class ProviderRejectedError(ProviderError):
    """Authentication or request validation (4xx) failure. Never retried."""


class MalformedResponseError(ProviderError):
    """The provider returned a known malformed function-call response."""


class TurnInProgressError(WayfinderError):
    """``handle_turn`` was called while a turn is already running on the same loop."""

    def __init__(self):
        super().__init__("turn already in progress")


# =============================================================================
# Tool errors
# =============================================================================


class ToolError(WayfinderError):
    """Raised by tool handlers to report a failure to the model."""


class UnknownToolError(ToolError):
    """The model requested a tool that is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


# =============================================================================
# Registry errors
# =============================================================================


class RegistryError(WayfinderError):
    """Invalid tool registry usage."""


class DuplicateToolError(RegistryError):
    """A tool with the same name is already registered."""

    def __init__(self, name: str):
        super().__init__(f"Tool already registered: {name}")
        self.name = name


class NotFoundError(RegistryError, LookupError):
    """No tool is registered under the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Tool not found: {name}")
        self.name = name
