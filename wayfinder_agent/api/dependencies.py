"""
Shared conversation for the API.

The server holds a single in-process conversation, created on first use.
Tests replace ``get_agent`` through ``app.dependency_overrides``.
"""

import logging
from typing import Optional

from ..agent import create_agent
from ..orchestration import OrchestrationLoop

logger = logging.getLogger(__name__)

_agent: Optional[OrchestrationLoop] = None


def get_agent() -> OrchestrationLoop:
    global _agent
    if _agent is None:
        _agent = create_agent()
    return _agent


async def close_agent() -> None:
    """Release the provider's client and drop the conversation."""
    global _agent
    if _agent is not None:
        await _agent.provider.close()
        _agent = None
