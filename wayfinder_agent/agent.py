"""
Assemble a ready-to-use conversation from configuration.

Used by the API server and the interactive CLI; tests build
``OrchestrationLoop`` directly with fakes instead.
"""

import logging
import uuid
from typing import Optional

from .config import Config, config as default_config
from .orchestration import OrchestrationLoop
from .prompts import build_base_instruction
from .providers import ModelProvider, create_provider
from .tools import StaticVenueMap, VenueData, VenueMap, create_registry
from .tracing import TracingContext, get_tracing_client

logger = logging.getLogger(__name__)


def load_venue_map(data_path: str) -> StaticVenueMap:
    """Load the venue file, or an empty venue when no path is configured."""
    if not data_path:
        logger.warning("WAYFINDER_VENUE_DATA is not set; using an empty venue")
        return StaticVenueMap(VenueData())
    return StaticVenueMap.from_yaml(data_path)


def create_agent(
    cfg: Optional[Config] = None,
    venue_map: Optional[VenueMap] = None,
    provider: Optional[ModelProvider] = None,
    max_iterations: Optional[int] = None,
    execution_id: Optional[str] = None,
) -> OrchestrationLoop:
    """
    Build an orchestration loop wired to the configured provider and venue.

    Args:
        cfg: Configuration to use. Defaults to the global config.
        venue_map: Venue map to expose as tools. Defaults to the configured file.
        provider: Model provider. Defaults to the configured provider.
        max_iterations: Override for the iteration ceiling.
        execution_id: Identifier used in logs and traces.

    Returns:
        A new OrchestrationLoop with an empty history.
    """
    cfg = cfg or default_config
    pinned = cfg.venue.pinned_location
    if venue_map is None:
        venue_map = load_venue_map(cfg.venue.data_path)
    venue_name = getattr(venue_map, "name", None) or cfg.agent.venue_name
    execution_id = execution_id or f"conv-{uuid.uuid4().hex[:8]}"

    tracing_client = get_tracing_client()
    tracing_context = None
    if tracing_client and tracing_client.enabled:
        tracing_context = TracingContext(execution_id=execution_id, session_id=execution_id)

    registry = create_registry(venue_map, pinned)
    logger.info(
        f"[{execution_id}] Agent ready: venue '{venue_name}', "
        f"{len(registry)} tool(s), pinned location: {'yes' if pinned else 'no'}"
    )
    return OrchestrationLoop(
        provider=provider or create_provider(cfg.provider),
        registry=registry,
        instruction=build_base_instruction(venue_name, pinned),
        ceiling=max_iterations or cfg.agent.max_iterations,
        tracing_context=tracing_context,
        execution_id=execution_id,
    )
