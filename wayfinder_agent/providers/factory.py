"""Provider selection from configuration."""

import logging
from typing import Optional

from ..config import ProviderConfig, config
from .base import ModelProvider
from .gemini import DEFAULT_BASE_URL, GeminiProvider
from .openai_compat import OpenAICompatibleProvider

logger = logging.getLogger(__name__)

PROVIDERS = ("gemini", "openai")


def create_provider(provider_config: Optional[ProviderConfig] = None) -> ModelProvider:
    """
    Create the configured model provider.

    Args:
        provider_config: Provider settings. Defaults to the global config.

    Returns:
        A ready-to-use ModelProvider.

    Raises:
        ValueError: If the provider name is not recognized.
    """
    cfg = provider_config or config.provider
    name = cfg.provider.lower()
    logger.info(f"Creating {name} provider (model: {cfg.model})")

    if name == "gemini":
        return GeminiProvider(
            api_key=cfg.api_key,
            model=cfg.model,
            temperature=cfg.temperature,
            base_url=cfg.base_url or DEFAULT_BASE_URL,
            timeout=cfg.timeout,
        )
    if name == "openai":
        return OpenAICompatibleProvider(
            model=cfg.model,
            base_url=cfg.base_url or None,
            api_key=cfg.api_key or None,
            temperature=cfg.temperature,
            timeout=cfg.timeout,
        )
    raise ValueError(f"Unknown provider: {cfg.provider!r} (expected one of {', '.join(PROVIDERS)})")
