"""
Model providers.

Each provider adapts one model API to the ``ModelProvider`` contract.
"""

from .base import GenerateResult, ModelProvider
from .factory import create_provider
from .gemini import GeminiProvider
from .openai_compat import OpenAICompatibleProvider

__all__ = [
    "GenerateResult",
    "ModelProvider",
    "GeminiProvider",
    "OpenAICompatibleProvider",
    "create_provider",
]
