"""
Configuration management for the Wayfinder agent.

Loads all configuration from environment variables with sensible defaults
for local development.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}: {raw!r}, using {default}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid number for {name}: {raw!r}, using {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() == "true"


@dataclass(frozen=True)
class PinnedLocation:
    """A fixed "you are here" position, used by kiosk deployments."""
    lat: float
    lng: float
    floor_id: str
    title: str = "You Are Here"


@dataclass
class ProviderConfig:
    """Configuration for the model provider."""
    provider: str = field(default_factory=lambda: os.getenv("WAYFINDER_PROVIDER", "gemini"))
    api_key: str = field(default_factory=lambda: os.getenv("WAYFINDER_API_KEY", ""))
    model: str = field(default_factory=lambda: os.getenv("WAYFINDER_MODEL", "gemini-2.0-flash"))
    base_url: str = field(default_factory=lambda: os.getenv("WAYFINDER_BASE_URL", ""))
    temperature: float = field(default_factory=lambda: _env_float("WAYFINDER_TEMPERATURE", 0.7))
    timeout: float = field(default_factory=lambda: _env_float("WAYFINDER_TIMEOUT", 60.0))


@dataclass
class AgentConfig:
    """Configuration for the orchestration loop."""
    max_iterations: int = field(default_factory=lambda: _env_int("WAYFINDER_MAX_ITERATIONS", 10))
    venue_name: str = field(default_factory=lambda: os.getenv("WAYFINDER_VENUE_NAME", "Venue"))


@dataclass
class VenueConfig:
    """Configuration for venue data and the kiosk's pinned location."""
    data_path: str = field(default_factory=lambda: os.getenv("WAYFINDER_VENUE_DATA", ""))
    pinned_latitude: str = field(default_factory=lambda: os.getenv("WAYFINDER_PINNED_LATITUDE", ""))
    pinned_longitude: str = field(default_factory=lambda: os.getenv("WAYFINDER_PINNED_LONGITUDE", ""))
    pinned_floor_id: str = field(default_factory=lambda: os.getenv("WAYFINDER_PINNED_FLOOR_ID", ""))
    pinned_title: str = field(default_factory=lambda: os.getenv("WAYFINDER_PINNED_TITLE", ""))

    @property
    def pinned_location(self) -> Optional[PinnedLocation]:
        """The pinned location, or None unless latitude, longitude and floor are valid."""
        if not (self.pinned_latitude and self.pinned_longitude and self.pinned_floor_id):
            return None
        try:
            lat = float(self.pinned_latitude)
            lng = float(self.pinned_longitude)
        except ValueError:
            return None
        return PinnedLocation(
            lat=lat,
            lng=lng,
            floor_id=self.pinned_floor_id,
            title=self.pinned_title or "You Are Here",
        )


@dataclass
class ServerConfig:
    """Configuration for the FastAPI server."""
    host: str = field(default_factory=lambda: os.getenv("SERVER_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("SERVER_PORT", 8000))
    reload: bool = field(default_factory=lambda: _env_bool("SERVER_RELOAD", False))


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse observability.

    Tracing auto-enables when both public_key and secret_key are provided.
    """
    public_key: str = field(default_factory=lambda: os.getenv("LANGFUSE_PUBLIC_KEY", ""))
    secret_key: str = field(default_factory=lambda: os.getenv("LANGFUSE_SECRET_KEY", ""))
    host: str = field(default_factory=lambda: os.getenv("LANGFUSE_HOST", ""))
    debug: bool = field(default_factory=lambda: _env_bool("LANGFUSE_DEBUG", False))

    @property
    def enabled(self) -> bool:
        """Auto-enable when both keys are configured."""
        return bool(self.public_key and self.secret_key)


@dataclass
class Config:
    """Main configuration container."""
    provider: ProviderConfig
    agent: AgentConfig
    venue: VenueConfig
    server: ServerConfig
    langfuse: LangfuseConfig
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


def get_config() -> Config:
    """Build the application configuration from the current environment."""
    return Config(
        provider=ProviderConfig(),
        agent=AgentConfig(),
        venue=VenueConfig(),
        server=ServerConfig(),
        langfuse=LangfuseConfig(),
    )


# Global config instance
config = get_config()
