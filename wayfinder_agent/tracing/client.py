"""
Process-wide Langfuse connection used by turn tracing.

Each entry point (API lifespan, CLI) calls ``init_tracing_client`` once
with the ``langfuse`` section of the config.  ``TracingContext`` then asks
the client to open the turn span, the generations and the tool spans.
When credentials are missing or Langfuse cannot be reached the client
stays disconnected and ``open_observation`` returns None, so every tracing
call made by the loop falls through without touching the network.
"""

import logging
from typing import Any, Optional

from langfuse import Langfuse

from ..config import LangfuseConfig, config

logger = logging.getLogger(__name__)

DISCONNECTED = LangfuseConfig(public_key="", secret_key="", host="", debug=False)


class TracingClient:
    """Langfuse connection state, settled once when the client is built."""

    def __init__(self, settings: LangfuseConfig = DISCONNECTED):
        self.settings = settings
        self.error: Optional[str] = None
        self._langfuse: Optional[Langfuse] = None

        if settings.enabled:
            self._langfuse = self._connect()
        else:
            self.error = "Langfuse credentials not configured"
            logger.debug(f"Tracing disabled: {self.error}")

    @property
    def enabled(self) -> bool:
        return self._langfuse is not None

    def _connect(self) -> Optional[Langfuse]:
        host = self.settings.host
        if host and not host.startswith(("http://", "https://")):
            logger.warning(f"LANGFUSE_HOST '{host}' has no scheme; expected http(s)://hostname:port")

        options: dict[str, Any] = {
            "public_key": self.settings.public_key,
            "secret_key": self.settings.secret_key,
            "debug": self.settings.debug,
        }
        if host:
            options["host"] = host

        try:
            langfuse = Langfuse(**options)
            authorized = langfuse.auth_check()
        except Exception as e:
            self.error = f"Langfuse unreachable: {e}"
        else:
            if authorized:
                logger.info(f"Langfuse tracing enabled (host: {host or 'default'})")
                return langfuse
            self.error = "Langfuse auth_check() rejected the configured keys"

        logger.warning(f"Tracing disabled: {self.error}")
        return None

    def open_observation(self, **options: Any) -> Optional[tuple[Any, Any]]:
        """
        Start a Langfuse observation and make it the current one.

        Keyword arguments go to ``start_as_current_observation`` unchanged
        (``as_type``, ``name``, ``input``, ``metadata``, ``trace_context``,
        ``model``).

        Returns:
            ``(context_manager, observation)``, or None when tracing is off or
            Langfuse refused the call.  The caller ends the observation by
            exiting the context manager.
        """
        if self._langfuse is None:
            return None
        try:
            manager = self._langfuse.start_as_current_observation(**options)
            return manager, manager.__enter__()
        except Exception as e:
            logger.warning(
                f"Failed to start {options.get('as_type', 'span')} '{options.get('name')}': {e}"
            )
            return None

    def flush(self) -> None:
        """Send buffered events; the API does this after each request."""
        self._send("flush")

    def shutdown(self) -> None:
        self._send("shutdown")

    def _send(self, action: str) -> None:
        if self._langfuse is None:
            return
        try:
            getattr(self._langfuse, action)()
        except Exception as e:
            logger.warning(f"Langfuse {action} failed: {e}")


_tracing_client: Optional[TracingClient] = None


def init_tracing_client(settings: Optional[LangfuseConfig] = None) -> TracingClient:
    """Connect the process-wide client, defaulting to the loaded config."""
    global _tracing_client
    _tracing_client = TracingClient(settings or config.langfuse)
    return _tracing_client


def get_tracing_client() -> Optional[TracingClient]:
    return _tracing_client


def shutdown_tracing() -> None:
    global _tracing_client
    if _tracing_client is not None:
        _tracing_client.shutdown()
        _tracing_client = None
