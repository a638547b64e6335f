"""
HTTP API for the Wayfinder agent.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
