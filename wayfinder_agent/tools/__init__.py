"""
Tools package for the Wayfinder agent.

Provides the tool registry, the venue navigation tools and a static
YAML-backed venue map.
"""

from .registry import ToolDescriptor, ToolHandler, ToolRegistry
from .static_venue import StaticVenueMap, VenueData
from .venue import VenueMap, build_venue_tools, create_registry

__all__ = [
    "ToolDescriptor",
    "ToolHandler",
    "ToolRegistry",
    "VenueMap",
    "build_venue_tools",
    "create_registry",
    "StaticVenueMap",
    "VenueData",
]
