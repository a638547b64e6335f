"""
Venue navigation tools.

Wraps a ``VenueMap`` (the map SDK and its search engine) as agent tools.
The venue map is passed in by the caller; nothing here holds a global map
instance.  Handlers validate their arguments and raise ``ToolError`` with a
message the model can act on.
"""

import logging
from typing import Any, Optional, Protocol, Sequence

from ..config import PinnedLocation
from ..errors import ToolError
from .registry import ToolDescriptor, ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_NEARBY_RADIUS = 100


class VenueMap(Protocol):
    """The subset of the venue map SDK the tools rely on."""

    async def search(self, options: dict) -> list[dict]: ...

    async def get_poi_details(self, poi_id: Any) -> dict: ...

    async def get_buildings_and_levels(self) -> Any: ...

    async def get_categories(self) -> list[str]: ...

    async def show_poi(self, poi_id: Any) -> dict: ...

    async def show_directions(self, waypoints: Sequence[dict]) -> dict: ...

    async def get_security_wait_times(self) -> list[dict]: ...


# =============================================================================
# Input schemas
# =============================================================================

EMPTY_SCHEMA: dict = {"type": "object", "properties": {}}

POI_ID_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "poiId": {
            "type": "number",
            "description": (
                "POI ID (e.g., 108 for a specific Starbucks). Get POI IDs from "
                "the search tool results (item.poiId field)."
            ),
        }
    },
    "required": ["poiId"],
}

SEARCH_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "term": {
            "type": "string",
            "description": (
                "Text search query. Searches across POI names, keywords, categories "
                "and descriptions. Optional: can filter by building/floor without a "
                "text term."
            ),
        },
        "buildingId": {
            "type": "string",
            "description": (
                "Filter by building ID. Use getBuildingsAndLevels to get valid "
                "building IDs."
            ),
        },
        "floorId": {
            "type": "string",
            "description": (
                "Filter by floor ID. Use getBuildingsAndLevels to get valid floor "
                "IDs for each building."
            ),
        },
        "isAfterSecurity": {
            "type": "boolean",
            "description": (
                "true returns only POIs after security checkpoints, false only POIs "
                "before security. Omit to search both areas."
            ),
        },
        "near": {
            "type": "object",
            "description": (
                "Search near a POI ({poiId, radius}) or a coordinate "
                "({point: {lat, lng}, radius}). Default radius: 100m."
            ),
            "properties": {
                "poiId": {"type": "number", "description": "POI to search around"},
                "point": {
                    "type": "object",
                    "properties": {
                        "lat": {"type": "number", "description": "Latitude"},
                        "lng": {"type": "number", "description": "Longitude"},
                    },
                },
                "radius": {
                    "type": "number",
                    "description": "Filter results within this radius in meters.",
                },
            },
        },
    },
}

SHOW_DIRECTIONS_FROM_HERE_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "waypoints": {
            "type": "array",
            "items": {"type": "number"},
            "minItems": 1,
            "description": (
                "Ordered list of destination POI IDs to route through (minimum 1). "
                "Directions always start from the user's current location. Example: "
                "[108] routes from here to POI 108; [108, 124] routes here, then "
                "108, then 124."
            ),
        }
    },
    "required": ["waypoints"],
}

SHOW_DIRECTIONS_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "waypoints": {
            "type": "array",
            "items": {"type": "number"},
            "minItems": 2,
            "description": (
                "Ordered list of POI IDs to route through (minimum 2). First ID is the "
                "starting point, last is the destination. Example: [109, 108] routes "
                "from 109 to 108; [109, 108, 124] routes from 109, then 108, then 124."
            ),
        }
    },
    "required": ["waypoints"],
}

SEARCH_NEARBY_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "term": {
            "type": "string",
            "description": (
                "Text search query to filter nearby POIs. Optional: omit to get all "
                "POIs near the current location."
            ),
        },
        "radius": {
            "type": "number",
            "description": (
                "Search radius in meters from the current location. Default: 100. "
                "Recommended: 100-500."
            ),
        },
    },
}

DIRECTIONS_FROM_HERE_DESCRIPTION = (
    "Get turn-by-turn directions from the user's current location to one or more "
    "destinations and display them on the map. Only provide destination POI IDs. "
    "Returns walking time, distance and step-by-step instructions. Distance is in "
    "meters, time is in minutes."
)

DIRECTIONS_DESCRIPTION = (
    "Get turn-by-turn directions between POIs and display them on the map. Returns "
    "walking time, distance and step-by-step instructions. Supports multi-stop routes "
    "(A->B->C). Distance is in meters, time is in minutes. Use POI IDs from search "
    "results to specify waypoints."
)

SEARCH_OPTION_KEYS = ("term", "buildingId", "floorId", "isAfterSecurity", "near")


# =============================================================================
# Argument helpers
# =============================================================================


def _require_poi_id(args: dict) -> Any:
    poi_id = args.get("poiId")
    if poi_id is None or poi_id == "":
        raise ToolError("Missing required argument: poiId")
    return poi_id


def _search_options(args: dict) -> dict:
    options = {key: args[key] for key in SEARCH_OPTION_KEYS if args.get(key) is not None}
    near = options.get("near")
    if near is not None:
        if not isinstance(near, dict):
            raise ToolError("'near' must be an object with poiId or point")
        if near.get("poiId") is None and not isinstance(near.get("point"), dict):
            raise ToolError("'near' requires either poiId or point {lat, lng}")
    return options


def _waypoint_ids(args: dict, minimum: int = 1) -> list:
    waypoints = args.get("waypoints")
    if not isinstance(waypoints, list) or not waypoints:
        raise ToolError("waypoints must be a non-empty list of POI IDs")
    if len(waypoints) < minimum:
        raise ToolError(
            f"waypoints needs at least {minimum} POI IDs: a starting point and a destination"
        )
    return waypoints


# =============================================================================
# Tool factory
# =============================================================================


def build_venue_tools(
    venue_map: VenueMap,
    pinned_location: Optional[PinnedLocation] = None,
) -> list[ToolDescriptor]:
    """
    Build the venue tool descriptors bound to a venue map.

    Args:
        venue_map: Map/search implementation the tools delegate to.
        pinned_location: The kiosk's fixed position. ``searchNearby`` is only
            offered when this is set, and ``showDirections`` starts from it.
            Without one, ``showDirections`` routes between the given POIs.

    Returns:
        Tool descriptors in the order they are offered to the model.
    """

    async def search(args: dict):
        return await venue_map.search(_search_options(args))

    async def get_poi_details(args: dict):
        return await venue_map.get_poi_details(_require_poi_id(args))

    async def get_buildings_and_levels(args: dict):
        return await venue_map.get_buildings_and_levels()

    async def get_categories(args: dict):
        return await venue_map.get_categories()

    async def show_poi(args: dict):
        return await venue_map.show_poi(_require_poi_id(args))

    async def show_directions(args: dict):
        if pinned_location is None:
            waypoints = _waypoint_ids(args, minimum=2)
            return await venue_map.show_directions([{"poiId": poi_id} for poi_id in waypoints])

        waypoints = _waypoint_ids(args)
        origin = {
            "lat": pinned_location.lat,
            "lng": pinned_location.lng,
            "floorId": pinned_location.floor_id,
        }
        return await venue_map.show_directions(
            [origin] + [{"poiId": poi_id} for poi_id in waypoints]
        )

    async def get_security_wait_times(args: dict):
        return await venue_map.get_security_wait_times()

    if pinned_location is not None:
        directions_description = DIRECTIONS_FROM_HERE_DESCRIPTION
        directions_schema = SHOW_DIRECTIONS_FROM_HERE_SCHEMA
    else:
        directions_description = DIRECTIONS_DESCRIPTION
        directions_schema = SHOW_DIRECTIONS_SCHEMA

    tools = [
        ToolDescriptor(
            name="search",
            description=(
                "Search for points of interest (POIs) with flexible filtering. Supports "
                "text search and location-based queries. Returns simplified POI info "
                "(poiId, name, score, distance). Use getPOIDetails or showPOI with the "
                "poiId to get full details. Results sorted by relevance (text search) "
                "or distance (proximity search)."
            ),
            handler=search,
            input_schema=SEARCH_SCHEMA,
        ),
        ToolDescriptor(
            name="getPOIDetails",
            description=(
                "Get complete details about a specific POI including description, "
                "keywords, real-time status, exact position, and nearby landmarks. Use "
                "this when you need full information about a POI you found via search."
            ),
            handler=get_poi_details,
            input_schema=POI_ID_SCHEMA,
        ),
        ToolDescriptor(
            name="getBuildingsAndLevels",
            description=(
                "Get the complete structure of this venue showing all buildings and "
                "floors. Returns building names, IDs, and nested floor information. Use "
                "the returned building and floor IDs to filter search results."
            ),
            handler=get_buildings_and_levels,
            input_schema=EMPTY_SCHEMA,
        ),
        ToolDescriptor(
            name="getCategories",
            description=(
                "Get the list of all POI categories available in this venue. Categories "
                "are hierarchical with dot notation (e.g., 'eat.coffee', "
                "'restroom.accessible'). No parameters required."
            ),
            handler=get_categories,
            input_schema=EMPTY_SCHEMA,
        ),
        ToolDescriptor(
            name="showPOI",
            description=(
                "Display a specific POI on the map UI and get its complete details. Use "
                "this when you want to show the user a specific point of interest on "
                "the map. Returns the same data as getPOIDetails."
            ),
            handler=show_poi,
            input_schema=POI_ID_SCHEMA,
        ),
        ToolDescriptor(
            name="showDirections",
            description=directions_description,
            handler=show_directions,
            input_schema=directions_schema,
        ),
        ToolDescriptor(
            name="getSecurityWaitTimes",
            description=(
                "Get current wait times for all security checkpoints in the venue. "
                "Returns checkpoint name, ID and real-time queue data. Some checkpoints "
                "may not have real-time data available. No parameters required."
            ),
            handler=get_security_wait_times,
            input_schema=EMPTY_SCHEMA,
        ),
    ]

    if pinned_location is not None:

        async def search_nearby(args: dict):
            options: dict[str, Any] = {
                "floorId": pinned_location.floor_id,
                "near": {
                    "point": {"lat": pinned_location.lat, "lng": pinned_location.lng},
                    "radius": args.get("radius") or DEFAULT_NEARBY_RADIUS,
                },
            }
            if args.get("term"):
                options["term"] = args["term"]
            return await venue_map.search(options)

        tools.append(
            ToolDescriptor(
                name="searchNearby",
                description=(
                    "Search for points of interest near the user's current location. "
                    "Automatically scoped to the kiosk's position and floor. Returns POIs "
                    "sorted by distance with name, ID, and distance in meters. Use for "
                    "'what's nearby?' or 'find something close' queries."
                ),
                handler=search_nearby,
                input_schema=SEARCH_NEARBY_SCHEMA,
            )
        )

    return tools


def create_registry(
    venue_map: VenueMap,
    pinned_location: Optional[PinnedLocation] = None,
) -> ToolRegistry:
    """Build a registry holding every venue tool."""
    tools = build_venue_tools(venue_map, pinned_location)
    logger.debug(f"Registering {len(tools)} venue tool(s)")
    return ToolRegistry(tools)
