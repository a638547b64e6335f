"""
Static venue map loaded from a YAML file.

A small stand-in for the real map SDK, for local development, the CLI and
tests.  Matching is plain case-insensitive substring search and distances
are straight-line; there is no fuzzy matching and no routing graph.

Example venue file::

    name: Example Airport
    buildings:
      - id: terminal-a
        name: Terminal A
        levels:
          - id: terminal-a-departures
            name: Departures
    pois:
      - id: 108
        name: Starbucks
        category: eat.coffee
        building_id: terminal-a
        floor_id: terminal-a-departures
        after_security: true
        lat: 33.9416
        lng: -118.4085
        keywords: [coffee, espresso]
    security_checkpoints:
      - id: checkpoint-a
        name: Terminal A Security
        wait_minutes: 12
"""

import logging
import math
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import yaml
from pydantic import BaseModel, Field

from ..errors import ToolError

logger = logging.getLogger(__name__)

WALKING_SPEED_M_PER_MIN = 80.0
EARTH_RADIUS_M = 6_371_000
DEFAULT_NEAR_RADIUS = 100.0


class Level(BaseModel):
    """A floor within a building."""

    id: str
    name: str
    ordinal: int = 0


class Building(BaseModel):
    """A building and its floors."""

    id: str
    name: str
    levels: list[Level] = Field(default_factory=list)


class PointOfInterest(BaseModel):
    """A point of interest on the venue map."""

    id: Union[int, str]
    name: str
    category: str = ""
    description: str = ""
    keywords: list[str] = Field(default_factory=list)
    building_id: Optional[str] = None
    floor_id: Optional[str] = None
    after_security: Optional[bool] = None
    lat: float
    lng: float

    def to_details(self) -> dict:
        return {
            "poiId": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "keywords": list(self.keywords),
            "buildingId": self.building_id,
            "floorId": self.floor_id,
            "isAfterSecurity": self.after_security,
            "position": {"lat": self.lat, "lng": self.lng},
        }


class SecurityCheckpoint(BaseModel):
    """A security checkpoint and its current queue."""

    id: str
    name: str
    category: str = "security"
    wait_minutes: Optional[float] = None
    closed: bool = False
    last_updated: Optional[str] = None


class VenueData(BaseModel):
    """Top-level structure of a venue file."""

    name: str = "Venue"
    buildings: list[Building] = Field(default_factory=list)
    pois: list[PointOfInterest] = Field(default_factory=list)
    security_checkpoints: list[SecurityCheckpoint] = Field(default_factory=list)


def distance_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


class StaticVenueMap:
    """In-memory ``VenueMap`` backed by :class:`VenueData`."""

    def __init__(self, data: VenueData):
        self.data = data
        self._pois = {str(poi.id): poi for poi in data.pois}
        self.shown_poi_id: Optional[Any] = None

    @classmethod
    def from_dict(cls, raw: dict) -> "StaticVenueMap":
        return cls(VenueData.model_validate(raw))

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "StaticVenueMap":
        """Load a venue from a YAML file."""
        path = Path(path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        venue = cls.from_dict(raw)
        logger.info(
            f"Loaded venue '{venue.data.name}' from {path}: "
            f"{len(venue.data.buildings)} building(s), {len(venue.data.pois)} POI(s)"
        )
        return venue

    @property
    def name(self) -> str:
        return self.data.name

    def _poi(self, poi_id: Any) -> PointOfInterest:
        poi = self._pois.get(str(poi_id))
        if poi is None:
            raise ToolError(f"POI not found: {poi_id}")
        return poi

    @staticmethod
    def _match_score(poi: PointOfInterest, term: str) -> Optional[float]:
        """0 for a name match, 1 for category/keyword, 2 for description; None if no match."""
        term = term.lower()
        if term in poi.name.lower():
            return 0.0
        if term in poi.category.lower() or any(term in k.lower() for k in poi.keywords):
            return 1.0
        if term in poi.description.lower():
            return 2.0
        return None

    def _near_origin(self, near: dict) -> tuple[float, float]:
        if near.get("poiId") is not None:
            poi = self._poi(near["poiId"])
            return poi.lat, poi.lng
        point = near.get("point") or {}
        try:
            return float(point["lat"]), float(point["lng"])
        except (KeyError, TypeError, ValueError):
            raise ToolError("'near.point' requires numeric lat and lng") from None

    async def search(self, options: dict) -> list[dict]:
        term = (options.get("term") or "").strip()
        building_id = options.get("buildingId")
        floor_id = options.get("floorId")
        after_security = options.get("isAfterSecurity")
        near = options.get("near")

        origin = None
        radius = DEFAULT_NEAR_RADIUS
        if near:
            origin = self._near_origin(near)
            radius = float(near.get("radius") or DEFAULT_NEAR_RADIUS)

        results = []
        for poi in self.data.pois:
            if building_id and poi.building_id != building_id:
                continue
            if floor_id and poi.floor_id != floor_id:
                continue
            if after_security is not None and poi.after_security != after_security:
                continue

            result: dict[str, Any] = {
                "poiId": poi.id,
                "name": poi.name,
                "description": poi.description,
            }
            if term:
                score = self._match_score(poi, term)
                if score is None:
                    continue
                result["score"] = score
            if origin is not None:
                distance = distance_m(origin[0], origin[1], poi.lat, poi.lng)
                if distance > radius:
                    continue
                result["distance"] = round(distance, 1)
            results.append(result)

        if origin is not None:
            results.sort(key=lambda r: r["distance"])
        elif term:
            results.sort(key=lambda r: (r["score"], r["name"]))
        return results

    async def get_poi_details(self, poi_id: Any) -> dict:
        return self._poi(poi_id).to_details()

    async def get_buildings_and_levels(self) -> list[dict]:
        return [building.model_dump() for building in self.data.buildings]

    async def get_categories(self) -> list[str]:
        return sorted({poi.category for poi in self.data.pois if poi.category})

    async def show_poi(self, poi_id: Any) -> dict:
        details = self._poi(poi_id).to_details()
        self.shown_poi_id = details["poiId"]
        logger.info(f"Showing POI {details['poiId']} ({details['name']})")
        return details

    def _waypoint_position(self, waypoint: dict) -> tuple[str, float, float]:
        if waypoint.get("poiId") is not None:
            poi = self._poi(waypoint["poiId"])
            return poi.name, poi.lat, poi.lng
        if "lat" in waypoint and "lng" in waypoint:
            return "your location", float(waypoint["lat"]), float(waypoint["lng"])
        raise ToolError(f"Invalid waypoint: {waypoint}")

    async def show_directions(self, waypoints: Sequence[dict]) -> dict:
        """Straight-line legs between consecutive waypoints."""
        if len(waypoints) < 2:
            raise ToolError("Directions need an origin and at least one destination")

        positions = [self._waypoint_position(w) for w in waypoints]
        steps = []
        total = 0.0
        for (from_name, lat1, lng1), (to_name, lat2, lng2) in zip(positions, positions[1:]):
            leg = distance_m(lat1, lng1, lat2, lng2)
            total += leg
            steps.append(f"Walk from {from_name} to {to_name} ({round(leg)} m)")

        return {
            "distance": round(total, 1),
            "time": round(total / WALKING_SPEED_M_PER_MIN, 1),
            "steps": steps,
        }

    async def get_security_wait_times(self) -> list[dict]:
        return [
            {
                "id": checkpoint.id,
                "name": checkpoint.name,
                "category": checkpoint.category,
                "queueTime": checkpoint.wait_minutes,
                "isTemporarilyClosed": checkpoint.closed,
                "lastUpdated": checkpoint.last_updated,
            }
            for checkpoint in self.data.security_checkpoints
        ]
