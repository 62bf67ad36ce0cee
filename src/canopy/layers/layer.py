"""Data model for the layer rendering engine.

All coordinates are stored in GeoJSON convention: (lng, lat).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Union

Position = tuple[float, float]


class StatusClass(enum.Enum):
    """Health classification that drives marker and cluster colors."""

    HEALTHY = "healthy"
    NEEDS_PRUNING = "needs_pruning"
    AT_RISK = "at_risk"


@dataclass(frozen=True)
class Point:
    lon: float
    lat: float

    geometry_type = "Point"

    @property
    def positions(self) -> list[Position]:
        return [(self.lon, self.lat)]

    @property
    def coordinates(self) -> list[float]:
        return [self.lon, self.lat]


@dataclass(frozen=True)
class LineString:
    points: tuple[Position, ...]

    geometry_type = "LineString"

    @property
    def positions(self) -> list[Position]:
        return list(self.points)

    @property
    def coordinates(self) -> list[list[float]]:
        return [[lon, lat] for lon, lat in self.points]


@dataclass(frozen=True)
class Polygon:
    """Single-ring polygon. The ring is implicitly closed when rendered."""

    ring: tuple[Position, ...]

    geometry_type = "Polygon"

    @property
    def positions(self) -> list[Position]:
        return list(self.ring)

    @property
    def coordinates(self) -> list[list[list[float]]]:
        closed = list(self.ring)
        if closed and closed[0] != closed[-1]:
            closed.append(closed[0])
        return [[[lon, lat] for lon, lat in closed]]


Geometry = Union[Point, LineString, Polygon]


@dataclass(eq=False)
class Primitive:
    """A visual primitive drawn on the map surface.

    Compared by identity: a group holds a primitive, not an equal copy.

    Attributes:
        kind: One of "marker", "polyline", "polygon".
        positions: (lng, lat) vertices; a single entry for markers.
        style: Leaflet path options (color, weight, opacity, fillColor,
            fillOpacity, radius).
        popup: HTML shown in the info panel bound to this primitive.
    """

    kind: str
    positions: list[Position]
    style: dict = field(default_factory=dict)
    popup: str = ""


@dataclass
class Element:
    """One record's rendered representation within a layer.

    Attributes:
        element_id: "<layer_id>-<index>", stable only within one load.
        name: Display name.
        record: The originating raw record, kept for popups and detail.
        primitive: The owned visual primitive.
        layer_id: Owning layer.
        status: Status class resolved from the record.
        geometry: Canonical geometry the primitive was built from.
    """

    element_id: str
    name: str
    record: dict[str, Any]
    primitive: Primitive
    layer_id: str
    status: StatusClass = StatusClass.HEALTHY
    geometry: Geometry | None = None


@dataclass(frozen=True)
class Project:
    project_id: str
    name: str


@dataclass(frozen=True)
class LayerInfo:
    """A layer as listed by the data source.

    Attributes:
        layer_id: Unique identifier for this layer.
        name: Human-readable display name.
        kind: Kind tag as stored ("arboles", "segments", ...).
        project_id: Owning project.
    """

    layer_id: str
    name: str
    kind: str
    project_id: str = ""


Bounds = tuple[Position, Position]


def bounds_of(positions: list[Position]) -> Bounds | None:
    """Return ((min_lng, min_lat), (max_lng, max_lat)) or None if empty."""
    if not positions:
        return None
    lons = [p[0] for p in positions]
    lats = [p[1] for p in positions]
    return ((min(lons), min(lats)), (max(lons), max(lats)))
