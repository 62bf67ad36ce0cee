"""Extract canonical geometries from schema-less records.

Geometry may sit under any of several field names and in any shape: WKT
text, GeoJSON objects, nested coordinate arrays, or plain number lists.
Rather than parse each format, every numeric token in the field is
collected and paired into coordinates, and axis order is repaired with a
regional magnitude heuristic.

Returns None (not an exception) when a record has no usable geometry;
callers skip such records.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Callable

from canopy.layers.fields import (
    GEOMETRY_FIELDS,
    LAT_FIELD,
    LNG_FIELD,
    PATHS_FIELD,
    RINGS_FIELD,
    first_present,
)
from canopy.layers.layer import Geometry, LineString, Point, Polygon, Position
from canopy.layers.style import is_line_kind, is_polygon_kind

_NUMBER_RE = re.compile(r"-?\d+\.\d+|-?\d+")

AxisOrder = Callable[[float, float], Position]


def southern_cone_axis_order(v1: float, v2: float) -> Position:
    """Order a raw pair as (lng, lat) for data from southern South America.

    Longitudes there (about -53 to -73) are larger in magnitude than
    latitudes (about -22 to -55) for most of the territory, so the smaller
    magnitude is taken as latitude. This is a regional heuristic, not a
    general GIS rule. Equal magnitudes keep the input order.
    """
    if abs(v1) < abs(v2):
        return (v2, v1)
    return (v1, v2)


def flatten_to_text(raw: Any) -> str:
    """Serialize structured values to JSON; stringify everything else."""
    if isinstance(raw, (dict, list, tuple)):
        return json.dumps(raw, default=str)
    return str(raw)


def scan_pairs(text: str, axis_order: AxisOrder = southern_cone_axis_order) -> list[Position]:
    """Pair every numeric token in ``text`` into (lng, lat) positions.

    An unpaired trailing token is dropped, and so is any pair with a
    non-finite value (digit runs too long for a float).
    """
    nums = [float(m) for m in _NUMBER_RE.findall(text)]
    if len(nums) < 2:
        return []
    return [
        axis_order(nums[i], nums[i + 1])
        for i in range(0, len(nums) - 1, 2)
        if _is_finite(nums[i], nums[i + 1])
    ]


def _is_finite(*values: float) -> bool:
    return all(math.isfinite(v) for v in values)


def has_polygon_hint(record: dict[str, Any], kind: str) -> bool:
    return is_polygon_kind(kind) or bool(record.get(RINGS_FIELD))


def _has_multipoint_hint(record: dict[str, Any], kind: str) -> bool:
    return (
        has_polygon_hint(record, kind)
        or is_line_kind(kind)
        or bool(record.get(PATHS_FIELD))
    )


def _to_position(value: Any) -> Position | None:
    try:
        pos = (float(value[0]), float(value[1]))
    except (TypeError, ValueError, IndexError, KeyError):
        return None
    return pos if _is_finite(*pos) else None


def _to_positions(values: Any) -> list[Position]:
    if not isinstance(values, (list, tuple)):
        return []
    out = []
    for v in values:
        pos = _to_position(v)
        if pos is not None:
            out.append(pos)
    return out


def geometry_from_geojson(obj: Any) -> Geometry | None:
    """Build a geometry from a GeoJSON geometry object, without axis repair.

    Multi* types use their first member. Returns None for anything else.
    """
    if not isinstance(obj, dict):
        return None
    geom_type = obj.get("type")
    coords = obj.get("coordinates")
    if geom_type == "Feature":
        return geometry_from_geojson(obj.get("geometry"))
    if geom_type in ("MultiPoint", "MultiLineString", "MultiPolygon"):
        if not isinstance(coords, (list, tuple)) or not coords:
            return None
        return geometry_from_geojson({"type": geom_type[5:], "coordinates": coords[0]})
    if geom_type == "Point":
        pos = _to_position(coords)
        return Point(*pos) if pos else None
    if geom_type == "LineString":
        points = _to_positions(coords)
        return LineString(tuple(points)) if points else None
    if geom_type == "Polygon":
        if not isinstance(coords, (list, tuple)) or not coords:
            return None
        ring = _to_positions(coords[0])
        if len(ring) > 1 and ring[0] == ring[-1]:
            ring = ring[:-1]
        return Polygon(tuple(ring)) if ring else None
    return None


def _from_lat_lng_fields(record: dict[str, Any]) -> Point | None:
    lat = record.get(LAT_FIELD)
    lng = record.get(LNG_FIELD)
    if lat is None or lng is None:
        return None
    try:
        lon, lat = float(lng), float(lat)
    except (TypeError, ValueError):
        return None
    if not _is_finite(lon, lat):
        return None
    return Point(lon=lon, lat=lat)


def extract_geometry(
    record: dict[str, Any],
    kind: str = "",
    axis_order: AxisOrder = southern_cone_axis_order,
) -> Geometry | None:
    """Extract the canonical geometry of one raw record.

    Args:
        record: Raw record with an arbitrary schema.
        kind: Layer kind tag, used as a polygon/line hint.
        axis_order: Strategy ordering each raw numeric pair as (lng, lat).

    Returns:
        A Point, LineString or Polygon, or None when nothing usable exists.
    """
    geometry: Geometry | None = None
    found = first_present(record, GEOMETRY_FIELDS)

    if found is not None:
        _field, raw = found
        pairs = scan_pairs(flatten_to_text(raw), axis_order)
        if pairs:
            if has_polygon_hint(record, kind) and len(pairs) > 2:
                geometry = Polygon(tuple(pairs))
            elif len(pairs) == 1 and not _has_multipoint_hint(record, kind):
                geometry = Point(*pairs[0])
            else:
                geometry = LineString(tuple(pairs))
        elif isinstance(raw, dict) and raw.get("type"):
            geometry = geometry_from_geojson(raw)

    if geometry is None:
        geometry = _from_lat_lng_fields(record)
    return geometry
