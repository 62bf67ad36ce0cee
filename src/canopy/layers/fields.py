"""Recognized record field names, one ordered candidate list per role.

Records come from user-maintained tables without a fixed schema. Each
role is resolved by probing its candidates in order; the first present
value wins.
"""

from __future__ import annotations

from typing import Any

PATHS_FIELD = "caminos"
RINGS_FIELD = "anillos"

GEOMETRY_FIELDS: tuple[str, ...] = (
    PATHS_FIELD,
    RINGS_FIELD,
    "geom",
    "geometry",
    "geojson",
    "the_geom",
    "poligono",
)

NAME_FIELDS: tuple[str, ...] = ("nombre", "name", "label")

STATUS_FIELD = "condicion"
ID_FIELD = "id"

LAT_FIELD = "latitud"
LNG_FIELD = "longitud"

# Kind tag -> physical table.  Unlisted kinds map to themselves.
TABLE_ALIASES: dict[str, str] = {
    "trees": "arboles",
    "arboles": "arboles",
    "segments": "segmentos",
    "segmentos": "segmentos",
    "polygons": "poligonos",
    "poligonos": "poligonos",
}

TREE_TABLE = "arboles"
LAYER_FILTER_FIELD = "id_capa"


def first_present(record: dict[str, Any], candidates: tuple[str, ...]) -> tuple[str, Any] | None:
    """Return (field, value) for the first candidate with a truthy value."""
    for name in candidates:
        value = record.get(name)
        if value:
            return name, value
    return None


def table_for_kind(kind: str) -> str:
    """Normalize a layer kind tag to the table holding its records."""
    key = (kind or "").strip().lower()
    return TABLE_ALIASES.get(key, key)
