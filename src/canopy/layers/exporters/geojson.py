"""Export a loaded layer's elements to a GeoJSON dict (RFC 7946).

Coordinates are [lng, lat] (already the internal convention). Each
feature carries the original record's scalar fields plus the resolved
status and visibility.
"""

from __future__ import annotations

from typing import Mapping

from canopy.layers.layer import Element


def export_geojson(
    elements: Mapping[str, Element],
    visibility: Mapping[str, bool] | None = None,
) -> dict:
    """Export elements to a GeoJSON FeatureCollection dict.

    Args:
        elements: Element id -> Element, as returned by get_elements().
        visibility: Element id -> visible flag; absent means visible.

    Returns:
        Dict representing a valid GeoJSON FeatureCollection.
    """
    visibility = visibility or {}
    features = []
    for element_id, element in elements.items():
        if element.geometry is None:
            continue
        features.append(
            _element_to_geojson(element, visibility.get(element_id) is not False)
        )

    return {
        "type": "FeatureCollection",
        "features": features,
    }


def _element_to_geojson(element: Element, visible: bool) -> dict:
    """Convert an Element to a GeoJSON Feature dict."""
    properties = {
        k: v for k, v in element.record.items()
        if isinstance(v, (str, int, float, bool)) or v is None
    }
    properties["name"] = element.name
    properties["status"] = element.status.value
    properties["visible"] = visible
    return {
        "type": "Feature",
        "id": element.element_id,
        "geometry": {
            "type": element.geometry.geometry_type,
            "coordinates": element.geometry.coordinates,
        },
        "properties": properties,
    }
