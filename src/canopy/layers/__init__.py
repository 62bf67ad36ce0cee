"""Map layer engine: schema-less records to styled, toggleable layers.

Records are turned into canonical geometries, styled by status, grouped
per layer (clustered for tree layers) and tracked in a LayerRegistry.
"""

from canopy.layers.layer import (
    Element,
    LayerInfo,
    LineString,
    Point,
    Polygon,
    Primitive,
    Project,
    StatusClass,
)
from canopy.layers.manager import LayerRegistry
from canopy.layers.visibility import VisibilityController

__all__ = [
    "Element",
    "LayerInfo",
    "LayerRegistry",
    "LineString",
    "Point",
    "Polygon",
    "Primitive",
    "Project",
    "StatusClass",
    "VisibilityController",
]
