"""LayerRegistry: what is currently drawn, per layer.

Maps layer id -> {element id -> Element} and layer id -> live VisualGroup,
and keeps an aggregate group of every drawn primitive for bounds fitting.
One registry is owned by each map session.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Callable, Mapping

from loguru import logger

from canopy.layers.builder import build_element
from canopy.layers.clustering import group_for_layer
from canopy.layers.geometry import AxisOrder, southern_cone_axis_order
from canopy.layers.layer import Bounds, Element
from canopy.surface.base import MapSurface, VisualGroup


class LayerRegistry:
    """Registry of loaded layers and their live visual groups."""

    def __init__(
        self,
        surface: MapSurface,
        axis_order: AxisOrder = southern_cone_axis_order,
        cluster_options: dict | None = None,
    ) -> None:
        self.surface = surface
        self.axis_order = axis_order
        self.cluster_options = cluster_options
        self.all_layers = VisualGroup(name="all")
        self._groups: dict[str, VisualGroup] = {}
        self._elements: dict[str, dict[str, Element]] = {}
        self._kinds: dict[str, str] = {}
        self._on_load: list[Callable[[str], None]] = []

    def on_load(self, callback: Callable[[str], None]) -> None:
        """Register a callback run with the layer id after every load_layer."""
        self._on_load.append(callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load_layer(self, layer_id: str, kind: str, records: list[dict[str, Any]]) -> int:
        """Build and draw a layer from raw records, replacing any prior load.

        Args:
            layer_id: Layer identifier; element ids derive from it.
            kind: Layer kind tag (drives geometry hints, style, clustering).
            records: Raw records fetched for this layer.

        Returns:
            Number of elements actually added. When 0, the layer is still
            registered (loaded-empty) but nothing is added to the surface.
        """
        self.unload_layer(layer_id)

        group = group_for_layer(self.surface, kind, name=layer_id, options=self.cluster_options)
        elements: dict[str, Element] = {}
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                logger.warning(f"Record {layer_id}-{index} is not a mapping, skipped")
                continue
            element = build_element(record, index, layer_id, kind, self.axis_order)
            if element is None:
                continue
            group.add(element.primitive)
            elements[element.element_id] = element

        self._groups[layer_id] = group
        self._elements[layer_id] = elements
        self._kinds[layer_id] = kind
        for callback in self._on_load:
            callback(layer_id)

        if elements:
            self.surface.add_group(group)
            self.all_layers.add_many(group.primitives)
            logger.info(f"Layer {layer_id}: {len(elements)} of {len(records)} elements drawn")
        else:
            logger.warning(f"Layer {layer_id}: no drawable elements in {len(records)} records")
        return len(elements)

    def unload_layer(self, layer_id: str) -> bool:
        """Remove a layer's group from the surface and discard its elements.

        Returns:
            True if the layer was registered, False otherwise.
        """
        group = self._groups.pop(layer_id, None)
        elements = self._elements.pop(layer_id, None)
        self._kinds.pop(layer_id, None)
        if group is not None:
            self.surface.remove_group(group)
        for element in (elements or {}).values():
            self.all_layers.remove(element.primitive)
        return group is not None or elements is not None

    def unload_all(self) -> None:
        for layer_id in list(self._elements):
            self.unload_layer(layer_id)
        self.all_layers.clear()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def is_loaded(self, layer_id: str) -> bool:
        return layer_id in self._elements

    def list_layer_ids(self) -> list[str]:
        return list(self._elements)

    def get_elements(self, layer_id: str) -> Mapping[str, Element]:
        """Read-only view of a layer's elements (empty if not loaded)."""
        return MappingProxyType(self._elements.get(layer_id, {}))

    def get_element(self, layer_id: str, element_id: str) -> Element | None:
        return self._elements.get(layer_id, {}).get(element_id)

    def get_group(self, layer_id: str) -> VisualGroup | None:
        return self._groups.get(layer_id)

    def get_kind(self, layer_id: str) -> str | None:
        return self._kinds.get(layer_id)

    def bounds(self) -> Bounds | None:
        """Bounding box of every primitive currently in the aggregate group."""
        return self.all_layers.bounds()
