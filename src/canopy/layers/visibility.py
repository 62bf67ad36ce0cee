"""Layer- and element-level visibility toggling.

Hiding a layer discards its group and elements (nothing is cached);
showing it again re-fetches and rebuilds through a loader callable.
Element visibility is tracked as layer id -> {element id -> bool}, absent
meaning visible. Rebuilt elements start visible, so element choices do
not survive a layer disable/enable cycle.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from loguru import logger

from canopy.layers.manager import LayerRegistry

LayerLoader = Callable[[str, str], Awaitable[int]]


class VisibilityController:
    """Applies visibility changes to a LayerRegistry and its live groups."""

    def __init__(self, registry: LayerRegistry, loader: LayerLoader | None = None) -> None:
        self.registry = registry
        self.loader = loader
        self._state: dict[str, dict[str, bool]] = {}
        registry.on_load(self._forget_layer)

    def _forget_layer(self, layer_id: str) -> None:
        self._state.pop(layer_id, None)

    def reset(self) -> None:
        self._state = {}

    @property
    def visibility_state(self) -> dict[str, dict[str, bool]]:
        return {layer_id: dict(items) for layer_id, items in self._state.items()}

    def is_element_visible(self, layer_id: str, element_id: str) -> bool:
        return self._state.get(layer_id, {}).get(element_id) is not False

    async def set_layer_visible(self, layer_id: str, kind: str, visible: bool) -> int:
        """Show (reload) or hide (unload) a whole layer.

        Returns:
            Number of elements drawn after the change.
        """
        if not visible:
            self.registry.unload_layer(layer_id)
            logger.info(f"Layer {layer_id} hidden")
            return 0
        if self.loader is None:
            logger.warning(f"No loader configured, cannot show layer {layer_id}")
            return 0
        return await self.loader(layer_id, kind)

    def set_element_visible(self, layer_id: str, element_id: str, visible: bool) -> bool:
        """Add or remove one element's primitive from its layer group.

        Idempotent in both directions. Returns False (and changes nothing)
        when the layer or element is not registered, which is normal while
        a layer is still loading.
        """
        element = self.registry.get_element(layer_id, element_id)
        group = self.registry.get_group(layer_id)
        if element is None or group is None:
            return False

        if visible:
            group.add(element.primitive)
            if self.registry.surface.has_group(group):
                self.registry.all_layers.add(element.primitive)
        else:
            group.remove(element.primitive)
            self.registry.all_layers.remove(element.primitive)

        self._state.setdefault(layer_id, {})[element_id] = visible
        return True
