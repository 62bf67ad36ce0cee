"""MapSession: the active project, its layers and what is drawn.

Loads are stamped with the session generation, which is bumped on every
project change. A fetch that completes after the generation moved on is
dropped without touching the registry. Hiding a layer also bumps that
layer's own token, so an in-flight reload cannot redraw a hidden layer.
"""

from __future__ import annotations

import asyncio

from loguru import logger

from canopy.layers.fields import LAYER_FILTER_FIELD, table_for_kind
from canopy.layers.geometry import AxisOrder, southern_cone_axis_order
from canopy.layers.layer import LayerInfo, Project
from canopy.layers.manager import LayerRegistry
from canopy.layers.visibility import VisibilityController
from canopy.sources.base import DataAccessError, DataSource
from canopy.surface.base import MapSurface


class MapSession:
    """Owns the registry and visibility state for one map surface."""

    def __init__(
        self,
        source: DataSource,
        surface: MapSurface,
        fit_padding: tuple[int, int] = (20, 20),
        fit_max_zoom: int = 18,
        axis_order: AxisOrder = southern_cone_axis_order,
        cluster_options: dict | None = None,
    ) -> None:
        self.source = source
        self.surface = surface
        self.fit_padding = fit_padding
        self.fit_max_zoom = fit_max_zoom
        self.registry = LayerRegistry(surface, axis_order, cluster_options)
        self.visibility = VisibilityController(self.registry, loader=self._reload_layer)
        self.projects: list[Project] = []
        self.project_id = ""
        self.layers: list[LayerInfo] = []
        self._generation = 0
        self._layer_tokens: dict[str, int] = {}

    @property
    def generation(self) -> int:
        return self._generation

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def load_projects(self) -> list[Project]:
        try:
            self.projects = await self.source.list_projects()
        except DataAccessError as e:
            logger.error(f"Failed to load projects: {e}")
            self.projects = []
        return self.projects

    def clear(self) -> None:
        """Drop every layer and all visibility state; cancels in-flight loads."""
        self._generation += 1
        self._layer_tokens.clear()
        self.registry.unload_all()
        self.visibility.reset()
        self.layers = []

    async def select_project(self, project_id: str) -> int:
        """Switch to a project and load all of its layers.

        Bounds are fitted once every layer load of this generation has
        settled. An empty ``project_id`` only clears the map.

        Returns:
            Total number of elements drawn (0 if superseded).
        """
        self.clear()
        self.project_id = project_id or ""
        if not project_id:
            return 0

        generation = self._generation
        try:
            layers = await self.source.list_layers(project_id)
        except DataAccessError as e:
            logger.error(f"Failed to load layers for project {project_id}: {e}")
            return 0
        except Exception:
            logger.exception(f"Unexpected error loading layers for project {project_id}")
            return 0
        if generation != self._generation:
            logger.debug(f"Layer list for project {project_id} is stale, dropped")
            return 0

        self.layers = layers
        logger.info(f"Project {project_id}: loading {len(layers)} layers")
        counts = await asyncio.gather(*(self._load(layer, generation) for layer in layers))

        if generation != self._generation:
            return 0
        self.fit_to_layers()
        return sum(counts)

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------

    def get_layer(self, layer_id: str) -> LayerInfo | None:
        for layer in self.layers:
            if layer.layer_id == layer_id:
                return layer
        return None

    async def _load(self, layer: LayerInfo, generation: int) -> int:
        token = self._layer_tokens.get(layer.layer_id, 0)
        table = table_for_kind(layer.kind)
        try:
            records = await self.source.query(table, LAYER_FILTER_FIELD, layer.layer_id)
        except DataAccessError as e:
            logger.error(f"Failed to load layer {layer.layer_id} ({table}): {e}")
            return 0
        except Exception:
            logger.exception(f"Unexpected error loading layer {layer.layer_id} ({table})")
            return 0

        if generation != self._generation or token != self._layer_tokens.get(layer.layer_id, 0):
            logger.debug(f"Load of layer {layer.layer_id} is stale, dropped")
            return 0
        if not records:
            logger.warning(f"No records in {table} for layer {layer.layer_id}")
        return self.registry.load_layer(layer.layer_id, layer.kind, records)

    async def _reload_layer(self, layer_id: str, kind: str) -> int:
        layer = self.get_layer(layer_id)
        if layer is None:
            logger.warning(f"Layer {layer_id} is not part of project {self.project_id}")
            return 0
        return await self._load(layer, self._generation)

    async def set_layer_visible(self, layer_id: str, visible: bool) -> int:
        layer = self.get_layer(layer_id)
        kind = layer.kind if layer is not None else (self.registry.get_kind(layer_id) or "")
        if not visible:
            self._layer_tokens[layer_id] = self._layer_tokens.get(layer_id, 0) + 1
        return await self.visibility.set_layer_visible(layer_id, kind, visible)

    def set_element_visible(self, layer_id: str, element_id: str, visible: bool) -> bool:
        return self.visibility.set_element_visible(layer_id, element_id, visible)

    def fit_to_layers(self) -> bool:
        """Fit the surface view to every drawn element. False if nothing is drawn."""
        bounds = self.registry.bounds()
        if bounds is None:
            return False
        self.surface.fit_bounds(bounds, padding=self.fit_padding, max_zoom=self.fit_max_zoom)
        return True
