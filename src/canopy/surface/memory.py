"""Headless map surfaces that keep their state in memory.

Used by the HTTP API (which renders the state with folium on request)
and by tests.
"""

from __future__ import annotations

from canopy.layers.layer import Bounds
from canopy.surface.base import ClusterGroup, IconFactory, VisualGroup


class MemoryMapSurface:
    """Map surface without clustering support."""

    def __init__(self) -> None:
        self.groups: list[VisualGroup] = []
        self.view_bounds: Bounds | None = None
        self.view_padding: tuple[int, int] = (0, 0)
        self.view_max_zoom: int | None = None
        self.fit_count = 0

    def add_group(self, group: VisualGroup) -> None:
        if not self.has_group(group):
            self.groups.append(group)

    def remove_group(self, group: VisualGroup) -> None:
        self.groups = [g for g in self.groups if g is not group]

    def has_group(self, group: VisualGroup) -> bool:
        return any(g is group for g in self.groups)

    def fit_bounds(
        self,
        bounds: Bounds,
        padding: tuple[int, int] = (20, 20),
        max_zoom: int = 18,
    ) -> None:
        self.view_bounds = bounds
        self.view_padding = padding
        self.view_max_zoom = max_zoom
        self.fit_count += 1


class ClusteringMapSurface(MemoryMapSurface):
    """Map surface that can aggregate point groups into clusters."""

    def create_cluster_group(
        self,
        icon_factory: IconFactory,
        options: dict | None = None,
        name: str = "",
    ) -> ClusterGroup:
        return ClusterGroup(name=name, icon_factory=icon_factory, options=options)
