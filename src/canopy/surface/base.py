"""Visual groups and the map surface interface.

A VisualGroup is the live, mutable container of primitives for one layer.
The map surface holds the groups currently drawn and the current view.
Clustering is an optional surface capability: surfaces that support it
expose ``create_cluster_group``.
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from canopy.layers.layer import Bounds, Primitive, bounds_of

IconFactory = Callable[[list[Primitive]], dict]


class VisualGroup:
    """Plain, non-aggregating group of primitives.

    Membership is by identity; add/remove are idempotent.
    """

    clustered = False

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._members: dict[int, Primitive] = {}

    def add(self, primitive: Primitive) -> None:
        self._members[id(primitive)] = primitive

    def add_many(self, primitives: list[Primitive]) -> None:
        for p in primitives:
            self.add(p)

    def remove(self, primitive: Primitive) -> None:
        self._members.pop(id(primitive), None)

    def has(self, primitive: Primitive) -> bool:
        return self._members.get(id(primitive)) is primitive

    def clear(self) -> None:
        self._members.clear()

    @property
    def primitives(self) -> list[Primitive]:
        return list(self._members.values())

    def __len__(self) -> int:
        return len(self._members)

    def bounds(self) -> Bounds | None:
        positions = [pos for p in self._members.values() for pos in p.positions]
        return bounds_of(positions)


class ClusterGroup(VisualGroup):
    """Group whose point members are aggregated into clusters when drawn.

    The icon factory receives the member primitives of a cluster and
    returns an icon description (html, class_name, icon_size).
    """

    clustered = True

    def __init__(
        self,
        name: str = "",
        icon_factory: IconFactory | None = None,
        options: dict | None = None,
    ) -> None:
        super().__init__(name)
        self.icon_factory = icon_factory
        self.options = dict(options or {})

    def icon(self, members: list[Primitive] | None = None) -> dict | None:
        if self.icon_factory is None:
            return None
        return self.icon_factory(self.primitives if members is None else members)


@runtime_checkable
class MapSurface(Protocol):
    """What the layer engine needs from the hosting map."""

    def add_group(self, group: VisualGroup) -> None: ...

    def remove_group(self, group: VisualGroup) -> None: ...

    def has_group(self, group: VisualGroup) -> bool: ...

    def fit_bounds(
        self,
        bounds: Bounds,
        padding: tuple[int, int] = (20, 20),
        max_zoom: int = 18,
    ) -> None: ...
