"""Shared fixtures: an in-memory data source and map surfaces."""

from __future__ import annotations

from typing import Any

import pytest

from canopy.layers.layer import LayerInfo, Project
from canopy.sources.base import DataAccessError
from canopy.surface.memory import ClusteringMapSurface, MemoryMapSurface
from tests.records import POLYGONS, SEGMENTS, TREES


class FakeSource:
    """In-memory data source.

    ``records`` is keyed by (table, layer id). Queries for keys listed in
    ``failing`` raise DataAccessError. Keys in ``errors`` raise the
    mapped exception instead. Queries for keys in ``gates`` wait
    until the matching asyncio.Event is set, to control completion order.
    """

    def __init__(
        self,
        projects: list[Project] | None = None,
        layers: dict[str, list[LayerInfo]] | None = None,
        records: dict[tuple[str, str], list[dict[str, Any]]] | None = None,
    ) -> None:
        self.projects = projects or []
        self.layers = layers or {}
        self.records = records or {}
        self.failing: set = set()
        self.gates: dict = {}
        self.errors: dict = {}
        self.queries: list[tuple[str, str, Any]] = []

    async def list_projects(self) -> list[Project]:
        if "projects" in self.failing:
            raise DataAccessError("projects unavailable")
        return list(self.projects)

    async def list_layers(self, project_id: str) -> list[LayerInfo]:
        if ("layers", project_id) in self.failing:
            raise DataAccessError("layers unavailable")
        if ("layers", project_id) in self.errors:
            raise self.errors[("layers", project_id)]
        gate = self.gates.get(("layers", project_id))
        if gate is not None:
            await gate.wait()
        return list(self.layers.get(project_id, []))

    async def query(self, table: str, filter_field: str, filter_value: Any):
        self.queries.append((table, filter_field, filter_value))
        key = (table, str(filter_value))
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        if key in self.failing:
            raise DataAccessError(f"{table} unavailable")
        if key in self.errors:
            raise self.errors[key]
        return [dict(r) for r in self.records.get(key, [])]


@pytest.fixture
def surface():
    return MemoryMapSurface()


@pytest.fixture
def cluster_surface():
    return ClusteringMapSurface()


@pytest.fixture
def fake_source():
    return FakeSource(
        projects=[Project("p1", "Arbolado Centro"), Project("p2", "Parque Norte")],
        layers={
            "p1": [
                LayerInfo("7", "Árboles", "arboles", "p1"),
                LayerInfo("8", "Veredas", "segments", "p1"),
                LayerInfo("9", "Plazas", "poligonos", "p1"),
            ],
            "p2": [
                LayerInfo("11", "Árboles norte", "trees", "p2"),
            ],
        },
        records={
            ("arboles", "7"): TREES,
            ("segmentos", "8"): SEGMENTS,
            ("poligonos", "9"): POLYGONS,
            ("arboles", "11"): [
                {"id": 40, "nombre": "Ombú", "latitud": -34.50, "longitud": -58.50},
            ],
        },
    )
