"""Data source interface for projects, layers and per-layer records."""

from __future__ import annotations

from typing import Any, Protocol

from canopy.layers.layer import LayerInfo, Project


class DataAccessError(Exception):
    """Raised when a data source query fails."""


class DataSource(Protocol):
    async def list_projects(self) -> list[Project]: ...

    async def list_layers(self, project_id: str) -> list[LayerInfo]: ...

    async def query(
        self, table: str, filter_field: str, filter_value: Any
    ) -> list[dict[str, Any]]: ...
