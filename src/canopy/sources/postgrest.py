"""PostgREST data source (Supabase REST endpoint compatible).

Tables:
    proyectos(id, nombre)                projects
    capas(id, nombre, tipo, id_proyecto) layers of a project
    <kind table>(..., id_capa)           records of a layer
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from canopy.layers.layer import LayerInfo, Project
from canopy.sources.base import DataAccessError

_USER_AGENT = "canopy-gis/0.1.0"

PROJECTS_TABLE = "proyectos"
LAYERS_TABLE = "capas"
LAYER_PROJECT_FIELD = "id_proyecto"


class PostgrestSource:
    """Async PostgREST client.

    Usage:
        source = PostgrestSource("https://xyz.supabase.co", api_key="...")
        rows = await source.query("arboles", "id_capa", 7)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"User-Agent": _USER_AGENT, "Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _select(
        self,
        table: str,
        columns: str = "*",
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        params = {"select": columns}
        for field_name, value in (filters or {}).items():
            params[field_name] = f"eq.{value}"
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.get(url, params=params, headers=self._headers())
                resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise DataAccessError(f"Query on {table} failed: {e}") from e
        if not isinstance(data, list):
            raise DataAccessError(f"Unexpected response from {table}: {type(data).__name__}")
        rows = [r for r in data if isinstance(r, dict)]
        if len(rows) != len(data):
            logger.warning(f"Skipped {len(data) - len(rows)} malformed rows from {table}")
        return rows

    async def list_projects(self) -> list[Project]:
        rows = await self._select(PROJECTS_TABLE, "id,nombre")
        return [Project(project_id=str(r.get("id")), name=str(r.get("nombre") or "")) for r in rows]

    async def list_layers(self, project_id: str) -> list[LayerInfo]:
        rows = await self._select(
            LAYERS_TABLE, "id,nombre,tipo", {LAYER_PROJECT_FIELD: project_id}
        )
        return [
            LayerInfo(
                layer_id=str(r.get("id")),
                name=str(r.get("nombre") or ""),
                kind=str(r.get("tipo") or ""),
                project_id=str(project_id),
            )
            for r in rows
        ]

    async def query(
        self, table: str, filter_field: str, filter_value: Any
    ) -> list[dict[str, Any]]:
        logger.debug(f"Querying {table} where {filter_field} = {filter_value}")
        return await self._select(table, "*", {filter_field: filter_value})
