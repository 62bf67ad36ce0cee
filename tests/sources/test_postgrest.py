"""Tests for the PostgREST data source (mocked transport, no network)."""

import asyncio

import httpx
import pytest

from canopy.sources.base import DataAccessError
from canopy.sources.postgrest import PostgrestSource


def _source(handler, api_key="secret"):
    return PostgrestSource(
        "https://db.example.org/", api_key=api_key, transport=httpx.MockTransport(handler)
    )


@pytest.mark.unit
class TestPostgrestSource:
    """Request shape and response handling."""

    def test_query_builds_filter(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            seen["headers"] = request.headers
            return httpx.Response(200, json=[{"id": 1, "latitud": -34.6}])

        rows = asyncio.run(_source(handler).query("arboles", "id_capa", 7))
        assert rows == [{"id": 1, "latitud": -34.6}]
        assert seen["url"].path == "/rest/v1/arboles"
        assert seen["url"].params["select"] == "*"
        assert seen["url"].params["id_capa"] == "eq.7"
        assert seen["headers"]["apikey"] == "secret"
        assert seen["headers"]["authorization"] == "Bearer secret"

    def test_no_key_no_auth_headers(self):
        seen = {}

        def handler(request):
            seen["headers"] = request.headers
            return httpx.Response(200, json=[])

        asyncio.run(_source(handler, api_key="").query("arboles", "id_capa", 7))
        assert "apikey" not in seen["headers"]

    def test_list_projects(self):
        def handler(request):
            assert request.url.path == "/rest/v1/proyectos"
            assert request.url.params["select"] == "id,nombre"
            return httpx.Response(200, json=[{"id": 1, "nombre": "Centro"}])

        projects = asyncio.run(_source(handler).list_projects())
        assert projects[0].project_id == "1"
        assert projects[0].name == "Centro"

    def test_list_layers(self):
        def handler(request):
            assert request.url.path == "/rest/v1/capas"
            assert request.url.params["id_proyecto"] == "eq.p1"
            return httpx.Response(200, json=[{"id": 7, "nombre": "Árboles", "tipo": "arboles"}])

        layers = asyncio.run(_source(handler).list_layers("p1"))
        assert layers[0].layer_id == "7"
        assert layers[0].kind == "arboles"
        assert layers[0].project_id == "p1"

    def test_malformed_rows_skipped(self):
        def handler(request):
            return httpx.Response(200, json=[{"id": 7, "nombre": "Árboles", "tipo": "arboles"}, 3, None])

        layers = asyncio.run(_source(handler).list_layers("p1"))
        assert [layer.layer_id for layer in layers] == ["7"]

    def test_http_error_raises_data_access_error(self):
        def handler(request):
            return httpx.Response(404, json={"message": "relation does not exist"})

        with pytest.raises(DataAccessError):
            asyncio.run(_source(handler).query("nope", "id_capa", 1))

    def test_transport_error_raises_data_access_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(DataAccessError):
            asyncio.run(_source(handler).list_projects())

    def test_non_list_payload_raises(self):
        def handler(request):
            return httpx.Response(200, json={"error": "x"})

        with pytest.raises(DataAccessError):
            asyncio.run(_source(handler).query("arboles", "id_capa", 1))

    def test_invalid_json_raises(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>")

        with pytest.raises(DataAccessError):
            asyncio.run(_source(handler).query("arboles", "id_capa", 1))
