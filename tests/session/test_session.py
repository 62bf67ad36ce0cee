"""Tests for MapSession: project switching, stale loads, bounds fitting."""

import asyncio

import pytest

from canopy.session import MapSession


@pytest.fixture
def session(fake_source, cluster_surface):
    return MapSession(fake_source, cluster_surface)


async def _ticks(n=10):
    for _ in range(n):
        await asyncio.sleep(0)


@pytest.mark.unit
class TestSelectProject:
    """Loading every layer of a project."""

    def test_loads_all_layers(self, session, fake_source, cluster_surface):
        drawn = asyncio.run(session.select_project("p1"))
        assert drawn == 5
        assert sorted(session.registry.list_layer_ids()) == ["7", "8", "9"]
        assert len(cluster_surface.groups) == 3
        assert ("arboles", "id_capa", "7") in fake_source.queries
        assert ("segmentos", "id_capa", "8") in fake_source.queries
        assert ("poligonos", "id_capa", "9") in fake_source.queries

    def test_fits_bounds_once_after_loads(self, session, cluster_surface):
        asyncio.run(session.select_project("p1"))
        assert cluster_surface.fit_count == 1
        assert cluster_surface.view_bounds == session.registry.bounds()
        assert cluster_surface.view_padding == (20, 20)
        assert cluster_surface.view_max_zoom == 18

    def test_switch_clears_previous_project(self, session, cluster_surface):
        asyncio.run(session.select_project("p1"))
        session.set_element_visible("7", "7-0", False)
        asyncio.run(session.select_project("p2"))
        assert session.registry.list_layer_ids() == ["11"]
        assert len(cluster_surface.groups) == 1
        assert session.visibility.visibility_state == {}
        assert [layer.layer_id for layer in session.layers] == ["11"]

    def test_empty_project_id_clears_map(self, session, cluster_surface):
        asyncio.run(session.select_project("p1"))
        assert asyncio.run(session.select_project("")) == 0
        assert cluster_surface.groups == []
        assert session.layers == []
        assert session.registry.bounds() is None

    def test_failing_layer_does_not_affect_siblings(self, session, fake_source):
        fake_source.failing.add(("segmentos", "8"))
        drawn = asyncio.run(session.select_project("p1"))
        assert drawn == 4
        assert not session.registry.is_loaded("8")
        assert session.registry.is_loaded("7")
        assert session.registry.is_loaded("9")

    def test_unexpected_layer_error_is_contained(self, session, fake_source, cluster_surface):
        fake_source.errors[("segmentos", "8")] = RuntimeError("driver crashed")
        drawn = asyncio.run(session.select_project("p1"))
        assert drawn == 4
        assert not session.registry.is_loaded("8")
        assert session.registry.is_loaded("7")
        assert session.registry.is_loaded("9")
        assert cluster_surface.fit_count == 1
        assert cluster_surface.view_bounds == session.registry.bounds()

    def test_unexpected_layer_list_error_leaves_map_empty(self, session, fake_source):
        fake_source.errors[("layers", "p1")] = AttributeError("bad row")
        assert asyncio.run(session.select_project("p1")) == 0
        assert session.layers == []

    def test_failing_layer_list_leaves_map_empty(self, session, fake_source, cluster_surface):
        fake_source.failing.add(("layers", "p1"))
        assert asyncio.run(session.select_project("p1")) == 0
        assert session.layers == []
        assert cluster_surface.fit_count == 0

    def test_project_with_empty_layer(self, session, fake_source, cluster_surface):
        fake_source.records[("arboles", "11")] = []
        assert asyncio.run(session.select_project("p2")) == 0
        assert session.registry.is_loaded("11")
        assert cluster_surface.groups == []
        assert cluster_surface.fit_count == 0

    def test_generation_increments(self, session):
        start = session.generation
        asyncio.run(session.select_project("p1"))
        asyncio.run(session.select_project("p2"))
        assert session.generation == start + 2


@pytest.mark.unit
class TestStaleLoads:
    """Completions from a superseded generation are dropped."""

    def test_layer_load_finishing_after_switch_is_dropped(self, session, fake_source, cluster_surface):
        async def scenario():
            gate = asyncio.Event()
            fake_source.gates[("arboles", "7")] = gate
            first = asyncio.create_task(session.select_project("p1"))
            await _ticks()
            await session.select_project("p2")
            gate.set()
            return await first

        assert asyncio.run(scenario()) == 0
        assert session.registry.list_layer_ids() == ["11"]
        assert len(cluster_surface.groups) == 1
        assert session.project_id == "p2"

    def test_layer_list_finishing_after_switch_is_dropped(self, session, fake_source):
        async def scenario():
            gate = asyncio.Event()
            fake_source.gates[("layers", "p1")] = gate
            first = asyncio.create_task(session.select_project("p1"))
            await _ticks()
            await session.select_project("p2")
            gate.set()
            await first

        asyncio.run(scenario())
        assert [layer.layer_id for layer in session.layers] == ["11"]
        assert ("arboles", "id_capa", "7") not in fake_source.queries

    def test_reload_finishing_after_hide_is_dropped(self, session, fake_source):
        async def scenario():
            await session.select_project("p1")
            gate = asyncio.Event()
            fake_source.gates[("arboles", "7")] = gate
            show = asyncio.create_task(session.set_layer_visible("7", True))
            await _ticks()
            await session.set_layer_visible("7", False)
            gate.set()
            return await show

        assert asyncio.run(scenario()) == 0
        assert not session.registry.is_loaded("7")


@pytest.mark.unit
class TestToggles:
    """Layer and element toggles through the session."""

    def test_hide_and_show_layer(self, session, cluster_surface):
        asyncio.run(session.select_project("p1"))
        asyncio.run(session.set_layer_visible("8", False))
        assert not session.registry.is_loaded("8")
        assert len(cluster_surface.groups) == 2
        assert asyncio.run(session.set_layer_visible("8", True)) == 1
        assert cluster_surface.has_group(session.registry.get_group("8"))

    def test_show_unknown_layer(self, session):
        asyncio.run(session.select_project("p1"))
        assert asyncio.run(session.set_layer_visible("99", True)) == 0

    def test_element_toggle(self, session):
        asyncio.run(session.select_project("p1"))
        assert session.set_element_visible("7", "7-1", False) is True
        assert session.visibility.is_element_visible("7", "7-1") is False
        assert session.set_element_visible("8", "8-5", False) is False

    def test_fit_to_layers_without_elements(self, session, cluster_surface):
        assert session.fit_to_layers() is False
        assert cluster_surface.fit_count == 0


@pytest.mark.unit
class TestProjects:
    """Project listing."""

    def test_load_projects(self, session):
        projects = asyncio.run(session.load_projects())
        assert [p.project_id for p in projects] == ["p1", "p2"]

    def test_load_projects_failure(self, session, fake_source):
        fake_source.failing.add("projects")
        assert asyncio.run(session.load_projects()) == []
