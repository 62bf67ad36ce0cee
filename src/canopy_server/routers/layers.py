"""Map layers API: project selection, layer and element toggling.

All routes operate on the MapSession stored on app state.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from canopy.layers.exporters.geojson import export_geojson
from canopy.session import MapSession
from canopy.surface.folium_map import render_html

router = APIRouter(prefix="/api/map", tags=["map"])


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------

class SelectProjectRequest(BaseModel):
    project_id: str = ""


class VisibilityRequest(BaseModel):
    visible: bool


class ProjectOut(BaseModel):
    id: str
    name: str


class LayerOut(BaseModel):
    """A project layer and its load state."""
    id: str
    name: str
    kind: str
    loaded: bool
    drawn: bool
    element_count: int


class ElementOut(BaseModel):
    id: str
    name: str
    source_id: str | None
    status: str
    visible: bool


def _get_session(request: Request) -> MapSession:
    session = getattr(request.app.state, "map_session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Map session not available")
    return session


def _layer_out(session: MapSession, layer) -> LayerOut:
    registry = session.registry
    group = registry.get_group(layer.layer_id)
    return LayerOut(
        id=layer.layer_id,
        name=layer.name,
        kind=layer.kind,
        loaded=registry.is_loaded(layer.layer_id),
        drawn=group is not None and session.surface.has_group(group),
        element_count=len(registry.get_elements(layer.layer_id)),
    )


def _require_layer(session: MapSession, layer_id: str):
    layer = session.get_layer(layer_id)
    if layer is None:
        raise HTTPException(status_code=404, detail=f"Layer '{layer_id}' not found")
    return layer


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

@router.get("/projects", response_model=list[ProjectOut])
async def list_projects(request: Request):
    session = _get_session(request)
    projects = session.projects or await session.load_projects()
    return [ProjectOut(id=p.project_id, name=p.name) for p in projects]


@router.post("/projects/select")
async def select_project(body: SelectProjectRequest, request: Request):
    """Switch the active project; loads all of its layers."""
    session = _get_session(request)
    drawn = await session.select_project(body.project_id)
    return {
        "project_id": session.project_id,
        "layers": [_layer_out(session, layer).model_dump() for layer in session.layers],
        "element_count": drawn,
    }


# ---------------------------------------------------------------------------
# Layers and elements
# ---------------------------------------------------------------------------

@router.get("/layers", response_model=list[LayerOut])
async def list_layers(request: Request):
    session = _get_session(request)
    return [_layer_out(session, layer) for layer in session.layers]


@router.get("/layers/{layer_id}/elements", response_model=list[ElementOut])
async def list_elements(layer_id: str, request: Request):
    session = _get_session(request)
    _require_layer(session, layer_id)
    out = []
    for element_id, element in session.registry.get_elements(layer_id).items():
        source_id = element.record.get("id")
        out.append(ElementOut(
            id=element_id,
            name=element.name,
            source_id=None if source_id is None else str(source_id),
            status=element.status.value,
            visible=session.visibility.is_element_visible(layer_id, element_id),
        ))
    return out


@router.put("/layers/{layer_id}/visibility", response_model=LayerOut)
async def set_layer_visibility(layer_id: str, body: VisibilityRequest, request: Request):
    session = _get_session(request)
    layer = _require_layer(session, layer_id)
    await session.set_layer_visible(layer_id, body.visible)
    return _layer_out(session, layer)


@router.put("/layers/{layer_id}/elements/{element_id}/visibility")
async def set_element_visibility(
    layer_id: str, element_id: str, body: VisibilityRequest, request: Request
):
    session = _get_session(request)
    _require_layer(session, layer_id)
    if not session.set_element_visible(layer_id, element_id, body.visible):
        raise HTTPException(
            status_code=404,
            detail=f"Element '{element_id}' not loaded in layer '{layer_id}'",
        )
    return {"layer_id": layer_id, "element_id": element_id, "visible": body.visible}


@router.get("/layers/{layer_id}/geojson")
async def layer_geojson(layer_id: str, request: Request):
    session = _get_session(request)
    _require_layer(session, layer_id)
    return export_geojson(
        session.registry.get_elements(layer_id),
        session.visibility.visibility_state.get(layer_id),
    )


# ---------------------------------------------------------------------------
# Rendered map
# ---------------------------------------------------------------------------

@router.get("/render", response_class=HTMLResponse)
async def render(request: Request):
    """Current map state as a standalone Leaflet HTML page."""
    session = _get_session(request)
    cfg = getattr(request.app.state, "settings", None)
    kwargs = {}
    if cfg is not None:
        kwargs = {
            "center": (cfg.map_center_lat, cfg.map_center_lng),
            "zoom": cfg.map_zoom,
            "tiles": cfg.map_tiles,
        }
    return HTMLResponse(render_html(session.surface, **kwargs))
