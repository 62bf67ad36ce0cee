"""Render a map surface's live state to a Leaflet map with folium.

Each drawn VisualGroup becomes a folium FeatureGroup, and each
ClusterGroup a MarkerCluster whose icon function applies the same
worst-status rule as canopy.layers.clustering in the browser.
"""

from __future__ import annotations

import folium
from folium.plugins import MarkerCluster

from canopy.layers.clustering import CLUSTER_CLASSES, CLUSTER_ICON_SIZE
from canopy.layers.layer import Primitive, StatusClass
from canopy.layers.style import MARKER_OUTLINE, STATUS_COLORS
from canopy.surface.memory import MemoryMapSurface

DEFAULT_CENTER = (-36.67, -60.56)  # (lat, lng)
DEFAULT_ZOOM = 6

# Browser counterpart of canopy.layers.clustering.cluster_icon, which is the
# headless reference. Colors, class names and icon size come from the same
# constants; the precedence (risk, then pruning, then healthy) must match
# cluster_status.
CLUSTER_ICON_JS = """
function(cluster) {
    var markers = cluster.getAllChildMarkers();
    var risk = 0, pruning = 0;
    markers.forEach(function(m) {
        var o = m.options || {};
        var color = o.fillColor || (o.color && o.color !== '%(outline)s' ? o.color : null);
        if (color === '%(risk)s') risk++;
        else if (color === '%(pruning)s') pruning++;
    });
    var cls = '%(healthy_cls)s';
    if (risk > 0) cls = '%(risk_cls)s';
    else if (pruning > 0) cls = '%(pruning_cls)s';
    return L.divIcon({
        html: '<div><span>' + markers.length + '</span></div>',
        className: 'marker-cluster ' + cls,
        iconSize: L.point(%(width)d, %(height)d)
    });
}
""" % {
    "outline": MARKER_OUTLINE,
    "risk": STATUS_COLORS[StatusClass.AT_RISK],
    "pruning": STATUS_COLORS[StatusClass.NEEDS_PRUNING],
    "healthy_cls": CLUSTER_CLASSES[StatusClass.HEALTHY],
    "risk_cls": CLUSTER_CLASSES[StatusClass.AT_RISK],
    "pruning_cls": CLUSTER_CLASSES[StatusClass.NEEDS_PRUNING],
    "width": CLUSTER_ICON_SIZE[0],
    "height": CLUSTER_ICON_SIZE[1],
}

_CLUSTER_CSS = """
<style>
.%(healthy_cls)s div { background-color: rgba(46, 125, 50, 0.85); color: #fff; }
.%(pruning_cls)s div { background-color: rgba(251, 192, 45, 0.85); color: #222; }
.%(risk_cls)s div { background-color: rgba(211, 47, 47, 0.85); color: #fff; }
</style>
""" % {
    "healthy_cls": CLUSTER_CLASSES[StatusClass.HEALTHY],
    "risk_cls": CLUSTER_CLASSES[StatusClass.AT_RISK],
    "pruning_cls": CLUSTER_CLASSES[StatusClass.NEEDS_PRUNING],
}

# Leaflet option name -> folium keyword
_STYLE_KEYWORDS = {
    "color": "color",
    "weight": "weight",
    "opacity": "opacity",
    "fillColor": "fill_color",
    "fillOpacity": "fill_opacity",
}


def _path_kwargs(style: dict) -> dict:
    kwargs = {}
    for key, value in style.items():
        if key in _STYLE_KEYWORDS:
            kwargs[_STYLE_KEYWORDS[key]] = value
    return kwargs


def _latlngs(primitive: Primitive) -> list[list[float]]:
    return [[lat, lng] for lng, lat in primitive.positions]


def primitive_to_folium(primitive: Primitive):
    """Convert a primitive into the matching folium vector layer."""
    popup = folium.Popup(primitive.popup, max_width=300) if primitive.popup else None
    kwargs = _path_kwargs(primitive.style)
    if primitive.kind == "marker":
        return folium.CircleMarker(
            location=_latlngs(primitive)[0],
            radius=primitive.style.get("radius", 6),
            popup=popup,
            fill=True,
            **kwargs,
        )
    if primitive.kind == "polygon":
        return folium.Polygon(locations=_latlngs(primitive), popup=popup, fill=True, **kwargs)
    return folium.PolyLine(locations=_latlngs(primitive), popup=popup, **kwargs)


def render_map(
    surface: MemoryMapSurface,
    center: tuple[float, float] = DEFAULT_CENTER,
    zoom: int = DEFAULT_ZOOM,
    tiles: str = "OpenStreetMap",
) -> folium.Map:
    """Build a folium Map showing every group currently on ``surface``."""
    m = folium.Map(location=list(center), zoom_start=zoom, tiles=tiles)
    m.get_root().header.add_child(folium.Element(_CLUSTER_CSS))

    for group in surface.groups:
        if group.clustered:
            container = MarkerCluster(
                name=group.name or None,
                icon_create_function=CLUSTER_ICON_JS,
                **getattr(group, "options", {}),
            )
        else:
            container = folium.FeatureGroup(name=group.name or None)
        for primitive in group.primitives:
            primitive_to_folium(primitive).add_to(container)
        container.add_to(m)

    if surface.view_bounds is not None:
        (min_lng, min_lat), (max_lng, max_lat) = surface.view_bounds
        m.fit_bounds(
            [[min_lat, min_lng], [max_lat, max_lng]],
            padding=surface.view_padding,
            max_zoom=surface.view_max_zoom,
        )
    return m


def render_html(surface: MemoryMapSurface, **kwargs) -> str:
    return render_map(surface, **kwargs).get_root().render()
