"""Status classification and structural styling.

Status comes from the free-text ``condicion`` field and is matched by
substring. Pruning keywords are checked before risk keywords, so text
containing both resolves to NEEDS_PRUNING.
"""

from __future__ import annotations

from typing import Any

from canopy.layers.fields import STATUS_FIELD
from canopy.layers.layer import StatusClass

STATUS_COLORS: dict[StatusClass, str] = {
    StatusClass.HEALTHY: "#2e7d32",
    StatusClass.NEEDS_PRUNING: "#fbc02d",
    StatusClass.AT_RISK: "#d32f2f",
}

MARKER_OUTLINE = "#ffffff"

# Checked in this order; first matching rule wins.
_STATUS_RULES: tuple[tuple[StatusClass, tuple[str, ...]], ...] = (
    (StatusClass.NEEDS_PRUNING, ("poda", "regul", "medio")),
    (StatusClass.AT_RISK, ("riesgo", "mal", "critico")),
)

_TREE_KEYWORDS = ("arbol", "tree")
_LINE_KEYWORDS = ("segment", "line", "camino")
_POLYGON_KEYWORDS = ("poly", "poligono")

LINE_STYLE = {"color": "#1976d2", "weight": 3, "opacity": 0.9}
AREA_STYLE = {"color": "#f57c00", "weight": 4, "opacity": 0.8, "fillOpacity": 0.4}


def status_text(record: dict[str, Any]) -> str:
    value = record.get(STATUS_FIELD)
    return str(value) if value else ""


def resolve_status(record: dict[str, Any]) -> StatusClass:
    """Classify a record by its status text; HEALTHY when absent or unmatched."""
    text = status_text(record).lower()
    for status, keywords in _STATUS_RULES:
        if any(k in text for k in keywords):
            return status
    return StatusClass.HEALTHY


def status_color(status: StatusClass) -> str:
    return STATUS_COLORS[status]


def status_for_color(color: str | None) -> StatusClass | None:
    """Inverse of status_color; None for colors that are not status colors."""
    for status, value in STATUS_COLORS.items():
        if value == color:
            return status
    return None


def is_tree_kind(kind: str) -> bool:
    k = (kind or "").lower()
    return any(w in k for w in _TREE_KEYWORDS)


def is_line_kind(kind: str) -> bool:
    k = (kind or "").lower()
    return any(w in k for w in _LINE_KEYWORDS)


def is_polygon_kind(kind: str) -> bool:
    k = (kind or "").lower()
    return any(w in k for w in _POLYGON_KEYWORDS)


def resolve_path_style(kind: str) -> dict:
    """Stroke/fill options for line and area primitives of a layer kind."""
    if is_line_kind(kind):
        return dict(LINE_STYLE)
    return dict(AREA_STYLE)


def marker_style(status: StatusClass) -> dict:
    """Fixed-radius, status-filled circle marker with a white outline."""
    return {
        "radius": 6,
        "fillColor": status_color(status),
        "color": MARKER_OUTLINE,
        "weight": 2,
        "opacity": 1,
        "fillOpacity": 1,
    }
