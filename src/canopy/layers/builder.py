"""Build renderable elements from raw records.

Combines the extracted geometry with the resolved status and kind style
into one Primitive carrying its popup HTML.
"""

from __future__ import annotations

import html
from typing import Any

from loguru import logger

from canopy.layers.fields import ID_FIELD, NAME_FIELDS, first_present
from canopy.layers.geometry import AxisOrder, extract_geometry, southern_cone_axis_order
from canopy.layers.layer import (
    Element,
    Geometry,
    LineString,
    Point,
    Polygon,
    Primitive,
    StatusClass,
)
from canopy.layers.style import (
    marker_style,
    resolve_path_style,
    resolve_status,
    status_text,
)


def element_name(record: dict[str, Any], kind: str, index: int) -> str:
    found = first_present(record, NAME_FIELDS)
    if found is not None:
        return str(found[1])
    return f"{kind} {index + 1}"


def popup_html(name: str, record: dict[str, Any]) -> str:
    """Info panel: bold name, condition when present, source id when present."""
    parts = [f"<b>{html.escape(name)}</b>"]
    condition = status_text(record)
    if condition:
        parts.append(f"<br><b>Condición:</b> {html.escape(condition)}")
    record_id = record.get(ID_FIELD)
    if record_id is not None and record_id != "":
        parts.append(f"<br>ID: {html.escape(str(record_id))}")
    return "".join(parts)


def _distinct(points) -> int:
    return len(set(points))


def build_primitive(
    geometry: Geometry, status: StatusClass, kind: str, popup: str
) -> Primitive | None:
    """Turn a geometry into a styled primitive, or None if it is degenerate."""
    if isinstance(geometry, Point):
        return Primitive("marker", geometry.positions, marker_style(status), popup)
    if isinstance(geometry, LineString):
        if _distinct(geometry.points) < 2:
            return None
        return Primitive("polyline", geometry.positions, resolve_path_style(kind), popup)
    if isinstance(geometry, Polygon):
        if _distinct(geometry.ring) < 3:
            return None
        return Primitive("polygon", geometry.positions, resolve_path_style(kind), popup)
    return None


def build_element(
    record: dict[str, Any],
    index: int,
    layer_id: str,
    kind: str,
    axis_order: AxisOrder = southern_cone_axis_order,
) -> Element | None:
    """Build the element for record ``index`` of a layer.

    Returns None when the record has no usable geometry. Never raises for
    malformed records.
    """
    element_id = f"{layer_id}-{index}"
    try:
        geometry = extract_geometry(record, kind, axis_order)
        if geometry is None:
            logger.warning(f"No usable geometry for {element_id}, skipped")
            return None

        name = element_name(record, kind, index)
        status = resolve_status(record)
        primitive = build_primitive(geometry, status, kind, popup_html(name, record))
        if primitive is None:
            logger.warning(
                f"Degenerate {geometry.geometry_type} for {element_id}, skipped"
            )
            return None
    except Exception as e:
        logger.error(f"Error building {element_id}: {e}")
        return None

    return Element(
        element_id=element_id,
        name=name,
        record=record,
        primitive=primitive,
        layer_id=layer_id,
        status=status,
        geometry=geometry,
    )
