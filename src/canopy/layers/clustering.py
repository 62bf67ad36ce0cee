"""Cluster aggregation for point-dominant layers.

A cluster's icon shows its member count and takes the worst status among
its members: any at-risk member makes the whole cluster at-risk, then
needs-pruning, then healthy. Per-record resolution in canopy.layers.style
checks pruning keywords first; the two orders are independent.
"""

from __future__ import annotations

from loguru import logger

from canopy.layers.layer import Primitive, StatusClass
from canopy.layers.style import MARKER_OUTLINE, is_tree_kind, status_for_color
from canopy.surface.base import VisualGroup

CLUSTER_OPTIONS = {
    "showCoverageOnHover": False,
    "spiderfyOnMaxZoom": True,
    "disableClusteringAtZoom": 18,
    "chunkedLoading": True,
}

CLUSTER_ICON_SIZE = (40, 40)

CLUSTER_CLASSES = {
    StatusClass.AT_RISK: "cluster-risk",
    StatusClass.NEEDS_PRUNING: "cluster-pruning",
    StatusClass.HEALTHY: "cluster-healthy",
}


def member_color(primitive: Primitive) -> str | None:
    """Status color of a member: its fill, else its stroke unless white."""
    style = primitive.style or {}
    color = style.get("fillColor")
    if color:
        return color
    stroke = style.get("color")
    if stroke and stroke != MARKER_OUTLINE:
        return stroke
    return None


def cluster_status(members: list[Primitive]) -> StatusClass:
    statuses = {status_for_color(member_color(m)) for m in members}
    if StatusClass.AT_RISK in statuses:
        return StatusClass.AT_RISK
    if StatusClass.NEEDS_PRUNING in statuses:
        return StatusClass.NEEDS_PRUNING
    return StatusClass.HEALTHY


def cluster_icon(members: list[Primitive]) -> dict:
    """Icon description for a cluster of ``members``."""
    status = cluster_status(members)
    return {
        "html": f"<div><span>{len(members)}</span></div>",
        "class_name": f"marker-cluster {CLUSTER_CLASSES[status]}",
        "icon_size": CLUSTER_ICON_SIZE,
    }


def group_for_layer(surface, kind: str, name: str = "", options: dict | None = None) -> VisualGroup:
    """Pick the group variant for one layer load.

    Tree layers get a cluster group when the surface offers one; every
    other case gets a plain group.
    """
    create = getattr(surface, "create_cluster_group", None)
    if is_tree_kind(kind) and callable(create):
        logger.debug(f"Using cluster group for {name or kind}")
        return create(cluster_icon, {**CLUSTER_OPTIONS, **(options or {})}, name=name)
    logger.debug(
        f"Using plain group for {name or kind} (clustering available: {callable(create)})"
    )
    return VisualGroup(name=name)
