"""Cover tree, node arena and metrics."""

from .arena import NO_PARENT, NodeArena
from .maintenance import DescentProfile, descent_profile, is_harmonic, reroot
from .metrics import (
    DistanceFn,
    Metric,
    MetricRegistry,
    available_metrics,
    get_metric,
    register_metric,
    resolve_metric,
)
from .tree import CoverTree

__all__ = [
    "NO_PARENT",
    "NodeArena",
    "CoverTree",
    "DescentProfile",
    "descent_profile",
    "is_harmonic",
    "reroot",
    "DistanceFn",
    "Metric",
    "MetricRegistry",
    "available_metrics",
    "get_metric",
    "register_metric",
    "resolve_metric",
]
