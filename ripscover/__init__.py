"""Ripscover: cover trees and Vietoris--Rips expansion for persistent homology.

Quick Start
-----------
>>> from ripscover import CoverTree, RipsExpander, SimplicialComplex
>>>
>>> # Cover tree over scalars with |a - b|
>>> tree = CoverTree.from_points([0.0, 10.0, 20.0], metric=lambda a, b: abs(a - b))
>>> tree.is_valid()
True
>>>
>>> # Clique expansion of a triangle graph
>>> K = SimplicialComplex([[1], [2], [3], [1, 2], [2, 3], [1, 3]])
>>> len(RipsExpander().expand(K, 2))
7

Classes
-------
CoverTree : Cover tree over an arbitrary metric.
RipsExpander : Clique expansion and filtration-weight passes.
SimplicialComplex : Dimension-grouped simplex container.
"""

from importlib.metadata import version as _pkg_version

try:
    __version__ = _pkg_version("ripscover")
except Exception:  # pragma: no cover - best effort during local development
    __version__ = "0.0.1"

from .algo import (
    RipsExpander,
    build_lower_neighbors,
    build_rips_skeleton,
    build_vietoris_rips_complex,
    expand_rips,
)
from .core import (
    CoverTree,
    Metric,
    MetricRegistry,
    available_metrics,
    descent_profile,
    get_metric,
    is_harmonic,
    register_metric,
    reroot,
)
from .errors import (
    DimensionMismatchError,
    DuplicatePointError,
    EmptyTreeError,
    InconsistentSkeletonError,
    RipscoverError,
)
from .topology import Simplex, SimplicialComplex

__all__ = [
    "__version__",
    "CoverTree",
    "RipsExpander",
    "Simplex",
    "SimplicialComplex",
    "build_lower_neighbors",
    "build_rips_skeleton",
    "build_vietoris_rips_complex",
    "expand_rips",
    "descent_profile",
    "is_harmonic",
    "reroot",
    "Metric",
    "MetricRegistry",
    "available_metrics",
    "get_metric",
    "register_metric",
    "DimensionMismatchError",
    "DuplicatePointError",
    "EmptyTreeError",
    "InconsistentSkeletonError",
    "RipscoverError",
]
