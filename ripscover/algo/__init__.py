"""Clique expansion, weight passes and proximity graphs."""

from .lower_neighbors import (
    LowerNeighborMap,
    build_lower_neighbors,
    lower_neighbors_of,
    neighbors_below,
)
from .rips import CombineFn, RipsExpander, expand_rips
from .skeleton import build_rips_skeleton, build_vietoris_rips_complex

__all__ = [
    "LowerNeighborMap",
    "build_lower_neighbors",
    "lower_neighbors_of",
    "neighbors_below",
    "CombineFn",
    "RipsExpander",
    "expand_rips",
    "build_rips_skeleton",
    "build_vietoris_rips_complex",
]
