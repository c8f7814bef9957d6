from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, Set

from ripscover.errors import InconsistentSkeletonError
from ripscover.topology.complex import SimplicialComplex
from ripscover.topology.simplex import Simplex, Vertex

LowerNeighborMap = Dict[Vertex, FrozenSet[Vertex]]

_EMPTY: FrozenSet[Vertex] = frozenset()


def build_lower_neighbors(
    edges: Iterable[Simplex],
    vertices: Iterable[Vertex] | None = None,
) -> LowerNeighborMap:
    """Map every vertex to the adjacent vertices with a smaller identifier.

    Each undirected edge ``{u, v}`` with ``u < v`` contributes ``u`` to the
    entry of ``v``. When ``vertices`` is given, an edge touching a vertex
    outside of it raises ``InconsistentSkeletonError``.
    """

    known = None if vertices is None else set(vertices)
    lower: Dict[Vertex, Set[Vertex]] = {}
    for edge in edges:
        if edge.dimension != 1:
            raise InconsistentSkeletonError(f"Expected an edge, got {edge!r}.")
        u, v = edge.vertices
        if known is not None and (u not in known or v not in known):
            absent = [vertex for vertex in (u, v) if vertex not in known]
            raise InconsistentSkeletonError(
                f"Edge {list(edge.vertices)!r} references vertices {absent!r} "
                "missing from the 0-skeleton."
            )
        lower.setdefault(v, set()).add(u)
    return {vertex: frozenset(neighbors) for vertex, neighbors in lower.items()}


def lower_neighbors_of(complex_: SimplicialComplex) -> LowerNeighborMap:
    """Lower-neighbour map of a complex's 1-skeleton, checked against its vertices."""

    zero_skeleton = [simplex.vertices[0] for simplex in complex_.range(0)]
    return build_lower_neighbors(complex_.range(1), zero_skeleton)


def neighbors_below(lower_map: LowerNeighborMap, vertex: Vertex) -> FrozenSet[Vertex]:
    return lower_map.get(vertex, _EMPTY)


__all__ = ["LowerNeighborMap", "build_lower_neighbors", "lower_neighbors_of", "neighbors_below"]
