from __future__ import annotations

import math
from functools import reduce
from typing import FrozenSet, List, Protocol, Sequence, Tuple

import numpy as np

from ripscover.algo.lower_neighbors import (
    LowerNeighborMap,
    lower_neighbors_of,
    neighbors_below,
)
from ripscover.diagnostics import log_operation
from ripscover.errors import DimensionMismatchError
from ripscover.logging import get_logger
from ripscover.topology.complex import SimplicialComplex
from ripscover.topology.simplex import Simplex, Vertex

LOGGER = get_logger("algo.rips")


class CombineFn(Protocol):
    """Associative, commutative fold step such as ``max`` or ``min``."""

    def __call__(self, accumulated: float, value: float) -> float:
        ...


class RipsExpander:
    """Vietoris--Rips expansion of a 1-skeleton plus filtration weight passes.

    Expansion follows Zomorodian, "Fast Construction of the Vietoris--Rips
    Complex" (Computers & Graphics 34(3), 2010): every clique of the graph is
    enumerated exactly once by growing simplices through lower neighbours.

    The expander keeps no state between calls; every method returns a new
    complex and leaves its input untouched.
    """

    def __call__(self, complex_: SimplicialComplex, dimension: int) -> SimplicialComplex:
        return self.expand(complex_, dimension)

    # Expansion ----------------------------------------------------------

    def expand(self, complex_: SimplicialComplex, dimension: int) -> SimplicialComplex:
        """Clique complex of ``complex_``'s 1-skeleton, truncated at ``dimension``.

        Vertices and edges that already exist in ``complex_`` keep their
        weight; synthesised simplices of dimension two and above carry the
        default weight until :meth:`assign_maximum_weight` is applied.
        """

        if dimension < 0:
            raise ValueError("dimension must be non-negative.")
        with log_operation(LOGGER, "rips_expand") as op_log:
            lower_map = lower_neighbors_of(complex_)
            vertices = sorted(simplex.vertices[0] for simplex in complex_.range(0))

            simplices: List[Simplex] = []
            for vertex in vertices:
                simplices.append(Simplex((vertex,)))
                neighbors = neighbors_below(lower_map, vertex)
                if neighbors:
                    _add_cofaces((vertex,), neighbors, lower_map, simplices, dimension)

            for simplex in simplices:
                if simplex.dimension <= 1:
                    existing = complex_.find(simplex)
                    if existing is not None:
                        simplex.weight = existing.weight

            result = SimplicialComplex(simplices)
            op_log.add_metadata(
                vertices=len(vertices),
                edges=len(complex_.range(1)),
                dimension=dimension,
                simplices=len(result),
                max_dimension=result.dimension,
            )
        return result

    # Weight assignment --------------------------------------------------

    def assign_maximum_weight(
        self, complex_: SimplicialComplex, min_dimension: int = 1
    ) -> SimplicialComplex:
        """Give every simplex above ``min_dimension`` the largest weight of its faces.

        Simplices are processed by ascending dimension, so faces are already
        updated when their cofaces are visited. Faces missing from the complex
        are skipped; a simplex without any present face keeps its weight.
        """

        with log_operation(LOGGER, "assign_maximum_weight") as op_log:
            result = SimplicialComplex()
            updated = 0
            for original in complex_.iter_by_dimension():
                simplex = original.copy()
                if simplex.dimension > min_dimension:
                    face_weights = [
                        face.weight
                        for face in (result.find(f) for f in simplex.boundary())
                        if face is not None
                    ]
                    if face_weights:
                        simplex.weight = max(face_weights)
                        updated += 1
                result.add(simplex)
            op_log.add_metadata(simplices=len(result), updated=updated)
        return result

    def assign_data(
        self,
        complex_: SimplicialComplex,
        values: Sequence[float] | np.ndarray,
        initial: float,
        combine: CombineFn,
    ) -> SimplicialComplex:
        """Weight each simplex by folding ``combine`` over its vertex values.

        ``values`` is indexed by the rank of each vertex in the sorted vertex
        set of ``complex_``, which supports non-contiguous vertex labels.
        """

        data = np.asarray(values, dtype=np.float64)
        vertices = complex_.vertices()
        if data.ndim != 1 or data.shape[0] != len(vertices):
            raise DimensionMismatchError(
                f"Expected {len(vertices)} vertex values, got shape {tuple(data.shape)}."
            )
        rank = {vertex: index for index, vertex in enumerate(vertices)}

        with log_operation(LOGGER, "assign_data") as op_log:
            result = SimplicialComplex()
            for simplex in complex_:
                weight = reduce(
                    combine,
                    (float(data[rank[vertex]]) for vertex in simplex),
                    initial,
                )
                result.add(simplex.with_weight(weight))
            op_log.add_metadata(simplices=len(result), vertices=len(vertices))
        return result

    def assign_maximum_data(
        self, complex_: SimplicialComplex, values: Sequence[float] | np.ndarray
    ) -> SimplicialComplex:
        return self.assign_data(complex_, values, -math.inf, max)

    def assign_minimum_data(
        self, complex_: SimplicialComplex, values: Sequence[float] | np.ndarray
    ) -> SimplicialComplex:
        return self.assign_data(complex_, values, math.inf, min)


def _add_cofaces(
    vertices: Tuple[Vertex, ...],
    neighbors: FrozenSet[Vertex],
    lower_map: LowerNeighborMap,
    simplices: List[Simplex],
    dimension: int,
) -> None:
    if len(vertices) - 1 >= dimension:
        return
    for neighbor in sorted(neighbors):
        coface = vertices + (neighbor,)
        simplices.append(Simplex(coface))
        common = neighbors_below(lower_map, neighbor) & neighbors
        if common:
            _add_cofaces(coface, common, lower_map, simplices, dimension)


def expand_rips(complex_: SimplicialComplex, dimension: int) -> SimplicialComplex:
    return RipsExpander().expand(complex_, dimension)


__all__ = ["CombineFn", "RipsExpander", "expand_rips"]
