from __future__ import annotations

from itertools import combinations
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from ripscover.algo.rips import RipsExpander
from ripscover.core.metrics import DistanceFn, Metric, resolve_metric
from ripscover.core.tree import CoverTree
from ripscover.diagnostics import log_operation
from ripscover.logging import get_logger
from ripscover.topology.complex import SimplicialComplex
from ripscover.topology.simplex import Simplex

LOGGER = get_logger("algo.skeleton")

_NEIGHBOR_STRATEGIES = ("cover_tree", "brute_force")

WeightedEdge = Tuple[int, int, float]


def _edges_brute_force(points: Any, metric: DistanceFn, epsilon: float) -> List[WeightedEdge]:
    count = len(points)
    if isinstance(metric, Metric):
        distances = np.asarray(metric.pairwise(points, points), dtype=np.float64)
    else:
        distances = np.zeros((count, count), dtype=np.float64)
        for i, j in combinations(range(count), 2):
            distances[i, j] = distances[j, i] = float(metric(points[i], points[j]))
    rows, cols = np.nonzero(np.triu(distances <= epsilon, k=1))
    return [(int(i), int(j), float(distances[i, j])) for i, j in zip(rows, cols)]


def _edges_cover_tree(
    points: Any,
    metric: DistanceFn,
    epsilon: float,
    covering_constant: float | None,
) -> List[WeightedEdge]:
    tree = CoverTree(
        lambda lhs, rhs: metric(points[lhs], points[rhs]),
        covering_constant=covering_constant,
        duplicates="merge",
    )
    # Coincident points collapse onto one node; remember every index per node.
    members: Dict[int, List[int]] = {}
    for index in range(len(points)):
        node = tree.insert(index)
        members.setdefault(tree.point_of(node), []).append(index)

    edges: List[WeightedEdge] = []
    for canonical, group in members.items():
        edges.extend((a, b, 0.0) for a, b in combinations(group, 2))
        for other, distance in tree.within(canonical, epsilon):
            if other <= canonical:
                continue
            for a in group:
                for b in members[other]:
                    edges.append((min(a, b), max(a, b), float(distance)))
    return edges


def build_rips_skeleton(
    points: Sequence[Any] | np.ndarray,
    epsilon: float,
    *,
    metric: str | DistanceFn | None = None,
    neighbors: str = "cover_tree",
    covering_constant: float | None = None,
) -> SimplicialComplex:
    """Proximity graph of ``points``: vertices ``0..n-1`` and edges with ``d <= epsilon``.

    Vertices carry weight 0 and every edge carries its length, so the
    result can be handed straight to :class:`RipsExpander`.
    """

    if epsilon < 0:
        raise ValueError("epsilon must be non-negative.")
    if neighbors not in _NEIGHBOR_STRATEGIES:
        raise ValueError(
            f"Unsupported neighbour strategy '{neighbors}'. Expected one of {_NEIGHBOR_STRATEGIES}."
        )
    distance = resolve_metric(metric)

    with log_operation(LOGGER, "rips_skeleton") as op_log:
        count = len(points)
        if count == 0:
            edges: List[WeightedEdge] = []
        elif neighbors == "cover_tree":
            edges = _edges_cover_tree(points, distance, epsilon, covering_constant)
        else:
            edges = _edges_brute_force(points, distance, epsilon)
        edges.sort()

        skeleton = SimplicialComplex(Simplex((index,), 0.0) for index in range(count))
        skeleton.extend(Simplex((i, j), weight) for i, j, weight in edges)
        op_log.add_metadata(
            points=count,
            edges=len(edges),
            epsilon=float(epsilon),
            neighbors=neighbors,
        )
    return skeleton


def build_vietoris_rips_complex(
    points: Sequence[Any] | np.ndarray,
    epsilon: float,
    dimension: int,
    *,
    metric: str | DistanceFn | None = None,
    neighbors: str = "cover_tree",
    covering_constant: float | None = None,
) -> SimplicialComplex:
    """Weighted Vietoris--Rips complex of ``points`` up to ``dimension``.

    Simplices of dimension two and above take the largest weight among
    their faces, which yields a valid filtration.
    """

    skeleton = build_rips_skeleton(
        points,
        epsilon,
        metric=metric,
        neighbors=neighbors,
        covering_constant=covering_constant,
    )
    expander = RipsExpander()
    return expander.assign_maximum_weight(expander.expand(skeleton, dimension))


__all__ = ["build_rips_skeleton", "build_vietoris_rips_complex"]
