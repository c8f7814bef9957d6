from __future__ import annotations

import math

import numpy as np
import pytest
from numpy.random import default_rng

from ripscover.algo import build_rips_skeleton, build_vietoris_rips_complex

from tests.utils.datasets import gaussian_points


def _edge_map(complex_):
    return {simplex.vertices: simplex.weight for simplex in complex_.range(1)}


@pytest.mark.parametrize("metric", ["euclidean", "manhattan", "chebyshev"])
def test_cover_tree_and_brute_force_agree(metric: str) -> None:
    points = gaussian_points(default_rng(11), 80, 3)

    tree_edges = _edge_map(build_rips_skeleton(points, 0.9, metric=metric))
    dense_edges = _edge_map(
        build_rips_skeleton(points, 0.9, metric=metric, neighbors="brute_force")
    )

    assert tree_edges.keys() == dense_edges.keys()
    for key, weight in tree_edges.items():
        assert weight == pytest.approx(dense_edges[key])


def test_skeleton_vertices_and_edge_weights() -> None:
    points = [(0.0, 0.0), (1.0, 0.0), (0.0, 2.0)]

    skeleton = build_rips_skeleton(points, 1.5, metric="euclidean")

    assert [s.vertices for s in skeleton.range(0)] == [(0,), (1,), (2,)]
    assert all(s.weight == 0.0 for s in skeleton.range(0))
    assert _edge_map(skeleton) == {(0, 1): pytest.approx(1.0)}


def test_coincident_points_share_zero_length_edges() -> None:
    base = gaussian_points(default_rng(2), 20, 2)
    points = np.vstack([base, base[:3]])

    tree_edges = _edge_map(build_rips_skeleton(points, 0.5))
    dense_edges = _edge_map(build_rips_skeleton(points, 0.5, neighbors="brute_force"))

    assert tree_edges.keys() == dense_edges.keys()
    for index in range(3):
        assert tree_edges[(index, 20 + index)] == 0.0


def test_skeleton_with_callable_metric() -> None:
    values = [0.0, 0.4, 1.0, 3.0]

    skeleton = build_rips_skeleton(values, 0.65, metric=lambda a, b: abs(a - b))

    assert set(_edge_map(skeleton)) == {(0, 1), (1, 2)}


def test_skeleton_argument_validation() -> None:
    with pytest.raises(ValueError):
        build_rips_skeleton([(0.0,)], -0.1)
    with pytest.raises(ValueError):
        build_rips_skeleton([(0.0,)], 1.0, neighbors="kd_tree")
    assert len(build_rips_skeleton(np.zeros((0, 2)), 1.0)) == 0


def test_vietoris_rips_complex_of_square() -> None:
    square = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]

    short = build_vietoris_rips_complex(square, 1.0, 2)
    assert short.counts() == {0: 4, 1: 4}

    full = build_vietoris_rips_complex(square, 1.5, 3)
    assert full.counts() == {0: 4, 1: 6, 2: 4, 3: 1}
    assert full.is_monotone()
    assert full.find([0, 1, 2, 3]).weight == pytest.approx(math.sqrt(2.0))
