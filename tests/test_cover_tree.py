from __future__ import annotations

import math

import numpy as np
import pytest
from numpy.random import default_rng

from ripscover import config as rc_config
from ripscover.core import CoverTree, NO_PARENT
from ripscover.errors import DuplicatePointError, EmptyTreeError

from tests.utils.datasets import gaussian_tuples


def _abs(a: float, b: float) -> float:
    return abs(a - b)


def _euclidean(a, b) -> float:
    return math.dist(a, b)


@pytest.fixture(autouse=True)
def _reset_runtime(monkeypatch: pytest.MonkeyPatch):
    for key in (
        "RIPSCOVER_COVERING_CONSTANT",
        "RIPSCOVER_DUPLICATE_POLICY",
        "RIPSCOVER_METRIC",
    ):
        monkeypatch.delenv(key, raising=False)
    rc_config.reset_runtime_config_cache()
    yield
    rc_config.reset_runtime_config_cache()


def test_three_scalars_build_valid_tree() -> None:
    tree = CoverTree(_abs, covering_constant=2.0)
    for value in (0.0, 10.0, 20.0):
        tree.insert(value)

    assert tree.is_valid()
    assert len(tree) == 3
    assert tree.level == 4
    assert tree.points() == [10.0, 0.0, 20.0]
    assert tree.get_nodes_by_level() == {3: [0.0, 20.0], 4: [10.0]}
    assert tree.nodes_to_level() == {10.0: 4, 0.0: 3, 20.0: 3}


def test_first_point_becomes_root_at_level_zero() -> None:
    tree = CoverTree(_abs)
    node = tree.insert(5.0)

    assert tree.root == node
    assert tree.level == 0
    assert tree.parent_of(node) == NO_PARENT
    assert tree.children_of(node) == ()


def test_point_inside_root_ball_is_appended_one_level_down() -> None:
    tree = CoverTree(_abs)
    tree.seed(0.0, 3)
    node = tree.insert(5.0)

    assert tree.parent_of(node) == tree.root
    assert tree.level_of(node) == 2
    assert tree.level == 3


def test_descent_takes_first_matching_child() -> None:
    tree = CoverTree(_abs)
    tree.seed(0.0, 4)
    first = tree.insert(6.0)
    second = tree.insert(-6.0)
    # 1.0 lies within the covering balls of both children; the first one wins.
    inner = tree.insert(1.0)

    assert tree.children_of(tree.root) == (first, second)
    assert tree.parent_of(inner) == first
    assert tree.level_of(inner) == tree.level_of(first) - 1
    assert tree.is_valid()


def test_far_point_wraps_old_root() -> None:
    tree = CoverTree(_abs)
    tree.seed(0.0, 2)
    old_root = tree.root
    node = tree.insert(7.0)

    assert tree.root == node
    assert tree.level == 3
    assert tree.children_of(node) == (old_root,)
    assert tree.is_valid()


def test_growth_promotes_leaf_to_root() -> None:
    tree = CoverTree(_abs)
    tree.seed(0.0, 1)
    leaf = tree.insert(1.5)
    # 9.0 is beyond twice the root covering radius, so the leaf 1.5 moves up.
    node = tree.insert(9.0)

    assert tree.root == node
    assert tree.children_of(node) == (leaf,)
    assert tree.level_of(leaf) == 2
    assert tree.children_of(leaf) == (0,)
    assert tree.level_of(0) == 1
    assert tree.is_valid()


@pytest.mark.parametrize("covering_constant", [1.05, 1.2])
def test_growth_rebuilds_when_no_leaf_is_close_enough(
    monkeypatch: pytest.MonkeyPatch, covering_constant: float
) -> None:
    rebuilds = []
    original = CoverTree._rebuild_around

    def counting_rebuild(self, point):
        rebuilds.append(point)
        return original(self, point)

    monkeypatch.setattr(CoverTree, "_rebuild_around", counting_rebuild)
    tree = CoverTree(_abs, covering_constant=covering_constant)
    tree.seed(0.0, 0)
    tree.insert(1.0)
    # 1.0 is promoted, leaving the leaf 0.0 at distance 1.9 from the root 1.9.
    tree.insert(1.9)
    assert rebuilds == []
    assert tree.level == 2
    arena_before = tree.arena

    node = tree.insert(10.0)

    assert rebuilds == [10.0]
    assert tree.arena is not arena_before
    assert node == tree.root
    assert tree.point_of(node) == 10.0
    assert tree.covering_distance(tree.level) >= 10.0 > tree.covering_distance(tree.level - 1)
    assert tree.is_valid()
    assert sorted(tree.points()) == [0.0, 1.0, 1.9, 10.0]


@pytest.mark.parametrize("covering_constant", [1.01, 1.05, 1.1])
def test_small_constants_survive_far_outliers(covering_constant: float) -> None:
    rng = default_rng(17)
    points = [tuple(float(x) for x in row) for row in 3.0 * rng.normal(size=(60, 2))]
    points[20:20] = [(500.0, 500.0)]
    points.append((-3000.0, 10.0))
    tree = CoverTree(_euclidean, covering_constant=covering_constant)

    for point in points:
        tree.insert(point)
        assert tree.is_valid()

    assert sorted(tree.points()) == sorted(points)


@pytest.mark.parametrize("covering_constant", [1.3, 1.5, 2.0, 3.0])
def test_invariants_hold_after_every_insert(covering_constant: float) -> None:
    rng = default_rng(1234)
    tree = CoverTree(_abs, covering_constant=covering_constant)
    for value in rng.uniform(-100.0, 100.0, size=120):
        tree.insert(float(value))
        assert tree.check_level_invariant()
        assert tree.check_covering_invariant()
        assert tree.check_separating_invariant()


@pytest.mark.parametrize("covering_constant", [1.3, 2.0, 3.0])
def test_invariants_hold_for_planar_points(covering_constant: float) -> None:
    points = gaussian_tuples(default_rng(7), 150, 2)
    tree = CoverTree(_euclidean, covering_constant=covering_constant)
    for point in points:
        tree.insert(point)
        assert tree.is_valid()

    assert sorted(tree.points()) == sorted(points)


def test_points_contains_every_inserted_point_once() -> None:
    values = [float(v) for v in default_rng(3).permutation(200)]
    tree = CoverTree.from_points(values, metric=_abs)

    assert len(tree) == len(values)
    assert sorted(tree.points()) == sorted(values)
    assert all(value in tree for value in values)
    assert 1000.5 not in tree


def test_duplicate_point_is_merged_by_default() -> None:
    tree = CoverTree.from_points([0.0, 4.0, 9.0], metric=_abs)
    before = tree.describe()
    index = tree.nodes()[-1]
    point = tree.point_of(index)

    assert tree.insert(point) == index
    assert len(tree) == 3
    assert tree.describe() == before


def test_duplicate_point_raises_under_raise_policy() -> None:
    tree = CoverTree.from_points([0.0, 4.0, 9.0], metric=_abs, duplicates="raise")

    with pytest.raises(DuplicatePointError):
        tree.insert(4.0)
    assert len(tree) == 3


def test_duplicate_policy_comes_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RIPSCOVER_DUPLICATE_POLICY", "raise")
    rc_config.reset_runtime_config_cache()
    tree = CoverTree(_abs)
    tree.insert(1.0)

    assert tree.duplicates == "raise"
    with pytest.raises(DuplicatePointError):
        tree.insert(1.0)


def test_invalid_constructor_arguments() -> None:
    with pytest.raises(ValueError):
        CoverTree(_abs, covering_constant=1.0)
    with pytest.raises(ValueError):
        CoverTree(_abs, duplicates="keep")
    with pytest.raises(TypeError):
        CoverTree(42)  # type: ignore[arg-type]
    with pytest.raises(KeyError):
        CoverTree("cosine")


def test_seed_requires_empty_tree() -> None:
    tree = CoverTree(_abs)
    tree.insert(0.0)
    with pytest.raises(ValueError):
        tree.seed(1.0, 2)


def test_empty_tree_traversals_raise() -> None:
    tree = CoverTree(_abs)

    assert tree.is_empty()
    assert len(tree) == 0
    assert tree.level == 0
    assert 0.0 not in tree
    for call in (tree.points, tree.nodes, tree.get_nodes_by_level, tree.nodes_to_level, tree.describe):
        with pytest.raises(EmptyTreeError):
            call()
    with pytest.raises(EmptyTreeError):
        tree.nearest(0.0)
    with pytest.raises(EmptyTreeError):
        tree.within(0.0, 1.0)


def test_empty_tree_is_vacuously_valid() -> None:
    tree = CoverTree(_abs)

    assert tree.check_level_invariant()
    assert tree.check_covering_invariant()
    assert tree.check_separating_invariant()
    assert tree.is_valid()


def test_validation_detects_corrupted_tree() -> None:
    tree = CoverTree.from_points([0.0, 10.0, 20.0], metric=_abs)
    child = tree.children_of(tree.root)[0]
    tree.arena.set_level(child, tree.level + 3)

    assert not tree.check_level_invariant()
    assert not tree.is_valid()


def test_covering_violation_is_logged_without_raising() -> None:
    tree = CoverTree(_abs)
    tree.seed(0.0, 0)
    far = tree.arena.add(50.0, -1, parent=tree.root)

    assert tree.check_level_invariant()
    assert not tree.check_covering_invariant()
    assert tree.parent_of(far) == tree.root


def test_describe_renders_one_line_per_depth() -> None:
    tree = CoverTree.from_points([0.0, 10.0, 20.0], metric=_abs)

    assert tree.describe().splitlines() == ["4: 10.0", "3: 0.0 20.0"]


def test_named_metric_with_numpy_vectors() -> None:
    points = [np.array([0.0, 0.0]), np.array([3.0, 4.0]), np.array([6.0, 8.0])]
    tree = CoverTree.from_points(points, metric="euclidean")

    assert tree.is_valid()
    nearest, distance = tree.nearest(np.array([2.9, 4.1]))
    assert np.allclose(nearest, [3.0, 4.0])
    assert distance == pytest.approx(math.hypot(0.1, 0.1))


def test_queries_match_brute_force() -> None:
    rng = default_rng(99)
    points = gaussian_tuples(rng, 200, 3)
    queries = gaussian_tuples(rng, 20, 3)
    tree = CoverTree.from_points(points, metric=_euclidean)

    for query in queries:
        expected = sorted(_euclidean(query, p) for p in points)

        knn = tree.knn(query, 5)
        assert [d for _, d in knn] == pytest.approx(expected[:5])
        assert all(_euclidean(query, p) == pytest.approx(d) for p, d in knn)

        nearest, distance = tree.nearest(query)
        assert distance == pytest.approx(expected[0])

        radius = expected[10]
        hits = tree.within(query, radius)
        assert sorted(d for _, d in hits) == pytest.approx(
            [d for d in expected if d <= radius]
        )


def test_query_argument_validation() -> None:
    tree = CoverTree.from_points([0.0, 1.0, 2.0], metric=_abs)

    with pytest.raises(ValueError):
        tree.knn(0.5, 0)
    with pytest.raises(ValueError):
        tree.knn(0.5, 4)
    with pytest.raises(ValueError):
        tree.within(0.5, -1.0)
    assert [p for p, _ in tree.knn(0.9, 3)] == [1.0, 0.0, 2.0]
    assert tree.within(10.0, 1.0) == []
