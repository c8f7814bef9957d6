"""Optional maintenance passes for an existing cover tree.

Nothing in here runs as part of :meth:`CoverTree.insert`; callers invoke the
passes explicitly when they want to inspect or restructure a tree.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple

from ripscover.core.tree import CoverTree
from ripscover.diagnostics import log_operation
from ripscover.errors import EmptyTreeError
from ripscover.logging import get_logger

LOGGER = get_logger("core.maintenance")


@dataclass(frozen=True)
class DescentProfile:
    """Distances recorded while following the first-match descent for a point.

    ``path`` lists the visited arena indices, root first. ``distances`` holds
    the distance from the point to every path node whose covering ball
    contains it, and ``root_distances`` the distance from the root to each
    child the descent stepped into.
    """

    path: Tuple[int, ...]
    distances: Tuple[float, ...]
    root_distances: Tuple[float, ...]


def descent_profile(tree: CoverTree, point: Any) -> DescentProfile:
    if tree.is_empty():
        raise EmptyTreeError("Cannot profile a descent in an empty cover tree.")
    metric = tree.metric
    root_point = tree.point_of(tree.root)

    path = [tree.root]
    distances: list[float] = []
    root_distances: list[float] = []
    current = tree.root
    while True:
        distance = float(metric(point, tree.point_of(current)))
        if distance <= tree.covering_distance(tree.level_of(current)):
            distances.append(distance)

        step = None
        for child in tree.children_of(current):
            if float(metric(point, tree.point_of(child))) <= tree.covering_distance(
                tree.level_of(child)
            ):
                step = child
                break
        if step is None:
            break
        root_distances.append(float(metric(root_point, tree.point_of(step))))
        path.append(step)
        current = step

    LOGGER.debug(
        "Descent for %r: edge distances=%s root distances=%s",
        point,
        distances,
        root_distances,
    )
    return DescentProfile(
        path=tuple(path),
        distances=tuple(distances),
        root_distances=tuple(root_distances),
    )


def is_harmonic(tree: CoverTree, point: Any) -> bool:
    """Whether distances to ``point`` never grow along its descent path."""

    distances = descent_profile(tree, point).distances
    return all(upper >= lower for upper, lower in zip(distances, distances[1:]))


def _tightest_level(tree: CoverTree, distance: float) -> int:
    level = tree.level
    while distance <= tree.covering_distance(level):
        level -= 1
    return level + 1


def reroot(tree: CoverTree, point: Any) -> CoverTree:
    """Rebuild the tree around the deepest node on ``point``'s descent path.

    The rebuild only happens when that node supports a root level below the
    current one; otherwise the original tree is returned untouched. The
    original tree is never mutated.
    """

    profile = descent_profile(tree, point)
    if len(profile.distances) < 2:
        return tree
    max_distance = max(profile.distances)
    if max_distance <= 0.0:
        return tree

    level = _tightest_level(tree, max_distance)
    if level >= tree.level:
        return tree

    anchor = profile.path[-1]
    anchor_point = tree.point_of(anchor)
    metric = tree.metric
    others = [tree.point_of(node) for node in tree.nodes() if node != anchor]
    others.sort(key=lambda other: float(metric(anchor_point, other)), reverse=True)

    with log_operation(LOGGER, "cover_tree_reroot") as op_log:
        rebuilt = CoverTree(
            metric,
            covering_constant=tree.covering_constant,
            duplicates=tree.duplicates,
        )
        rebuilt.seed(anchor_point, level)
        for other in others:
            rebuilt.insert(other)
        op_log.add_metadata(
            points=len(rebuilt),
            old_level=tree.level,
            seed_level=level,
            new_level=rebuilt.level,
        )
    LOGGER.debug("Replaced root with %r", anchor_point)
    return rebuilt


__all__ = ["DescentProfile", "descent_profile", "is_harmonic", "reroot"]
