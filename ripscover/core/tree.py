from __future__ import annotations

import heapq
import math
from collections import deque
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from ripscover import config as rc_config
from ripscover.core.arena import NO_PARENT, NodeArena
from ripscover.core.metrics import DistanceFn, resolve_metric
from ripscover.diagnostics import log_operation
from ripscover.errors import DuplicatePointError, EmptyTreeError
from ripscover.logging import get_logger

LOGGER = get_logger("core.tree")

_DUPLICATE_POLICIES = ("merge", "raise")
# Relative slack applied to subtree bounds so rounding never prunes a true hit.
_BOUND_SLACK = 1e-9


class CoverTree:
    """Cover tree over an arbitrary metric space.

    Every node stores one point and an integer level. After each insertion
    the tree satisfies three invariants for covering constant ``c``:

    * level: a child sits exactly one level below its parent;
    * covering: ``d(parent, child) <= c ** parent.level``;
    * separating: ``d(a, b) > c ** (parent.level - 1)`` for siblings ``a, b``.

    Insertion follows the simplified description by Izbicki and Shelton:
    descent picks the *first* child whose covering ball contains the point,
    so the tree is valid but not necessarily balanced.

    Parameters
    ----------
    metric:
        Registered metric name, any ``(Point, Point) -> float`` callable, or
        ``None`` for the runtime default.
    covering_constant:
        Base of the covering radii; must exceed 1. Defaults to the runtime
        configuration (2.0 unless overridden).
    duplicates:
        ``"merge"`` keeps the existing node when a point at distance zero is
        inserted again; ``"raise"`` rejects it with ``DuplicatePointError``.
    """

    def __init__(
        self,
        metric: str | DistanceFn | None = None,
        *,
        covering_constant: float | None = None,
        duplicates: str | None = None,
    ) -> None:
        runtime = rc_config.runtime_config()
        constant = (
            runtime.covering_constant if covering_constant is None else float(covering_constant)
        )
        if not constant > 1.0:
            raise ValueError(f"Covering constant must be greater than 1, got {constant}.")
        policy = (duplicates or runtime.duplicate_policy).strip().lower()
        if policy not in _DUPLICATE_POLICIES:
            raise ValueError(
                f"Unsupported duplicate policy '{policy}'. Expected one of {_DUPLICATE_POLICIES}."
            )
        self._metric = resolve_metric(metric)
        self._constant = constant
        self._duplicates = policy
        self._arena = NodeArena()
        self._root = NO_PARENT

    @classmethod
    def from_points(
        cls,
        points: Iterable[Any],
        metric: str | DistanceFn | None = None,
        **kwargs: Any,
    ) -> "CoverTree":
        tree = cls(metric, **kwargs)
        tree.insert_many(points)
        return tree

    # Attributes ---------------------------------------------------------

    @property
    def covering_constant(self) -> float:
        return self._constant

    @property
    def metric(self) -> DistanceFn:
        return self._metric

    @property
    def duplicates(self) -> str:
        return self._duplicates

    @property
    def arena(self) -> NodeArena:
        return self._arena

    @property
    def root(self) -> int:
        """Arena index of the root node, ``-1`` when the tree is empty."""

        return self._root

    @property
    def level(self) -> int:
        """Level of the root node (not the depth); 0 for an empty tree."""

        if self.is_empty():
            return 0
        return self._arena.level(self._root)

    def is_empty(self) -> bool:
        return self._root == NO_PARENT

    def __len__(self) -> int:
        return len(self._arena)

    def __contains__(self, point: Any) -> bool:
        if self.is_empty():
            return False
        return self._find_duplicate(point) is not None

    def covering_distance(self, level: int) -> float:
        return self._constant ** level

    def separating_distance(self, level: int) -> float:
        return self._constant ** (level - 1)

    def point_of(self, node: int) -> Any:
        return self._arena.point(node)

    def level_of(self, node: int) -> int:
        return self._arena.level(node)

    def children_of(self, node: int) -> Tuple[int, ...]:
        return tuple(self._arena.children(node))

    def parent_of(self, node: int) -> int:
        return self._arena.parent(node)

    def _node_covering(self, node: int) -> float:
        return self.covering_distance(self._arena.level(node))

    def _subtree_radius(self, node: int) -> float:
        # Geometric bound on the distance from a node to any descendant.
        level = self._arena.level(node)
        return self._constant ** (level + 1) / (self._constant - 1.0)

    def _distance(self, node: int, point: Any) -> float:
        return float(self._metric(self._arena.point(node), point))

    # Insertion ----------------------------------------------------------

    def insert(self, point: Any) -> int:
        """Insert ``point`` and return the arena index of the node holding it."""

        if self.is_empty():
            self._root = self._arena.add(point, 0)
            return self._root

        duplicate = self._find_duplicate(point)
        if duplicate is not None:
            if self._duplicates == "raise":
                raise DuplicatePointError(
                    f"Point {point!r} coincides with existing node {duplicate}."
                )
            LOGGER.debug("Merging duplicate point %r into node %d", point, duplicate)
            return duplicate

        distance = self._distance(self._root, point)
        if distance > self._node_covering(self._root):
            return self._grow(point, distance)
        return self._descend(self._root, point)

    def seed(self, point: Any, level: int) -> int:
        """Place the first point of an empty tree at an explicit level."""

        if not self.is_empty():
            raise ValueError("seed() requires an empty tree.")
        self._root = self._arena.add(point, int(level))
        return self._root

    def insert_many(self, points: Iterable[Any]) -> List[int]:
        """Insert points one after another; no batching is attempted."""

        with log_operation(LOGGER, "cover_tree_insert") as op_log:
            before = len(self)
            nodes = [self.insert(point) for point in points]
            op_log.add_metadata(
                points=len(nodes),
                inserted=len(self) - before,
                merged=len(nodes) - (len(self) - before),
                level=self.level,
            )
        return nodes

    def _descend(self, node: int, point: Any) -> int:
        current = node
        while True:
            for child in self._arena.children(current):
                if self._distance(child, point) <= self._node_covering(child):
                    current = child
                    break
            else:
                return self._arena.add(point, self._arena.level(current) - 1, parent=current)

    def _grow(self, point: Any, distance: float) -> int:
        root = self._root
        while distance > self._constant * self._node_covering(root):
            if self._arena.is_leaf(root):
                self._arena.set_level(root, self._arena.level(root) + 1)
                continue

            leaf = self._find_promotable_leaf(root)
            if leaf is None:
                LOGGER.debug("No leaf can cover the root; rebuilding around %r", point)
                return self._rebuild_around(point)

            self._arena.detach(leaf)
            self._arena.set_level(leaf, self._arena.level(root) + 1)
            self._arena.attach(leaf, root)
            self._root = root = leaf
            distance = self._distance(root, point)
            LOGGER.debug(
                "Promoted leaf %r to root at level %d",
                self._arena.point(root),
                self._arena.level(root),
            )

        node = self._arena.add(point, self._arena.level(root) + 1)
        self._arena.attach(node, root)
        self._root = node
        return node

    def _find_promotable_leaf(self, root: int) -> int | None:
        """Depth-first search for the first leaf within ``c ** (root.level + 1)`` of ``root``."""

        limit = self._constant * self._node_covering(root)
        anchor = self._arena.point(root)
        stack = [root]
        while stack:
            node = stack.pop()
            for child in self._arena.children(node):
                if not self._arena.is_leaf(child):
                    stack.append(child)
                elif self._metric(anchor, self._arena.point(child)) <= limit:
                    return child
        return None

    def _level_covering(self, distance: float) -> int:
        if distance <= 0.0:
            return 0
        level = math.ceil(math.log(distance, self._constant))
        while self.covering_distance(level) < distance:
            level += 1
        while self.covering_distance(level - 1) >= distance:
            level -= 1
        return level

    def _rebuild_around(self, point: Any) -> int:
        # Only reachable for covering constants below 2, where a leaf may lie
        # outside the root's next covering radius.
        existing = list(self._iter_points())
        distances = [float(self._metric(point, other)) for other in existing]
        order = sorted(range(len(existing)), key=lambda i: -distances[i])

        self._arena = NodeArena()
        self._root = self._arena.add(point, self._level_covering(max(distances)))
        for index in order:
            self._descend(self._root, existing[index])
        return self._root

    # Traversal ----------------------------------------------------------

    def _require_root(self) -> int:
        if self.is_empty():
            raise EmptyTreeError("Cannot traverse an empty cover tree.")
        return self._root

    def _bfs(self) -> Iterator[int]:
        queue = deque([self._root])
        while queue:
            node = queue.popleft()
            yield node
            queue.extend(self._arena.children(node))

    def _iter_points(self) -> Iterator[Any]:
        for node in self._bfs():
            yield self._arena.point(node)

    def nodes(self) -> List[int]:
        """Arena indices in breadth-first order."""

        self._require_root()
        return list(self._bfs())

    def points(self) -> List[Any]:
        """All points in breadth-first order; siblings keep insertion order."""

        self._require_root()
        return list(self._iter_points())

    def get_nodes_by_level(self) -> Dict[int, List[Any]]:
        """Map each level to the points stored there, ascending by level."""

        self._require_root()
        by_level: Dict[int, List[Any]] = {}
        for node in self._bfs():
            by_level.setdefault(self._arena.level(node), []).append(self._arena.point(node))
        return {level: by_level[level] for level in sorted(by_level)}

    def nodes_to_level(self) -> Dict[Any, int]:
        self._require_root()
        mapping: Dict[Any, int] = {}
        for node in self._bfs():
            mapping.setdefault(self._arena.point(node), self._arena.level(node))
        return mapping

    def describe(self) -> str:
        """Render one line per tree depth as ``level: p1 p2 ...``."""

        self._require_root()
        lines: List[str] = []
        layer = [self._root]
        while layer:
            level = self._arena.level(layer[0])
            rendered = " ".join(repr(self._arena.point(node)) for node in layer)
            lines.append(f"{level}: {rendered}")
            layer = [child for node in layer for child in self._arena.children(node)]
        return "\n".join(lines)

    # Validation ---------------------------------------------------------

    def check_level_invariant(self) -> bool:
        if self.is_empty():
            return True
        for node in self._bfs():
            for child in self._arena.children(node):
                if self._arena.level(child) != self._arena.level(node) - 1:
                    LOGGER.debug(
                        "Level invariant violated by (%r,%r)",
                        self._arena.point(node),
                        self._arena.point(child),
                    )
                    return False
        return True

    def check_covering_invariant(self) -> bool:
        if self.is_empty():
            return True
        for node in self._bfs():
            radius = self._node_covering(node)
            for child in self._arena.children(node):
                distance = self._distance(node, self._arena.point(child))
                if distance > radius:
                    LOGGER.debug(
                        "Covering invariant violated by (%r,%r): %s > %s",
                        self._arena.point(node),
                        self._arena.point(child),
                        distance,
                        radius,
                    )
                    return False
        return True

    def check_separating_invariant(self) -> bool:
        if self.is_empty():
            return True
        for node in self._bfs():
            separation = self.separating_distance(self._arena.level(node))
            children = self._arena.children(node)
            for i, first in enumerate(children):
                for second in children[i + 1 :]:
                    distance = self._distance(first, self._arena.point(second))
                    if distance <= separation:
                        LOGGER.debug(
                            "Separating invariant violated by (%r,%r): %s <= %s",
                            self._arena.point(first),
                            self._arena.point(second),
                            distance,
                            separation,
                        )
                        return False
        return True

    def is_valid(self) -> bool:
        return (
            self.check_level_invariant()
            and self.check_covering_invariant()
            and self.check_separating_invariant()
        )

    # Queries ------------------------------------------------------------

    def _within_nodes(self, point: Any, radius: float) -> List[Tuple[float, int]]:
        hits: List[Tuple[float, int]] = []
        root_distance = self._distance(self._root, point)
        stack = [(self._root, root_distance)]
        while stack:
            node, distance = stack.pop()
            if distance <= radius:
                hits.append((distance, node))
            for child in self._arena.children(node):
                child_distance = self._distance(child, point)
                bound = self._subtree_radius(child) * (1.0 + _BOUND_SLACK)
                if child_distance - bound <= radius:
                    stack.append((child, child_distance))
        hits.sort()
        return hits

    def _find_duplicate(self, point: Any) -> int | None:
        hits = self._within_nodes(point, 0.0)
        return hits[0][1] if hits else None

    def within(self, point: Any, radius: float) -> List[Tuple[Any, float]]:
        """All stored points at distance ``<= radius``, nearest first."""

        if radius < 0:
            raise ValueError("radius must be non-negative.")
        if self.is_empty():
            raise EmptyTreeError("Cannot query an empty cover tree.")
        return [
            (self._arena.point(node), distance)
            for distance, node in self._within_nodes(point, radius)
        ]

    def knn(self, point: Any, k: int) -> List[Tuple[Any, float]]:
        """The ``k`` nearest stored points as ``(point, distance)`` pairs."""

        if self.is_empty():
            raise EmptyTreeError("Cannot query an empty cover tree.")
        if k <= 0:
            raise ValueError("k must be positive.")
        if k > len(self):
            raise ValueError("k cannot exceed the number of points in the tree.")

        best: List[Tuple[float, int]] = []  # max-heap of (-distance, -node)
        candidates: List[Tuple[float, int, float]] = []  # (lower, node, distance)

        def _push(node: int, distance: float) -> None:
            radius = self._subtree_radius(node) * (1.0 + _BOUND_SLACK)
            lower = max(distance - radius, 0.0)
            if len(best) >= k and lower > -best[0][0]:
                return
            heapq.heappush(candidates, (lower, node, distance))

        _push(self._root, self._distance(self._root, point))
        while candidates:
            lower, node, distance = heapq.heappop(candidates)
            if len(best) >= k and lower > -best[0][0]:
                break

            if len(best) < k:
                heapq.heappush(best, (-distance, -node))
            elif (distance, node) < (-best[0][0], -best[0][1]):
                heapq.heapreplace(best, (-distance, -node))

            for child in self._arena.children(node):
                _push(child, self._distance(child, point))

        ordered = sorted((-dist, -neg_node) for dist, neg_node in best)
        return [(self._arena.point(node), distance) for distance, node in ordered]

    def nearest(self, point: Any) -> Tuple[Any, float]:
        return self.knn(point, 1)[0]


__all__ = ["CoverTree"]
