from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

import numpy as np

NO_PARENT = -1


@dataclass
class _ArenaBuffer:
    data: np.ndarray

    def reserve(self, size: int) -> None:
        if self.data.size >= size:
            return
        capacity = max(size, 2 * self.data.size, 16)
        grown = np.empty(capacity, dtype=self.data.dtype)
        grown[: self.data.size] = self.data
        self.data = grown

    @property
    def capacity_bytes(self) -> int:
        return int(self.data.nbytes)


def _int_buffer() -> _ArenaBuffer:
    return _ArenaBuffer(np.empty(0, dtype=np.int64))


@dataclass
class NodeArena:
    """Index-addressed node storage for the cover tree.

    Node ``i`` holds ``points[i]`` at ``levels[i]``; ``parents[i]`` is the
    index of its parent or ``NO_PARENT``. Children are kept per node in
    insertion order.
    """

    points: List[Any] = field(default_factory=list)
    _levels: _ArenaBuffer = field(default_factory=_int_buffer)
    _parents: _ArenaBuffer = field(default_factory=_int_buffer)
    _children: List[List[int]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    def add(self, point: Any, level: int, parent: int = NO_PARENT) -> int:
        index = len(self.points)
        self._levels.reserve(index + 1)
        self._parents.reserve(index + 1)
        self.points.append(point)
        self._levels.data[index] = level
        self._parents.data[index] = NO_PARENT
        self._children.append([])
        if parent != NO_PARENT:
            self.attach(parent, index)
        return index

    def point(self, index: int) -> Any:
        return self.points[index]

    def level(self, index: int) -> int:
        return int(self._levels.data[index])

    def set_level(self, index: int, level: int) -> None:
        self._levels.data[index] = level

    def parent(self, index: int) -> int:
        return int(self._parents.data[index])

    def children(self, index: int) -> List[int]:
        return self._children[index]

    def is_leaf(self, index: int) -> bool:
        return not self._children[index]

    def attach(self, parent: int, child: int) -> None:
        self._children[parent].append(child)
        self._parents.data[child] = parent

    def detach(self, child: int) -> None:
        parent = self.parent(child)
        if parent == NO_PARENT:
            return
        self._children[parent].remove(child)
        self._parents.data[child] = NO_PARENT

    @property
    def levels(self) -> np.ndarray:
        return self._levels.data[: len(self.points)]

    @property
    def parents(self) -> np.ndarray:
        return self._parents.data[: len(self.points)]

    @property
    def total_bytes(self) -> int:
        return self._levels.capacity_bytes + self._parents.capacity_bytes


__all__ = ["NO_PARENT", "NodeArena"]
