from __future__ import annotations

from typing import Any, Hashable, Iterable, Iterator, Tuple

Vertex = Hashable


class Simplex:
    """Sorted tuple of unique vertices plus a mutable filtration weight.

    Equality and hashing only look at the vertex set, so a simplex can be
    located in a complex regardless of its weight.
    """

    __slots__ = ("_vertices", "weight")

    def __init__(self, vertices: Iterable[Vertex] | Vertex, weight: float = 0.0) -> None:
        if isinstance(vertices, (str, bytes)) or not isinstance(vertices, Iterable):
            vertices = (vertices,)
        ordered = tuple(sorted(set(vertices)))
        if not ordered:
            raise ValueError("A simplex needs at least one vertex.")
        self._vertices: Tuple[Vertex, ...] = ordered
        self.weight = float(weight)

    @property
    def vertices(self) -> Tuple[Vertex, ...]:
        return self._vertices

    @property
    def dimension(self) -> int:
        return len(self._vertices) - 1

    def boundary(self) -> Iterator["Simplex"]:
        """Codimension-1 faces, each with the default weight."""

        if len(self._vertices) == 1:
            return
        for skip in range(len(self._vertices)):
            yield Simplex(self._vertices[:skip] + self._vertices[skip + 1 :])

    def with_weight(self, weight: float) -> "Simplex":
        return Simplex(self._vertices, weight)

    def copy(self) -> "Simplex":
        return Simplex(self._vertices, self.weight)

    def __iter__(self) -> Iterator[Vertex]:
        return iter(self._vertices)

    def __len__(self) -> int:
        return len(self._vertices)

    def __contains__(self, vertex: Any) -> bool:
        return vertex in self._vertices

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Simplex):
            return NotImplemented
        return self._vertices == other._vertices

    def __hash__(self) -> int:
        return hash(self._vertices)

    def __repr__(self) -> str:
        return f"Simplex({list(self._vertices)!r}, weight={self.weight!r})"


__all__ = ["Simplex", "Vertex"]
