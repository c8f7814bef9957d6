from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Tuple

from ripscover.topology.simplex import Simplex, Vertex


def _as_key(vertices: Simplex | Iterable[Vertex] | Vertex) -> Tuple[Vertex, ...]:
    if isinstance(vertices, Simplex):
        return vertices.vertices
    if isinstance(vertices, (str, bytes)) or not isinstance(vertices, Iterable):
        return (vertices,)
    return tuple(sorted(set(vertices)))


class SimplicialComplex:
    """Ordered simplex container with lookup by vertex set and by dimension.

    Iteration follows insertion order, which is the filtration order handed
    to downstream persistence code. ``iter_by_dimension`` yields the same
    simplices grouped by ascending dimension, keeping insertion order inside
    each group. Adding a simplex whose vertex set is already present is a
    no-op.
    """

    def __init__(self, simplices: Iterable[Simplex | Iterable[Vertex]] = ()) -> None:
        self._simplices: List[Simplex] = []
        self._index: Dict[Tuple[Vertex, ...], int] = {}
        self._by_dimension: Dict[int, List[int]] = {}
        self.extend(simplices)

    # Mutation -----------------------------------------------------------

    def add(self, simplex: Simplex | Iterable[Vertex], weight: float | None = None) -> bool:
        """Append ``simplex``; returns ``False`` when its vertex set is already present."""

        if not isinstance(simplex, Simplex):
            simplex = Simplex(simplex)
        if weight is not None:
            simplex.weight = float(weight)
        key = simplex.vertices
        if key in self._index:
            return False
        position = len(self._simplices)
        self._simplices.append(simplex)
        self._index[key] = position
        self._by_dimension.setdefault(simplex.dimension, []).append(position)
        return True

    def extend(self, simplices: Iterable[Simplex | Iterable[Vertex]]) -> int:
        return sum(1 for simplex in simplices if self.add(simplex))

    # Lookup -------------------------------------------------------------

    def find(self, vertices: Simplex | Iterable[Vertex] | Vertex) -> Simplex | None:
        position = self._index.get(_as_key(vertices))
        if position is None:
            return None
        return self._simplices[position]

    def __contains__(self, vertices: Any) -> bool:
        return _as_key(vertices) in self._index

    def __len__(self) -> int:
        return len(self._simplices)

    def __iter__(self) -> Iterator[Simplex]:
        return iter(self._simplices)

    def __getitem__(self, position: int) -> Simplex:
        return self._simplices[position]

    def __repr__(self) -> str:
        return f"SimplicialComplex(simplices={len(self)}, dimension={self.dimension})"

    @property
    def dimension(self) -> int:
        """Largest simplex dimension, ``-1`` for an empty complex."""

        if not self._by_dimension:
            return -1
        return max(self._by_dimension)

    def range(self, dimension: int) -> List[Simplex]:
        """All simplices of exactly ``dimension``, in insertion order."""

        return [self._simplices[i] for i in self._by_dimension.get(dimension, ())]

    def iter_by_dimension(
        self, min_dimension: int = 0, max_dimension: int | None = None
    ) -> Iterator[Simplex]:
        for dimension in sorted(self._by_dimension):
            if dimension < min_dimension:
                continue
            if max_dimension is not None and dimension > max_dimension:
                break
            for position in self._by_dimension[dimension]:
                yield self._simplices[position]

    def counts(self) -> Dict[int, int]:
        return {dim: len(self._by_dimension[dim]) for dim in sorted(self._by_dimension)}

    def vertices(self) -> List[Vertex]:
        """Sorted vertex identifiers occurring in any simplex."""

        found = set()
        for simplex in self._simplices:
            found.update(simplex.vertices)
        return sorted(found)

    # Derived complexes --------------------------------------------------

    def copy(self) -> "SimplicialComplex":
        return SimplicialComplex(simplex.copy() for simplex in self._simplices)

    def skeleton(self, dimension: int) -> "SimplicialComplex":
        """Copy of all simplices of dimension ``<= dimension``, order preserved."""

        return SimplicialComplex(
            simplex.copy() for simplex in self._simplices if simplex.dimension <= dimension
        )

    def sort_filtration(self) -> "SimplicialComplex":
        """Copy ordered by weight, then dimension, then vertices."""

        ordered = sorted(
            self._simplices,
            key=lambda simplex: (simplex.weight, simplex.dimension, simplex.vertices),
        )
        return SimplicialComplex(simplex.copy() for simplex in ordered)

    def missing_faces(self) -> List[Simplex]:
        missing: Dict[Tuple[Vertex, ...], Simplex] = {}
        for simplex in self._simplices:
            for face in simplex.boundary():
                if face.vertices not in self._index:
                    missing.setdefault(face.vertices, face)
        return list(missing.values())

    def is_closed(self) -> bool:
        """Whether every face of every simplex is part of the complex."""

        return not self.missing_faces()

    def is_monotone(self) -> bool:
        """Whether no present face outweighs any of its cofaces."""

        for simplex in self._simplices:
            for face in simplex.boundary():
                stored = self.find(face)
                if stored is not None and stored.weight > simplex.weight:
                    return False
        return True


__all__ = ["SimplicialComplex"]
