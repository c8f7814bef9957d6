"""Simplices and simplicial complexes."""

from .complex import SimplicialComplex
from .simplex import Simplex, Vertex

__all__ = ["Simplex", "SimplicialComplex", "Vertex"]
