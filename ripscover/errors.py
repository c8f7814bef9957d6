"""Error kinds raised by the cover tree and the Rips expander."""

from __future__ import annotations


class RipscoverError(Exception):
    """Base class for all ripscover errors."""


class EmptyTreeError(RipscoverError, ValueError):
    """A traversal or query was issued against a tree without a root."""


class DuplicatePointError(RipscoverError, ValueError):
    """A point at distance zero from an existing node was inserted."""


class InconsistentSkeletonError(RipscoverError, ValueError):
    """An edge references a vertex missing from the 0-skeleton."""


class DimensionMismatchError(RipscoverError, ValueError):
    """Per-vertex data does not line up with the vertices of a complex."""


__all__ = [
    "DimensionMismatchError",
    "DuplicatePointError",
    "EmptyTreeError",
    "InconsistentSkeletonError",
    "RipscoverError",
]
