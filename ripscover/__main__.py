#!/usr/bin/env python
"""Quick-start guide for ripscover library usage.

Run with: python -m ripscover

This module intentionally avoids importing ripscover internals to provide
a fast, clean startup for displaying help text.
"""

from __future__ import annotations

QUICKSTART = """\
================================================================================
                                  RIPSCOVER
        Cover trees and Vietoris-Rips expansion for persistent homology
================================================================================

INSTALLATION
------------
    pip install -e .

COVER TREE
----------
    from ripscover import CoverTree

    tree = CoverTree(metric=lambda a, b: abs(a - b), covering_constant=2.0)
    for value in (0.0, 10.0, 20.0):
        tree.insert(value)

    tree.is_valid()              # level, covering and separating invariants
    tree.get_nodes_by_level()    # {level: [points]}
    tree.nearest(12.0)           # (10.0, 2.0)

VIETORIS-RIPS EXPANSION
-----------------------
    from ripscover import RipsExpander, SimplicialComplex

    K = SimplicialComplex([[1], [2], [3], [1, 2], [2, 3], [1, 3]])
    expander = RipsExpander()
    full = expander.expand(K, 2)               # adds the triangle [1, 2, 3]
    full = expander.assign_maximum_weight(full)

POINT CLOUDS
------------
    import numpy as np
    from ripscover import build_vietoris_rips_complex

    points = np.random.default_rng(0).normal(size=(200, 3))
    K = build_vietoris_rips_complex(points, epsilon=0.5, dimension=2)

CONFIGURATION
-------------
    RIPSCOVER_LOG_LEVEL             INFO
    RIPSCOVER_ENABLE_DIAGNOSTICS    1
    RIPSCOVER_METRIC                euclidean
    RIPSCOVER_COVERING_CONSTANT     2.0
    RIPSCOVER_DUPLICATE_POLICY      merge | raise

BENCHMARKING CLI
----------------
    python -m cli.rips --points 512 --dimension 3 --epsilon 0.5 --max-dimension 2

================================================================================
"""


def main() -> None:
    """Print quick-start guide."""
    print(QUICKSTART)


if __name__ == "__main__":
    main()
