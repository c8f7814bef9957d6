from __future__ import annotations

import numpy as np

from ripscover.__main__ import QUICKSTART, main
from ripscover.core import NO_PARENT, NodeArena


def test_arena_tracks_levels_parents_and_children() -> None:
    arena = NodeArena()
    root = arena.add("a", 3)
    first = arena.add("b", 2, parent=root)
    second = arena.add("c", 2, parent=root)

    assert len(arena) == 3
    assert arena.children(root) == [first, second]
    assert arena.parent(first) == root
    assert arena.parent(root) == NO_PARENT
    assert arena.is_leaf(first)
    assert not arena.is_leaf(root)
    np.testing.assert_array_equal(arena.levels, [3, 2, 2])
    np.testing.assert_array_equal(arena.parents, [NO_PARENT, root, root])


def test_arena_reparenting_keeps_sibling_order() -> None:
    arena = NodeArena()
    root = arena.add(0, 1)
    leaf = arena.add(1, 0, parent=root)
    other = arena.add(2, 0, parent=root)

    arena.detach(leaf)
    arena.set_level(leaf, 2)
    arena.attach(leaf, root)

    assert arena.children(root) == [other]
    assert arena.children(leaf) == [root]
    assert arena.parent(root) == leaf
    assert arena.parent(leaf) == NO_PARENT
    assert arena.level(leaf) == 2
    arena.detach(leaf)
    assert arena.parent(leaf) == NO_PARENT


def test_arena_buffers_grow_geometrically() -> None:
    arena = NodeArena()
    for index in range(40):
        arena.add(index, -index)

    assert arena.level(39) == -39
    assert arena.total_bytes >= 2 * 40 * np.dtype(np.int64).itemsize


def test_quickstart_mentions_entry_points(capsys) -> None:
    main()

    out = capsys.readouterr().out
    assert out.strip() == QUICKSTART.strip()
    assert "python -m cli.rips" in out
