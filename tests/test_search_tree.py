"""Tests for the entry search tree."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from tiergrid.annotation.search_tree import (
    build_tree, find_interval_at_time, find_point_at_time
)

POINTS = [(0, 'a'), (2, 'b'), (4, 'c'), (12, 'd'), (25, 'e'), (41, 'f'), (54, 'g')]
INTERVALS = [(0.0, 1.0, 'a'), (1.5, 2.0, 'b'), (3.0, 4.0, 'c')]


def test_empty_tree():
    """No entries, no tree, no matches."""
    assert build_tree([]) is None
    assert find_point_at_time(None, 1.0, find_closest=True) is None
    assert find_interval_at_time(None, 1.0) is None


def test_tree_is_balanced_on_median():
    """The median entry is the root."""
    tree = build_tree(POINTS)
    assert tree.entry == (12, 'd')
    assert tree.left.entry == (2, 'b')
    assert tree.right.entry == (41, 'f')


def test_tree_ignores_input_order():
    """The same tree is built from shuffled input."""
    shuffled = [POINTS[i] for i in (4, 0, 6, 2, 1, 5, 3)]
    assert build_tree(shuffled) == build_tree(POINTS)
    # Input is left alone
    assert shuffled[0] == (25, 'e')


def test_find_point_exact():
    """Exact times are found; others are not unless asked."""
    tree = build_tree(POINTS)
    assert find_point_at_time(tree, 25) == (25, 'e')
    assert find_point_at_time(tree, 0) == (0, 'a')
    assert find_point_at_time(tree, 3) is None


def test_find_point_closest_prefers_earlier_on_tie():
    """3 is as close to 2 as to 4; the earlier point wins."""
    tree = build_tree(POINTS)
    assert find_point_at_time(tree, 3, find_closest=True) == (2, 'b')
    assert find_point_at_time(tree, 50, find_closest=True) == (54, 'g')


def test_find_interval():
    """Interval edges count as inside."""
    tree = build_tree(INTERVALS)
    assert find_interval_at_time(tree, 1.7) == (1.5, 2.0, 'b')
    assert find_interval_at_time(tree, 1.0) == (0.0, 1.0, 'a')
    assert find_interval_at_time(tree, 3.0) == (3.0, 4.0, 'c')
    assert find_interval_at_time(tree, 1.2) is None
    assert find_interval_at_time(tree, 5.0) is None
