"""
Balanced binary search tree over a tier's entries.

The tree is a throwaway index: it is built from a snapshot of an entry
list for one batch of lookups and is never stored on a tier.

Usage:
    from tiergrid.annotation.search_tree import build_tree, find_interval_at_time

    tree = build_tree(tier.entries)
    entry = find_interval_at_time(tree, 1.25)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .utils import entry_time


@dataclass(frozen=True)
class TreeNode:
    """One node of the search tree.

    Entries in the left branch start before this node's entry and
    entries in the right branch start after it.
    """
    entry: tuple
    left: Optional['TreeNode'] = None
    right: Optional['TreeNode'] = None


def build_tree(entries: Sequence) -> TreeNode | None:
    """Build a balanced tree from an entry list.

    The input is not modified; a sorted copy is used, so the same tree
    is produced regardless of the input order. Returns None for an
    empty list.
    """
    return _build_subtree(sorted(entries, key=entry_time))


def _build_subtree(entries: list) -> TreeNode | None:
    if not entries:
        return None

    half = len(entries) // 2
    return TreeNode(
        entry=entries[half],
        left=_build_subtree(entries[:half]),
        right=_build_subtree(entries[half + 1:]),
    )


def find_interval_at_time(tree: TreeNode | None, time: float):
    """Return the (start, end, label) interval containing ``time``, or None.

    Both interval edges count as inside.
    """
    node = tree
    while node is not None:
        start, end = node.entry[0], node.entry[1]
        if start <= time <= end:
            return node.entry
        if start > time:
            node = node.left
        else:
            node = node.right
    return None


def find_point_at_time(tree: TreeNode | None, time: float, find_closest: bool = False):
    """Return the (time, label) point at exactly ``time``.

    Args:
        tree: Root node from build_tree()
        time: The time to look up
        find_closest: If True and there is no exact match, return the
            closest point visited during the descent instead of None.
            When two points are equally close, the earlier one wins.

    Returns:
        The matched point or None
    """
    if tree is None:
        return None

    node = tree
    closest = tree
    while node is not None:
        new_diff = abs(node.entry[0] - time)
        old_diff = abs(closest.entry[0] - time)
        if new_diff < old_diff or (new_diff == old_diff and node.entry[0] < closest.entry[0]):
            closest = node

        if node.entry[0] == time:
            return node.entry
        if node.entry[0] > time:
            node = node.left
        else:
            node = node.right

    if find_closest:
        return closest.entry
    return None
