"""Longest Common Subsequence matching over interned sequence elements.

Uses the standard dynamic-programming LCS algorithm to find the longest
sequence of elements that are identical between a source and a target
sequence.  The result drives the sequence differ's decisions about which
elements to keep, delete, or insert.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


def intern_elements(
    source: Sequence[Any],
    target: Sequence[Any],
) -> tuple[list[int], list[int]]:
    """Map every element of both sequences to a small integer key.

    Two elements get the same key exactly when they compare equal, so the
    LCS table can compare integers instead of running deep ``__eq__`` on
    every cell.  Hashable elements are looked up in a dict; unhashable
    ones (lists, dicts, mutable dataclasses) fall back to a linear scan.

    Returns
    -------
    tuple[list[int], list[int]]
        The keys of *source* and *target*, index-aligned with the inputs.
    """
    hashed: dict[Any, int] = {}
    unhashable: list[tuple[Any, int]] = []

    def key_of(element: Any) -> int:
        try:
            return hashed.setdefault(element, len(hashed) + len(unhashable))
        except TypeError:
            pass
        for seen, key in unhashable:
            if seen == element:
                return key
        key = len(hashed) + len(unhashable)
        unhashable.append((element, key))
        return key

    return [key_of(e) for e in source], [key_of(e) for e in target]


def lcs_match(
    source_keys: Sequence[int],
    target_keys: Sequence[int],
) -> list[tuple[int, int]]:
    """Compute LCS-based matched pairs between source and target keys.

    The table is built over suffixes and walked forwards, so whenever the
    source element and the target element at the cursor are equal they
    are matched, and on a tie between skipping a source element and
    skipping a target element the source element is skipped.  This makes
    the alignment deterministic and places deletions before insertions
    within each gap between matches.

    Parameters
    ----------
    source_keys:
        Interned keys of the source sequence.
    target_keys:
        Interned keys of the target sequence.

    Returns
    -------
    list[tuple[int, int]]
        A list of ``(source_idx, target_idx)`` pairs representing matched
        elements, in order.  Unmatched indices on either side are the
        deleted (source-only) and inserted (target-only) elements.
    """
    m = len(source_keys)
    n = len(target_keys)

    if m == 0 or n == 0:
        return []

    # dp[i][j] stores the length of the LCS of source_keys[i:] and
    # target_keys[j:].
    dp: list[list[int]] = [[0] * (n + 1) for _ in range(m + 1)]

    for i in range(m - 1, -1, -1):
        row = dp[i]
        below = dp[i + 1]
        src = source_keys[i]
        for j in range(n - 1, -1, -1):
            if src == target_keys[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = max(below[j], row[j + 1])

    pairs: list[tuple[int, int]] = []
    i, j = 0, 0
    while i < m and j < n:
        if source_keys[i] == target_keys[j]:
            pairs.append((i, j))
            i += 1
            j += 1
        elif dp[i + 1][j] >= dp[i][j + 1]:
            i += 1
        else:
            j += 1

    return pairs
