"""Positional helpers for phrase and near matches.

A phrase match is exact when its terms sit on consecutive positions. The
distance of a match is how many extra positions it spans beyond that; the
slop factor of a span match decays with it.
"""

from __future__ import annotations

from collections.abc import Sequence


def match_distance(positions: Sequence[int]) -> int:
    """Return the distance of one match given the position of each of its terms.

    Examples:
        >>> match_distance([4, 5, 6])
        0
        >>> match_distance([4, 6])
        1
    """
    if len(positions) < 2:
        return 0
    span = max(positions) - min(positions) + 1
    return max(span - len(positions), 0)
