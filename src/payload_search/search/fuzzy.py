"""Edit distance used to expand fuzzy query terms against a vocabulary.

Insertions, deletions and substitutions cost one edit each. Swapping two
adjacent characters also costs one edit unless ``transpositions`` is off
(optimal string alignment), so ``form~1`` reaches ``from``.
"""

from __future__ import annotations

from collections.abc import Iterable


def edit_distance(source: str, target: str, max_distance: int | None = None, *, transpositions: bool = True) -> int:
    """Number of edits turning ``source`` into ``target``.

    With ``max_distance`` set the computation stops as soon as every cell of
    a row exceeds it and ``max_distance + 1`` is returned instead.

    >>> edit_distance("kitten", "sitting")
    3
    >>> edit_distance("form", "from", transpositions=False)
    2
    """
    if not source or not target:
        return len(source) + len(target)

    cap = max_distance + 1 if max_distance is not None else None
    if cap is not None and abs(len(source) - len(target)) >= cap:
        return cap

    two_back: list[int] = []
    above = list(range(len(target) + 1))
    for i, char in enumerate(source, start=1):
        row = [i]
        for j, other in enumerate(target, start=1):
            cell = min(above[j] + 1, row[j - 1] + 1, above[j - 1] + (char != other))
            if transpositions and i > 1 and j > 1 and char == target[j - 2] and source[i - 2] == other:
                cell = min(cell, two_back[j - 2] + 1)
            row.append(cell)
        if cap is not None and min(row) >= cap:
            return cap
        two_back, above = above, row

    return above[-1]


def find_fuzzy_matches(
    query_term: str,
    vocabulary: Iterable[str],
    max_distance: int,
    *,
    transpositions: bool = True,
) -> list[tuple[str, int]]:
    """``(term, distance)`` for each vocabulary term within ``max_distance`` edits.

    Closest terms come first, ties in alphabetical order.
    """
    if not query_term:
        return []

    matches = []
    for term in vocabulary:
        distance = edit_distance(query_term, term, max_distance, transpositions=transpositions)
        if distance <= max_distance:
            matches.append((term, distance))
    return sorted(matches, key=lambda match: (match[1], match[0]))
