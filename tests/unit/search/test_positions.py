"""Unit tests for positional match helpers.

Exact phrases sit on consecutive positions; every extra position a match
spans adds one to its distance.
"""

import pytest

from payload_search.search.phrase import match_distance


@pytest.mark.unit
class TestMatchDistance:
    def test_consecutive_positions(self):
        assert match_distance([4, 5, 6]) == 0

    def test_gap(self):
        assert match_distance([4, 6]) == 1

    def test_order_does_not_matter(self):
        assert match_distance([9, 3]) == 5

    def test_single_position(self):
        assert match_distance([7]) == 0

    def test_empty_match(self):
        assert match_distance([]) == 0
