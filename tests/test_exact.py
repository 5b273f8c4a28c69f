"""Tests for the exact stock bar count."""

import pytest

from exact import minimum_stock_bars


def test_no_pieces_needs_no_bars():
    assert minimum_stock_bars([], 12000) == 0


def test_pieces_that_share_a_bar():
    assert minimum_stock_bars([9000, 3000], 12000) == 1


def test_one_piece_per_bar():
    assert minimum_stock_bars([7500, 7500, 7500], 12000) == 3


def test_beats_or_matches_greedy():
    assert minimum_stock_bars([6000, 6000, 4000, 4000, 2000], 12000, upper_bound=3) == 2


def test_piece_longer_than_stock():
    with pytest.raises(ValueError):
        minimum_stock_bars([13000], 12000)
