"""Tests for part list parsing."""

import pytest

from models import PartRequest
from parsing import PartListError, make_part, parse_bulk, parse_compact, sort_parts


def test_parse_bulk_lines():
    parts = parse_bulk("P1 7500 3\nP2   750 2\n\n  P3 1200\n")

    assert parts == [
        PartRequest(position="P1", length=7500, quantity=3),
        PartRequest(position="P2", length=750, quantity=2),
        PartRequest(position="P3", length=1200, quantity=1),
    ]


def test_parse_bulk_collects_every_error():
    text = "P1 7500 3\nP2\nP3 abc 2\nP4 100 0\nP1 200 1\nP5 -3"

    with pytest.raises(PartListError) as excinfo:
        parse_bulk(text)

    errors = excinfo.value.errors
    assert len(errors) == 5
    assert errors[0].startswith("Line 2")
    assert "invalid length" in errors[1]
    assert "invalid quantity" in errors[2]
    assert "repeated" in errors[3]
    assert "invalid length" in errors[4]


def test_parse_bulk_rejects_existing_positions():
    existing = [PartRequest(position="P1", length=1000, quantity=1)]

    with pytest.raises(PartListError, match="already exists"):
        parse_bulk("P1 2000 1", existing=existing)


def test_parse_bulk_empty_text():
    with pytest.raises(PartListError):
        parse_bulk("  \n ")


def test_part_list_error_is_a_value_error():
    with pytest.raises(ValueError):
        parse_bulk("P1 x")


def test_parse_compact_generates_positions():
    parts = parse_compact("7500x3, 750X2,")

    assert parts == [
        PartRequest(position="P1", length=7500, quantity=3),
        PartRequest(position="P2", length=750, quantity=2),
    ]


def test_parse_compact_rejects_bad_entries():
    with pytest.raises(PartListError) as excinfo:
        parse_compact("7500x3, 750, 0x2")

    assert len(excinfo.value.errors) == 2


def test_make_part_defaults_quantity():
    assert make_part(" A1 ", "1500", "") == PartRequest(position="A1", length=1500, quantity=1)


@pytest.mark.parametrize(
    "position, length, quantity",
    [("", 1000, 1), ("A", 0, 1), ("A", "x", 1), ("A", 1000, 0), ("A", 1000, "-2")],
)
def test_make_part_rejects_invalid(position, length, quantity):
    with pytest.raises(PartListError):
        make_part(position, length, quantity)


def test_make_part_rejects_duplicate():
    existing = [PartRequest(position="A", length=1000, quantity=1)]

    with pytest.raises(PartListError, match="already exists"):
        make_part("A", 2000, 1, existing=existing)


def test_sort_parts_by_position_number():
    parts = [
        PartRequest(position=name, length=1000, quantity=1)
        for name in ["P10", "P2", "B", "P1", "A"]
    ]

    assert [p.position for p in sort_parts(parts)] == ["P1", "P2", "P10", "A", "B"]
