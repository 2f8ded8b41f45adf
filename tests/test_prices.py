"""Tests for seat price extraction."""

import pytest

from rail12306.mcp.tools.railway.models import DecodeError
from rail12306.mcp.tools.railway.prices import (
    MISSING_REMAINING,
    extract_prices,
    parse_discounts,
    resolve_seat_code,
)

REMAINING = {"swz": "5", "zy": "有", "ze": "无", "wz": "12"}


def test_one_entry_per_segment() -> None:
    """Each complete segment with a distinct seat code yields one entry."""
    prices = extract_prices("9174800021M093000021O055300021", "", REMAINING)

    assert [p.seat_type_code for p in prices] == ["9", "M", "O"]
    assert [p.seat_name for p in prices] == ["商务座", "一等座", "二等座"]
    assert [p.price for p in prices] == [1748.0, 930.0, 553.0]
    assert [p.num for p in prices] == ["5", "有", "无"]


def test_price_is_tenths_of_yuan() -> None:
    """Digits 1-5 are the price in tenths of a yuan."""
    (price,) = extract_prices("O014530021", "", {})
    assert price.price == 145.3


def test_aux_threshold_means_no_seat() -> None:
    """An auxiliary value of 3000 or more marks a no-seat segment."""
    prices = extract_prices("M046200021M046203000", "", REMAINING)

    assert [p.seat_type_code for p in prices] == ["M", "W"]
    no_seat = prices[1]
    assert no_seat.seat_name == "无座"
    assert no_seat.short == "wz"
    assert no_seat.num == "12"
    assert no_seat.price == 46.2


def test_aux_just_below_threshold_keeps_code() -> None:
    """2999 is still a regular seat."""
    assert resolve_seat_code("M046202999") == "M"
    assert resolve_seat_code("M046203000") == "W"


def test_unknown_code_maps_to_other() -> None:
    """Seat codes outside the table become the generic other seat."""
    (price,) = extract_prices("X012300021", "", {})
    assert price.seat_type_code == "H"
    assert price.seat_name == "其他"
    assert price.short == "qt"


def test_missing_remaining_defaults_to_placeholder() -> None:
    """Seats without a remaining count report the placeholder."""
    (price,) = extract_prices("4045000021", "", {"rw": ""})
    assert price.num == MISSING_REMAINING


def test_repeated_code_keeps_every_segment() -> None:
    """Segments sharing a seat code still yield one entry each."""
    prices = extract_prices("O055300021O066600021", "", {})
    assert [p.price for p in prices] == [55.3, 66.6]
    assert [p.seat_type_code for p in prices] == ["O", "O"]


def test_trailing_partial_segment_is_ignored() -> None:
    """An incomplete trailing segment does not produce an entry."""
    prices = extract_prices("O055300021M0930", "", {})
    assert [p.seat_type_code for p in prices] == ["O"]


def test_empty_price_field() -> None:
    """No segments means no prices."""
    assert extract_prices("", "", REMAINING) == []


def test_discount_attached_by_seat_code() -> None:
    """Discounts are matched to the effective seat code."""
    prices = extract_prices("M093000021O055300021", "M0950", {})
    assert prices[0].discount == 950
    assert prices[1].discount is None


def test_parse_discounts_ignores_partial_tail() -> None:
    """Discount segments are five characters long."""
    assert parse_discounts("M0950O0900W1") == {"M": 950, "O": 900}
    assert parse_discounts("") == {}


@pytest.mark.parametrize(
    "yp_info, discount, field",
    [
        ("Oabcde0021", "", "yp_info_new"),
        ("O05530002x", "", "yp_info_new"),
        ("O055300021", "Mab12", "seat_discount_info"),
    ],
)
def test_non_numeric_segments_raise(yp_info: str, discount: str, field: str) -> None:
    """Malformed numbers raise DecodeError naming the field."""
    with pytest.raises(DecodeError) as exc_info:
        extract_prices(yp_info, discount, {})
    assert exc_info.value.field == field
