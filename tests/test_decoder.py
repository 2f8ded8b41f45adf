"""Tests for raw row decoding."""

import pytest

from rail12306.mcp.tools.railway.decoder import (
    STATION_DATA_KEYS,
    TICKET_DATA_KEYS,
    decode_row,
    decode_rows,
    parse_clock,
    parse_route_stations,
    remaining_counts,
)
from rail12306.mcp.tools.railway.models import DecodeError


def test_ticket_schema_positions() -> None:
    """Fields the pipeline relies on sit at their upstream positions."""
    assert len(TICKET_DATA_KEYS) == 57
    assert TICKET_DATA_KEYS.index("train_no") == 2
    assert TICKET_DATA_KEYS.index("gg_num") == 20
    assert TICKET_DATA_KEYS.index("srrb_num") == 33
    assert TICKET_DATA_KEYS.index("yp_info_new") == 39
    assert TICKET_DATA_KEYS.index("dw_flag") == 46
    assert TICKET_DATA_KEYS.index("seat_discount_info") == 54
    assert len(set(TICKET_DATA_KEYS)) == len(TICKET_DATA_KEYS)


def test_decode_row_maps_positions(ticket_row) -> None:
    """Values are bound to field names by position."""
    fields = decode_row(ticket_row(), TICKET_DATA_KEYS)
    assert fields["station_train_code"] == "G101"
    assert fields["lishi"] == "05:38"
    assert fields["dw_flag"] == "5#1#0#0#z#0#z#z"


def test_decode_row_short_row_drops_missing_fields() -> None:
    """Missing trailing fields are absent rather than empty."""
    fields = decode_row("a|b", ("x", "y", "z"))
    assert fields == {"x": "a", "y": "b"}


def test_decode_rows_splits_groups() -> None:
    """Concatenated station groups are split every ten fields."""
    raw = "|".join(str(i) for i in range(25))
    groups = decode_rows(raw, STATION_DATA_KEYS)
    assert len(groups) == 2
    assert groups[1]["station_id"] == "10"
    assert groups[1]["r2"] == "19"


def test_remaining_counts() -> None:
    """Remaining ticket fields are keyed by seat short name."""
    fields = {"ze_num": "有", "zy_num": "3", "lishi": "01:00"}
    assert remaining_counts(fields) == {"ze": "有", "zy": "3"}


@pytest.mark.parametrize(
    "text, max_hour, expected",
    [("06:20", 23, (6, 20)), ("00:00", 23, (0, 0)), ("30:15", None, (30, 15))],
)
def test_parse_clock(text: str, max_hour, expected) -> None:
    """HH:MM strings parse to hour and minute."""
    assert parse_clock(text, "start_time", max_hour) == expected


@pytest.mark.parametrize("text", ["", "0620", "24:00", "06:60", "aa:bb", None])
def test_parse_clock_rejects_malformed(text) -> None:
    """Malformed clock values raise DecodeError naming the field."""
    with pytest.raises(DecodeError) as exc_info:
        parse_clock(text, "start_time")
    assert exc_info.value.field == "start_time"


def test_route_stations_use_start_time_for_origin() -> None:
    """The origin has no arrival time, its departure time is used."""
    stops = [
        {
            "station_no": "01",
            "station_name": "北京南",
            "start_time": "06:20",
            "arrive_time": "----",
            "stopover_time": "----",
        },
        {
            "station_no": "02",
            "station_name": "南京南",
            "start_time": "10:07",
            "arrive_time": "10:05",
            "stopover_time": "2分钟",
        },
    ]
    stations = parse_route_stations(stops)
    assert stations[0].arrive_time == "06:20"
    assert stations[1].arrive_time == "10:05"
    assert [s.station_no for s in stations] == [1, 2]
    assert stations[1].stopover_time == "2分钟"


def test_route_station_number_must_be_numeric() -> None:
    """A non-numeric station number raises DecodeError."""
    with pytest.raises(DecodeError) as exc_info:
        parse_route_stations([{"station_no": "x", "station_name": "北京南"}])
    assert exc_info.value.field == "station_no"
