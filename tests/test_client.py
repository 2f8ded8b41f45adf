"""Tests for the 12306 client query flow."""

import asyncio
from datetime import datetime, timedelta

import pytest

from rail12306.mcp.tools.railway.client import (
    Railway12306Client,
    find_lcquery_path,
    find_station_js_path,
    format_cookies,
)
from rail12306.mcp.tools.railway.models import StationCatalogError


def ticket_payload(*rows):
    return {
        "status": True,
        "data": {
            "result": list(rows),
            "map": {"VNP": "北京南", "AOH": "上海虹桥"},
        },
    }


def test_find_station_js_path() -> None:
    """The station script path is located in the home page."""
    html = '<script src="./script/core/common/station_name_v10042.js"></script>'
    assert find_station_js_path(html) == "/script/core/common/station_name_v10042.js"
    assert find_station_js_path("<html></html>") is None


def test_find_lcquery_path() -> None:
    """The interline query path is read from the init page."""
    html = "var lc_search_url = '/lcquery/queryG';"
    assert find_lcquery_path(html) == "/lcquery/queryG"
    assert find_lcquery_path("") is None


def test_format_cookies() -> None:
    """Cookies are joined into a header value."""
    assert format_cookies({"a": "1", "b": "2"}) == "a=1; b=2"


def test_initialize_from_local_catalog(fresh_config, tmp_path, station_js) -> None:
    """A configured catalog file is used instead of downloading."""
    catalog_file = tmp_path / "station_name.js"
    catalog_file.write_text(station_js, encoding="utf-8")
    fresh_config.update_config("RAILWAY.STATION_CATALOG_FILE", str(catalog_file))

    client = Railway12306Client(fresh_config)
    asyncio.run(client.initialize())

    assert client.get_station_by_code("VNP").station_name == "北京南"
    assert client.get_city_main_station("上海").station_code == "SHH"


def test_initialize_rejects_empty_catalog(fresh_config, tmp_path) -> None:
    """An unusable catalog fails initialization."""
    catalog_file = tmp_path / "station_name.js"
    catalog_file.write_text("var station_names ='';", encoding="utf-8")
    fresh_config.update_config("RAILWAY.STATION_CATALOG_FILE", str(catalog_file))

    client = Railway12306Client(fresh_config)
    with pytest.raises(StationCatalogError):
        asyncio.run(client.initialize())


def test_lookups_require_stations(fresh_config) -> None:
    """Station lookups fail before the catalog is loaded."""
    client = Railway12306Client(fresh_config)
    with pytest.raises(RuntimeError):
        client.get_station_by_code("VNP")


def test_check_date(railway_client) -> None:
    """Dates must be well formed and not in the past."""
    today = railway_client.get_current_date()
    tomorrow = (
        datetime.strptime(today, "%Y-%m-%d").date() + timedelta(days=1)
    ).isoformat()

    assert railway_client.check_date(today)
    assert railway_client.check_date(tomorrow)
    assert not railway_client.check_date("2000-01-01")
    assert not railway_client.check_date("2025/06/01")


def test_query_tickets_filters_and_skips_bad_rows(
    railway_client, fake_responses, ticket_row
) -> None:
    """Rows are decoded, bad rows skipped and the selection applied."""
    fake = fake_responses(
        railway_client,
        ticket_payload(
            ticket_row(),
            ticket_row(start_time="xx"),
            ticket_row(
                train_no="24000000D50A",
                station_train_code="D5",
                start_time="14:00",
                arrive_time="20:00",
                lishi="06:00",
            ),
        ),
    )
    date = railway_client.get_current_date()

    success, tickets, message = asyncio.run(
        railway_client.query_tickets(date, "VNP", "AOH", train_filters="G")
    )

    assert success, message
    assert [t.start_train_code for t in tickets] == ["G101"]
    assert tickets[0].from_station == "北京南"
    url, params = fake.calls[0]
    assert url.endswith("/otn/leftTicket/query")
    assert params["leftTicketDTO.train_date"] == date


def test_query_tickets_rejects_bad_input(railway_client, fake_responses) -> None:
    """Invalid dates and unknown stations fail before any request."""
    fake = fake_responses(railway_client)
    date = railway_client.get_current_date()

    success, _, message = asyncio.run(
        railway_client.query_tickets("2000-01-01", "VNP", "AOH")
    )
    assert not success
    assert "日期" in message

    success, _, message = asyncio.run(railway_client.query_tickets(date, "ZZZ", "AOH"))
    assert not success
    assert "ZZZ" in message
    assert fake.calls == []


def test_query_tickets_upstream_unavailable(railway_client, fake_responses) -> None:
    """A failed request is reported, not raised."""
    fake_responses(railway_client, None)
    date = railway_client.get_current_date()

    success, tickets, _ = asyncio.run(railway_client.query_tickets(date, "VNP", "AOH"))
    assert not success
    assert tickets == []


def test_query_transfer_tickets_pages(
    railway_client, fake_responses, transfer_block
) -> None:
    """Interline results are fetched page by page."""
    railway_client._lcquery_path = "/lcquery/queryG"
    fake = fake_responses(
        railway_client,
        {
            "data": {
                "middleList": [transfer_block()],
                "can_query": "Y",
                "result_index": 1,
            }
        },
        {
            "data": {
                "middleList": [transfer_block(all_lishi="abc")],
                "can_query": "N",
            }
        },
    )
    date = railway_client.get_current_date()

    success, transfers, message = asyncio.run(
        railway_client.query_transfer_tickets(date, "VNP", "SHH", show_wz=True)
    )

    assert success, message
    assert len(transfers) == 1
    assert transfers[0].middle_station_name == "南京南"
    assert len(fake.calls) == 2
    assert fake.calls[0][1]["isShowWZ"] == "Y"
    assert fake.calls[1][1]["result_index"] == "1"


def test_query_transfer_tickets_keeps_pages_when_next_page_fails(
    railway_client, fake_responses, transfer_block
) -> None:
    """A failed later page keeps the transfers already fetched."""
    railway_client._lcquery_path = "/lcquery/queryG"
    fake = fake_responses(
        railway_client,
        {
            "data": {
                "middleList": [transfer_block()],
                "can_query": "Y",
                "result_index": 1,
            }
        },
        None,
    )
    date = railway_client.get_current_date()

    success, transfers, message = asyncio.run(
        railway_client.query_transfer_tickets(date, "VNP", "SHH")
    )

    assert success, message
    assert len(transfers) == 1
    assert len(fake.calls) == 2


def test_query_transfer_tickets_stops_on_unchanged_index(
    railway_client, fake_responses, transfer_block
) -> None:
    """Paging stops when upstream repeats the same result index."""
    railway_client._lcquery_path = "/lcquery/queryG"
    page = {
        "data": {
            "middleList": [transfer_block()],
            "can_query": "Y",
            "result_index": 0,
        }
    }
    fake = fake_responses(railway_client, page, page, page)
    date = railway_client.get_current_date()

    success, transfers, message = asyncio.run(
        railway_client.query_transfer_tickets(date, "VNP", "SHH")
    )

    assert success, message
    assert len(transfers) == 1
    assert len(fake.calls) == 1

def test_query_transfer_tickets_no_result(railway_client, fake_responses) -> None:
    """An error string from upstream is surfaced as a failure."""
    railway_client._lcquery_path = "/lcquery/queryG"
    fake_responses(railway_client, {"data": "", "errorMsg": "没有直达车次"})
    date = railway_client.get_current_date()

    success, transfers, message = asyncio.run(
        railway_client.query_transfer_tickets(date, "VNP", "SHH")
    )
    assert not success
    assert transfers == []
    assert "没有直达车次" in message


def test_query_train_route(railway_client, fake_responses) -> None:
    """Route stops are returned in order."""
    fake_responses(
        railway_client,
        {
            "data": {
                "data": [
                    {
                        "station_no": "01",
                        "station_name": "北京南",
                        "start_time": "06:20",
                        "arrive_time": "----",
                        "stopover_time": "----",
                    },
                    {
                        "station_no": "02",
                        "station_name": "上海虹桥",
                        "start_time": "11:58",
                        "arrive_time": "11:58",
                        "stopover_time": "----",
                    },
                ]
            }
        },
    )

    success, stations, _ = asyncio.run(
        railway_client.query_train_route(
            "240000G1010A", "VNP", "AOH", railway_client.get_current_date()
        )
    )
    assert success
    assert [s.station_name for s in stations] == ["北京南", "上海虹桥"]
    assert stations[0].arrive_time == "06:20"
