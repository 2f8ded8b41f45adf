"""Pytest configuration and fixtures."""

from typing import Callable, Dict

import pytest

from rail12306.mcp.tools.railway.decoder import TICKET_DATA_KEYS
from rail12306.mcp.tools.railway.stations import StationDirectory
from rail12306.utils.config_manager import ConfigManager

STATION_GROUPS = (
    "@bjb|北京北|VAP|beijingbei|bjb|0|0357|北京||",
    "@bjd|北京东|BOP|beijingdong|bjd|1|0357|北京||",
    "@bji|北京|BJP|beijing|bj|2|0357|北京||",
    "@bjn|北京南|VNP|beijingnan|bjn|3|0357|北京||",
    "@sha|上海|SHH|shanghai|sh|4|0712|上海||",
    "@shq|上海虹桥|AOH|shanghaihongqiao|shhq|5|0712|上海||",
    "@njn|南京南|NKH|nanjingnan|njn|6|0713|南京||",
    "@nji|南京|NJH|nanjing|nj|7|0713|南京||",
)

# 9 商务座 1748元, M 一等座 930元, O 二等座 553元
DEFAULT_YP_INFO = "9174800021M093000021O055300021"

DEFAULT_TICKET_FIELDS = {
    "secret_Sstr": "secret",
    "button_text_info": "预订",
    "train_no": "240000G1010A",
    "station_train_code": "G101",
    "start_station_telecode": "VNP",
    "end_station_telecode": "AOH",
    "from_station_telecode": "VNP",
    "to_station_telecode": "AOH",
    "start_time": "06:20",
    "arrive_time": "11:58",
    "lishi": "05:38",
    "canWebBuy": "Y",
    "start_train_date": "20250601",
    "swz_num": "5",
    "zy_num": "有",
    "ze_num": "无",
    "yp_info_new": DEFAULT_YP_INFO,
    "dw_flag": "5#1#0#0#z#0#z#z",
    "seat_discount_info": "M0950O0950",
}


@pytest.fixture
def station_catalog() -> str:
    """Raw station catalog with 8 stations."""
    return "|".join(STATION_GROUPS)


@pytest.fixture
def station_js(station_catalog: str) -> str:
    """station_name.js style wrapper around the catalog."""
    return f"var station_names ='{station_catalog}';"


@pytest.fixture
def directory(station_catalog: str) -> StationDirectory:
    """Station directory built from the sample catalog."""
    return StationDirectory.from_catalog(station_catalog)


def build_ticket_row(**overrides: str) -> str:
    values = {**DEFAULT_TICKET_FIELDS, **overrides}
    return "|".join(values.get(key, "") for key in TICKET_DATA_KEYS)


def build_leg(**overrides: str) -> Dict[str, str]:
    """Interline leg as returned inside fullList."""
    leg = {
        "train_no": "240000G1010A",
        "station_train_code": "G101",
        "from_station_telecode": "VNP",
        "from_station_name": "北京南",
        "to_station_telecode": "NKH",
        "to_station_name": "南京南",
        "start_time": "06:20",
        "arrive_time": "10:05",
        "lishi": "03:45",
        "start_train_date": "20250601",
        "yp_info": "M074800021O044300021",
        "zy_num": "10",
        "ze_num": "有",
        "dw_flag": "0#1#0#0#z#0#z#z",
    }
    leg.update(overrides)
    return leg


def build_transfer_block(**overrides) -> Dict[str, object]:
    """北京南 -> 南京南 -> 上海 interline block."""
    block = {
        "all_lishi": "5小时30分钟",
        "start_time": "06:20",
        "train_date": "2025-06-01",
        "middle_date": "2025-06-01",
        "arrive_date": "2025-06-01",
        "arrive_time": "11:50",
        "from_station_code": "VNP",
        "from_station_name": "北京南",
        "middle_station_code": "NKH",
        "middle_station_name": "南京南",
        "end_station_code": "SHH",
        "end_station_name": "上海",
        "same_station": "0",
        "same_train": "N",
        "wait_time": "30分钟",
        "fullList": [
            build_leg(),
            build_leg(
                train_no="5l000D30200B",
                station_train_code="D302",
                from_station_telecode="NKH",
                from_station_name="南京南",
                to_station_telecode="SHH",
                to_station_name="上海",
                start_time="10:35",
                arrive_time="11:50",
                lishi="01:15",
                yp_info="O014500021W014530000",
                dw_flag="5#0#0#0#z#0#z#z",
            ),
        ],
    }
    block.update(overrides)
    return block


@pytest.fixture
def ticket_row() -> Callable[..., str]:
    """Factory for leftTicket/query rows."""
    return build_ticket_row


@pytest.fixture
def transfer_block() -> Callable[..., Dict[str, object]]:
    """Factory for interline blocks."""
    return build_transfer_block


@pytest.fixture
def leg() -> Callable[..., Dict[str, str]]:
    """Factory for interline legs."""
    return build_leg


@pytest.fixture
def fresh_config(tmp_path):
    """Isolated ConfigManager backed by a temporary directory."""
    ConfigManager.reset_instance()
    config = ConfigManager(tmp_path / "config")
    yield config
    ConfigManager.reset_instance()


@pytest.fixture
def railway_client(fresh_config, directory):
    """Client with stations preloaded and installed as the global client."""
    from rail12306.mcp.tools.railway.client import (
        Railway12306Client,
        set_railway_client,
    )

    client = Railway12306Client(fresh_config)
    client.stations = directory
    set_railway_client(client)
    yield client
    set_railway_client(None)


class FakeResponses:
    """Replacement for Railway12306Client._make_request."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def __call__(self, url, params):
        self.calls.append((url, dict(params)))
        return self.responses.pop(0) if self.responses else None


@pytest.fixture
def fake_responses():
    """Factory installing canned upstream responses on a client."""

    def install(client, *responses) -> FakeResponses:
        fake = FakeResponses(*responses)
        client._make_request = fake
        return fake

    return install
