"""12306原始数据行解码.

上游以 ``|`` 分隔的定长位置字段返回车票与车站数据，这里用有序字段名列表
描述各类数据的结构，统一由 ``decode_row`` 解码.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from rail12306.utils.logging_config import get_logger

from .models import DecodeError, RouteStation

logger = get_logger(__name__)

FIELD_DELIMITER = "|"

# 车站数据，每10个字段为一个车站
STATION_DATA_KEYS = (
    "station_id",
    "station_name",
    "station_code",
    "station_pinyin",
    "station_short",
    "station_index",
    "code",
    "city",
    "r1",
    "r2",
)

# leftTicket/query 返回的车票行，未命名的位置用序号占位
TICKET_DATA_KEYS = (
    "secret_Sstr",
    "button_text_info",
    "train_no",
    "station_train_code",
    "start_station_telecode",
    "end_station_telecode",
    "from_station_telecode",
    "to_station_telecode",
    "start_time",
    "arrive_time",
    "lishi",
    "canWebBuy",
    "yp_info",
    "start_train_date",
    "train_seat_feature",
    "location_code",
    "from_station_no",
    "to_station_no",
    "is_support_card",
    "controlled_train_flag",
    "gg_num",
    "gr_num",
    "qt_num",
    "rw_num",
    "rz_num",
    "tz_num",
    "wz_num",
    "yb_num",
    "yw_num",
    "yz_num",
    "ze_num",
    "zy_num",
    "swz_num",
    "srrb_num",
    "yp_ex",
    "seat_types",
    "exchange_train_flag",
    "houbu_train_flag",
    "houbu_seat_limit",
    "yp_info_new",
    "40",
    "41",
    "42",
    "43",
    "44",
    "45",
    "dw_flag",
    "47",
    "stopcheckTime",
    "country_flag",
    "local_arrive_time",
    "local_start_time",
    "52",
    "bed_level_info",
    "seat_discount_info",
    "sale_time",
    "56",
)

REMAINING_SUFFIX = "_num"


def decode_row(
    raw: str, schema: Sequence[str], delimiter: str = FIELD_DELIMITER
) -> Dict[str, str]:
    """按字段名列表解码一行数据.

    缺少的字段不会出现在结果中，多出的字段被忽略.
    """
    values = raw.split(delimiter)
    if len(values) != len(schema):
        logger.debug(f"字段数量不一致: 期望{len(schema)}个, 实际{len(values)}个")
    return dict(zip(schema, values))


def decode_rows(
    raw: str, schema: Sequence[str], delimiter: str = FIELD_DELIMITER
) -> List[Dict[str, str]]:
    """
    把连续拼接的多条定长记录拆成多组，不完整的尾部被丢弃.
    """
    values = raw.split(delimiter)
    width = len(schema)
    return [
        dict(zip(schema, values[i * width : (i + 1) * width]))
        for i in range(len(values) // width)
    ]


def remaining_counts(fields: Mapping[str, Any]) -> Dict[str, str]:
    """
    提取各席别余票字段，键为席别短名（如 ze、zy）.
    """
    return {
        key[: -len(REMAINING_SUFFIX)]: value
        for key, value in fields.items()
        if key.endswith(REMAINING_SUFFIX) and value is not None
    }


def parse_clock(
    text: str, field: str, max_hour: Optional[int] = 23
) -> Tuple[int, int]:
    """
    解析 HH:MM 形式的时刻或历时，max_hour 为 None 时不限制小时数.
    """
    hour_str, sep, minute_str = (text or "").partition(":")
    if not sep or not hour_str.isdigit() or not minute_str.isdigit():
        raise DecodeError(field, f"无效的时间: {text!r}")
    hour, minute = int(hour_str), int(minute_str)
    if minute > 59 or (max_hour is not None and hour > max_hour):
        raise DecodeError(field, f"时间超出范围: {text!r}")
    return hour, minute


def parse_route_stations(stops: Iterable[Mapping[str, Any]]) -> List[RouteStation]:
    """解析经停站数据.

    始发站没有到达时间，用其出发时间代替.
    """
    result = []
    for index, stop in enumerate(stops):
        raw_no = stop.get("station_no", "")
        try:
            station_no = int(raw_no)
        except (TypeError, ValueError):
            raise DecodeError("station_no", f"无效的站序: {raw_no!r}") from None

        arrive_key = "start_time" if index == 0 else "arrive_time"
        result.append(
            RouteStation(
                arrive_time=stop.get(arrive_key, ""),
                station_name=stop.get("station_name", ""),
                stopover_time=stop.get("stopover_time", ""),
                station_no=station_no,
            )
        )
    return result
