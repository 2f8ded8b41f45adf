"""
车票记录组装：把解码后的字段组装为 TrainTicket.
"""

from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping, Optional

from rail12306.constants.system import SystemConstants
from rail12306.utils.logging_config import get_logger

from .decoder import TICKET_DATA_KEYS, decode_row, parse_clock, remaining_counts
from .features import extract_features
from .models import DecodeError, DecodeFailure, ParseResult, TrainTicket
from .prices import extract_prices
from .stations import StationDirectory

logger = get_logger(__name__)

REQUIRED_FIELDS = (
    "train_no",
    "station_train_code",
    "from_station_telecode",
    "to_station_telecode",
    "start_time",
    "arrive_time",
    "lishi",
    "start_train_date",
)


def build_ticket(
    fields: Mapping[str, Any],
    price_field: str = "yp_info_new",
    from_station: Optional[str] = None,
    to_station: Optional[str] = None,
) -> TrainTicket:
    """组装单张车票.

    Args:
        fields: 解码后的字段
        price_field: 价格片段所在字段，直达车票为 yp_info_new，中转车票为 yp_info
        from_station: 出发站名称，缺省时取字段中的 from_station_name
        to_station: 到达站名称，缺省时取字段中的 to_station_name

    Raises:
        DecodeError: 必需字段缺失或格式错误
    """
    for key in REQUIRED_FIELDS:
        if not fields.get(key):
            raise DecodeError(key, "字段缺失")

    start_date_str = fields["start_train_date"]
    try:
        start_date = datetime.strptime(
            start_date_str, SystemConstants.UPSTREAM_DATE_FORMAT
        )
    except ValueError:
        raise DecodeError(
            "start_train_date", f"无效的日期: {start_date_str!r}"
        ) from None

    start_hour, start_minute = parse_clock(fields["start_time"], "start_time")
    duration_hour, duration_minute = parse_clock(fields["lishi"], "lishi", None)
    # 到达时间只校验格式，日期由历时推算
    parse_clock(fields["arrive_time"], "arrive_time")

    start_datetime = start_date.replace(hour=start_hour, minute=start_minute)
    arrive_datetime = start_datetime + timedelta(
        hours=duration_hour, minutes=duration_minute
    )

    prices = extract_prices(
        fields.get(price_field) or "",
        fields.get("seat_discount_info") or "",
        remaining_counts(fields),
    )

    from_code = fields["from_station_telecode"]
    to_code = fields["to_station_telecode"]
    return TrainTicket(
        train_no=fields["train_no"],
        start_train_code=fields["station_train_code"],
        start_date=start_datetime.strftime(SystemConstants.DATE_FORMAT),
        start_time=fields["start_time"],
        arrive_date=arrive_datetime.strftime(SystemConstants.DATE_FORMAT),
        arrive_time=fields["arrive_time"],
        duration=f"{duration_hour:02d}:{duration_minute:02d}",
        from_station=from_station or fields.get("from_station_name") or from_code,
        to_station=to_station or fields.get("to_station_name") or to_code,
        from_station_code=from_code,
        to_station_code=to_code,
        prices=tuple(prices),
        features=extract_features(fields.get("dw_flag") or ""),
    )


def resolve_station_name(
    code: str,
    station_names: Optional[Mapping[str, str]] = None,
    directory: Optional[StationDirectory] = None,
) -> str:
    """
    查询结果自带的站名表优先，其次车站目录，都没有时返回编码本身.
    """
    if station_names and station_names.get(code):
        return station_names[code]
    if directory is not None:
        station = directory.get_station_by_code(code)
        if station:
            return station.station_name
    return code


def parse_ticket_row(
    raw: str,
    station_names: Optional[Mapping[str, str]] = None,
    directory: Optional[StationDirectory] = None,
) -> TrainTicket:
    """
    解析 leftTicket/query 返回的一行车票数据.
    """
    fields = decode_row(raw, TICKET_DATA_KEYS)
    return build_ticket(
        fields,
        "yp_info_new",
        resolve_station_name(
            fields.get("from_station_telecode", ""), station_names, directory
        ),
        resolve_station_name(
            fields.get("to_station_telecode", ""), station_names, directory
        ),
    )


def parse_tickets(
    rows: Iterable[str],
    station_names: Optional[Mapping[str, str]] = None,
    directory: Optional[StationDirectory] = None,
) -> ParseResult:
    """
    批量解析车票，单行失败不影响其他行.
    """
    result = ParseResult()
    for index, raw in enumerate(rows):
        try:
            result.records.append(parse_ticket_row(raw, station_names, directory))
        except DecodeError as e:
            logger.warning(f"[Railway] 第{index}行车票解析失败: {e}")
            result.failures.append(DecodeFailure(index=index, raw=raw, error=e))
    return result
