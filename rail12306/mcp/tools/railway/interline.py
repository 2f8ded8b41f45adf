"""
中转（接续换乘）数据合并.
"""

import re
from typing import Any, Iterable, Mapping, Optional, Union

from rail12306.utils.logging_config import get_logger

from .decoder import TICKET_DATA_KEYS, decode_row, parse_clock
from .models import (
    DecodeError,
    DecodeFailure,
    ParseResult,
    TrainTicket,
    TransferKind,
    TransferTicket,
)
from .stations import StationDirectory
from .tickets import build_ticket, resolve_station_name

logger = get_logger(__name__)

# 匹配 "X小时Y分钟" 或 "Y分钟"
_DURATION_PATTERN = re.compile(r"(?:(\d+)小时)?(\d+)分钟")

SAME_STATION_FLAG = "0"
SAME_TRAIN_FLAG = "Y"


def normalize_duration(text: str, field: str = "all_lishi") -> str:
    """
    把中文历时格式化为 HH:MM，无法识别时抛出DecodeError.
    """
    match = _DURATION_PATTERN.fullmatch((text or "").strip())
    if not match:
        raise DecodeError(field, f"无法识别的历时: {text!r}")
    hours = int(match.group(1)) if match.group(1) else 0
    minutes = int(match.group(2))
    return f"{hours:02d}:{minutes:02d}"


def _build_leg(
    leg: Union[str, Mapping[str, Any]],
    station_names: Optional[Mapping[str, str]],
    directory: Optional[StationDirectory],
) -> TrainTicket:
    if isinstance(leg, str):
        fields = decode_row(leg, TICKET_DATA_KEYS)
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
    return build_ticket(leg, "yp_info")


def transfer_kind(
    first: TrainTicket, second: TrainTicket, block: Mapping[str, Any]
) -> TransferKind:
    """
    判断换乘方式：同车 > 同站 > 换站.
    """
    if (
        first.start_train_code == second.start_train_code
        or first.train_no == second.train_no
        or block.get("same_train") == SAME_TRAIN_FLAG
    ):
        return TransferKind.SAME_TRAIN
    if block.get("same_station") == SAME_STATION_FLAG:
        return TransferKind.SAME_STATION
    return TransferKind.CROSS_STATION


def merge_transfer(
    block: Mapping[str, Any],
    station_names: Optional[Mapping[str, str]] = None,
    directory: Optional[StationDirectory] = None,
) -> TransferTicket:
    """合并一条中转方案.

    Raises:
        DecodeError: 车次数量不是两程、历时或时刻格式错误、中转站不一致
    """
    full_list = block.get("fullList") or []
    if len(full_list) != 2:
        raise DecodeError("fullList", f"中转方案应包含两程车票，实际{len(full_list)}程")

    first, second = (_build_leg(leg, station_names, directory) for leg in full_list)
    kind = transfer_kind(first, second, block)

    middle_code = block.get("middle_station_code") or first.to_station_code
    if first.to_station_code != middle_code:
        raise DecodeError(
            "middle_station_code",
            f"第一程到达站 {first.to_station_code} 与中转站 {middle_code} 不一致",
        )
    # 换站换乘时第二程从同城的另一车站出发
    if (
        kind is not TransferKind.CROSS_STATION
        and second.from_station_code != middle_code
    ):
        raise DecodeError(
            "middle_station_code",
            f"第二程出发站 {second.from_station_code} 与中转站 {middle_code} 不一致",
        )

    start_time = block.get("start_time") or first.start_time
    arrive_time = block.get("arrive_time") or second.arrive_time
    parse_clock(start_time, "start_time")
    parse_clock(arrive_time, "arrive_time")

    return TransferTicket(
        duration=normalize_duration(block.get("all_lishi", ""), "all_lishi"),
        start_time=start_time,
        start_date=block.get("train_date") or first.start_date,
        middle_date=block.get("middle_date") or second.start_date,
        arrive_date=block.get("arrive_date") or second.arrive_date,
        arrive_time=arrive_time,
        from_station_code=block.get("from_station_code") or first.from_station_code,
        from_station_name=block.get("from_station_name") or first.from_station,
        middle_station_code=middle_code,
        middle_station_name=block.get("middle_station_name") or first.to_station,
        end_station_code=block.get("end_station_code") or second.to_station_code,
        end_station_name=block.get("end_station_name") or second.to_station,
        first_train_no=block.get("first_train_no") or first.train_no,
        second_train_no=block.get("second_train_no") or second.train_no,
        ticket_list=(first, second),
        transfer_kind=kind,
        wait_time=block.get("wait_time", ""),
    )


def merge_transfers(
    blocks: Iterable[Mapping[str, Any]],
    station_names: Optional[Mapping[str, str]] = None,
    directory: Optional[StationDirectory] = None,
) -> ParseResult:
    """
    批量合并中转方案，单条失败不影响其他方案.
    """
    result = ParseResult()
    for index, block in enumerate(blocks):
        try:
            result.records.append(merge_transfer(block, station_names, directory))
        except DecodeError as e:
            logger.warning(f"[Railway] 第{index}条中转方案解析失败: {e}")
            result.failures.append(DecodeFailure(index=index, raw=block, error=e))
    return result
