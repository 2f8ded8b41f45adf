"""
车次分类、筛选、排序与截断.
"""

from typing import Callable, Dict, List, Sequence, Tuple, TypeVar, Union

from rail12306.utils.logging_config import get_logger

from .decoder import parse_clock
from .models import AmenityTag, TrainTicket, TransferTicket

logger = get_logger(__name__)

Record = TypeVar("Record", TrainTicket, TransferTicket)
AnyRecord = Union[TrainTicket, TransferTicket]

OTHER_FILTER = "O"
FULL_DAY = (0, 24)

_PREFIX_FILTERS = {
    "G": ("G", "C"),
    "D": ("D",),
    "Z": ("Z",),
    "T": ("T",),
    "K": ("K",),
}


def _has_prefix(*prefixes: str) -> Callable[[AnyRecord], bool]:
    return lambda record: record.start_train_code.startswith(prefixes)


def _is_other(record: AnyRecord) -> bool:
    return not any(TRAIN_FILTERS[flag](record) for flag in _PREFIX_FILTERS)


def _has_feature(tag: AmenityTag) -> Callable[[AnyRecord], bool]:
    return lambda record: tag in record.features


# 车次类型筛选器: G(高铁/城际) D(动车) Z(直达特快) T(特快) K(快速) O(其他)
# F(复兴号) S(智能动车组). 中转方案按第一程判断.
TRAIN_FILTERS: Dict[str, Callable[[AnyRecord], bool]] = {
    **{flag: _has_prefix(*prefixes) for flag, prefixes in _PREFIX_FILTERS.items()},
    OTHER_FILTER: _is_other,
    "F": _has_feature(AmenityTag.NEXT_GEN_EMU),
    "S": _has_feature(AmenityTag.SMART_EMU),
}


def _start_key(record: AnyRecord) -> Tuple[str, int, int]:
    return (record.start_date, *parse_clock(record.start_time, "start_time"))


def _arrive_key(record: AnyRecord) -> Tuple[str, int, int]:
    return (record.arrive_date, *parse_clock(record.arrive_time, "arrive_time"))


def _duration_key(record: AnyRecord) -> Tuple[int, int]:
    return parse_clock(record.duration, "duration", None)


SORT_KEYS: Dict[str, Callable[[AnyRecord], tuple]] = {
    "start_time": _start_key,
    "arrive_time": _arrive_key,
    "duration": _duration_key,
}


def matches_filters(record: AnyRecord, train_filters: str) -> bool:
    """
    任一筛选条件命中即保留，无法识别的条件按“其他”处理.
    """
    for flag in train_filters:
        predicate = TRAIN_FILTERS.get(flag)
        if predicate is None:
            logger.debug(f"未知的车次筛选条件 {flag!r}，按其他类型处理")
            predicate = TRAIN_FILTERS[OTHER_FILTER]
        if predicate(record):
            return True
    return False


def filter_by_start_hour(
    records: Sequence[Record], earliest: int, latest: int
) -> List[Record]:
    """
    保留出发小时满足 earliest <= hour < latest 的记录.
    """
    return [
        record
        for record in records
        if earliest <= parse_clock(record.start_time, "start_time")[0] < latest
    ]


def select(
    records: Sequence[Record],
    train_filters: str = "",
    earliest_start: int = FULL_DAY[0],
    latest_start: int = FULL_DAY[1],
    sort_by: str = "",
    reverse: bool = False,
    limit: int = 0,
) -> List[Record]:
    """过滤和排序车票.

    依次执行：车次类型筛选 -> 出发时段筛选 -> 排序 -> 截断.

    Args:
        records: 车票或中转方案
        train_filters: 车次筛选 (G/D/Z/T/K/O/F/S)，为空时不筛选
        earliest_start: 最早出发小时（含）
        latest_start: 最晚出发小时（不含）
        sort_by: 排序方式 (start_time/arrive_time/duration)，为空时不排序
        reverse: 是否逆序，仅在排序时生效
        limit: 限制数量，0表示不限制

    Raises:
        ValueError: 排序方式未知、时段越界或数量为负
    """
    if sort_by and sort_by not in SORT_KEYS:
        raise ValueError(f"未知的排序方式: {sort_by}")
    if not 0 <= earliest_start <= latest_start <= 24:
        raise ValueError(f"无效的出发时段: [{earliest_start}, {latest_start})")
    if limit < 0:
        raise ValueError(f"无效的数量限制: {limit}")

    result = list(records)

    if train_filters:
        result = [
            record for record in result if matches_filters(record, train_filters)
        ]

    if (earliest_start, latest_start) != FULL_DAY:
        result = filter_by_start_hour(result, earliest_start, latest_start)

    if sort_by:
        result.sort(key=SORT_KEYS[sort_by], reverse=reverse)

    if limit > 0:
        result = result[:limit]

    return result
