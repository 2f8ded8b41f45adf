"""
12306数据模型定义.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple, Union


class DecodeError(ValueError):
    """
    上游数据解码失败，field 指明出错的字段.
    """

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class StationCatalogError(DecodeError):
    """
    车站数据无法解析出任何有效车站.
    """


class AmenityTag(str, Enum):
    """
    车次特性标记.
    """

    SMART_EMU = "smart-EMU"
    NEXT_GEN_EMU = "next-gen-EMU"
    QUIET_CAR = "quiet-car"
    PREMIUM_SLEEPER = "premium-sleeper"
    DYNAMIC_STYLE = "dynamic-style"
    BUNK_SELECTABLE = "bunk-selectable"
    SENIOR_DISCOUNT = "senior-discount"

    @property
    def label(self) -> str:
        return AMENITY_LABELS[self]


AMENITY_LABELS = {
    AmenityTag.SMART_EMU: "智能动车组",
    AmenityTag.NEXT_GEN_EMU: "复兴号",
    AmenityTag.QUIET_CAR: "静音车厢",
    AmenityTag.PREMIUM_SLEEPER: "温馨动卧",
    AmenityTag.DYNAMIC_STYLE: "动感号",
    AmenityTag.BUNK_SELECTABLE: "支持选铺",
    AmenityTag.SENIOR_DISCOUNT: "老年优惠",
}


class TransferKind(str, Enum):
    """
    换乘方式.
    """

    SAME_TRAIN = "same-train"
    SAME_STATION = "same-station"
    CROSS_STATION = "cross-station"

    @property
    def label(self) -> str:
        return {
            TransferKind.SAME_TRAIN: "同车换乘",
            TransferKind.SAME_STATION: "同站换乘",
            TransferKind.CROSS_STATION: "换站换乘",
        }[self]


@dataclass(frozen=True)
class StationInfo:
    """
    车站信息.
    """

    station_id: str
    station_name: str
    station_code: str  # 3位字母编码
    station_pinyin: str
    station_short: str
    city: str
    code: str


@dataclass(frozen=True)
class SeatPrice:
    """
    座位价格信息.
    """

    seat_name: str  # 座位名称
    short: str  # 短名称
    seat_type_code: str  # 座位类型编码
    num: str  # 余票数量或状态（有/无/候补/--）
    price: float  # 价格
    discount: Optional[int] = None  # 折扣


@dataclass(frozen=True)
class TrainTicket:
    """
    火车票信息.
    """

    train_no: str  # 车次编号
    start_train_code: str  # 车次代码
    start_date: str  # 出发日期
    start_time: str  # 出发时间
    arrive_date: str  # 到达日期
    arrive_time: str  # 到达时间
    duration: str  # 历时
    from_station: str  # 出发站
    to_station: str  # 到达站
    from_station_code: str  # 出发站编码
    to_station_code: str  # 到达站编码
    prices: Tuple[SeatPrice, ...] = ()  # 座位价格列表
    features: FrozenSet[AmenityTag] = frozenset()  # 特性标记（复兴号、智能动车组等）


@dataclass(frozen=True)
class TransferTicket:
    """
    中转车票信息.
    """

    duration: str  # 总历时
    start_time: str  # 出发时间
    start_date: str  # 出发日期
    middle_date: str  # 中转日期
    arrive_date: str  # 到达日期
    arrive_time: str  # 到达时间
    from_station_code: str  # 出发站编码
    from_station_name: str  # 出发站名称
    middle_station_code: str  # 中转站编码
    middle_station_name: str  # 中转站名称
    end_station_code: str  # 到达站编码
    end_station_name: str  # 到达站名称
    first_train_no: str  # 第一程车次编号
    second_train_no: str  # 第二程车次编号
    ticket_list: Tuple[TrainTicket, TrainTicket]  # 两程车票
    transfer_kind: TransferKind  # 换乘方式
    wait_time: str  # 等待时间

    @property
    def start_train_code(self) -> str:
        return self.ticket_list[0].start_train_code

    @property
    def features(self) -> FrozenSet[AmenityTag]:
        # 复兴号/智能动车组只看第一程
        return self.ticket_list[0].features

    @property
    def same_train(self) -> bool:
        return self.transfer_kind is TransferKind.SAME_TRAIN

    @property
    def same_station(self) -> bool:
        return self.transfer_kind is not TransferKind.CROSS_STATION


@dataclass(frozen=True)
class RouteStation:
    """
    经停站信息.
    """

    arrive_time: str  # 到达时间
    station_name: str  # 站名
    stopover_time: str  # 停车时间
    station_no: int  # 站序


@dataclass(frozen=True)
class DecodeFailure:
    """
    批量解析中单条记录的失败信息.
    """

    index: int
    raw: object
    error: DecodeError


@dataclass
class ParseResult:
    """
    批量解析结果，成功与失败分开收集.
    """

    records: List[Union[TrainTicket, TransferTicket]] = field(default_factory=list)
    failures: List[DecodeFailure] = field(default_factory=list)
