"""
票价信息解码.

yp_info_new 由若干10位定长片段拼接而成：第0位为席别编码，第1-5位为价格
（单位0.1元），第6-9位为辅助数值. seat_discount_info 由若干5位片段组成：
第0位为席别编码，后4位为折扣.
"""

from typing import Dict, List, Mapping

from rail12306.utils.logging_config import get_logger

from .models import DecodeError, SeatPrice

logger = get_logger(__name__)

PRICE_STR_LENGTH = 10
DISCOUNT_STR_LENGTH = 5

NO_SEAT_CODE = "W"
OTHER_SEAT_CODE = "H"

# 由12306前端脚本逆向得到的经验阈值，上游未公开含义，可能随时变化.
# 辅助数值不小于该值的片段一律视为无座.
NO_SEAT_AUX_THRESHOLD = 3000

MISSING_REMAINING = "--"

# 座位类型映射
SEAT_TYPES = {
    "9": {"name": "商务座", "short": "swz"},
    "P": {"name": "特等座", "short": "tz"},
    "M": {"name": "一等座", "short": "zy"},
    "D": {"name": "优选一等座", "short": "zy"},
    "O": {"name": "二等座", "short": "ze"},
    "S": {"name": "二等包座", "short": "ze"},
    "6": {"name": "高级软卧", "short": "gr"},
    "A": {"name": "高级动卧", "short": "gr"},
    "4": {"name": "软卧", "short": "rw"},
    "I": {"name": "一等卧", "short": "rw"},
    "F": {"name": "动卧", "short": "rw"},
    "3": {"name": "硬卧", "short": "yw"},
    "J": {"name": "二等卧", "short": "yw"},
    "2": {"name": "软座", "short": "rz"},
    "1": {"name": "硬座", "short": "yz"},
    "W": {"name": "无座", "short": "wz"},
    "WZ": {"name": "无座", "short": "wz"},
    "H": {"name": "其他", "short": "qt"},
}


def _parse_digits(text: str, field: str) -> int:
    if not text.isdigit():
        raise DecodeError(field, f"无效的数字片段: {text!r}")
    return int(text)


def parse_discounts(discount_info: str) -> Dict[str, int]:
    """
    解析折扣信息，返回 席别编码 -> 折扣.
    """
    discounts = {}
    last_start = len(discount_info) - DISCOUNT_STR_LENGTH + 1
    for i in range(0, last_start, DISCOUNT_STR_LENGTH):
        segment = discount_info[i : i + DISCOUNT_STR_LENGTH]
        discounts[segment[0]] = _parse_digits(segment[1:], "seat_discount_info")
    return discounts


def resolve_seat_code(segment: str) -> str:
    """
    确定价格片段的实际席别编码.
    """
    aux = _parse_digits(segment[6:10], "yp_info_new")
    if aux >= NO_SEAT_AUX_THRESHOLD:
        return NO_SEAT_CODE
    if segment[0] not in SEAT_TYPES:
        return OTHER_SEAT_CODE
    return segment[0]


def extract_prices(
    yp_info: str, discount_info: str, remaining: Mapping[str, str]
) -> List[SeatPrice]:
    """解析价格信息.

    Args:
        yp_info: 价格片段串
        discount_info: 折扣片段串
        remaining: 席别短名 -> 余票数量

    Returns:
        按片段顺序排列的席别价格，每个完整片段对应一项
    """
    discounts = parse_discounts(discount_info)
    if len(yp_info) % PRICE_STR_LENGTH:
        logger.debug(f"价格串长度{len(yp_info)}不是{PRICE_STR_LENGTH}的整数倍")

    prices = []
    for i in range(0, len(yp_info) - PRICE_STR_LENGTH + 1, PRICE_STR_LENGTH):
        segment = yp_info[i : i + PRICE_STR_LENGTH]
        seat_code = resolve_seat_code(segment)
        seat_info = SEAT_TYPES[seat_code]
        prices.append(
            SeatPrice(
                seat_name=seat_info["name"],
                short=seat_info["short"],
                seat_type_code=seat_code,
                num=remaining.get(seat_info["short"]) or MISSING_REMAINING,
                price=_parse_digits(segment[1:6], "yp_info_new") / 10,
                discount=discounts.get(seat_code),
            )
        )

    return prices
