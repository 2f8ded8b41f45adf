"""
车次特性标记（dw_flag）解码.

dw_flag 以 ``#`` 分隔，各位置的含义来自对12306前端脚本的观察，上游没有
公开文档，规则可能随时变化，这里原样保留.
"""

from typing import FrozenSet

from .models import AmenityTag

FLAG_DELIMITER = "#"


def extract_features(dw_flag: str) -> FrozenSet[AmenityTag]:
    """
    解析特性标记，缺失的位置视为没有该特性.
    """
    flags = dw_flag.split(FLAG_DELIMITER)
    features = set()

    if flags[0] == "5":
        features.add(AmenityTag.SMART_EMU)

    if len(flags) > 1 and flags[1] == "1":
        features.add(AmenityTag.NEXT_GEN_EMU)

    if len(flags) > 2:
        if flags[2].startswith("Q"):
            features.add(AmenityTag.QUIET_CAR)
        elif flags[2].startswith("R"):
            features.add(AmenityTag.PREMIUM_SLEEPER)

    if len(flags) > 5 and flags[5] == "D":
        features.add(AmenityTag.DYNAMIC_STYLE)

    if len(flags) > 6 and flags[6] != "z":
        features.add(AmenityTag.BUNK_SELECTABLE)

    if len(flags) > 7 and flags[7] != "z":
        features.add(AmenityTag.SENIOR_DISCOUNT)

    return frozenset(features)


def feature_labels(features: FrozenSet[AmenityTag]) -> list:
    """
    按固定顺序返回特性的中文名称.
    """
    return [tag.label for tag in AmenityTag if tag in features]
