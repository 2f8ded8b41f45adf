"""
车站目录：由12306车站数据构建只读的编码/城市/站名索引.
"""

import re
from dataclasses import asdict
from typing import Dict, Iterable, List, Optional, Tuple

from rail12306.utils.logging_config import get_logger

from .decoder import STATION_DATA_KEYS, decode_rows
from .models import StationCatalogError, StationInfo

logger = get_logger(__name__)

STATION_SUFFIX = "站"

# 上游车站数据中缺失的车站
MISSING_STATIONS = (
    StationInfo(
        station_id="@cdd",
        station_name="成都东",
        station_code="WEI",
        station_pinyin="chengdudong",
        station_short="cdd",
        city="成都",
        code="1707",
    ),
    StationInfo(
        station_id="@szb",
        station_name="深圳北",
        station_code="IOQ",
        station_pinyin="shenzhenbei",
        station_short="szb",
        city="深圳",
        code="1708",
    ),
)

_JS_WRAPPER = re.compile(r"^\s*var\s+station_names\s*=\s*|;\s*$")


def extract_catalog(js_text: str) -> str:
    """
    去掉 station_name.js 的变量声明外壳，得到原始车站字符串.
    """
    return _JS_WRAPPER.sub("", js_text).strip().strip("\"'")


class StationDirectory:
    """
    车站目录，构建完成后只读.
    """

    def __init__(self, stations: Iterable[StationInfo]):
        self._stations: Dict[str, StationInfo] = {}  # code -> StationInfo
        self._city_stations: Dict[str, List[StationInfo]] = {}  # city -> stations
        self._city_codes: Dict[str, StationInfo] = {}  # city -> 代表站
        self._name_stations: Dict[str, StationInfo] = {}  # name -> StationInfo

        for station in stations:
            self._add(station)

        for station in MISSING_STATIONS:
            if station.station_code not in self._stations:
                self._add(station)

        # 与城市同名的车站作为城市代表站，同一城市多个时取第一个
        for city, city_stations in self._city_stations.items():
            for station in city_stations:
                if station.station_name == city:
                    self._city_codes[city] = station
                    break

        logger.info(f"加载了{len(self._stations)}个车站")

    @classmethod
    def from_catalog(cls, raw_data: str) -> "StationDirectory":
        """解析车站数据字符串.

        缺少编码的车站被跳过；数据不足一组或没有任何有效车站时抛出
        StationCatalogError.
        """
        groups = decode_rows(raw_data, STATION_DATA_KEYS)
        if not groups:
            raise StationCatalogError(
                "station_names", "车站数据不足一个完整分组（10个字段）"
            )

        stations = [
            StationInfo(
                station_id=group["station_id"],
                station_name=group["station_name"],
                station_code=group["station_code"],
                station_pinyin=group["station_pinyin"],
                station_short=group["station_short"],
                city=group["city"],
                code=group["code"],
            )
            for group in groups
            if group["station_code"]
        ]
        if not stations:
            raise StationCatalogError("station_names", "未解析到任何有效车站")

        skipped = len(groups) - len(stations)
        if skipped:
            logger.debug(f"跳过{skipped}个缺少编码的车站")
        return cls(stations)

    def _add(self, station: StationInfo):
        self._stations[station.station_code] = station
        self._city_stations.setdefault(station.city, []).append(station)
        self._name_stations[station.station_name] = station

    def __len__(self) -> int:
        return len(self._stations)

    def __contains__(self, code: str) -> bool:
        return code in self._stations

    def codes(self) -> Tuple[str, ...]:
        return tuple(self._stations)

    def to_json(self) -> Dict[str, Dict[str, str]]:
        """
        导出全部车站，编码 -> 车站字段.
        """
        return {code: asdict(self.get_station_by_code(code)) for code in self.codes()}

    def get_station_by_code(self, code: str) -> Optional[StationInfo]:
        """
        根据编码获取车站.
        """
        return self._stations.get(code)

    def get_stations_in_city(self, city: str) -> Optional[Tuple[StationInfo, ...]]:
        """
        获取城市中的所有车站，城市不存在时返回None.
        """
        stations = self._city_stations.get(city)
        return tuple(stations) if stations else None

    def get_city_main_station(self, city: str) -> Optional[StationInfo]:
        """
        获取城市代表站，没有与城市同名的车站时返回None.
        """
        return self._city_codes.get(city)

    def get_station_by_name(self, name: str) -> Optional[StationInfo]:
        """
        根据名称获取车站.
        """
        name = name.strip()
        # 去掉后缀“站”
        if name.endswith(STATION_SUFFIX):
            name = name[: -len(STATION_SUFFIX)]
        return self._name_stations.get(name)
