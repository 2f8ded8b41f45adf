"""12306 API客户端.

提供访问12306官方API的功能，解析工作交给 decoder/tickets/interline 等模块.
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin

import aiohttp
from dateutil import tz

from rail12306.constants.system import SystemConstants
from rail12306.utils.config_manager import ConfigManager
from rail12306.utils.logging_config import get_logger

from .decoder import parse_route_stations
from .interline import merge_transfers
from .models import DecodeError, RouteStation, TrainTicket, TransferTicket
from .selector import select
from .stations import StationDirectory, extract_catalog
from .tickets import parse_tickets

logger = get_logger(__name__)

_STATION_JS_PATTERN = re.compile(r"\.(/script/core/common/station_name.+?\.js)")
_LCQUERY_PATH_PATTERN = re.compile(r"var lc_search_url = '(.+?)'")


def find_station_js_path(html: str) -> Optional[str]:
    """
    在12306首页中查找车站数据脚本路径.
    """
    match = _STATION_JS_PATTERN.search(html)
    return match.group(1) if match else None


def find_lcquery_path(html: str) -> Optional[str]:
    """
    在中转查询页面中查找查询接口路径.
    """
    match = _LCQUERY_PATH_PATTERN.search(html)
    return match.group(1) if match else None


def format_cookies(cookies: Dict[str, str]) -> str:
    return "; ".join(f"{key}={value}" for key, value in cookies.items())


class Railway12306Client:
    """
    12306客户端.
    """

    def __init__(self, config: Optional[ConfigManager] = None):
        config = config or ConfigManager.get_instance()
        self.api_base = config.get_config("RAILWAY.API_BASE")
        self.web_url = config.get_config("RAILWAY.WEB_URL")
        self.lcquery_init_url = config.get_config("RAILWAY.LCQUERY_INIT_URL")
        self.timezone = tz.gettz(config.get_config("RAILWAY.TIMEZONE"))
        self.timeout = aiohttp.ClientTimeout(
            total=config.get_config("RAILWAY.REQUEST_TIMEOUT", 10)
        )
        self.user_agent = config.get_config("RAILWAY.USER_AGENT")
        self.catalog_file = config.get_config("RAILWAY.STATION_CATALOG_FILE")

        self.stations: Optional[StationDirectory] = None
        self._lcquery_path: Optional[str] = None

    async def initialize(self):
        """初始化客户端，加载车站数据.

        Raises:
            StationCatalogError: 车站数据无法解析
            aiohttp.ClientError: 下载车站数据失败
        """
        logger.info("开始初始化12306客户端...")
        self.stations = StationDirectory.from_catalog(await self._load_catalog())
        logger.info("初始化完成")

    async def _load_catalog(self) -> str:
        """
        读取车站数据，优先使用配置的本地文件.
        """
        if self.catalog_file:
            logger.info(f"从本地文件加载车站数据: {self.catalog_file}")
            return extract_catalog(Path(self.catalog_file).read_text(encoding="utf-8"))

        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.get(self.web_url) as response:
                html = await response.text()

            js_path = find_station_js_path(html)
            if not js_path:
                raise DecodeError("station_names", "未找到车站数据文件")

            async with session.get(urljoin(self.web_url, js_path)) as response:
                js_content = await response.text()

        return extract_catalog(js_content)

    def _require_stations(self) -> StationDirectory:
        if self.stations is None:
            raise RuntimeError("车站数据尚未加载")
        return self.stations

    async def _get_lcquery_path(self) -> Optional[str]:
        """
        获取中转查询路径.
        """
        if self._lcquery_path:
            return self._lcquery_path

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(self.lcquery_init_url) as response:
                    html = await response.text()
        except aiohttp.ClientError as e:
            logger.error(f"获取中转查询路径失败: {e}")
            return None

        self._lcquery_path = find_lcquery_path(html)
        if self._lcquery_path:
            logger.debug(f"获取中转查询路径: {self._lcquery_path}")
        else:
            logger.warning("未找到中转查询路径")
        return self._lcquery_path

    async def _get_cookie(self, session: aiohttp.ClientSession) -> Optional[str]:
        """
        获取Cookie.
        """
        try:
            async with session.get(f"{self.api_base}/otn/") as response:
                cookies = {
                    key: morsel.value for key, morsel in response.cookies.items()
                }
        except aiohttp.ClientError as e:
            logger.error(f"获取Cookie失败: {e}")
            return None
        return format_cookies(cookies) if cookies else None

    async def _make_request(self, url: str, params: dict) -> Optional[dict]:
        """
        发起请求，失败时返回None.
        """
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/json, text/javascript, */*; q=0.01",
            "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
            "X-Requested-With": "XMLHttpRequest",
        }

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                cookie = await self._get_cookie(session)
                if cookie:
                    headers["Cookie"] = cookie
                else:
                    logger.warning("未获取到Cookie，尝试直接请求")

                async with session.get(url, params=params, headers=headers) as response:
                    # 检查是否是错误页面
                    if response.content_type == "text/html":
                        logger.error(f"12306返回错误页面: {response.url}")
                        return None
                    return await response.json(content_type=None)

        except (aiohttp.ClientError, ValueError) as e:
            logger.error(f"请求失败: {e}")
            return None

    def get_current_date(self) -> str:
        """
        获取当前日期（上海时区）.
        """
        return datetime.now(self.timezone).strftime(SystemConstants.DATE_FORMAT)

    def check_date(self, date_str: str) -> bool:
        """
        检查日期是否有效（格式正确且不早于今天）.
        """
        try:
            target = datetime.strptime(date_str, SystemConstants.DATE_FORMAT).date()
        except ValueError:
            return False
        return target >= datetime.now(self.timezone).date()

    def get_stations_in_city(self, city: str):
        return self._require_stations().get_stations_in_city(city)

    def get_city_main_station(self, city: str):
        return self._require_stations().get_city_main_station(city)

    def get_station_by_name(self, name: str):
        return self._require_stations().get_station_by_name(name)

    def get_station_by_code(self, code: str):
        return self._require_stations().get_station_by_code(code)

    def get_all_stations(self):
        return self._require_stations().to_json()

    def _check_query(self, date: str, *station_codes: str) -> Optional[str]:
        if not self.check_date(date):
            return "日期格式错误或早于今天"
        stations = self._require_stations()
        for code in station_codes:
            if code and code not in stations:
                return f"车站编码不存在: {code}"
        return None

    async def query_tickets(
        self,
        date: str,
        from_station: str,
        to_station: str,
        train_filters: str = "",
        earliest_start: int = 0,
        latest_start: int = 24,
        sort_by: str = "",
        reverse: bool = False,
        limit: int = 0,
    ) -> Tuple[bool, List[TrainTicket], str]:
        """查询车票.

        Args:
            date: 查询日期 (YYYY-MM-DD)
            from_station: 出发站编码
            to_station: 到达站编码
            train_filters: 车次筛选 (G/D/Z/T/K/O/F/S)
            earliest_start: 最早出发小时
            latest_start: 最晚出发小时（不含）
            sort_by: 排序方式 (start_time/arrive_time/duration)
            reverse: 是否逆序
            limit: 限制数量

        Returns:
            (success, tickets, message)
        """
        error = self._check_query(date, from_station, to_station)
        if error:
            return False, [], error

        params = {
            "leftTicketDTO.train_date": date,
            "leftTicketDTO.from_station": from_station,
            "leftTicketDTO.to_station": to_station,
            "purpose_codes": "ADULT",
        }
        data = await self._make_request(f"{self.api_base}/otn/leftTicket/query", params)
        if not data or not data.get("status"):
            logger.warning("12306 API不可用")
            return False, [], "12306服务不可用，请稍后再试"

        payload = data.get("data") or {}
        parsed = parse_tickets(
            payload.get("result", []), payload.get("map", {}), self.stations
        )
        if parsed.failures:
            logger.warning(f"[Railway] {len(parsed.failures)}条车票数据解析失败，已跳过")

        tickets = select(
            parsed.records,
            train_filters,
            earliest_start,
            latest_start,
            sort_by,
            reverse,
            limit,
        )
        return True, tickets, "查询成功"

    async def query_transfer_tickets(
        self,
        date: str,
        from_station: str,
        to_station: str,
        middle_station: str = "",
        show_wz: bool = False,
        train_filters: str = "",
        earliest_start: int = 0,
        latest_start: int = 24,
        sort_by: str = "",
        reverse: bool = False,
        limit: int = 10,
    ) -> Tuple[bool, List[TransferTicket], str]:
        """查询中转车票.

        Args:
            date: 查询日期 (YYYY-MM-DD)
            from_station: 出发站编码
            to_station: 到达站编码
            middle_station: 中转站编码 (可选)
            show_wz: 是否显示无座车
            train_filters: 车次筛选 (G/D/Z/T/K/O/F/S)
            earliest_start: 最早出发小时
            latest_start: 最晚出发小时（不含）
            sort_by: 排序方式 (start_time/arrive_time/duration)
            reverse: 是否逆序
            limit: 限制数量

        Returns:
            (success, transfer_tickets, message)
        """
        error = self._check_query(date, from_station, to_station, middle_station)
        if error:
            return False, [], error

        lcquery_path = await self._get_lcquery_path()
        if not lcquery_path:
            return False, [], "中转查询路径不可用"

        params = {
            "train_date": date,
            "from_station_telecode": from_station,
            "to_station_telecode": to_station,
            "middle_station": middle_station,
            "result_index": "0",
            "can_query": "Y",
            "isShowWZ": "Y" if show_wz else "N",
            "purpose_codes": "00",  # 成人票
            "channel": "E",
        }
        url = f"{self.api_base}{lcquery_path}"
        transfers: List[TransferTicket] = []

        # 循环查询直到获取足够数据或无更多数据
        while limit == 0 or len(transfers) < limit:
            data = await self._make_request(url, params)
            if not data:
                if transfers:
                    logger.warning("[Railway] 中转查询翻页失败，返回已获取的结果")
                    break
                return False, [], "中转票查询API不可用"

            if isinstance(data.get("data"), str) or not data.get("data"):
                error_msg = data.get("errorMsg") or "未查到相关的列车余票"
                if transfers:
                    break
                return False, [], f"未查到相关的中转票: {error_msg}"

            data_dict = data["data"]
            middle_list = data_dict.get("middleList") or []
            if not middle_list:
                break

            parsed = merge_transfers(middle_list, directory=self.stations)
            if parsed.failures:
                logger.warning(
                    f"[Railway] {len(parsed.failures)}条中转数据解析失败，已跳过"
                )
            transfers.extend(parsed.records)

            if data_dict.get("can_query") != "Y":
                break
            next_index = str(data_dict.get("result_index", 0))
            if next_index == params["result_index"]:
                logger.warning(f"[Railway] 中转查询分页索引未变化: {next_index}")
                break
            params["result_index"] = next_index

        transfers = select(
            transfers,
            train_filters,
            earliest_start,
            latest_start,
            sort_by,
            reverse,
            limit,
        )
        return True, transfers, "查询成功"

    async def query_train_route(
        self, train_no: str, from_station: str, to_station: str, depart_date: str
    ) -> Tuple[bool, List[RouteStation], str]:
        """查询车次经停站.

        Returns:
            (success, route_stations, message)
        """
        params = {
            "train_no": train_no,
            "from_station_telecode": from_station,
            "to_station_telecode": to_station,
            "depart_date": depart_date,
        }
        data = await self._make_request(
            f"{self.api_base}/otn/czxx/queryByTrainNo", params
        )
        if not data:
            return False, [], "经停站查询API不可用"

        stops = (data.get("data") or {}).get("data") or []
        if not stops:
            return False, [], "未查到该车次的经停信息"
        return True, parse_route_stations(stops), "查询成功"


# 全局客户端实例
_client = None


async def get_railway_client() -> Railway12306Client:
    """
    获取铁路客户端单例.
    """
    global _client
    if _client is None:
        client = Railway12306Client()
        await client.initialize()
        _client = client
    return _client


def set_railway_client(client: Optional[Railway12306Client]):
    """
    替换全局客户端实例，传入None时下次使用重新初始化.
    """
    global _client
    _client = client
