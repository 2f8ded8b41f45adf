"""
12306工具函数实现.

提供各种12306相关的查询功能.
"""

import json
from dataclasses import asdict
from typing import Any, Dict, List

from rail12306.utils.logging_config import get_logger

from .client import get_railway_client
from .features import feature_labels
from .models import RouteStation, TrainTicket, TransferTicket

logger = get_logger(__name__)

NOT_FOUND = "未检索到"


async def get_current_date(args: Dict[str, Any]) -> str:
    """
    获取当前日期（上海时区）.
    """
    try:
        client = await get_railway_client()
        current_date = client.get_current_date()
        logger.info(f"获取当前日期: {current_date}")
        return current_date

    except Exception as e:
        logger.error(f"获取当前日期失败: {e}", exc_info=True)
        return f"获取当前日期失败: {str(e)}"


async def get_stations_in_city(args: Dict[str, Any]) -> str:
    """
    获取城市中的所有车站.
    """
    try:
        city = args.get("city", "").strip()
        if not city:
            return "错误: 城市名称不能为空"

        client = await get_railway_client()
        stations = client.get_stations_in_city(city)

        if not stations:
            return f"未找到城市 '{city}' 的车站信息"

        result = {
            "city": city,
            "stations": [
                {
                    "station_code": station.station_code,
                    "station_name": station.station_name,
                    "station_pinyin": station.station_pinyin,
                }
                for station in stations
            ],
        }

        logger.info(f"查询城市 {city} 的车站: 找到 {len(stations)} 个车站")
        return json.dumps(result, ensure_ascii=False, indent=2)

    except Exception as e:
        logger.error(f"查询城市车站失败: {e}", exc_info=True)
        return f"查询失败: {str(e)}"


async def get_city_station_code(args: Dict[str, Any]) -> str:
    """
    获取城市代表站编码，多个城市用 | 分隔.
    """
    try:
        cities = args.get("cities", "")
        if not cities.strip():
            return "错误: 城市名称不能为空"

        client = await get_railway_client()
        result = {}

        for city in cities.split("|"):
            city = city.strip()
            if not city:
                continue
            station = client.get_city_main_station(city)

            if station:
                result[city] = {
                    "station_code": station.station_code,
                    "station_name": station.station_name,
                }
            else:
                result[city] = {"error": f"{NOT_FOUND}城市代表车站"}

        logger.info(f"查询城市代表车站: {cities}")
        return json.dumps(result, ensure_ascii=False, indent=2)

    except Exception as e:
        logger.error(f"查询城市代表车站失败: {e}", exc_info=True)
        return f"查询失败: {str(e)}"


async def get_station_by_name(args: Dict[str, Any]) -> str:
    """
    根据车站名获取车站信息，多个车站用 | 分隔.
    """
    try:
        station_names = args.get("station_names", "")
        if not station_names.strip():
            return "错误: 车站名称不能为空"

        client = await get_railway_client()
        result = {}

        for name in station_names.split("|"):
            name = name.strip()
            if not name:
                continue
            station = client.get_station_by_name(name)

            if station:
                result[name] = {
                    "station_code": station.station_code,
                    "station_name": station.station_name,
                    "city": station.city,
                }
            else:
                result[name] = {"error": f"{NOT_FOUND}车站"}

        logger.info(f"根据名称查询车站: {station_names}")
        return json.dumps(result, ensure_ascii=False, indent=2)

    except Exception as e:
        logger.error(f"根据名称查询车站失败: {e}", exc_info=True)
        return f"查询失败: {str(e)}"


async def get_station_by_code(args: Dict[str, Any]) -> str:
    """
    根据车站编码获取车站信息.
    """
    try:
        station_code = args.get("station_code", "").strip().upper()
        if not station_code:
            return "错误: 车站编码不能为空"

        client = await get_railway_client()
        station = client.get_station_by_code(station_code)

        if not station:
            return f"未找到车站编码 '{station_code}' 对应的车站"

        logger.info(f"根据编码查询车站: {station_code}")
        return json.dumps(asdict(station), ensure_ascii=False, indent=2)

    except Exception as e:
        logger.error(f"根据编码查询车站失败: {e}", exc_info=True)
        return f"查询失败: {str(e)}"


async def read_all_stations() -> str:
    """
    资源 data://all-stations：全部车站数据.
    """
    client = await get_railway_client()
    stations = client.get_all_stations()
    logger.info(f"读取全部车站资源: {len(stations)} 个车站")
    return json.dumps(stations, ensure_ascii=False)


async def query_train_tickets(args: Dict[str, Any]) -> str:
    """
    查询火车票.
    """
    try:
        date = args.get("date", "")
        from_station = args.get("from_station", "")
        to_station = args.get("to_station", "")

        if not all([date, from_station, to_station]):
            return "错误: 日期、出发站和到达站都是必需参数"

        client = await get_railway_client()
        success, tickets, message = await client.query_tickets(
            date,
            from_station,
            to_station,
            train_filters=args.get("train_filters", ""),
            earliest_start=args.get("earliest_start_time", 0),
            latest_start=args.get("latest_start_time", 24),
            sort_by=args.get("sort_by", ""),
            reverse=args.get("reverse", False),
            limit=args.get("limit", 0),
        )

        if not success:
            return f"查询失败: {message}"

        logger.info(f"查询车票: {date} {from_station}->{to_station}, {message}")
        return format_tickets(tickets)

    except Exception as e:
        logger.error(f"查询车票失败: {e}", exc_info=True)
        return f"查询失败: {str(e)}"


async def query_transfer_tickets(args: Dict[str, Any]) -> str:
    """
    查询中转车票.
    """
    try:
        date = args.get("date", "")
        from_station = args.get("from_station", "")
        to_station = args.get("to_station", "")

        if not all([date, from_station, to_station]):
            return "错误: 日期、出发站和到达站都是必需参数"

        client = await get_railway_client()
        success, transfers, message = await client.query_transfer_tickets(
            date,
            from_station,
            to_station,
            middle_station=args.get("middle_station", ""),
            show_wz=args.get("show_wz", False),
            train_filters=args.get("train_filters", ""),
            earliest_start=args.get("earliest_start_time", 0),
            latest_start=args.get("latest_start_time", 24),
            sort_by=args.get("sort_by", ""),
            reverse=args.get("reverse", False),
            limit=args.get("limit", 10),
        )

        if not success:
            return f"查询失败: {message}"

        logger.info(f"查询中转车票: {date} {from_station}->{to_station}, {message}")
        return format_transfers(transfers)

    except Exception as e:
        logger.error(f"查询中转车票失败: {e}", exc_info=True)
        return f"查询失败: {str(e)}"


async def query_train_route(args: Dict[str, Any]) -> str:
    """
    查询车次经停站.
    """
    try:
        train_no = args.get("train_no", "")
        from_station = args.get("from_station_code", "")
        to_station = args.get("to_station_code", "")
        depart_date = args.get("depart_date", "")

        if not all([train_no, from_station, to_station, depart_date]):
            return "错误: 车次编号、出发站、到达站和出发日期都是必需参数"

        client = await get_railway_client()
        success, stations, message = await client.query_train_route(
            train_no, from_station, to_station, depart_date
        )

        if not success:
            return f"查询失败: {message}"

        logger.info(f"查询经停站: {train_no}, 共 {len(stations)} 站")
        return format_route_stations(stations)

    except Exception as e:
        logger.error(f"查询车次经停站失败: {e}", exc_info=True)
        return f"查询失败: {str(e)}"


def format_tickets(tickets: List[TrainTicket]) -> str:
    """
    格式化车票信息.
    """
    if not tickets:
        return "没有查询到相关车次信息"

    result_lines = ["车次 | 出发站 -> 到达站 | 出发时间 -> 到达时间 | 历时"]

    for ticket in tickets:
        # 车次基本信息
        result_lines.append(
            f"{ticket.start_train_code}(实际车次train_no: {ticket.train_no}) "
            f"{ticket.from_station}(telecode: {ticket.from_station_code}) -> "
            f"{ticket.to_station}(telecode: {ticket.to_station_code}) "
            f"{ticket.start_time} -> {ticket.arrive_time} 历时：{ticket.duration}"
        )

        # 座位和价格信息
        for price in ticket.prices:
            ticket_status = format_ticket_status(price.num)
            result_lines.append(f"- {price.seat_name}: {ticket_status} {price.price}元")

        # 特性标记
        if ticket.features:
            result_lines.append(f"- 特性: {', '.join(feature_labels(ticket.features))}")

    return "\n".join(result_lines)


def format_transfers(transfers: List[TransferTicket]) -> str:
    """
    格式化中转方案.
    """
    if not transfers:
        return "没有查询到相关中转方案"

    result_lines = [
        "出发时间 -> 到达时间 | 出发车站 -> 中转车站 -> 到达车站 | 换乘标志 | 换乘等待时间 | 总历时",
        "",
    ]

    for transfer in transfers:
        result_lines.append(
            f"{transfer.start_date} {transfer.start_time} -> "
            f"{transfer.arrive_date} {transfer.arrive_time} | "
            f"{transfer.from_station_name} -> {transfer.middle_station_name} -> "
            f"{transfer.end_station_name} | {transfer.transfer_kind.label} | "
            f"{transfer.wait_time} | {transfer.duration}"
        )
        legs = format_tickets(list(transfer.ticket_list))
        result_lines.extend("\t" + line for line in legs.split("\n"))
        result_lines.append("")

    return "\n".join(result_lines).rstrip("\n")


def format_route_stations(stations: List[RouteStation]) -> str:
    """
    经停站以JSON列表返回.
    """
    return json.dumps([asdict(s) for s in stations], ensure_ascii=False, indent=2)


def format_ticket_status(num: str) -> str:
    """
    格式化票量信息.
    """
    if num.isdigit():
        count = int(num)
        return "无票" if count == 0 else f"剩余{count}张票"

    # 处理特殊状态
    status_map = {
        "有": "有票",
        "充足": "有票",
        "无": "无票",
        "--": "无票",
        "": "无票",
        "候补": "无票需候补",
    }

    return status_map.get(num, f"{num}票")
