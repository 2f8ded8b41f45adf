"""12306铁路查询工具管理器.

负责注册和管理所有12306相关工具.
"""

from rail12306.utils.logging_config import get_logger

from .tools import (
    get_city_station_code,
    get_current_date,
    get_station_by_code,
    get_station_by_name,
    get_stations_in_city,
    query_train_route,
    query_train_tickets,
    query_transfer_tickets,
    read_all_stations,
)

logger = get_logger(__name__)

TRAIN_FILTER_HELP = (
    "Train Filter Options:\n"
    "- 'G': High-speed trains and intercity trains (G/C prefix)\n"
    "- 'D': Electric multiple unit trains (D prefix)\n"
    "- 'Z': Direct express trains (Z prefix)\n"
    "- 'T': Express trains (T prefix)\n"
    "- 'K': Fast trains (K prefix)\n"
    "- 'O': Other types (not in above categories)\n"
    "- 'F': Fuxing trains\n"
    "- 'S': Smart EMU trains\n"
    "- Can combine multiple filters like 'GD' for high-speed and EMU trains\n\n"
    "Sort Options:\n"
    "- 'start_time': Sort by departure time (earliest first)\n"
    "- 'arrive_time': Sort by arrival time (earliest first)\n"
    "- 'duration': Sort by travel duration (shortest first)\n\n"
)


class RailwayToolsManager:
    """
    铁路查询工具管理器.
    """

    def __init__(self):
        """
        初始化铁路工具管理器.
        """
        logger.info("[Railway] 初始化")

    def init_tools(self, add_tool, PropertyList, Property, PropertyType):
        """
        初始化并注册所有铁路查询工具.
        """
        try:
            logger.info("[Railway] 开始注册工具")

            # 注册基础工具
            self._register_basic_tools(add_tool, PropertyList, Property, PropertyType)

            # 注册查询工具
            self._register_query_tools(add_tool, PropertyList, Property, PropertyType)

            logger.info("[Railway] 工具注册完成")

        except Exception as e:
            logger.error(f"[Railway] 工具注册失败: {e}", exc_info=True)
            raise

    def _register_basic_tools(self, add_tool, PropertyList, Property, PropertyType):
        """
        注册基础工具.
        """
        # 获取当前日期
        add_tool(
            (
                "self.railway.get_current_date",
                "Get current date in Shanghai timezone (Asia/Shanghai, UTC+8) in "
                "'YYYY-MM-DD' format. Use this tool before any ticket query when the "
                "user mentions relative dates ('tomorrow', 'next Monday').",
                PropertyList(),
                get_current_date,
            )
        )

        # 查询城市中的车站
        add_tool(
            (
                "self.railway.get_stations_in_city",
                "Get all railway stations within a city by Chinese city name. "
                "Use this tool when the user asks which stations a city has or is "
                "unsure which station to depart from.\n"
                "Args:\n"
                "  city: Chinese city name (e.g., '北京', '上海')",
                PropertyList([Property("city", PropertyType.STRING)]),
                get_stations_in_city,
            )
        )

        # 获取城市代表站编码
        add_tool(
            (
                "self.railway.get_city_station_codes",
                "Get the representative station code of cities (the station named "
                "after the city). Use this tool when the user gives city names as "
                "departure/arrival locations.\n"
                "Args:\n"
                "  cities: City names separated by '|' (e.g., '北京|上海')",
                PropertyList([Property("cities", PropertyType.STRING)]),
                get_city_station_code,
            )
        )

        # 根据车站名获取编码
        add_tool(
            (
                "self.railway.get_station_codes_by_names",
                "Get station codes by exact Chinese station names. Use this tool when "
                "the user names a specific station such as '北京南' or '上海虹桥'.\n"
                "Args:\n"
                "  station_names: Station names separated by '|' "
                "(e.g., '北京南|上海虹桥')",
                PropertyList([Property("station_names", PropertyType.STRING)]),
                get_station_by_name,
            )
        )

        # 根据编码获取车站信息
        add_tool(
            (
                "self.railway.get_station_by_code",
                "Get detailed station information (name, pinyin, city) by the "
                "3-letter station telecode.\n"
                "Args:\n"
                "  station_code: 3-letter station code (e.g., 'BJP', 'SHH')",
                PropertyList([Property("station_code", PropertyType.STRING)]),
                get_station_by_code,
            )
        )

        logger.debug("[Railway] 注册基础工具成功")

    def _time_window_properties(self, Property, PropertyType):
        return [
            Property(
                "earliest_start_time",
                PropertyType.INTEGER,
                default_value=0,
                min_value=0,
                max_value=24,
            ),
            Property(
                "latest_start_time",
                PropertyType.INTEGER,
                default_value=24,
                min_value=0,
                max_value=24,
            ),
        ]

    def _register_query_tools(self, add_tool, PropertyList, Property, PropertyType):
        """
        注册查询工具.
        """
        # 查询车票
        ticket_props = PropertyList(
            [
                Property("date", PropertyType.STRING),
                Property("from_station", PropertyType.STRING),
                Property("to_station", PropertyType.STRING),
                Property("train_filters", PropertyType.STRING, default_value=""),
                *self._time_window_properties(Property, PropertyType),
                Property("sort_by", PropertyType.STRING, default_value=""),
                Property("reverse", PropertyType.BOOLEAN, default_value=False),
                Property(
                    "limit",
                    PropertyType.INTEGER,
                    default_value=0,
                    min_value=0,
                    max_value=50,
                ),
            ]
        )
        add_tool(
            (
                "self.railway.query_tickets",
                "Query 12306 train tickets between two stations with filtering and "
                "sorting options.\n\n"
                + TRAIN_FILTER_HELP
                + "Args:\n"
                "  date: Travel date in 'YYYY-MM-DD' format\n"
                "  from_station: Departure station code (from station lookup tools)\n"
                "  to_station: Arrival station code (from station lookup tools)\n"
                "  train_filters: Train type filters (optional)\n"
                "  earliest_start_time: Earliest departure hour, inclusive (0-24)\n"
                "  latest_start_time: Latest departure hour, exclusive (0-24)\n"
                "  sort_by: Sort method (optional)\n"
                "  reverse: Reverse sort order (default: false)\n"
                "  limit: Maximum number of results (default: 0 = no limit)",
                ticket_props,
                query_train_tickets,
            )
        )

        # 查询中转车票
        transfer_props = PropertyList(
            [
                Property("date", PropertyType.STRING),
                Property("from_station", PropertyType.STRING),
                Property("to_station", PropertyType.STRING),
                Property("middle_station", PropertyType.STRING, default_value=""),
                Property("show_wz", PropertyType.BOOLEAN, default_value=False),
                Property("train_filters", PropertyType.STRING, default_value=""),
                *self._time_window_properties(Property, PropertyType),
                Property("sort_by", PropertyType.STRING, default_value=""),
                Property("reverse", PropertyType.BOOLEAN, default_value=False),
                Property(
                    "limit",
                    PropertyType.INTEGER,
                    default_value=10,
                    min_value=1,
                    max_value=20,
                ),
            ]
        )
        add_tool(
            (
                "self.railway.query_transfer_tickets",
                "Query 12306 transfer journeys (two trains with one connection) "
                "when no direct train fits. Each option reports the transfer type "
                "(same train, same station, different station), waiting time and "
                "total duration.\n\n"
                + TRAIN_FILTER_HELP
                + "Args:\n"
                "  date: Travel date in 'YYYY-MM-DD' format\n"
                "  from_station: Departure station code\n"
                "  to_station: Final destination station code\n"
                "  middle_station: Preferred transfer station code (optional)\n"
                "  show_wz: Include trains with only standing tickets\n"
                "  limit: Maximum transfer options to return (default: 10)",
                transfer_props,
                query_transfer_tickets,
            )
        )

        # 查询车次经停站
        route_props = PropertyList(
            [
                Property("train_no", PropertyType.STRING),
                Property("from_station_code", PropertyType.STRING),
                Property("to_station_code", PropertyType.STRING),
                Property("depart_date", PropertyType.STRING),
            ]
        )
        add_tool(
            (
                "self.railway.query_train_route",
                "Query the stops of a specific train with arrival times and stop "
                "durations.\n"
                "- train_no is the actual train number (e.g., '240000G10336'), not the "
                "display name ('G1033'); take it from ticket query results\n"
                "- depart_date is when the train departs from from_station_code",
                route_props,
                query_train_route,
            )
        )

        logger.debug("[Railway] 注册查询工具成功")

    def init_resources(self, add_resource):
        """
        注册铁路资源.
        """
        add_resource(
            (
                "data://all-stations",
                "stations",
                "All stations in the 12306 catalog as JSON, keyed by station code.",
                read_all_stations,
            )
        )
        logger.debug("[Railway] 注册资源成功")


# 全局管理器实例
_railway_manager = None


def get_railway_manager() -> RailwayToolsManager:
    """
    获取铁路工具管理器单例.
    """
    global _railway_manager
    if _railway_manager is None:
        _railway_manager = RailwayToolsManager()
        logger.debug("[Railway] 创建管理器实例")
    return _railway_manager
