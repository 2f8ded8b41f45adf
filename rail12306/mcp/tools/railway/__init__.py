"""12306铁路购票查询工具模块.

提供火车票查询、中转查询、车次经停站查询、车站查询等功能.
"""

from .manager import RailwayToolsManager, get_railway_manager

__all__ = [
    "get_railway_manager",
    "RailwayToolsManager",
]
