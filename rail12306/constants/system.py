class SystemConstants:
    """系统常量."""

    APP_NAME = "rail12306-mcp"
    APP_VERSION = "0.3.0"
    MCP_PROTOCOL_VERSION = "2024-11-05"

    # 时间格式
    DATE_FORMAT = "%Y-%m-%d"
    UPSTREAM_DATE_FORMAT = "%Y%m%d"
