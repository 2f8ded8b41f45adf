import argparse
import asyncio
import sys
from pathlib import Path

from rail12306.mcp.mcp_server import McpServer
from rail12306.mcp.tools.railway.client import Railway12306Client, set_railway_client
from rail12306.utils.config_manager import ConfigManager
from rail12306.utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def parse_args():
    """
    解析命令行参数.
    """
    parser = argparse.ArgumentParser(description="12306 MCP服务")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="日志级别，默认读取配置文件",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="配置目录，默认 ./config 或环境变量 RAIL12306_CONFIG_DIR",
    )
    parser.add_argument(
        "--station-file",
        type=Path,
        default=None,
        help="本地车站数据文件，指定后不再从12306下载",
    )
    return parser.parse_args()


async def init_railway_client(station_file=None) -> Railway12306Client:
    """
    预先加载车站数据，避免首次工具调用时等待.
    """
    client = Railway12306Client()
    if station_file:
        client.catalog_file = str(station_file)
    await client.initialize()
    set_railway_client(client)
    return client


async def serve_stdio(server: McpServer) -> int:
    """
    按行读取stdin中的JSON-RPC消息，响应写入stdout.
    """
    loop = asyncio.get_running_loop()

    async def send(message: str):
        sys.stdout.write(message + "\n")
        sys.stdout.flush()

    server.set_send_callback(send)
    logger.info("MCP服务已启动，等待消息...")

    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            logger.info("stdin已关闭，服务退出")
            return 0
        line = line.strip()
        if line:
            await server.parse_message(line)


async def start_server(station_file=None) -> int:
    """
    启动服务的统一入口.
    """
    try:
        await init_railway_client(station_file)
    except Exception as e:
        logger.error(f"12306客户端初始化失败: {e}", exc_info=True)
        return 1

    server = McpServer.get_instance()
    server.add_railway_tools()
    return await serve_stdio(server)


if __name__ == "__main__":
    exit_code = 1
    try:
        args = parse_args()
        config = ConfigManager(args.config_dir)
        log_dir = None
        if config.get_config("LOGGING.LOG_TO_FILE", False):
            log_dir = Path(config.get_config("LOGGING.LOG_DIR", "logs"))
        setup_logging(args.log_level or config.get_config("LOGGING.LEVEL"), log_dir)

        exit_code = asyncio.run(start_server(args.station_file))

    except KeyboardInterrupt:
        logger.info("程序被用户中断")
        exit_code = 0
    except Exception as e:
        logger.error(f"程序异常退出: {e}", exc_info=True)
        exit_code = 1
    finally:
        sys.exit(exit_code)
