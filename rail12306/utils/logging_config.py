import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s[%(name)s] - %(levelname)s - %(message)s - %(threadName)s"

_configured = False


def setup_logging(
    level: Union[str, int] = logging.INFO, log_dir: Optional[Path] = None
) -> logging.Logger:
    """配置日志系统.

    控制台日志统一输出到stderr，stdout保留给MCP消息. 传入log_dir时额外
    按天滚动写入日志文件.
    """
    global _configured

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if _configured:
        return root_logger

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_dir / "rail12306.log",
            when="midnight",
            interval=1,
            backupCount=30,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    _configured = True
    root_logger.debug(f"日志系统已初始化, 级别: {logging.getLevelName(level)}")
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    获取日志记录器.
    """
    return logging.getLogger(name)
