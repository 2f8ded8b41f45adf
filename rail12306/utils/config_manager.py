import copy
import json
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from rail12306.utils.logging_config import get_logger

logger = get_logger(__name__)


def _default_config_dir() -> Path:
    env_dir = os.environ.get("RAIL12306_CONFIG_DIR")
    if env_dir:
        return Path(env_dir)
    return Path.cwd() / "config"


class ConfigManager:
    """配置管理器 - 单例模式"""

    _instance = None
    _lock = threading.Lock()

    # 默认配置
    DEFAULT_CONFIG = {
        "RAILWAY": {
            "API_BASE": "https://kyfw.12306.cn",
            "WEB_URL": "https://www.12306.cn/index/",
            "LCQUERY_INIT_URL": "https://kyfw.12306.cn/otn/lcQuery/init",
            "TIMEZONE": "Asia/Shanghai",
            "REQUEST_TIMEOUT": 10,
            "USER_AGENT": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
            ),
            # 本地车站数据文件（station_name.js 或纯文本），为空时从12306下载
            "STATION_CATALOG_FILE": None,
        },
        "LOGGING": {
            "LEVEL": "INFO",
            "LOG_TO_FILE": False,
            "LOG_DIR": "logs",
        },
    }

    def __new__(cls, config_dir: Optional[Path] = None):
        """确保单例模式."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_dir: Optional[Path] = None):
        """初始化配置管理器."""
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self.config_dir = Path(config_dir) if config_dir else _default_config_dir()
        self.config_file = self.config_dir / "config.json"
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """加载配置文件，不存在时使用默认配置."""
        if not self.config_file.exists():
            logger.debug(f"配置文件不存在，使用默认配置: {self.config_file}")
            return copy.deepcopy(self.DEFAULT_CONFIG)

        try:
            config = json.loads(self.config_file.read_text(encoding="utf-8"))
            logger.info(f"配置文件: {self.config_file.absolute()}")
            return self._merge_configs(self.DEFAULT_CONFIG, config)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading config: {e}")
            return copy.deepcopy(self.DEFAULT_CONFIG)

    def _save_config(self, config: dict) -> bool:
        """保存配置到文件."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            self.config_file.write_text(
                json.dumps(config, indent=2, ensure_ascii=False), encoding="utf-8"
            )
            return True
        except OSError as e:
            logger.error(f"Error saving config: {e}")
            return False

    @staticmethod
    def _merge_configs(default: dict, custom: dict) -> dict:
        """递归合并配置字典."""
        result = copy.deepcopy(default)
        for key, value in custom.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = ConfigManager._merge_configs(result[key], value)
            else:
                result[key] = value
        return result

    def get_config(self, path: str, default: Any = None) -> Any:
        """
        通过路径获取配置值
        path: 点分隔的配置路径，如 "RAILWAY.API_BASE"
        """
        try:
            value = self._config
            for key in path.split("."):
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def update_config(self, path: str, value: Any) -> bool:
        """
        更新特定配置项并写回文件
        path: 点分隔的配置路径，如 "LOGGING.LEVEL"
        """
        current = self._config
        *parts, last = path.split(".")
        for part in parts:
            current = current.setdefault(part, {})
        current[last] = value
        return self._save_config(self._config)

    @classmethod
    def get_instance(cls):
        """获取配置管理器实例（线程安全）"""
        with cls._lock:
            if cls._instance is None:
                cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """丢弃当前实例，下次获取时重新加载配置."""
        with cls._lock:
            cls._instance = None
