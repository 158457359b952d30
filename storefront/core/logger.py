"""
日志模块
Logging Module

基于loguru的进程级日志单例：彩色控制台 + 按大小轮转的文件日志
环境变量：STOREFRONT_LOG_LEVEL / STOREFRONT_LOGS_DIR / STOREFRONT_DEBUG
"""

import os
import sys
import threading
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{message}</cyan>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"
LOG_FILE_NAME = "storefront.log"


def _console_level() -> str:
    if os.getenv("STOREFRONT_DEBUG", "false").lower() == "true":
        return "DEBUG"
    return os.getenv("STOREFRONT_LOG_LEVEL", "INFO").upper()


class Logger:
    """
    日志单例

    首次实例化时替换loguru默认sink，之后所有 get_logger() 共享同一配置
    """

    _instance: Optional["Logger"] = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    instance = super().__new__(cls)
                    instance._configure()
                    cls._instance = instance
        return cls._instance

    def _configure(self) -> None:
        """控制台级别可配置，文件始终记录DEBUG"""
        logs_dir = Path(os.getenv("STOREFRONT_LOGS_DIR", "logs"))
        logs_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = logs_dir / LOG_FILE_NAME

        logger.remove()
        logger.add(sys.stdout, format=CONSOLE_FORMAT, level=_console_level(), colorize=True)
        logger.add(
            str(self.log_file),
            format=FILE_FORMAT,
            level="DEBUG",
            rotation="10 MB",
            retention="7 days",
            compression="gz",
        )

    def info(self, message: str, **kwargs) -> None:
        logger.info(message, **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        logger.debug(message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        logger.error(message, **kwargs)

    def success(self, message: str, **kwargs) -> None:
        logger.success(message, **kwargs)


def get_logger() -> Logger:
    return Logger()
