"""
商城商品编辑器
Storefront Listing Editor

多步骤商品发布向导：草稿持久化、图片暂存、两阶段提交
"""

__version__ = "1.0.0"
__author__ = "Project Team"

from .core.config import Config
from .core.logger import Logger

__all__ = [
    "Config",
    "Logger",
    "__version__",
]
