"""
统一异常处理模块
Unified Error Handling

提供异常类型层级和装饰器工具函数
"""

import asyncio
import time
from functools import wraps
from typing import Any, Callable, Dict, List, Optional

from storefront.core.logger import get_logger


def safe_execute(logger=None, default_return: Any = None,
                 raise_on_error: bool = False):
    """
    安全执行装饰器（用于可能失败的操作，静默失败）

    Args:
        logger: 日志记录器，不指定则使用全局logger
        default_return: 发生异常时返回的默认值
        raise_on_error: 是否在异常时重新抛出
    """
    if logger is None:
        logger = get_logger()

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.debug(f"Error in {func.__name__}: {e}")
                if raise_on_error:
                    raise
                return default_return

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.debug(f"Error in {func.__name__}: {e}")
                if raise_on_error:
                    raise
                return default_return

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper
    return decorator


def log_execution_time(logger=None):
    """
    记录执行时间装饰器

    Args:
        logger: 日志记录器
    """
    if logger is None:
        logger = get_logger()

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            start_time = time.time()

            try:
                result = await func(*args, **kwargs)
                elapsed = time.time() - start_time
                logger.debug(f"{func.__name__} executed in {elapsed:.2f}s")
                return result
            except Exception as e:
                elapsed = time.time() - start_time
                logger.error(f"{func.__name__} failed after {elapsed:.2f}s: {e}")
                raise

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            start_time = time.time()

            try:
                result = func(*args, **kwargs)
                elapsed = time.time() - start_time
                logger.debug(f"{func.__name__} executed in {elapsed:.2f}s")
                return result
            except Exception as e:
                elapsed = time.time() - start_time
                logger.error(f"{func.__name__} failed after {elapsed:.2f}s: {e}")
                raise

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper
    return decorator


class StorefrontError(Exception):
    """基础异常类"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ConfigError(StorefrontError):
    """配置错误"""
    pass


class MediaError(StorefrontError):
    """媒体处理错误"""
    pass


class DraftStoreError(StorefrontError):
    """草稿存储错误"""
    pass


class FieldErrorsMixin:
    """携带字段级错误的异常"""

    field_errors: Dict[str, List[str]]

    def flat_messages(self) -> List[str]:
        messages: List[str] = []
        for errors in self.field_errors.values():
            messages.extend(errors)
        return messages


class PayloadError(FieldErrorsMixin, StorefrontError):
    """提交数据组装错误（本地校验未通过）"""

    def __init__(self, field_errors: Dict[str, List[str]], message: str = "Invalid product data"):
        self.field_errors = {k: list(v) for k, v in field_errors.items()}
        super().__init__(message, {"errors": self.field_errors})


class ResourceValidationError(FieldErrorsMixin, StorefrontError):
    """服务端返回的字段校验错误"""

    def __init__(self, field_errors: Dict[str, List[str]], message: str = "The given data was invalid."):
        self.field_errors = {k: list(v) for k, v in field_errors.items()}
        super().__init__(message, {"errors": self.field_errors})


class TransportError(StorefrontError):
    """网络或未知的远程调用错误"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message, {"status_code": status_code})
