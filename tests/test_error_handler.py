"""
异常处理单元测试
Error Handler Tests
"""

from unittest.mock import Mock

import pytest

from storefront.core.error_handler import (
    ConfigError,
    MediaError,
    PayloadError,
    ResourceValidationError,
    StorefrontError,
    TransportError,
    log_execution_time,
    safe_execute,
)


class TestSafeExecute:
    """安全执行装饰器测试"""

    @pytest.mark.asyncio
    async def test_safe_execute_async_success(self):
        """测试异步成功执行"""
        @safe_execute()
        async def test_func():
            return "success"

        result = await test_func()
        assert result == "success"

    @pytest.mark.asyncio
    async def test_safe_execute_async_error(self):
        """测试异步错误处理"""
        @safe_execute()
        async def test_func():
            raise ValueError("Test error")

        result = await test_func()
        assert result is None

    def test_safe_execute_sync_success(self):
        """测试同步成功执行"""
        @safe_execute()
        def test_func():
            return "success"

        assert test_func() == "success"

    def test_safe_execute_sync_error(self):
        """测试同步错误默认返回值"""
        @safe_execute(default_return="fallback")
        def test_func():
            raise ValueError("Test error")

        assert test_func() == "fallback"

    def test_safe_execute_raise_on_error(self):
        """测试raise_on_error参数"""
        @safe_execute(raise_on_error=True)
        def test_func():
            raise ValueError("Test error")

        with pytest.raises(ValueError):
            test_func()

    @pytest.mark.asyncio
    async def test_safe_execute_custom_logger(self):
        """测试自定义logger"""
        mock_logger = Mock()

        @safe_execute(logger=mock_logger)
        async def test_func():
            raise ValueError("Test error")

        await test_func()
        mock_logger.debug.assert_called_once()


class TestLogExecutionTime:
    """执行时间装饰器测试"""

    @pytest.mark.asyncio
    async def test_log_execution_time_async(self):
        """测试异步函数计时"""
        mock_logger = Mock()

        @log_execution_time(logger=mock_logger)
        async def test_func():
            return "done"

        assert await test_func() == "done"
        mock_logger.debug.assert_called_once()

    def test_log_execution_time_sync(self):
        """测试同步函数计时"""
        mock_logger = Mock()

        @log_execution_time(logger=mock_logger)
        def test_func():
            return 1

        assert test_func() == 1
        mock_logger.debug.assert_called_once()

    @pytest.mark.asyncio
    async def test_log_execution_time_with_error(self):
        """测试异常时记录并重新抛出"""
        mock_logger = Mock()

        @log_execution_time(logger=mock_logger)
        async def test_func():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await test_func()
        mock_logger.error.assert_called_once()


class TestErrorClasses:
    """异常类测试"""

    def test_storefront_error_basic(self):
        error = StorefrontError("Test error")
        assert error.message == "Test error"
        assert error.details == {}
        assert str(error) == "Test error"

    def test_storefront_error_to_dict(self):
        error = MediaError("bad image", {"filename": "a.bmp"})
        assert error.to_dict() == {
            "type": "MediaError",
            "message": "bad image",
            "details": {"filename": "a.bmp"},
        }

    def test_error_hierarchy(self):
        for cls in (ConfigError, MediaError, TransportError):
            assert issubclass(cls, StorefrontError)

    def test_payload_error_field_messages(self):
        error = PayloadError({"name": ["The name field is required."], "price": ["The price must be greater than 0."]})
        assert error.message == "Invalid product data"
        assert error.flat_messages() == [
            "The name field is required.",
            "The price must be greater than 0.",
        ]
        assert error.details["errors"]["name"] == ["The name field is required."]

    def test_resource_validation_error_copies_errors(self):
        errors = {"category_id": ["The selected category id is invalid."]}
        error = ResourceValidationError(errors)
        errors["category_id"].append("mutated")
        assert error.field_errors == {"category_id": ["The selected category id is invalid."]}
        assert error.message == "The given data was invalid."

    def test_transport_error_status_code(self):
        error = TransportError("Server error", status_code=500)
        assert error.status_code == 500
        assert error.details == {"status_code": 500}
