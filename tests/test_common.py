"""通用工具单元测试"""

from unittest.mock import AsyncMock

import pytest

from saison.common import fire_and_forget, handle_async_errors


class TestHandleAsyncErrors:
    """测试异步错误处理装饰器"""

    @pytest.mark.asyncio
    async def test_returns_value(self):
        """测试正常返回"""

        @handle_async_errors(default_return=-1)
        async def compute():
            return 42

        assert await compute() == 42

    @pytest.mark.asyncio
    async def test_returns_default_on_error(self):
        """测试异常时返回默认值"""

        @handle_async_errors(default_return=[], operation_name="测试操作")
        async def explode():
            raise ValueError("boom")

        assert await explode() == []


class TestFireAndForget:
    """测试次要通知"""

    @pytest.mark.asyncio
    async def test_all_callbacks_called(self):
        """测试某个回调失败时其余回调仍被调用"""
        first = AsyncMock(side_effect=RuntimeError("boom"))
        second = AsyncMock()

        await fire_and_forget([first, second], "tasks", 3)

        first.assert_awaited_once_with("tasks", 3)
        second.assert_awaited_once_with("tasks", 3)

    @pytest.mark.asyncio
    async def test_no_callbacks(self):
        """测试没有回调"""
        await fire_and_forget([], "tasks", 0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
