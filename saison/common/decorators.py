"""装饰器模块

提供尽力而为的错误处理装饰器和通知调用
"""

from functools import wraps
from typing import Any, Awaitable, Callable, Iterable

from loguru import logger


def handle_async_errors(default_return=None, operation_name: str = "操作"):
    """异步错误处理装饰器

    异常被记录后返回默认值，不向调用方传播；取消不受影响

    Args:
        default_return: 错误时的默认返回值
        operation_name: 操作名称，用于日志

    Returns:
        装饰器函数
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.opt(exception=e).error(f"{operation_name} 失败: {e}")
                return default_return

        return wrapper

    return decorator


async def fire_and_forget(
    callbacks: Iterable[Callable[..., Awaitable[Any]]],
    *args: Any,
    operation_name: str = "通知",
) -> None:
    """依次调用次要通知回调

    回调失败只记录日志，不影响主操作的结果

    Args:
        callbacks: 异步回调列表
        *args: 传给回调的参数
        operation_name: 操作名称，用于日志
    """
    for callback in callbacks:
        try:
            await callback(*args)
        except Exception as e:
            name = getattr(callback, "__name__", repr(callback))
            logger.warning(f"{operation_name} 回调 {name} 失败: {e}")


__all__ = ["handle_async_errors", "fire_and_forget"]
