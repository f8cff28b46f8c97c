"""通用工具模块

提供文件读写和错误处理装饰器。
"""

from .file_handler import JsonFileHandler

from .decorators import (
    handle_async_errors,
    fire_and_forget,
)

__all__ = [
    "JsonFileHandler",
    "handle_async_errors",
    "fire_and_forget",
]
