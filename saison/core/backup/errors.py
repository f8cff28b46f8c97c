"""备份错误与操作结果

编排层对外只返回 OperationResult，内部异常在边界处转换
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """错误类别"""

    VALIDATION = "validation"
    IO = "io"
    FORMAT = "format"


class BackupError(Exception):
    """备份错误基类"""

    kind: ErrorKind = ErrorKind.FORMAT

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class BackupValidationError(BackupError):
    """参数校验失败，发生在任何 I/O 之前"""

    kind = ErrorKind.VALIDATION


class BackupIOError(BackupError):
    """源或目标无法打开、读取或写入"""

    kind = ErrorKind.IO


class BackupFormatError(BackupError):
    """无法识别或无效的格式"""

    kind = ErrorKind.FORMAT


def wrap_exception(error: BaseException, message: str) -> BackupError:
    """将任意异常转换为带类别的备份错误

    Args:
        error: 原始异常
        message: 错误描述

    Returns:
        备份错误，原始异常保存在 cause 中
    """
    if isinstance(error, BackupError):
        return error
    if isinstance(error, OSError):
        return BackupIOError(message, cause=error)
    return BackupFormatError(message, cause=error)


@dataclass
class OperationResult(Generic[T]):
    """操作结果"""

    success: bool
    """是否成功"""

    value: Optional[T] = None
    """成功时的结果"""

    error: Optional[BackupError] = None
    """失败时的错误"""

    message: str = ""
    """结果消息"""

    @classmethod
    def ok(cls, value: T, message: str = "") -> "OperationResult[T]":
        return cls(success=True, value=value, message=message)

    @classmethod
    def fail(cls, error: BackupError) -> "OperationResult[T]":
        return cls(success=False, error=error, message=str(error))

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> T:
        """返回结果值，失败时抛出原始备份错误"""
        if not self.success:
            raise self.error
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        value = self.value
        if value is not None and hasattr(value, "to_dict"):
            value = value.to_dict()
        return {
            "success": self.success,
            "value": value,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "message": self.message,
        }


__all__ = [
    "ErrorKind",
    "BackupError",
    "BackupValidationError",
    "BackupIOError",
    "BackupFormatError",
    "wrap_exception",
    "OperationResult",
]
