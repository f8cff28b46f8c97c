"""Saison 核心模块"""

__version__ = "1.0.0"

from .backup import BackupService, OperationResult, RecordType

__all__ = [
    "__version__",
    "BackupService",
    "OperationResult",
    "RecordType",
]
