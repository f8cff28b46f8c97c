"""备份模块

提供记录编解码、类型识别、重复检测、归档、预览和导入导出服务
"""

from .constants import (
    RecordType,
    CANONICAL_ENTRY_NAMES,
    BackupSelection,
    ExportSummary,
    RestoreSummary,
    ImportPreview,
    ConflictInfo,
)
from .errors import (
    ErrorKind,
    BackupError,
    BackupValidationError,
    BackupIOError,
    BackupFormatError,
    OperationResult,
)
from .codec import RecordCodec, get_codec
from .classifier import classify
from .duplicates import is_duplicate, split_new_and_duplicates
from .path_manager import PathManager
from .archive import ArchiveContainer
from .stores import (
    EntityStore,
    InMemoryStore,
    JsonFileStore,
    open_file_stores,
    SelectionStore,
    FlagStore,
    CourseSettingsStore,
)
from .preview import PreviewEngine
from .service import BackupService
from .compatibility import CompatibilityValidator, CompatibilityReport
from .schedule_import import ScheduleImporter, ImportOptions, ScheduleImportResult
from .initializer import DefaultSemesterInitializer

__all__ = [
    "RecordType",
    "CANONICAL_ENTRY_NAMES",
    "BackupSelection",
    "ExportSummary",
    "RestoreSummary",
    "ImportPreview",
    "ConflictInfo",
    "ErrorKind",
    "BackupError",
    "BackupValidationError",
    "BackupIOError",
    "BackupFormatError",
    "OperationResult",
    "RecordCodec",
    "get_codec",
    "classify",
    "is_duplicate",
    "split_new_and_duplicates",
    "PathManager",
    "ArchiveContainer",
    "EntityStore",
    "InMemoryStore",
    "JsonFileStore",
    "open_file_stores",
    "SelectionStore",
    "FlagStore",
    "CourseSettingsStore",
    "PreviewEngine",
    "BackupService",
    "CompatibilityValidator",
    "CompatibilityReport",
    "ScheduleImporter",
    "ImportOptions",
    "ScheduleImportResult",
    "DefaultSemesterInitializer",
]
