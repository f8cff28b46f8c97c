"""备份模块常量

定义记录类型、导出选择以及导出/导入/预览共享的结果结构
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


ARCHIVE_PREFIX = "backup"
"""归档文件名中的类型段"""

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
"""文件名时间戳格式"""


class RecordType(str, Enum):
    """记录类型

    顺序即导出顺序，也是归档内条目的规范顺序
    """

    TASKS = "tasks"
    COURSES = "courses"
    EVENTS = "events"
    ROUTINES = "routines"
    SUBSCRIPTIONS = "subscriptions"
    POMODORO_SESSIONS = "pomodoro_sessions"
    SEMESTERS = "semesters"
    PREFERENCES = "preferences"

    @property
    def slug(self) -> str:
        """单文件名中使用的类型段"""
        return self.value

    @property
    def file_name(self) -> str:
        """归档内的规范条目名"""
        return f"{self.value}.json"

    @property
    def preference_key(self) -> str:
        """导出选择持久化使用的键"""
        return _PREFERENCE_KEYS[self]

    @classmethod
    def from_file_name(cls, file_name: str) -> Optional["RecordType"]:
        """根据条目名查找记录类型"""
        for record_type in cls:
            if record_type.file_name == file_name:
                return record_type
        return None


_PREFERENCE_KEYS = {
    RecordType.TASKS: "include_tasks",
    RecordType.COURSES: "include_courses",
    RecordType.EVENTS: "include_events",
    RecordType.ROUTINES: "include_routines",
    RecordType.SUBSCRIPTIONS: "include_subscriptions",
    RecordType.POMODORO_SESSIONS: "include_pomodoro",
    RecordType.SEMESTERS: "include_semesters",
    RecordType.PREFERENCES: "include_preferences",
}

CANONICAL_ENTRY_NAMES = frozenset(record_type.file_name for record_type in RecordType)
"""归档允许出现的全部条目名"""


@dataclass
class BackupSelection:
    """导出选择

    每种记录类型一个开关，至少启用一个才能导出
    """

    flags: Dict[RecordType, bool] = field(
        default_factory=lambda: {record_type: True for record_type in RecordType}
    )
    """{记录类型: 是否导出}"""

    @classmethod
    def all(cls) -> "BackupSelection":
        return cls()

    @classmethod
    def none(cls) -> "BackupSelection":
        return cls({record_type: False for record_type in RecordType})

    @classmethod
    def of(cls, *record_types: RecordType) -> "BackupSelection":
        """仅启用指定类型"""
        return cls({record_type: record_type in record_types for record_type in RecordType})

    def is_enabled(self, record_type: RecordType) -> bool:
        return self.flags.get(record_type, False)

    def set_enabled(self, record_type: RecordType, enabled: bool) -> None:
        self.flags[record_type] = enabled

    def has_any_enabled(self) -> bool:
        """是否至少启用了一种类型"""
        return any(self.flags.get(record_type, False) for record_type in RecordType)

    def enabled_types(self) -> List[RecordType]:
        """按规范顺序返回启用的类型"""
        return [record_type for record_type in RecordType if self.is_enabled(record_type)]

    def to_preferences(self) -> Dict[str, bool]:
        """转换为持久化键值"""
        return {
            record_type.preference_key: self.is_enabled(record_type)
            for record_type in RecordType
        }

    @classmethod
    def from_preferences(cls, data: Dict[str, Any]) -> "BackupSelection":
        """从持久化键值创建，缺失的键视为启用"""
        return cls(
            {
                record_type: bool(data.get(record_type.preference_key, True))
                for record_type in RecordType
            }
        )


@dataclass(frozen=True)
class ExportSummary:
    """导出操作摘要"""

    total_items: int
    """导出的记录总数"""

    exported_types: List[RecordType]
    """导出的记录类型"""

    destination: str
    """目标文件"""

    file_size: int
    """文件大小（字节）"""

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "total_items": self.total_items,
            "exported_types": [record_type.value for record_type in self.exported_types],
            "destination": self.destination,
            "file_size": self.file_size,
        }


@dataclass(frozen=True)
class RestoreSummary:
    """恢复操作摘要"""

    imported: Dict[RecordType, int] = field(default_factory=dict)
    """{记录类型: 导入数量}"""

    skipped_duplicates: int = 0
    """跳过的重复记录数"""

    @property
    def total_imported(self) -> int:
        return sum(self.imported.values())

    def imported_count(self, record_type: RecordType) -> int:
        return self.imported.get(record_type, 0)

    def merge(self, other: "RestoreSummary") -> "RestoreSummary":
        """合并两个摘要"""
        imported = dict(self.imported)
        for record_type, count in other.imported.items():
            imported[record_type] = imported.get(record_type, 0) + count
        return RestoreSummary(
            imported=imported,
            skipped_duplicates=self.skipped_duplicates + other.skipped_duplicates,
        )

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "imported": {
                record_type.value: count for record_type, count in self.imported.items()
            },
            "skipped_duplicates": self.skipped_duplicates,
            "total_imported": self.total_imported,
        }


@dataclass(frozen=True)
class ImportPreview:
    """导入预览信息"""

    data_types: Dict[RecordType, int]
    """{记录类型: 发现的记录数}"""

    total_items: int
    """记录总数"""

    new_items: int
    """新记录数"""

    duplicate_items: int
    """重复记录数"""

    is_zip_file: bool
    """输入是否为归档"""

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "data_types": {
                record_type.value: count for record_type, count in self.data_types.items()
            },
            "total_items": self.total_items,
            "new_items": self.new_items,
            "duplicate_items": self.duplicate_items,
            "is_zip_file": self.is_zip_file,
        }


@dataclass(frozen=True)
class ConflictInfo:
    """学期导入冲突信息"""

    has_name_conflict: bool
    """学期名称冲突"""

    has_period_settings_conflict: bool
    """节次设置冲突"""

    has_display_settings_conflict: bool
    """显示设置冲突"""

    existing_semester_name: Optional[str] = None
    """冲突的学期名称"""

    @property
    def has_any_conflict(self) -> bool:
        return (
            self.has_name_conflict
            or self.has_period_settings_conflict
            or self.has_display_settings_conflict
        )


__all__ = [
    "ARCHIVE_PREFIX",
    "TIMESTAMP_FORMAT",
    "RecordType",
    "CANONICAL_ENTRY_NAMES",
    "BackupSelection",
    "ExportSummary",
    "RestoreSummary",
    "ImportPreview",
    "ConflictInfo",
]
