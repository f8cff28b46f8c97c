"""路径管理器

统一管理备份引擎需要的所有路径和文件名，避免硬编码
"""

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .constants import ARCHIVE_PREFIX, TIMESTAMP_FORMAT, RecordType


@dataclass
class BackupPaths:
    """备份路径配置"""

    data_dir: Path
    """数据目录"""

    stores_dir: Path
    """实体存储目录"""

    exports_dir: Path
    """默认导出目录"""

    scratch_dir: Path
    """临时工作目录根"""

    selection_file: Path
    """导出选择持久化文件"""

    flags_file: Path
    """初始化标记持久化文件"""

    course_settings_file: Path
    """课程表设置文件"""


class PathManager:
    """路径管理器"""

    def __init__(
        self,
        data_dir: Path,
        scratch_dir: Optional[Path] = None,
        file_prefix: str = "saison",
    ):
        """初始化路径管理器

        Args:
            data_dir: 数据目录
            scratch_dir: 临时工作目录根，默认为 data_dir/temp
            file_prefix: 导出文件名前缀
        """
        data_dir = Path(data_dir)
        self.file_prefix = file_prefix
        self.paths = BackupPaths(
            data_dir=data_dir,
            stores_dir=data_dir / "stores",
            exports_dir=data_dir / "exports",
            scratch_dir=Path(scratch_dir) if scratch_dir else data_dir / "temp",
            selection_file=data_dir / "config" / "export_preferences.json",
            flags_file=data_dir / "config" / "flags.json",
            course_settings_file=data_dir / "config" / "course_settings.json",
        )

    def ensure_directories(self) -> None:
        """确保所有必要的目录存在"""
        for path in (
            self.paths.data_dir,
            self.paths.stores_dir,
            self.paths.exports_dir,
            self.paths.scratch_dir,
            self.paths.selection_file.parent,
        ):
            path.mkdir(parents=True, exist_ok=True)

    def _timestamp(self, now: Optional[datetime] = None) -> str:
        return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)

    def archive_file_name(self, now: Optional[datetime] = None) -> str:
        """归档文件名，如 saison_backup_20240101_120000.zip"""
        return f"{self.file_prefix}_{ARCHIVE_PREFIX}_{self._timestamp(now)}.zip"

    def single_file_name(self, record_type: RecordType, now: Optional[datetime] = None) -> str:
        """单类型文件名，如 saison_tasks_20240101_120000.json"""
        return f"{self.file_prefix}_{record_type.slug}_{self._timestamp(now)}.json"

    def archive_name_pattern(self) -> re.Pattern:
        return re.compile(rf"{re.escape(self.file_prefix)}_{ARCHIVE_PREFIX}_\d{{8}}_\d{{6}}\.zip")

    def single_file_name_pattern(self) -> re.Pattern:
        return re.compile(rf"{re.escape(self.file_prefix)}_[a-z_]+_\d{{8}}_\d{{6}}\.json")

    def get_store_file(self, record_type: RecordType) -> Path:
        """实体存储文件路径"""
        return self.paths.stores_dir / record_type.file_name

    def get_export_file(self, file_name: str) -> Path:
        """默认导出位置"""
        return self.paths.exports_dir / file_name

    def format_size(self, size: float) -> str:
        """格式化文件大小

        Args:
            size: 字节大小

        Returns:
            格式化后的字符串，如 "1.23 MB"
        """
        for unit in ["B", "KB", "MB", "GB", "TB"]:
            if size < 1024.0:
                return f"{size:.2f} {unit}"
            size /= 1024.0
        return f"{size:.2f} PB"


__all__ = ["PathManager", "BackupPaths"]
