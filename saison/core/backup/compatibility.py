"""备份兼容性校验

校验本引擎产出的文件能否与其他备份生成方互相读取：
文件命名、归档条目名、条目内容的往返解析，以及三者的汇总结果。
只读取，不修改任何文件
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from loguru import logger

from .archive import ArchiveContainer
from .codec import get_codec
from .constants import CANONICAL_ENTRY_NAMES, RecordType
from .errors import BackupError

BACKUP_FILE_NAME_PATTERN = re.compile(r"saison_backup_\d{8}_\d{6}\.zip")
"""归档文件名格式"""

SINGLE_FILE_NAME_PATTERN = re.compile(r"saison_[a-z_]+_\d{8}_\d{6}\.json")
"""单类型文件名格式"""


@dataclass
class ValidationResult:
    """单项校验结果"""

    is_valid: bool
    error_message: Optional[str] = None


@dataclass
class CompatibilityReport:
    """兼容性报告"""

    naming_ok: bool
    """文件名符合命名约定"""

    entry_names_ok: bool
    """归档条目名都是规范条目名"""

    content_ok: bool
    """每个条目都能往返解析"""

    errors: List[str] = field(default_factory=list)
    """失败原因"""

    @property
    def all_passed(self) -> bool:
        return self.naming_ok and self.entry_names_ok and self.content_ok

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "naming_ok": self.naming_ok,
            "entry_names_ok": self.entry_names_ok,
            "content_ok": self.content_ok,
            "all_passed": self.all_passed,
            "errors": self.errors,
        }


class CompatibilityValidator:
    """兼容性校验器"""

    def __init__(self, archive: ArchiveContainer):
        self.archive = archive

    def validate_backup_file_name(self, file_name: str) -> bool:
        return BACKUP_FILE_NAME_PATTERN.fullmatch(file_name) is not None

    def validate_single_file_name(self, file_name: str) -> bool:
        return SINGLE_FILE_NAME_PATTERN.fullmatch(file_name) is not None

    def validate_archive_entries(self, names: Iterable[str]) -> ValidationResult:
        """条目名必须是规范条目名的子集"""
        invalid = sorted(set(names) - CANONICAL_ENTRY_NAMES)
        if invalid:
            return ValidationResult(False, f"归档包含非规范条目: {', '.join(invalid)}")
        return ValidationResult(True)

    def validate_entry_content(self, name: str, text: str) -> ValidationResult:
        """条目内容解码、重新编码、再次解码后数量一致"""
        record_type = RecordType.from_file_name(name)
        if record_type is None:
            return ValidationResult(False, f"未知的条目名: {name}")

        codec = get_codec(record_type)
        try:
            items = codec.parse(text)
            again = codec.parse(codec.encode(items))
        except BackupError as e:
            return ValidationResult(False, f"{name} 格式无效: {e}")

        if len(items) != len(again):
            return ValidationResult(
                False, f"{name} 往返后记录数不一致: {len(items)} -> {len(again)}"
            )
        return ValidationResult(True)

    def validate_round_trip(self, entries: Mapping[str, str]) -> ValidationResult:
        """校验全部条目，返回第一个失败"""
        for name, text in entries.items():
            result = self.validate_entry_content(name, text)
            if not result.is_valid:
                return result
        return ValidationResult(True)

    async def check(
        self, archive_path: Path, single_file_names: Iterable[str] = ()
    ) -> CompatibilityReport:
        """生成兼容性报告

        Args:
            archive_path: 待检查的归档
            single_file_names: 一并检查命名的单类型文件名

        Returns:
            兼容性报告
        """
        archive_path = Path(archive_path)
        errors: List[str] = []

        naming_ok = self.validate_backup_file_name(archive_path.name)
        if not naming_ok:
            errors.append(f"归档文件名不符合命名约定: {archive_path.name}")
        for file_name in single_file_names:
            if not self.validate_single_file_name(file_name):
                naming_ok = False
                errors.append(f"单类型文件名不符合命名约定: {file_name}")

        try:
            entries = await self.archive.unpack(archive_path)
        except BackupError as e:
            errors.append(f"无法读取归档: {e}")
            report = CompatibilityReport(naming_ok, False, False, errors)
            logger.warning(f"兼容性检查未通过: {archive_path.name}")
            return report

        names_result = self.validate_archive_entries(entries)
        if not names_result.is_valid:
            errors.append(names_result.error_message)

        content_ok = True
        for name, text in entries.items():
            if name not in CANONICAL_ENTRY_NAMES:
                continue
            result = self.validate_entry_content(name, text)
            if not result.is_valid:
                content_ok = False
                errors.append(result.error_message)

        report = CompatibilityReport(naming_ok, names_result.is_valid, content_ok, errors)
        if report.all_passed:
            logger.info(f"兼容性检查通过: {archive_path.name}")
        else:
            logger.warning(f"兼容性检查未通过: {archive_path.name}，{len(errors)} 个问题")
        return report


__all__ = [
    "BACKUP_FILE_NAME_PATTERN",
    "SINGLE_FILE_NAME_PATTERN",
    "ValidationResult",
    "CompatibilityReport",
    "CompatibilityValidator",
]
