"""导入预览

只读的演练：识别输入中的记录类型并统计新增/重复数量，从不写入存储
"""

import asyncio
import mimetypes
from pathlib import Path
from typing import Dict, Mapping, Optional

from loguru import logger

from .archive import ArchiveContainer, read_text_file
from .classifier import classify
from .codec import get_codec
from .constants import ImportPreview, RecordType
from .duplicates import count_new_and_duplicates
from .errors import BackupFormatError
from .stores import EntityStore

ZIP_MEDIA_TYPES = frozenset({"application/zip", "application/x-zip-compressed"})


def is_archive_source(source: Path, media_type: Optional[str] = None) -> bool:
    """根据媒体类型或扩展名判断是否为归档"""
    if media_type:
        return media_type in ZIP_MEDIA_TYPES
    guessed, _ = mimetypes.guess_type(str(source))
    return guessed in ZIP_MEDIA_TYPES or Path(source).suffix.lower() == ".zip"


class PreviewEngine:
    """导入预览引擎"""

    def __init__(
        self,
        stores: Mapping[RecordType, EntityStore],
        archive: ArchiveContainer,
    ):
        """初始化预览引擎

        Args:
            stores: {记录类型: 存储}，只会调用 snapshot()
            archive: 归档容器
        """
        self.stores = stores
        self.archive = archive

    async def _collect_texts(self, source: Path, is_zip: bool) -> Dict[RecordType, str]:
        if is_zip:
            entries = await self.archive.unpack(source)
            return {
                record_type: entries[record_type.file_name]
                for record_type in RecordType
                if record_type.file_name in entries
            }

        try:
            text = await asyncio.to_thread(read_text_file, source)
        except BackupFormatError as e:
            logger.warning(f"预览时无法读取文本，按空内容处理: {e}")
            return {}

        record_type = classify(text)
        if record_type is None:
            logger.warning(f"无法识别 {source} 的数据类型，预览结果为空")
            return {}
        return {record_type: text}

    async def preview(self, source: Path, media_type: Optional[str] = None) -> ImportPreview:
        """预览导入

        Args:
            source: 单类型文件或归档
            media_type: 可选的媒体类型，优先于扩展名判断

        Returns:
            预览信息

        Raises:
            BackupIOError: 源文件无法读取
            BackupFormatError: 归档不是有效的 ZIP
        """
        source = Path(source)
        is_zip = is_archive_source(source, media_type)
        texts = await self._collect_texts(source, is_zip)

        data_types: Dict[RecordType, int] = {}
        new_items = 0
        duplicate_items = 0

        for record_type, text in texts.items():
            candidates = get_codec(record_type).decode(text)
            data_types[record_type] = len(candidates)
            if not candidates:
                continue

            store = self.stores.get(record_type)
            if store is None:
                new_items += len(candidates)
                continue

            existing = await store.snapshot()
            new_count, duplicate_count = count_new_and_duplicates(
                record_type, candidates, existing
            )
            new_items += new_count
            duplicate_items += duplicate_count

        preview = ImportPreview(
            data_types=data_types,
            total_items=sum(data_types.values()),
            new_items=new_items,
            duplicate_items=duplicate_items,
            is_zip_file=is_zip,
        )
        logger.info(
            f"预览 {source.name}: 共 {preview.total_items} 条，"
            f"新增 {preview.new_items}，重复 {preview.duplicate_items}"
        )
        return preview


__all__ = ["PreviewEngine", "is_archive_source", "ZIP_MEDIA_TYPES"]
