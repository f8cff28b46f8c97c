"""备份服务

导出、导入与预览的统一入口。服务是唯一的错误边界：
所有公开方法都返回 OperationResult，内部异常不会传播给调用方
"""

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from loguru import logger

from ...common import fire_and_forget
from .archive import ArchiveContainer, copy_to_destination, read_text_file, scratch_directory
from .classifier import classify
from .codec import get_codec
from .constants import (
    CANONICAL_ENTRY_NAMES,
    BackupSelection,
    ExportSummary,
    ImportPreview,
    RecordType,
    RestoreSummary,
)
from .duplicates import split_new_and_duplicates
from .errors import (
    BackupFormatError,
    BackupValidationError,
    OperationResult,
    wrap_exception,
)
from .path_manager import PathManager
from .preview import PreviewEngine
from .stores import EntityStore, SelectionStore

ImportNotifier = Callable[[RecordType, int], Awaitable[Any]]
"""导入完成后的通知回调 (记录类型, 导入数量)"""


class BackupService:
    """备份服务"""

    def __init__(
        self,
        stores: Mapping[RecordType, EntityStore],
        path_manager: PathManager,
        selection_store: Optional[SelectionStore] = None,
        notifiers: Optional[Sequence[ImportNotifier]] = None,
        json_indent: Optional[int] = 2,
    ):
        """初始化备份服务

        Args:
            stores: {记录类型: 存储}，未注册的类型导出为空、导入时跳过
            path_manager: 路径管理器
            selection_store: 导出选择持久化，None 时始终使用全选
            notifiers: 导入后的通知回调，失败不影响导入结果
            json_indent: 导出 JSON 的缩进
        """
        self.stores = dict(stores)
        self.path_manager = path_manager
        self.selection_store = selection_store
        self.notifiers: List[ImportNotifier] = list(notifiers or [])
        self.json_indent = json_indent
        self.archive = ArchiveContainer(path_manager.paths.scratch_dir)
        self.preview_engine = PreviewEngine(self.stores, self.archive)

    @staticmethod
    def _failure(operation: str, error: Exception) -> OperationResult:
        wrapped = wrap_exception(error, f"{operation}失败")
        logger.error(f"{operation}失败 [{wrapped.kind.value}]: {wrapped}")
        return OperationResult.fail(wrapped)

    async def _read_snapshot(self, record_type: RecordType) -> List[Any]:
        store = self.stores.get(record_type)
        if store is None:
            logger.warning(f"{record_type.value} 没有注册存储，按空数据导出")
            return []
        try:
            return list(await store.snapshot())
        except Exception as e:
            raise BackupValidationError(f"读取 {record_type.value} 数据失败", cause=e) from e

    async def _encode_type(self, record_type: RecordType) -> Tuple[str, int]:
        items = await self._read_snapshot(record_type)
        text = get_codec(record_type).encode(items, indent=self.json_indent)
        return text, len(items)

    # ============== 导出 ==============

    async def export_single(
        self, record_type: RecordType, destination: Path
    ) -> OperationResult[ExportSummary]:
        """导出单个记录类型

        Args:
            record_type: 记录类型
            destination: 目标文件

        Returns:
            导出摘要
        """
        destination = Path(destination)
        try:
            logger.info(f"开始导出 {record_type.value} 到 {destination}")
            text, count = await self._encode_type(record_type)

            async with scratch_directory(self.path_manager.paths.scratch_dir, "export") as work_dir:
                staged = work_dir / record_type.file_name
                await asyncio.to_thread(staged.write_text, text, encoding="utf-8")
                size = await asyncio.to_thread(copy_to_destination, staged, destination)

            summary = ExportSummary(
                total_items=count,
                exported_types=[record_type],
                destination=str(destination),
                file_size=size,
            )
            logger.info(
                f"导出完成: {count} 条 {record_type.value}，"
                f"{self.path_manager.format_size(size)}"
            )
            return OperationResult.ok(summary)

        except Exception as e:
            return self._failure(f"导出 {record_type.value}", e)

    async def export_selected(
        self, selection: BackupSelection, destination: Path
    ) -> OperationResult[ExportSummary]:
        """按选择导出为归档

        Args:
            selection: 导出选择，至少启用一个类型
            destination: 目标归档文件

        Returns:
            导出摘要
        """
        if not selection.has_any_enabled():
            return self._failure("导出", BackupValidationError("至少需要选择一种数据类型"))

        destination = Path(destination)
        try:
            logger.info(f"开始导出备份到 {destination}")
            entries: Dict[str, str] = {}
            exported_types: List[RecordType] = []
            total_items = 0

            for record_type in selection.enabled_types():
                text, count = await self._encode_type(record_type)
                entries[record_type.file_name] = text
                exported_types.append(record_type)
                total_items += count
                logger.debug(f"已编码 {record_type.value}: {count} 条")

            size = await self.archive.pack(entries, destination)

            summary = ExportSummary(
                total_items=total_items,
                exported_types=exported_types,
                destination=str(destination),
                file_size=size,
            )
            logger.info(
                f"备份导出完成: {len(exported_types)} 种类型，共 {total_items} 条，"
                f"{self.path_manager.format_size(size)}"
            )
            return OperationResult.ok(summary)

        except Exception as e:
            return self._failure("导出备份", e)

    # ============== 导入 ==============

    async def _import_candidates(
        self, record_type: RecordType, candidates: Sequence[Any]
    ) -> RestoreSummary:
        store = self.stores[record_type]
        existing = await store.snapshot()
        fresh, duplicates = split_new_and_duplicates(record_type, candidates, existing)

        for candidate in fresh:
            await store.insert(candidate)

        logger.info(f"导入 {record_type.value}: 新增 {len(fresh)}，跳过重复 {duplicates}")
        if fresh:
            await fire_and_forget(
                self.notifiers, record_type, len(fresh), operation_name="导入通知"
            )
        return RestoreSummary(imported={record_type: len(fresh)}, skipped_duplicates=duplicates)

    async def import_single(
        self, source: Path, declared_type: Optional[RecordType] = None
    ) -> OperationResult[RestoreSummary]:
        """导入单类型文件

        未声明类型时根据字段识别；无法识别或解码失败都会使整个调用失败

        Args:
            source: 单类型 JSON 文件
            declared_type: 声明的记录类型

        Returns:
            恢复摘要
        """
        source = Path(source)
        try:
            logger.info(f"开始导入 {source}")
            text = await asyncio.to_thread(read_text_file, source)

            record_type = declared_type or classify(text)
            if record_type is None:
                raise BackupFormatError("无法识别或无效的格式")

            candidates = get_codec(record_type).parse(text)
            if record_type not in self.stores:
                raise BackupValidationError(f"{record_type.value} 没有注册存储")

            summary = await self._import_candidates(record_type, candidates)
            return OperationResult.ok(summary)

        except Exception as e:
            return self._failure(f"导入 {source.name}", e)

    async def import_archive(self, source: Path) -> OperationResult[RestoreSummary]:
        """导入归档

        每个规范条目独立解码、去重和插入；单个条目解码失败时该类型计为 0

        Args:
            source: 归档文件

        Returns:
            合并后的恢复摘要，包含全部记录类型
        """
        source = Path(source)
        try:
            logger.info(f"开始导入备份 {source}")
            entries = await self.archive.unpack(source)

            for name in sorted(set(entries) - CANONICAL_ENTRY_NAMES):
                logger.warning(f"忽略非规范条目: {name}")

            summary = RestoreSummary(imported={record_type: 0 for record_type in RecordType})
            for record_type in RecordType:
                text = entries.get(record_type.file_name)
                if text is None:
                    continue

                try:
                    candidates = get_codec(record_type).parse(text)
                except BackupFormatError as e:
                    logger.warning(f"{record_type.file_name} 解码失败，跳过: {e}")
                    continue

                if record_type not in self.stores:
                    logger.warning(f"{record_type.value} 没有注册存储，跳过 {len(candidates)} 条")
                    continue

                summary = summary.merge(await self._import_candidates(record_type, candidates))

            logger.info(
                f"备份导入完成: 新增 {summary.total_imported}，"
                f"跳过重复 {summary.skipped_duplicates}"
            )
            return OperationResult.ok(summary)

        except Exception as e:
            return self._failure(f"导入备份 {source.name}", e)

    async def preview(
        self, source: Path, media_type: Optional[str] = None
    ) -> OperationResult[ImportPreview]:
        """预览导入，不写入任何存储

        Args:
            source: 单类型文件或归档
            media_type: 可选的媒体类型

        Returns:
            预览信息
        """
        try:
            return OperationResult.ok(await self.preview_engine.preview(source, media_type))
        except Exception as e:
            return self._failure(f"预览 {Path(source).name}", e)

    # ============== 导出选择与辅助信息 ==============

    async def get_selection(self) -> BackupSelection:
        """上次使用的导出选择"""
        if self.selection_store is None:
            return BackupSelection.all()
        return await self.selection_store.get()

    async def save_selection(self, selection: BackupSelection) -> None:
        if self.selection_store is None:
            logger.warning("没有配置导出选择存储，忽略保存")
            return
        await self.selection_store.save(selection)

    async def get_data_counts(self) -> Dict[RecordType, int]:
        """各记录类型当前的数量"""
        counts = {}
        for record_type in RecordType:
            store = self.stores.get(record_type)
            counts[record_type] = len(await store.snapshot()) if store else 0
        return counts

    def suggest_archive_name(self) -> str:
        return self.path_manager.archive_file_name()

    def suggest_single_file_name(self, record_type: RecordType) -> str:
        return self.path_manager.single_file_name(record_type)


__all__ = ["BackupService", "ImportNotifier"]
