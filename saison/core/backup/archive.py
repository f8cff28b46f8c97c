"""归档容器

打包/解包由若干规范条目组成的 ZIP 备份文件，
所有工作都在作用域内的临时目录中完成
"""

import asyncio
import shutil
import tempfile
import zipfile
import zlib
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Mapping

from loguru import logger

from .constants import CANONICAL_ENTRY_NAMES, RecordType
from .errors import BackupFormatError, BackupIOError, BackupValidationError


def _remove_directory(path: Path) -> None:
    try:
        shutil.rmtree(path)
        logger.debug(f"已清理临时目录: {path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"清理临时目录失败 {path}: {e}")


@asynccontextmanager
async def scratch_directory(root: Path, prefix: str = "backup") -> AsyncIterator[Path]:
    """作用域临时目录

    进入时创建，退出时无论成功、异常还是取消都会同步删除

    Args:
        root: 临时目录根
        prefix: 目录名前缀

    Yields:
        临时目录路径
    """
    try:
        root.mkdir(parents=True, exist_ok=True)
        path = Path(tempfile.mkdtemp(prefix=f"{prefix}_", dir=root))
    except OSError as e:
        raise BackupIOError("无法创建临时目录", cause=e) from e

    logger.debug(f"创建临时目录: {path}")
    try:
        yield path
    finally:
        _remove_directory(path)


def copy_to_destination(source: Path, destination: Path) -> int:
    """把临时文件复制到目标位置

    写入失败时删除不完整的目标文件

    Returns:
        目标文件大小（字节）
    """
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, destination)
        return destination.stat().st_size
    except OSError as e:
        try:
            destination.unlink(missing_ok=True)
        except OSError as cleanup_error:
            logger.error(f"删除不完整的目标文件失败 {destination}: {cleanup_error}")
        raise BackupIOError(f"无法写入目标文件 {destination}", cause=e) from e


def read_text_file(source: Path) -> str:
    """读取单类型文件

    Raises:
        BackupIOError: 文件无法读取
        BackupFormatError: 文件不是 UTF-8 文本
    """
    try:
        return Path(source).read_bytes().decode("utf-8-sig")
    except OSError as e:
        raise BackupIOError(f"无法读取文件 {source}", cause=e) from e
    except UnicodeDecodeError as e:
        raise BackupFormatError(f"文件不是 UTF-8 文本 {source}", cause=e) from e


def _entry_order(name: str) -> int:
    record_type = RecordType.from_file_name(name)
    return list(RecordType).index(record_type) if record_type else len(RecordType)


class ArchiveContainer:
    """归档容器

    条目名必须是规范条目名的子集，未选择的类型不写入空占位
    """

    def __init__(self, scratch_root: Path):
        """初始化归档容器

        Args:
            scratch_root: 临时目录根
        """
        self.scratch_root = Path(scratch_root)

    def _build_archive(self, entries: Mapping[str, str], work_dir: Path) -> Path:
        entries_dir = work_dir / "entries"
        entries_dir.mkdir(parents=True, exist_ok=True)
        archive_path = work_dir / "backup.zip"

        with zipfile.ZipFile(archive_path, "w", zipfile.ZIP_DEFLATED) as zf:
            for name in sorted(entries, key=_entry_order):
                entry_path = entries_dir / name
                entry_path.write_text(entries[name], encoding="utf-8")
                zf.write(entry_path, arcname=name)

        return archive_path

    async def pack(self, entries: Mapping[str, str], destination: Path) -> int:
        """打包条目并写入目标文件

        Args:
            entries: {条目名: 文本内容}
            destination: 目标文件

        Returns:
            归档大小（字节）

        Raises:
            BackupValidationError: 存在非规范条目名
            BackupIOError: 无法写入
        """
        unknown = sorted(set(entries) - CANONICAL_ENTRY_NAMES)
        if unknown:
            raise BackupValidationError(f"非规范的条目名: {', '.join(unknown)}")

        destination = Path(destination)
        async with scratch_directory(self.scratch_root, "pack") as work_dir:
            try:
                archive_path = await asyncio.to_thread(self._build_archive, entries, work_dir)
            except OSError as e:
                raise BackupIOError("创建归档失败", cause=e) from e

            size = await asyncio.to_thread(copy_to_destination, archive_path, destination)

        logger.info(f"归档已写入 {destination}，共 {len(entries)} 个条目")
        return size

    def _read_entries(self, archive_path: Path) -> Dict[str, str]:
        try:
            zf = zipfile.ZipFile(archive_path, "r")
        except zipfile.BadZipFile as e:
            raise BackupFormatError("不是有效的 ZIP 归档", cause=e) from e

        entries = {}
        with zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                try:
                    entries[info.filename] = zf.read(info).decode("utf-8-sig")
                except (
                    zipfile.BadZipFile,
                    zlib.error,
                    UnicodeDecodeError,
                    RuntimeError,
                    NotImplementedError,
                ) as e:
                    logger.warning(f"跳过无法读取的条目 {info.filename}: {e}")
        return entries

    async def unpack(self, source: Path) -> Dict[str, str]:
        """读取归档中的全部条目

        Args:
            source: 归档文件

        Returns:
            {条目名: 文本内容}，包含非规范条目，由调用方决定如何处理

        Raises:
            BackupIOError: 源文件无法读取
            BackupFormatError: 源文件不是有效的 ZIP
        """
        source = Path(source)
        if not source.is_file():
            raise BackupIOError(f"无法读取文件 {source}")

        async with scratch_directory(self.scratch_root, "unpack") as work_dir:
            local_copy = work_dir / "source.zip"
            try:
                await asyncio.to_thread(shutil.copyfile, source, local_copy)
            except OSError as e:
                raise BackupIOError(f"无法读取文件 {source}", cause=e) from e

            entries = await asyncio.to_thread(self._read_entries, local_copy)

        logger.debug(f"已解包 {source}: {', '.join(entries) or '无条目'}")
        return entries


__all__ = [
    "ArchiveContainer",
    "scratch_directory",
    "copy_to_destination",
    "read_text_file",
]
