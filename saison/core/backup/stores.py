"""外部存储接口与参考实现

备份引擎只依赖 snapshot() 和 insert() 两个操作；
这里提供内存实现和基于 JSON 文件的实现，以及导出选择等小型持久化
"""

import asyncio
import copy
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable

from loguru import logger

from ...common import JsonFileHandler
from .codec import get_codec
from .constants import BackupSelection, RecordType
from .models import CourseSettings


@runtime_checkable
class EntityStore(Protocol):
    """实体存储"""

    async def snapshot(self) -> List[Any]:
        """当前全部实体"""
        ...

    async def insert(self, entity: Any) -> int:
        """插入实体并返回其标识"""
        ...


def _identity(entity: Any) -> Optional[int]:
    return getattr(entity, "id", None)


class _IdAllocator:
    """保留不冲突的原标识，否则分配新标识"""

    def __init__(self, existing: Iterable[Any]):
        self.used = {_identity(item) for item in existing if _identity(item)}

    def assign(self, entity: Any) -> Any:
        entity_id = _identity(entity)
        if entity_id is None:
            return entity
        if entity_id <= 0 or entity_id in self.used:
            entity_id = max(self.used, default=0) + 1
            entity = replace(entity, id=entity_id)
        self.used.add(entity_id)
        return entity


def _upsert_preference(items: List[Any], entity: Any) -> None:
    for index, item in enumerate(items):
        if item.key == entity.key:
            items[index] = entity
            return
    items.append(entity)


class InMemoryStore:
    """内存实体存储"""

    def __init__(self, record_type: RecordType, items: Optional[Iterable[Any]] = None):
        self.record_type = record_type
        self._items: List[Any] = []
        self.insert_calls = 0
        for item in items or []:
            self._add(item)

    def _add(self, entity: Any) -> Any:
        if self.record_type is RecordType.PREFERENCES:
            _upsert_preference(self._items, entity)
            return entity
        entity = _IdAllocator(self._items).assign(entity)
        self._items.append(entity)
        return entity

    async def snapshot(self) -> List[Any]:
        return copy.deepcopy(self._items)

    async def insert(self, entity: Any) -> int:
        self.insert_calls += 1
        stored = self._add(copy.deepcopy(entity))
        return _identity(stored) or 0

    def __len__(self) -> int:
        return len(self._items)


class JsonFileStore:
    """以记录 JSON 文件持久化的实体存储

    文件格式与单类型导出文件相同
    """

    def __init__(self, record_type: RecordType, handler: JsonFileHandler):
        """初始化存储

        Args:
            record_type: 记录类型
            handler: 存储目录的文件处理器
        """
        self.record_type = record_type
        self.handler = handler
        self.codec = get_codec(record_type)
        self.filename = record_type.file_name
        self._lock = asyncio.Lock()

    def _load(self) -> List[Any]:
        text = self.handler.load_text(self.filename, "[]")
        return self.codec.decode(text)

    def _append(self, entity: Any) -> Any:
        items = self._load()
        if self.record_type is RecordType.PREFERENCES:
            _upsert_preference(items, entity)
        else:
            entity = _IdAllocator(items).assign(entity)
            items.append(entity)
        self.handler.save_text(self.filename, self.codec.encode(items))
        return entity

    async def snapshot(self) -> List[Any]:
        return await asyncio.to_thread(self._load)

    async def insert(self, entity: Any) -> int:
        async with self._lock:
            stored = await asyncio.to_thread(self._append, entity)
        return _identity(stored) or 0


def open_file_stores(stores_dir: Path) -> Dict[RecordType, JsonFileStore]:
    """为全部记录类型打开文件存储"""
    handler = JsonFileHandler(stores_dir)
    return {record_type: JsonFileStore(record_type, handler) for record_type in RecordType}


class SelectionStore:
    """导出选择持久化（键 -> 布尔值）"""

    def __init__(self, handler: JsonFileHandler, filename: str = "export_preferences.json"):
        self.handler = handler
        self.filename = filename

    async def get(self) -> BackupSelection:
        data = await self.handler.load_async(self.filename, {})
        if not isinstance(data, dict):
            logger.warning(f"导出选择文件格式错误，使用默认值: {self.filename}")
            data = {}
        return BackupSelection.from_preferences(data)

    async def save(self, selection: BackupSelection) -> None:
        await self.handler.save_async(self.filename, selection.to_preferences())


class FlagStore:
    """持久化布尔标记"""

    def __init__(self, handler: JsonFileHandler, filename: str = "flags.json"):
        self.handler = handler
        self.filename = filename

    def get(self, key: str) -> bool:
        data = self.handler.load(self.filename, {})
        return isinstance(data, dict) and bool(data.get(key, False))

    async def set(self, key: str, value: bool) -> None:
        data = await self.handler.load_async(self.filename, {})
        if not isinstance(data, dict):
            data = {}
        data[key] = value
        await self.handler.save_async(self.filename, data)


class CourseSettingsStore:
    """课程表设置持久化"""

    def __init__(self, handler: JsonFileHandler, filename: str = "course_settings.json"):
        self.handler = handler
        self.filename = filename

    async def get(self) -> CourseSettings:
        data = await self.handler.load_async(self.filename, {})
        return CourseSettings.from_dict(data if isinstance(data, dict) else {})

    async def set(self, settings: CourseSettings) -> None:
        await self.handler.save_async(self.filename, settings.to_dict())


__all__ = [
    "EntityStore",
    "InMemoryStore",
    "JsonFileStore",
    "open_file_stores",
    "SelectionStore",
    "FlagStore",
    "CourseSettingsStore",
]
