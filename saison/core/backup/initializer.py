"""默认学期初始化

保证至少存在一个学期。持久化标记用于快速返回，
互斥区内再次检查学期存储，避免并发调用创建多个默认学期
"""

import asyncio
from datetime import date, timedelta
from typing import Optional

from loguru import logger

from ...common import handle_async_errors
from .models import Semester
from .stores import EntityStore, FlagStore

INITIALIZED_FLAG = "default_semester_initialized"

DEFAULT_SEMESTER_NAME = "未命名学期"

DEFAULT_TOTAL_WEEKS = 18


def monday_of_week(day: date) -> date:
    return day - timedelta(days=day.weekday())


def build_default_semester(today: Optional[date] = None) -> Semester:
    """从本周一开始的默认学期"""
    start_date = monday_of_week(today or date.today())
    return Semester(
        name=DEFAULT_SEMESTER_NAME,
        start_date=start_date,
        end_date=start_date + timedelta(weeks=DEFAULT_TOTAL_WEEKS),
        total_weeks=DEFAULT_TOTAL_WEEKS,
        is_default=True,
    )


class DefaultSemesterInitializer:
    """默认学期初始化器"""

    def __init__(self, semester_store: EntityStore, flags: FlagStore):
        """初始化

        Args:
            semester_store: 学期存储
            flags: 持久化标记
        """
        self.semester_store = semester_store
        self.flags = flags
        self._lock = asyncio.Lock()

    @handle_async_errors(default_return=None, operation_name="初始化默认学期")
    async def ensure_default(self) -> Optional[int]:
        """确保至少存在一个学期

        Returns:
            新建默认学期的标识；已有学期或失败时返回 None
        """
        if self.flags.get(INITIALIZED_FLAG):
            logger.debug("默认学期已初始化，跳过检查")
            return None

        async with self._lock:
            existing = await self.semester_store.snapshot()
            if existing:
                logger.debug(f"已存在 {len(existing)} 个学期，标记为已初始化")
                await self.flags.set(INITIALIZED_FLAG, True)
                return None

            semester_id = await self.semester_store.insert(build_default_semester())
            await self.flags.set(INITIALIZED_FLAG, True)
            logger.info(f"已创建默认学期，ID: {semester_id}")
            return semester_id


__all__ = [
    "INITIALIZED_FLAG",
    "DEFAULT_SEMESTER_NAME",
    "build_default_semester",
    "DefaultSemesterInitializer",
]
