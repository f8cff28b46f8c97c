"""测试公共夹具

提供各记录类型的样例数据和临时数据目录
"""

import struct
import tempfile
from datetime import date, datetime, time
from pathlib import Path

import pytest

from saison.core.backup import PathManager, RecordType
from saison.core.backup.models import (
    BillingCycle,
    Course,
    CycleType,
    DayOfWeek,
    Event,
    EventCategory,
    PomodoroSession,
    Preference,
    Priority,
    RoutineTask,
    Semester,
    Subscription,
    Task,
    WeekPattern,
)

CREATED = datetime(2024, 9, 1, 8, 30, 0)


def make_task(i: int, **kwargs) -> Task:
    fields = dict(
        title=f"任务 {i}",
        description=f"描述 {i}",
        due_date=datetime(2024, 10, i + 1, 18, 0),
        priority=Priority.HIGH if i % 2 else Priority.LOW,
        category_id=i % 3 or None,
        created_at=CREATED,
        updated_at=CREATED,
    )
    fields.update(kwargs)
    return Task(**fields)


def make_course(i: int, **kwargs) -> Course:
    fields = dict(
        name=f"课程 {i}",
        semester_id=1,
        day_of_week=list(DayOfWeek)[i % 7],
        start_time=time(8 + i, 0),
        end_time=time(8 + i, 45),
        start_date=date(2024, 9, 2),
        end_date=date(2025, 1, 5),
        instructor=f"老师 {i}",
        color=0xFF336699,
        week_pattern=WeekPattern.CUSTOM if i == 0 else WeekPattern.ALL,
        custom_weeks=[1, 3, 5] if i == 0 else None,
        period_start=i + 1,
        period_end=i + 2,
        created_at=CREATED,
        updated_at=CREATED,
    )
    fields.update(kwargs)
    return Course(**fields)


def make_event(i: int, **kwargs) -> Event:
    fields = dict(
        title=f"纪念日 {i}",
        event_date=datetime(2025, 2, i + 1),
        category=EventCategory.ANNIVERSARY,
        reminder_enabled=bool(i % 2),
        created_at=CREATED,
        updated_at=CREATED,
    )
    fields.update(kwargs)
    return Event(**fields)


def make_routine(i: int, **kwargs) -> RoutineTask:
    fields = dict(
        title=f"例行 {i}",
        cycle_type=CycleType.WEEKLY,
        cycle_config={"days": [1, 3, 5], "interval": i + 1},
        duration_minutes=30,
        created_at=CREATED,
        updated_at=CREATED,
    )
    fields.update(kwargs)
    return RoutineTask(**fields)


def make_subscription(i: int, **kwargs) -> Subscription:
    fields = dict(
        name=f"订阅 {i}",
        price=9.9 + i,
        billing_cycle=BillingCycle.MONTHLY,
        start_date=date(2024, 1, i + 1),
        next_billing_date=date(2024, 2, i + 1),
        created_at=CREATED,
        updated_at=CREATED,
    )
    fields.update(kwargs)
    return Subscription(**fields)


def make_pomodoro(i: int, **kwargs) -> PomodoroSession:
    fields = dict(
        start_time=datetime(2024, 9, 3, 9, i),
        duration=25,
        task_id=i + 1,
        end_time=datetime(2024, 9, 3, 9, i + 25),
        is_completed=True,
    )
    fields.update(kwargs)
    return PomodoroSession(**fields)


def make_semester(i: int, **kwargs) -> Semester:
    fields = dict(
        name=f"学期 {i}",
        start_date=date(2024 + i, 9, 2),
        end_date=date(2025 + i, 1, 5),
        total_weeks=18,
        created_at=CREATED,
        updated_at=CREATED,
    )
    fields.update(kwargs)
    return Semester(**fields)


def make_preference(i: int, **kwargs) -> Preference:
    fields = dict(key=f"pref_{i}", value={"enabled": bool(i % 2), "level": i})
    fields.update(kwargs)
    return Preference(**fields)


FACTORIES = {
    RecordType.TASKS: make_task,
    RecordType.COURSES: make_course,
    RecordType.EVENTS: make_event,
    RecordType.ROUTINES: make_routine,
    RecordType.SUBSCRIPTIONS: make_subscription,
    RecordType.POMODORO_SESSIONS: make_pomodoro,
    RecordType.SEMESTERS: make_semester,
    RecordType.PREFERENCES: make_preference,
}


def make_samples(record_type: RecordType, count: int) -> list:
    """生成指定类型的样例数据"""
    factory = FACTORIES[record_type]
    return [factory(i) for i in range(count)]


def patch_zip_entry(path: Path, name: str, offset: int, value: int) -> None:
    """改写归档中央目录里某个条目的 2 字节字段

    offset 8 为通用标志位，offset 10 为压缩方法
    """
    data = bytearray(path.read_bytes())
    start = data.find(b"PK\x01\x02")
    while start != -1:
        name_length = struct.unpack_from("<H", data, start + 28)[0]
        if data[start + 46 : start + 46 + name_length] == name.encode("ascii"):
            struct.pack_into("<H", data, start + offset, value)
            path.write_bytes(bytes(data))
            return
        start = data.find(b"PK\x01\x02", start + 46)
    raise KeyError(name)


def mark_entry_encrypted(path: Path, name: str) -> None:
    """把条目标记为加密，读取时需要密码"""
    patch_zip_entry(path, name, 8, 0x1)


@pytest.fixture
def temp_data_dir():
    """创建临时数据目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "data"


@pytest.fixture
def path_manager(temp_data_dir):
    """创建路径管理器"""
    pm = PathManager(temp_data_dir)
    pm.ensure_directories()
    return pm
