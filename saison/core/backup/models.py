"""备份涉及的领域实体

实体本身由外部存储持久化，这里只定义导出导入需要的字段
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, List, Optional


class Priority(str, Enum):
    """任务优先级"""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class DayOfWeek(str, Enum):
    """星期"""

    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def from_number(cls, number: int) -> "DayOfWeek":
        """1-7 对应周一到周日"""
        if not 1 <= number <= 7:
            raise ValueError(f"星期取值必须在 1-7 之间: {number}")
        return list(cls)[number - 1]


class WeekPattern(str, Enum):
    """上课周模式"""

    ALL = "ALL"
    ODD = "ODD"
    EVEN = "EVEN"
    A = "A"
    B = "B"
    CUSTOM = "CUSTOM"


class EventCategory(str, Enum):
    """事件类别"""

    BIRTHDAY = "BIRTHDAY"
    ANNIVERSARY = "ANNIVERSARY"
    COUNTDOWN = "COUNTDOWN"
    HOLIDAY = "HOLIDAY"
    OTHER = "OTHER"


class CycleType(str, Enum):
    """例行任务周期类型"""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    CUSTOM = "CUSTOM"


class BillingCycle(str, Enum):
    """订阅计费周期"""

    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)


@dataclass
class Task:
    """任务"""

    title: str
    id: int = 0
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    reminder_time: Optional[datetime] = None
    location: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    pomodoro_count: int = 0
    estimated_pomodoros: Optional[int] = None
    metronome_bpm: Optional[int] = None
    is_favorite: bool = False
    sort_order: int = 0
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class Course:
    """课程"""

    name: str
    semester_id: int
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    start_date: date
    end_date: date
    id: int = 0
    instructor: Optional[str] = None
    location: Optional[str] = None
    color: int = 0
    week_pattern: WeekPattern = WeekPattern.ALL
    custom_weeks: Optional[List[int]] = None
    notification_minutes: int = 10
    auto_silent: bool = False
    period_start: Optional[int] = None
    period_end: Optional[int] = None
    is_custom_time: bool = False
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class Event:
    """纪念日 / 倒数日事件"""

    title: str
    event_date: datetime
    id: int = 0
    description: Optional[str] = None
    category: EventCategory = EventCategory.OTHER
    is_completed: bool = False
    reminder_enabled: bool = False
    reminder_time: Optional[datetime] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class RoutineTask:
    """例行任务"""

    title: str
    cycle_type: CycleType
    id: int = 0
    description: Optional[str] = None
    icon: Optional[str] = None
    cycle_config: Dict[str, Any] = field(default_factory=dict)
    duration_minutes: Optional[int] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class Subscription:
    """订阅"""

    name: str
    price: float
    billing_cycle: BillingCycle
    start_date: date
    next_billing_date: date
    id: int = 0
    description: Optional[str] = None
    currency: str = "CNY"
    reminder_days_before: int = 1
    is_active: bool = True
    category: Optional[str] = None
    icon: Optional[str] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class PomodoroSession:
    """番茄钟计时记录"""

    start_time: datetime
    duration: int
    id: int = 0
    task_id: Optional[int] = None
    routine_task_id: Optional[int] = None
    end_time: Optional[datetime] = None
    actual_duration: Optional[int] = None
    is_completed: bool = False
    is_break: bool = False
    is_long_break: bool = False
    is_early_finish: bool = False
    interruptions: int = 0
    notes: Optional[str] = None


@dataclass
class Semester:
    """学期"""

    name: str
    start_date: date
    end_date: date
    id: int = 0
    total_weeks: int = 18
    is_archived: bool = False
    is_default: bool = False
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class Preference:
    """偏好设置项，以 key 作为标识"""

    key: str
    value: Any = None


@dataclass
class CourseSettings:
    """课程表配置"""

    total_periods: int = 8
    period_duration: int = 45
    break_duration: int = 10
    first_period_start_time: time = time(8, 0)
    lunch_break_after_period: Optional[int] = 4
    lunch_break_duration: int = 90
    total_weeks: int = 18
    show_weekends: bool = True
    time_format_24_hour: bool = True
    show_period_number: bool = True
    compact_mode: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "total_periods": self.total_periods,
            "period_duration": self.period_duration,
            "break_duration": self.break_duration,
            "first_period_start_time": self.first_period_start_time.isoformat(),
            "lunch_break_after_period": self.lunch_break_after_period,
            "lunch_break_duration": self.lunch_break_duration,
            "total_weeks": self.total_weeks,
            "show_weekends": self.show_weekends,
            "time_format_24_hour": self.time_format_24_hour,
            "show_period_number": self.show_period_number,
            "compact_mode": self.compact_mode,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CourseSettings":
        """从字典创建"""
        default = cls()
        start_time = data.get("first_period_start_time")
        return cls(
            total_periods=data.get("total_periods", default.total_periods),
            period_duration=data.get("period_duration", default.period_duration),
            break_duration=data.get("break_duration", default.break_duration),
            first_period_start_time=(
                time.fromisoformat(start_time)
                if start_time
                else default.first_period_start_time
            ),
            lunch_break_after_period=data.get(
                "lunch_break_after_period", default.lunch_break_after_period
            ),
            lunch_break_duration=data.get(
                "lunch_break_duration", default.lunch_break_duration
            ),
            total_weeks=data.get("total_weeks", default.total_weeks),
            show_weekends=data.get("show_weekends", default.show_weekends),
            time_format_24_hour=data.get(
                "time_format_24_hour", default.time_format_24_hour
            ),
            show_period_number=data.get(
                "show_period_number", default.show_period_number
            ),
            compact_mode=data.get("compact_mode", default.compact_mode),
        )


__all__ = [
    "Priority",
    "DayOfWeek",
    "WeekPattern",
    "EventCategory",
    "CycleType",
    "BillingCycle",
    "Task",
    "Course",
    "Event",
    "RoutineTask",
    "Subscription",
    "PomodoroSession",
    "Semester",
    "Preference",
    "CourseSettings",
]
