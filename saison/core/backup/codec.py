"""记录编解码器

每种记录类型一对 encode/decode，在实体与扁平 JSON 记录数组之间转换
"""

import json
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Type

from loguru import logger

from .constants import RecordType
from .errors import BackupFormatError
from .models import (
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


def serialize_cycle_config(config: Dict[str, Any]) -> str:
    """周期配置的规范序列化形式，同时用作重复检测指纹"""
    return json.dumps(config or {}, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


# ============== 字段转换 ==============


def _to_str(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"期望字符串，实际为 {type(value).__name__}")
    return value


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("期望整数，实际为布尔值")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError(f"期望整数，实际为 {value!r}")


def _to_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"期望数字，实际为 {value!r}")
    return float(value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ValueError(f"期望布尔值，实际为 {value!r}")


def _to_datetime(value: Any) -> datetime:
    # 旧版导出使用毫秒时间戳
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000)
    return datetime.fromisoformat(_to_str(value))


def _to_date(value: Any) -> date:
    return date.fromisoformat(_to_str(value))


def _to_time(value: Any) -> time:
    return time.fromisoformat(_to_str(value))


def _to_int_list(value: Any) -> List[int]:
    if not isinstance(value, list):
        raise ValueError(f"期望数组，实际为 {value!r}")
    return [_to_int(item) for item in value]


def _to_cycle_config(value: Any) -> Dict[str, Any]:
    if isinstance(value, dict):
        return value
    parsed = json.loads(_to_str(value)) if value else {}
    if not isinstance(parsed, dict):
        raise ValueError(f"周期配置不是对象: {value!r}")
    return parsed


def _enum_parser(enum_type: Type[Enum]) -> Callable[[Any], Enum]:
    def parse(value: Any) -> Enum:
        # DayOfWeek 在旧版导出中是 1-7 的数字
        if isinstance(value, int) and hasattr(enum_type, "from_number"):
            return enum_type.from_number(value)
        try:
            return enum_type[_to_str(value)]
        except KeyError:
            raise ValueError(f"未知的 {enum_type.__name__} 取值: {value!r}") from None

    return parse


def _passthrough(value: Any) -> Any:
    return value


def _encode_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class FieldSpec:
    """实体属性与记录字段的映射"""

    attr: str
    """实体属性名"""

    key: str
    """记录字段名"""

    parse: Callable[[Any], Any] = _passthrough
    """记录值 -> 实体值"""

    required: bool = False
    """记录中缺失时是否视为格式错误"""

    nullable: bool = True
    """实体属性是否接受 None"""

    encode: Callable[[Any], Any] = _encode_value
    """实体值 -> 记录值"""


def _field(attr, key, parse=_passthrough, required=False, nullable=True, encode=_encode_value):
    return FieldSpec(attr, key, parse, required, nullable, encode)


class RecordCodec:
    """单一记录类型的编解码器

    编码时所有字段都会写出，可选字段写显式 null；
    解码时忽略未知字段，缺失的可选字段使用实体默认值
    """

    def __init__(
        self,
        record_type: RecordType,
        entity_type: type,
        fields: Sequence[FieldSpec],
    ):
        self.record_type = record_type
        self.entity_type = entity_type
        self.fields = tuple(fields)

    def to_record(self, entity: Any) -> Dict[str, Any]:
        """实体 -> 记录"""
        record = {}
        for spec in self.fields:
            value = getattr(entity, spec.attr)
            record[spec.key] = None if value is None else spec.encode(value)
        return record

    def from_record(self, record: Any) -> Any:
        """记录 -> 实体

        Raises:
            BackupFormatError: 记录不是对象、缺少必填字段或字段值无法解析
        """
        if not isinstance(record, dict):
            raise BackupFormatError(
                f"{self.record_type.value} 记录必须是对象，实际为 {type(record).__name__}"
            )

        kwargs = {}
        for spec in self.fields:
            value = record.get(spec.key)
            if value is None:
                if spec.required:
                    raise BackupFormatError(
                        f"{self.record_type.value} 记录缺少必填字段 {spec.key}"
                    )
                if spec.nullable and spec.key in record:
                    kwargs[spec.attr] = None
                continue
            try:
                kwargs[spec.attr] = spec.parse(value)
            except (
                ValueError,
                TypeError,
                IndexError,
                OverflowError,
                OSError,
                RecursionError,
            ) as e:
                raise BackupFormatError(
                    f"{self.record_type.value} 字段 {spec.key} 无效", cause=e
                ) from e

        return self.entity_type(**kwargs)

    def encode(self, entities: Sequence[Any], indent: Optional[int] = 2) -> str:
        """编码实体列表为 JSON 文本"""
        records = [self.to_record(entity) for entity in entities]
        return json.dumps(records, ensure_ascii=False, indent=indent)

    def parse(self, text: str) -> List[Any]:
        """严格解码

        Raises:
            BackupFormatError: 文本不是记录数组或任一记录无效
        """
        try:
            data = json.loads(text)
        except (ValueError, TypeError, RecursionError) as e:
            raise BackupFormatError(f"{self.record_type.value} 数据不是有效的 JSON", cause=e) from e

        if not isinstance(data, list):
            raise BackupFormatError(f"{self.record_type.value} 数据必须是数组")

        return [self.from_record(record) for record in data]

    def decode(self, text: str) -> List[Any]:
        """宽松解码，整体失败时返回空列表"""
        try:
            return self.parse(text)
        except BackupFormatError as e:
            logger.warning(f"解码 {self.record_type.value} 失败，按空列表处理: {e}")
            return []


# ============== 各类型字段表 ==============

_parse_priority = _enum_parser(Priority)

TASK_CODEC = RecordCodec(
    RecordType.TASKS,
    Task,
    [
        _field("id", "id", _to_int, nullable=False),
        _field("title", "title", _to_str, required=True),
        _field("description", "description", _to_str),
        _field("due_date", "dueDate", _to_datetime),
        _field("reminder_time", "reminderTime", _to_datetime),
        _field("location", "location", _to_str),
        _field("priority", "priority", _parse_priority, nullable=False),
        _field("is_completed", "isCompleted", _to_bool, nullable=False),
        _field("completed_at", "completedAt", _to_datetime),
        _field("category_id", "categoryId", _to_int),
        _field("category_name", "categoryName", _to_str),
        _field("pomodoro_count", "pomodoroCount", _to_int, nullable=False),
        _field("estimated_pomodoros", "estimatedPomodoros", _to_int),
        _field("metronome_bpm", "metronomeBpm", _to_int),
        _field("is_favorite", "isFavorite", _to_bool, nullable=False),
        _field("sort_order", "sortOrder", _to_int, nullable=False),
        _field("created_at", "createdAt", _to_datetime, nullable=False),
        _field("updated_at", "updatedAt", _to_datetime, nullable=False),
    ],
)

COURSE_CODEC = RecordCodec(
    RecordType.COURSES,
    Course,
    [
        _field("id", "id", _to_int, nullable=False),
        _field("name", "name", _to_str, required=True),
        _field("instructor", "instructor", _to_str),
        _field("location", "location", _to_str),
        _field("color", "color", _to_int, nullable=False),
        _field("semester_id", "semesterId", _to_int, required=True),
        _field("day_of_week", "dayOfWeek", _enum_parser(DayOfWeek), required=True),
        _field("start_time", "startTime", _to_time, required=True),
        _field("end_time", "endTime", _to_time, required=True),
        _field("week_pattern", "weekPattern", _enum_parser(WeekPattern), nullable=False),
        _field("custom_weeks", "customWeeks", _to_int_list),
        _field("start_date", "startDate", _to_date, required=True),
        _field("end_date", "endDate", _to_date, required=True),
        _field("notification_minutes", "notificationMinutes", _to_int, nullable=False),
        _field("auto_silent", "autoSilent", _to_bool, nullable=False),
        _field("period_start", "periodStart", _to_int),
        _field("period_end", "periodEnd", _to_int),
        _field("is_custom_time", "isCustomTime", _to_bool, nullable=False),
        _field("created_at", "createdAt", _to_datetime, nullable=False),
        _field("updated_at", "updatedAt", _to_datetime, nullable=False),
    ],
)

EVENT_CODEC = RecordCodec(
    RecordType.EVENTS,
    Event,
    [
        _field("id", "id", _to_int, nullable=False),
        _field("title", "title", _to_str, required=True),
        _field("description", "description", _to_str),
        _field("event_date", "eventDate", _to_datetime, required=True),
        _field("category", "category", _enum_parser(EventCategory), nullable=False),
        _field("is_completed", "isCompleted", _to_bool, nullable=False),
        _field("reminder_enabled", "reminderEnabled", _to_bool, nullable=False),
        _field("reminder_time", "reminderTime", _to_datetime),
        _field("created_at", "createdAt", _to_datetime, nullable=False),
        _field("updated_at", "updatedAt", _to_datetime, nullable=False),
    ],
)

ROUTINE_CODEC = RecordCodec(
    RecordType.ROUTINES,
    RoutineTask,
    [
        _field("id", "id", _to_int, nullable=False),
        _field("title", "title", _to_str, required=True),
        _field("description", "description", _to_str),
        _field("icon", "icon", _to_str),
        _field("cycle_type", "cycleType", _enum_parser(CycleType), required=True),
        _field(
            "cycle_config",
            "cycleConfig",
            _to_cycle_config,
            nullable=False,
            encode=serialize_cycle_config,
        ),
        _field("duration_minutes", "durationMinutes", _to_int),
        _field("is_active", "isActive", _to_bool, nullable=False),
        _field("created_at", "createdAt", _to_datetime, nullable=False),
        _field("updated_at", "updatedAt", _to_datetime, nullable=False),
    ],
)

SUBSCRIPTION_CODEC = RecordCodec(
    RecordType.SUBSCRIPTIONS,
    Subscription,
    [
        _field("id", "id", _to_int, nullable=False),
        _field("name", "name", _to_str, required=True),
        _field("description", "description", _to_str),
        _field("price", "price", _to_float, required=True),
        _field("currency", "currency", _to_str, nullable=False),
        _field("billing_cycle", "billingCycle", _enum_parser(BillingCycle), required=True),
        _field("start_date", "startDate", _to_date, required=True),
        _field("next_billing_date", "nextBillingDate", _to_date, required=True),
        _field("reminder_days_before", "reminderDaysBefore", _to_int, nullable=False),
        _field("is_active", "isActive", _to_bool, nullable=False),
        _field("category", "category", _to_str),
        _field("icon", "icon", _to_str),
        _field("created_at", "createdAt", _to_datetime, nullable=False),
        _field("updated_at", "updatedAt", _to_datetime, nullable=False),
    ],
)

POMODORO_CODEC = RecordCodec(
    RecordType.POMODORO_SESSIONS,
    PomodoroSession,
    [
        _field("id", "id", _to_int, nullable=False),
        _field("task_id", "taskId", _to_int),
        _field("routine_task_id", "routineTaskId", _to_int),
        _field("start_time", "startTime", _to_datetime, required=True),
        _field("end_time", "endTime", _to_datetime),
        _field("duration", "duration", _to_int, required=True),
        _field("actual_duration", "actualDuration", _to_int),
        _field("is_completed", "isCompleted", _to_bool, nullable=False),
        _field("is_break", "isBreak", _to_bool, nullable=False),
        _field("is_long_break", "isLongBreak", _to_bool, nullable=False),
        _field("is_early_finish", "isEarlyFinish", _to_bool, nullable=False),
        _field("interruptions", "interruptions", _to_int, nullable=False),
        _field("notes", "notes", _to_str),
    ],
)

SEMESTER_CODEC = RecordCodec(
    RecordType.SEMESTERS,
    Semester,
    [
        _field("id", "id", _to_int, nullable=False),
        _field("name", "name", _to_str, required=True),
        _field("start_date", "startDate", _to_date, required=True),
        _field("end_date", "endDate", _to_date, required=True),
        _field("total_weeks", "totalWeeks", _to_int, nullable=False),
        _field("is_archived", "isArchived", _to_bool, nullable=False),
        _field("is_default", "isDefault", _to_bool, nullable=False),
        _field("created_at", "createdAt", _to_datetime, nullable=False),
        _field("updated_at", "updatedAt", _to_datetime, nullable=False),
    ],
)

PREFERENCE_CODEC = RecordCodec(
    RecordType.PREFERENCES,
    Preference,
    [
        _field("key", "key", _to_str, required=True),
        _field("value", "value"),
    ],
)

_CODECS: Dict[RecordType, RecordCodec] = {
    codec.record_type: codec
    for codec in (
        TASK_CODEC,
        COURSE_CODEC,
        EVENT_CODEC,
        ROUTINE_CODEC,
        SUBSCRIPTION_CODEC,
        POMODORO_CODEC,
        SEMESTER_CODEC,
        PREFERENCE_CODEC,
    )
}


def get_codec(record_type: RecordType) -> RecordCodec:
    """获取记录类型对应的编解码器"""
    return _CODECS[record_type]


__all__ = [
    "FieldSpec",
    "RecordCodec",
    "serialize_cycle_config",
    "get_codec",
    "TASK_CODEC",
    "COURSE_CODEC",
    "EVENT_CODEC",
    "ROUTINE_CODEC",
    "SUBSCRIPTION_CODEC",
    "POMODORO_CODEC",
    "SEMESTER_CODEC",
    "PREFERENCE_CODEC",
]
