"""记录类型识别

单文件导入未声明类型时，根据第一条记录的字段特征推断类型
"""

import json
from typing import FrozenSet, Optional, Tuple

from loguru import logger

from .constants import RecordType

# 按优先级排列，先匹配者胜出
SIGNATURES: Tuple[Tuple[FrozenSet[str], RecordType], ...] = (
    (frozenset({"dueDate", "isCompleted", "priority"}), RecordType.TASKS),
    (frozenset({"dayOfWeek", "startTime", "semesterId"}), RecordType.COURSES),
    (frozenset({"eventDate", "category", "reminderEnabled"}), RecordType.EVENTS),
    (frozenset({"cycleType", "cycleConfig", "isActive"}), RecordType.ROUTINES),
    (frozenset({"billingCycle", "nextBillingDate", "price"}), RecordType.SUBSCRIPTIONS),
    (frozenset({"isBreak", "isLongBreak", "duration"}), RecordType.POMODORO_SESSIONS),
    (frozenset({"totalWeeks", "isArchived", "isDefault"}), RecordType.SEMESTERS),
    (frozenset({"key", "value"}), RecordType.PREFERENCES),
)


def classify_fields(field_names) -> Optional[RecordType]:
    """根据字段名集合匹配记录类型"""
    names = set(field_names)
    for required, record_type in SIGNATURES:
        if required <= names:
            return record_type
    return None


def classify(text: str) -> Optional[RecordType]:
    """推断记录数组文本的类型

    只检查第一个元素。

    Args:
        text: JSON 文本

    Returns:
        记录类型，无法判断时返回 None
    """
    try:
        data = json.loads(text)
    except (ValueError, TypeError, RecursionError) as e:
        logger.debug(f"类型识别失败，不是有效的 JSON: {e}")
        return None

    if not isinstance(data, list) or not data:
        return None

    first = data[0]
    if not isinstance(first, dict):
        return None

    return classify_fields(first.keys())


__all__ = ["SIGNATURES", "classify", "classify_fields"]
