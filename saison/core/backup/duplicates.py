"""重复检测

先比较已有标识，标识不一致时退回到每种类型的指纹字段
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .codec import serialize_cycle_config
from .constants import RecordType
from .models import (
    Course,
    Event,
    PomodoroSession,
    Preference,
    RoutineTask,
    Semester,
    Subscription,
    Task,
)


def _same_identity(candidate_id: Optional[int], existing_id: Optional[int]) -> bool:
    # 0 表示新记录，没有可比较的标识
    return bool(candidate_id) and bool(existing_id) and candidate_id == existing_id


def _task_fingerprint(task: Task) -> Tuple:
    return (task.title, task.due_date, task.category_id)


def _course_fingerprint(course: Course) -> Tuple:
    return (course.name, course.semester_id)


def _event_fingerprint(event: Event) -> Tuple:
    return (event.title, event.event_date)


def _routine_fingerprint(routine: RoutineTask) -> Tuple:
    return (routine.title, serialize_cycle_config(routine.cycle_config))


def _subscription_fingerprint(subscription: Subscription) -> Tuple:
    return (subscription.name, subscription.start_date)


def _pomodoro_fingerprint(session: PomodoroSession) -> Tuple:
    return (session.start_time, session.duration, session.task_id)


def _semester_fingerprint(semester: Semester) -> Tuple:
    return (semester.name, semester.start_date, semester.end_date)


def _preference_fingerprint(preference: Preference) -> Tuple:
    return (preference.key,)


FINGERPRINTS: Dict[RecordType, Callable[[Any], Tuple]] = {
    RecordType.TASKS: _task_fingerprint,
    RecordType.COURSES: _course_fingerprint,
    RecordType.EVENTS: _event_fingerprint,
    RecordType.ROUTINES: _routine_fingerprint,
    RecordType.SUBSCRIPTIONS: _subscription_fingerprint,
    RecordType.POMODORO_SESSIONS: _pomodoro_fingerprint,
    RecordType.SEMESTERS: _semester_fingerprint,
    RecordType.PREFERENCES: _preference_fingerprint,
}


def is_duplicate(record_type: RecordType, candidate: Any, existing: Iterable[Any]) -> bool:
    """判断候选记录是否已存在

    Args:
        record_type: 记录类型
        candidate: 候选记录
        existing: 当前存储快照

    Returns:
        是否重复
    """
    fingerprint = FINGERPRINTS[record_type]
    candidate_id = getattr(candidate, "id", None)
    candidate_print = fingerprint(candidate)

    for item in existing:
        if _same_identity(candidate_id, getattr(item, "id", None)):
            return True
        if fingerprint(item) == candidate_print:
            return True
    return False


def is_task_duplicate(task: Task, existing: Iterable[Task]) -> bool:
    return is_duplicate(RecordType.TASKS, task, existing)


def is_course_duplicate(course: Course, existing: Iterable[Course]) -> bool:
    return is_duplicate(RecordType.COURSES, course, existing)


def is_routine_duplicate(routine: RoutineTask, existing: Iterable[RoutineTask]) -> bool:
    return is_duplicate(RecordType.ROUTINES, routine, existing)


def is_subscription_duplicate(
    subscription: Subscription, existing: Iterable[Subscription]
) -> bool:
    return is_duplicate(RecordType.SUBSCRIPTIONS, subscription, existing)


def is_pomodoro_duplicate(
    session: PomodoroSession, existing: Iterable[PomodoroSession]
) -> bool:
    return is_duplicate(RecordType.POMODORO_SESSIONS, session, existing)


def is_semester_duplicate(semester: Semester, existing: Iterable[Semester]) -> bool:
    return is_duplicate(RecordType.SEMESTERS, semester, existing)


def split_new_and_duplicates(
    record_type: RecordType,
    candidates: Sequence[Any],
    existing: Sequence[Any],
) -> Tuple[List[Any], int]:
    """拆分新记录与重复记录

    已判定为新的候选会加入工作快照，同一批次内的重复也会被识别

    Returns:
        (新记录列表, 重复数量)
    """
    snapshot = list(existing)
    fresh = []
    duplicates = 0

    for candidate in candidates:
        if is_duplicate(record_type, candidate, snapshot):
            duplicates += 1
        else:
            fresh.append(candidate)
            snapshot.append(candidate)

    return fresh, duplicates


def count_new_and_duplicates(
    record_type: RecordType,
    candidates: Sequence[Any],
    existing: Sequence[Any],
) -> Tuple[int, int]:
    """计算新记录和重复记录的数量"""
    fresh, duplicates = split_new_and_duplicates(record_type, candidates, existing)
    return len(fresh), duplicates


__all__ = [
    "FINGERPRINTS",
    "is_duplicate",
    "is_task_duplicate",
    "is_course_duplicate",
    "is_routine_duplicate",
    "is_subscription_duplicate",
    "is_pomodoro_duplicate",
    "is_semester_duplicate",
    "split_new_and_duplicates",
    "count_new_and_duplicates",
]
