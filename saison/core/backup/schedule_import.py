"""课程表导入导出

学期课程表交换文件（版本 1.0）的解析、冲突检测与导入。
文件结构：
    {metadata, semesters: [{semesterInfo, periodSettings, displaySettings, courses}]}
"""

import json
from dataclasses import dataclass, replace
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .constants import ConflictInfo
from .errors import (
    BackupFormatError,
    BackupValidationError,
    OperationResult,
    wrap_exception,
)
from .models import Course, CourseSettings, DayOfWeek, Semester, WeekPattern
from .stores import CourseSettingsStore, EntityStore

SCHEDULE_FORMAT_VERSION = "1.0"

DEFAULT_COURSE_COLOR = 0xFF6200EE


# ============== 交换文件结构 ==============


class _ExportModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ExportMetadata(_ExportModel):
    """导出元数据"""

    version: str = SCHEDULE_FORMAT_VERSION
    export_time: int = Field(0, alias="exportTime")
    app_version: str = Field("", alias="appVersion")
    device_info: str = Field("", alias="deviceInfo")


class SemesterInfo(_ExportModel):
    """学期信息"""

    name: str
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    current_week: int = Field(1, alias="currentWeek")
    total_weeks: int = Field(alias="totalWeeks")


class PeriodSettingsData(_ExportModel):
    """节次设置"""

    total_periods: int = Field(alias="totalPeriods")
    period_duration_minutes: int = Field(alias="periodDurationMinutes")
    break_duration_minutes: int = Field(alias="breakDurationMinutes")
    first_period_start_time: str = Field("08:00", alias="firstPeriodStartTime")
    lunch_break_after_period: Optional[int] = Field(None, alias="lunchBreakAfterPeriod")
    lunch_break_duration_minutes: Optional[int] = Field(None, alias="lunchBreakDurationMinutes")


class DisplaySettingsData(_ExportModel):
    """显示设置"""

    show_weekend: bool = Field(alias="showWeekend")
    time_format_24_hour: bool = Field(True, alias="timeFormat24Hour")
    show_period_number: bool = Field(True, alias="showPeriodNumber")
    compact_mode: bool = Field(False, alias="compactMode")


class WeekPatternData(_ExportModel):
    """上课周模式"""

    type: str = WeekPattern.ALL.value
    custom_weeks: Optional[List[int]] = Field(None, alias="customWeeks")


class CourseData(_ExportModel):
    """课程"""

    name: str
    teacher: Optional[str] = None
    location: Optional[str] = None
    day_of_week: int = Field(alias="dayOfWeek")
    start_period: int = Field(1, alias="startPeriod")
    end_period: int = Field(1, alias="endPeriod")
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    week_pattern: WeekPatternData = Field(default_factory=WeekPatternData, alias="weekPattern")
    color: str = f"#{DEFAULT_COURSE_COLOR:08X}"
    notes: Optional[str] = None


class SemesterExportData(_ExportModel):
    """单个学期的完整配置"""

    semester_info: SemesterInfo = Field(alias="semesterInfo")
    period_settings: PeriodSettingsData = Field(alias="periodSettings")
    display_settings: DisplaySettingsData = Field(alias="displaySettings")
    courses: List[CourseData] = Field(default_factory=list)


class ScheduleExport(_ExportModel):
    """课程表交换文件"""

    metadata: ExportMetadata
    semesters: List[SemesterExportData] = Field(default_factory=list)

    def to_json(self, indent: Optional[int] = 2) -> str:
        data = self.model_dump(mode="json", by_alias=True)
        return json.dumps(data, ensure_ascii=False, indent=indent)


# ============== 转换 ==============


def _parse_clock(value: str) -> time:
    return datetime.strptime(value, "%H:%M").time()


def _format_clock(value: time) -> str:
    return value.strftime("%H:%M")


def parse_color(value: str) -> int:
    """解析 #AARRGGBB 或 #RRGGBB，无法解析时返回默认颜色"""
    digits = value.lstrip("#")
    if len(digits) == 6:
        digits = "FF" + digits
    try:
        if len(digits) != 8:
            raise ValueError(value)
        return int(digits, 16)
    except ValueError:
        logger.debug(f"无法解析颜色 {value}，使用默认颜色")
        return DEFAULT_COURSE_COLOR


def format_color(value: int) -> str:
    return f"#{value & 0xFFFFFFFF:08X}"


def _week_pattern(data: WeekPatternData) -> WeekPattern:
    try:
        return WeekPattern(data.type.upper())
    except ValueError:
        return WeekPattern.ALL


def course_from_data(data: CourseData, semester: Semester, semester_id: int) -> Course:
    """交换文件中的课程 -> 课程实体"""
    week_pattern = _week_pattern(data.week_pattern)
    return Course(
        name=data.name,
        semester_id=semester_id,
        day_of_week=DayOfWeek.from_number(data.day_of_week),
        start_time=_parse_clock(data.start_time),
        end_time=_parse_clock(data.end_time),
        start_date=semester.start_date,
        end_date=semester.end_date,
        instructor=data.teacher,
        location=data.location,
        color=parse_color(data.color),
        week_pattern=week_pattern,
        custom_weeks=(
            data.week_pattern.custom_weeks if week_pattern is WeekPattern.CUSTOM else None
        ),
        period_start=data.start_period,
        period_end=data.end_period,
    )


def course_to_data(course: Course) -> CourseData:
    """课程实体 -> 交换文件中的课程"""
    return CourseData(
        name=course.name,
        teacher=course.instructor,
        location=course.location,
        day_of_week=list(DayOfWeek).index(course.day_of_week) + 1,
        start_period=course.period_start or 1,
        end_period=course.period_end or 1,
        start_time=_format_clock(course.start_time),
        end_time=_format_clock(course.end_time),
        week_pattern=WeekPatternData(
            type=course.week_pattern.value,
            custom_weeks=(
                course.custom_weeks if course.week_pattern is WeekPattern.CUSTOM else None
            ),
        ),
        color=format_color(course.color),
    )


def apply_period_settings(settings: CourseSettings, data: PeriodSettingsData) -> CourseSettings:
    return replace(
        settings,
        total_periods=data.total_periods,
        period_duration=data.period_duration_minutes,
        break_duration=data.break_duration_minutes,
        first_period_start_time=_parse_clock(data.first_period_start_time),
        lunch_break_after_period=data.lunch_break_after_period,
        lunch_break_duration=(
            data.lunch_break_duration_minutes
            if data.lunch_break_duration_minutes is not None
            else 90
        ),
    )


def apply_display_settings(settings: CourseSettings, data: DisplaySettingsData) -> CourseSettings:
    return replace(settings, show_weekends=data.show_weekend)


def build_schedule_export(
    semester: Semester,
    courses: Sequence[Course],
    settings: CourseSettings,
    current_week: int = 1,
    app_version: str = "",
    device_info: str = "",
) -> ScheduleExport:
    """把一个学期及其课程打包为交换文件

    Args:
        semester: 学期
        courses: 该学期的课程
        settings: 当前课程表设置
        current_week: 当前周
        app_version: 应用版本
        device_info: 设备信息

    Returns:
        交换文件对象，调用 to_json() 得到文本
    """
    return ScheduleExport(
        metadata=ExportMetadata(
            version=SCHEDULE_FORMAT_VERSION,
            export_time=int(datetime.now().timestamp() * 1000),
            app_version=app_version,
            device_info=device_info,
        ),
        semesters=[
            SemesterExportData(
                semester_info=SemesterInfo(
                    name=semester.name,
                    start_date=semester.start_date,
                    end_date=semester.end_date,
                    current_week=current_week,
                    total_weeks=semester.total_weeks,
                ),
                period_settings=PeriodSettingsData(
                    total_periods=settings.total_periods,
                    period_duration_minutes=settings.period_duration,
                    break_duration_minutes=settings.break_duration,
                    first_period_start_time=_format_clock(settings.first_period_start_time),
                    lunch_break_after_period=settings.lunch_break_after_period,
                    lunch_break_duration_minutes=settings.lunch_break_duration,
                ),
                display_settings=DisplaySettingsData(
                    show_weekend=settings.show_weekends,
                    time_format_24_hour=settings.time_format_24_hour,
                    show_period_number=settings.show_period_number,
                    compact_mode=settings.compact_mode,
                ),
                courses=[course_to_data(course) for course in courses],
            )
        ],
    )


# ============== 导入 ==============


@dataclass
class ImportOptions:
    """学期导入选项"""

    semester_name: str
    apply_period_settings: bool = False
    apply_display_settings: bool = False


@dataclass
class ScheduleImportResult:
    """学期导入结果"""

    semester_id: int
    semester_name: str
    course_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "semester_id": self.semester_id,
            "semester_name": self.semester_name,
            "course_count": self.course_count,
        }


def validate_schedule(data: ScheduleExport) -> None:
    """校验交换文件内容

    Raises:
        BackupValidationError: 版本不支持、没有学期或学期信息无效
    """
    if data.metadata.version != SCHEDULE_FORMAT_VERSION:
        raise BackupValidationError(f"不支持的版本：{data.metadata.version}")
    if not data.semesters:
        raise BackupValidationError("文件中没有学期数据")
    for semester in data.semesters:
        if not semester.semester_info.name.strip():
            raise BackupValidationError("学期名称不能为空")
        if semester.semester_info.total_weeks <= 0:
            raise BackupValidationError("学期周数必须大于0")


class ScheduleImporter:
    """课程表导入器"""

    def __init__(
        self,
        semester_store: EntityStore,
        course_store: EntityStore,
        settings_store: CourseSettingsStore,
    ):
        """初始化导入器

        Args:
            semester_store: 学期存储
            course_store: 课程存储
            settings_store: 课程表设置存储
        """
        self.semester_store = semester_store
        self.course_store = course_store
        self.settings_store = settings_store

    def parse(self, text: str) -> OperationResult[ScheduleExport]:
        """解析并校验交换文件

        Args:
            text: 文件内容

        Returns:
            交换文件对象；格式错误或校验失败时返回失败结果
        """
        try:
            data = ScheduleExport.model_validate_json(text)
        except ValidationError as e:
            logger.warning(f"课程表文件格式无效: {e.error_count()} 个错误")
            return OperationResult.fail(BackupFormatError("文件格式无效", cause=e))

        try:
            validate_schedule(data)
        except BackupValidationError as e:
            logger.warning(f"课程表文件校验失败: {e}")
            return OperationResult.fail(e)

        logger.info(f"解析课程表文件成功，共 {len(data.semesters)} 个学期")
        return OperationResult.ok(data)

    async def detect_conflicts(self, semester_data: SemesterExportData) -> ConflictInfo:
        """检测与现有学期和课程表设置的冲突"""
        name = semester_data.semester_info.name
        existing = await self.semester_store.snapshot()
        name_conflict = any(semester.name == name for semester in existing)

        settings = await self.settings_store.get()
        period = semester_data.period_settings
        period_conflict = (
            settings.total_periods != period.total_periods
            or settings.period_duration != period.period_duration_minutes
            or settings.break_duration != period.break_duration_minutes
        )
        display_conflict = settings.show_weekends != semester_data.display_settings.show_weekend

        return ConflictInfo(
            has_name_conflict=name_conflict,
            has_period_settings_conflict=period_conflict,
            has_display_settings_conflict=display_conflict,
            existing_semester_name=name if name_conflict else None,
        )

    async def execute_import(
        self, semester_data: SemesterExportData, options: ImportOptions
    ) -> OperationResult[ScheduleImportResult]:
        """导入一个学期及其课程

        Args:
            semester_data: 学期数据
            options: 导入选项

        Returns:
            导入结果
        """
        try:
            info = semester_data.semester_info
            semester = Semester(
                name=options.semester_name,
                start_date=info.start_date,
                end_date=info.end_date,
                total_weeks=info.total_weeks,
            )
            # 先转换全部课程，数据无效时不写入任何内容
            courses = [course_from_data(course, semester, 0) for course in semester_data.courses]

            semester_id = await self.semester_store.insert(semester)

            if options.apply_period_settings or options.apply_display_settings:
                settings = await self.settings_store.get()
                if options.apply_period_settings:
                    settings = apply_period_settings(settings, semester_data.period_settings)
                if options.apply_display_settings:
                    settings = apply_display_settings(settings, semester_data.display_settings)
                await self.settings_store.set(settings)

            for course in courses:
                await self.course_store.insert(replace(course, semester_id=semester_id))

            logger.info(f"导入学期 {options.semester_name} 完成，共 {len(courses)} 门课程")
            return OperationResult.ok(
                ScheduleImportResult(
                    semester_id=semester_id,
                    semester_name=options.semester_name,
                    course_count=len(courses),
                )
            )

        except Exception as e:
            error = wrap_exception(e, "导入失败")
            logger.error(f"导入学期 {options.semester_name} 失败: {error}")
            return OperationResult.fail(error)


__all__ = [
    "SCHEDULE_FORMAT_VERSION",
    "ExportMetadata",
    "SemesterInfo",
    "PeriodSettingsData",
    "DisplaySettingsData",
    "WeekPatternData",
    "CourseData",
    "SemesterExportData",
    "ScheduleExport",
    "parse_color",
    "format_color",
    "course_from_data",
    "course_to_data",
    "apply_period_settings",
    "apply_display_settings",
    "build_schedule_export",
    "ImportOptions",
    "ScheduleImportResult",
    "validate_schedule",
    "ScheduleImporter",
]
