"""Saison 备份命令行入口

导出、导入、预览本地备份，并检查备份文件的兼容性
"""

import os
import sys

# 禁止生成 __pycache__ 目录
os.environ["PYTHONDONTWRITEBYTECODE"] = "1"

from loguru import logger
import asyncio
import argparse
from pathlib import Path

from saison.config import BackupSettings, ConfigError, load_settings
from saison.core import __version__
from saison.core.backup import (
    BackupSelection,
    BackupService,
    CompatibilityValidator,
    CourseSettingsStore,
    DefaultSemesterInitializer,
    FlagStore,
    ImportOptions,
    PathManager,
    RecordType,
    ScheduleImporter,
    SelectionStore,
    open_file_stores,
)
from saison.core.backup.archive import read_text_file
from saison.core.backup.preview import is_archive_source
from saison.common import JsonFileHandler

DEFAULT_CONFIG_PATH = Path("data") / "config.json"


def setup_logger(level: str = "INFO") -> None:
    """配置日志输出"""
    logger.remove()
    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> <level>[{level}]</level> {message}",
        level=level,
        colorize=True,
    )


setup_logger()


class BackupApp:
    """命令行使用的组件集合"""

    def __init__(self, settings: BackupSettings):
        self.settings = settings
        self.path_manager = PathManager(
            settings.data_dir,
            scratch_dir=settings.scratch_dir,
            file_prefix=settings.file_prefix,
        )
        self.path_manager.ensure_directories()
        paths = self.path_manager.paths

        config_handler = JsonFileHandler(paths.selection_file.parent)
        self.stores = open_file_stores(paths.stores_dir)
        self.service = BackupService(
            self.stores,
            self.path_manager,
            selection_store=SelectionStore(config_handler, paths.selection_file.name),
            json_indent=settings.json_indent,
        )
        self.flags = FlagStore(config_handler, paths.flags_file.name)
        self.course_settings = CourseSettingsStore(config_handler, paths.course_settings_file.name)
        self.initializer = DefaultSemesterInitializer(self.stores[RecordType.SEMESTERS], self.flags)


def _parse_record_type(value: str) -> RecordType:
    try:
        return RecordType(value)
    except ValueError:
        choices = ", ".join(record_type.value for record_type in RecordType)
        raise argparse.ArgumentTypeError(f"未知的数据类型 {value}，可选: {choices}")


def _report(result) -> int:
    if result.success:
        value = result.value.to_dict() if hasattr(result.value, "to_dict") else result.value
        logger.info(f"完成: {value}")
        return 0
    logger.error(f"失败 [{result.error_kind.value}]: {result.message}")
    return 1


async def cmd_export(app: BackupApp, args) -> int:
    """按选择导出归档，未指定类型时使用上次保存的选择"""
    if args.types:
        selection = BackupSelection.of(*args.types)
        await app.service.save_selection(selection)
    else:
        selection = await app.service.get_selection()

    destination = args.output or app.path_manager.get_export_file(
        app.service.suggest_archive_name()
    )
    return _report(await app.service.export_selected(selection, destination))


async def cmd_export_one(app: BackupApp, args) -> int:
    destination = args.output or app.path_manager.get_export_file(
        app.service.suggest_single_file_name(args.type)
    )
    return _report(await app.service.export_single(args.type, destination))


async def cmd_import(app: BackupApp, args) -> int:
    """根据扩展名选择归档导入或单文件导入"""
    if is_archive_source(args.source):
        return _report(await app.service.import_archive(args.source))
    return _report(await app.service.import_single(args.source, args.type))


async def cmd_preview(app: BackupApp, args) -> int:
    return _report(await app.service.preview(args.source))


async def cmd_check(app: BackupApp, args) -> int:
    validator = CompatibilityValidator(app.service.archive)
    report = await validator.check(args.archive, args.names)
    for error in report.errors:
        logger.warning(error)
    logger.info(f"兼容性检查结果: {report.to_dict()}")
    return 0 if report.all_passed else 1


async def cmd_counts(app: BackupApp, args) -> int:
    counts = await app.service.get_data_counts()
    for record_type, count in counts.items():
        print(f"{record_type.value:<20}{count}")
    return 0


async def cmd_import_schedule(app: BackupApp, args) -> int:
    """导入课程表交换文件中的全部学期"""
    await app.initializer.ensure_default()
    importer = ScheduleImporter(
        app.stores[RecordType.SEMESTERS],
        app.stores[RecordType.COURSES],
        app.course_settings,
    )

    parsed = importer.parse(await asyncio.to_thread(read_text_file, args.source))
    if not parsed.success:
        return _report(parsed)

    exit_code = 0
    for semester_data in parsed.value.semesters:
        conflicts = await importer.detect_conflicts(semester_data)
        name = semester_data.semester_info.name
        if conflicts.has_name_conflict:
            logger.warning(f"已存在同名学期: {conflicts.existing_semester_name}")
            name = f"{name} (导入)"
        if conflicts.has_period_settings_conflict and not args.apply_period:
            logger.warning("节次设置与当前设置不同，使用 --apply-period 覆盖")
        if conflicts.has_display_settings_conflict and not args.apply_display:
            logger.warning("显示设置与当前设置不同，使用 --apply-display 覆盖")

        options = ImportOptions(
            semester_name=name,
            apply_period_settings=args.apply_period,
            apply_display_settings=args.apply_display,
        )
        exit_code |= _report(await importer.execute_import(semester_data, options))
    return exit_code


COMMANDS = {
    "export": cmd_export,
    "export-one": cmd_export_one,
    "import": cmd_import,
    "preview": cmd_preview,
    "check": cmd_check,
    "counts": cmd_counts,
    "import-schedule": cmd_import_schedule,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Saison 本地备份工具", allow_abbrev=False)
    parser.add_argument(
        "-c", "--config", type=Path, default=DEFAULT_CONFIG_PATH, help="配置文件路径"
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"Saison backup {__version__}"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export", help="导出为归档")
    export.add_argument("--types", nargs="+", type=_parse_record_type, help="要导出的数据类型")
    export.add_argument("-o", "--output", type=Path, help="目标文件")

    export_one = sub.add_parser("export-one", help="导出单个数据类型")
    export_one.add_argument("type", type=_parse_record_type, help="数据类型")
    export_one.add_argument("-o", "--output", type=Path, help="目标文件")

    import_ = sub.add_parser("import", help="导入归档或单类型文件")
    import_.add_argument("source", type=Path, help="源文件")
    import_.add_argument("--type", type=_parse_record_type, help="单类型文件的数据类型")

    preview = sub.add_parser("preview", help="预览导入")
    preview.add_argument("source", type=Path, help="源文件")

    check = sub.add_parser("check", help="检查备份兼容性")
    check.add_argument("archive", type=Path, help="归档文件")
    check.add_argument("names", nargs="*", default=[], help="一并检查的单类型文件名")

    sub.add_parser("counts", help="显示各类型数据数量")

    schedule = sub.add_parser("import-schedule", help="导入课程表文件")
    schedule.add_argument("source", type=Path, help="课程表文件")
    schedule.add_argument("--apply-period", action="store_true", help="应用文件中的节次设置")
    schedule.add_argument("--apply-display", action="store_true", help="应用文件中的显示设置")

    return parser


async def main(argv=None) -> int:
    """主函数：解析命令行并执行"""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        logger.error(str(e))
        return 1
    setup_logger(settings.log_level)

    app = BackupApp(settings)
    return await COMMANDS[args.command](app, args)


def run() -> None:
    """命令行入口"""
    try:
        exit_code = asyncio.run(main())
        sys.exit(exit_code if exit_code is not None else 0)
    except KeyboardInterrupt:
        logger.info("收到退出信号，已取消")
    except Exception as e:
        logger.error(f"操作失败: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
