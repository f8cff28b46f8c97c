"""命令行入口测试

在临时数据目录上执行导出、导入和检查命令
"""

import json

import pytest

from conftest import make_samples
from main import build_parser, main
from saison.core.backup import RecordType, get_codec


def _write_config(path, data_dir):
    path.write_text(
        json.dumps({"data_dir": str(data_dir), "log_level": "WARNING"}), encoding="utf-8"
    )
    return path


def _seed_tasks(data_dir, count):
    stores_dir = data_dir / "stores"
    stores_dir.mkdir(parents=True, exist_ok=True)
    (stores_dir / "tasks.json").write_text(
        get_codec(RecordType.TASKS).encode(make_samples(RecordType.TASKS, count)),
        encoding="utf-8",
    )


class TestParser:
    """测试参数解析"""

    def test_record_type_argument(self):
        """测试数据类型参数"""
        args = build_parser().parse_args(["export-one", "pomodoro_sessions"])

        assert args.type == RecordType.POMODORO_SESSIONS

    def test_unknown_record_type(self):
        """测试未知的数据类型"""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["export-one", "notes"])


class TestCommands:
    """测试命令执行"""

    @pytest.mark.asyncio
    async def test_export_then_import(self, tmp_path):
        """测试从一个数据目录导出并导入到另一个"""
        source_config = _write_config(tmp_path / "a.json", tmp_path / "a")
        target_config = _write_config(tmp_path / "b.json", tmp_path / "b")
        _seed_tasks(tmp_path / "a", 3)
        archive = tmp_path / "saison_backup_20240901_083000.zip"

        assert await main(["-c", str(source_config), "export", "--types", "tasks", "-o", str(archive)]) == 0
        assert archive.exists()
        assert await main(["-c", str(source_config), "check", str(archive)]) == 0
        assert await main(["-c", str(target_config), "import", str(archive)]) == 0

        imported = get_codec(RecordType.TASKS).parse(
            (tmp_path / "b" / "stores" / "tasks.json").read_text(encoding="utf-8")
        )
        assert len(imported) == 3

    @pytest.mark.asyncio
    async def test_export_saves_selection(self, tmp_path):
        """测试指定类型导出后保存选择"""
        config = _write_config(tmp_path / "config.json", tmp_path / "data")

        assert await main(["-c", str(config), "export", "--types", "courses", "semesters"]) == 0

        saved = json.loads(
            (tmp_path / "data" / "config" / "export_preferences.json").read_text(encoding="utf-8")
        )
        assert saved["include_courses"] is True
        assert saved["include_tasks"] is False
        assert len(list((tmp_path / "data" / "exports").glob("saison_backup_*.zip"))) == 1

    @pytest.mark.asyncio
    async def test_import_failure_exit_code(self, tmp_path):
        """测试导入失败返回非零"""
        config = _write_config(tmp_path / "config.json", tmp_path / "data")
        source = tmp_path / "unknown.json"
        source.write_text('[{"foo": 1}]', encoding="utf-8")

        assert await main(["-c", str(config), "import", str(source)]) == 1

    @pytest.mark.asyncio
    async def test_invalid_config(self, tmp_path):
        """测试配置无效时返回非零"""
        config = tmp_path / "config.json"
        config.write_text("{", encoding="utf-8")

        assert await main(["-c", str(config), "counts"]) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
