"""存储与文件处理单元测试

测试内存存储、JSON 文件存储、选择/标记/设置持久化和路径管理器
"""

import json
from datetime import datetime

import pytest

from conftest import make_preference, make_samples, make_task
from saison.common import JsonFileHandler
from saison.core.backup import (
    BackupSelection,
    CourseSettingsStore,
    EntityStore,
    FlagStore,
    InMemoryStore,
    JsonFileStore,
    PathManager,
    RecordType,
    SelectionStore,
    open_file_stores,
)
from saison.core.backup.models import CourseSettings


@pytest.fixture
def handler(temp_data_dir):
    """临时目录的文件处理器"""
    return JsonFileHandler(temp_data_dir / "stores")


class TestInMemoryStore:
    """测试内存存储"""

    @pytest.mark.asyncio
    async def test_assigns_ids(self):
        """测试新记录分配标识，不冲突的原标识保留"""
        store = InMemoryStore(RecordType.TASKS, [make_task(0, id=5)])

        new_id = await store.insert(make_task(1))
        kept_id = await store.insert(make_task(2, id=9))
        colliding_id = await store.insert(make_task(3, id=5))

        assert new_id == 6
        assert kept_id == 9
        assert colliding_id == 10

    @pytest.mark.asyncio
    async def test_snapshot_is_copy(self):
        """测试快照与存储相互独立"""
        store = InMemoryStore(RecordType.TASKS, [make_task(0)])

        snapshot = await store.snapshot()
        snapshot.clear()

        assert len(await store.snapshot()) == 1

    @pytest.mark.asyncio
    async def test_preferences_upsert_by_key(self):
        """测试偏好设置按 key 覆盖"""
        store = InMemoryStore(RecordType.PREFERENCES, [make_preference(0)])

        await store.insert(make_preference(0, value="新值"))

        items = await store.snapshot()
        assert len(items) == 1
        assert items[0].value == "新值"

    def test_satisfies_protocol(self):
        """测试符合存储接口"""
        assert isinstance(InMemoryStore(RecordType.TASKS), EntityStore)


class TestJsonFileStore:
    """测试 JSON 文件存储"""

    @pytest.mark.asyncio
    async def test_insert_persists(self, handler):
        """测试插入后写入文件，格式与单类型导出相同"""
        store = JsonFileStore(RecordType.TASKS, handler)

        for task in make_samples(RecordType.TASKS, 2):
            await store.insert(task)

        reopened = JsonFileStore(RecordType.TASKS, handler)
        items = await reopened.snapshot()
        assert [task.title for task in items] == ["任务 0", "任务 1"]
        assert [task.id for task in items] == [1, 2]
        records = json.loads(handler.path_of("tasks.json").read_text(encoding="utf-8"))
        assert records[0]["title"] == "任务 0"

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, handler):
        """测试文件不存在时为空"""
        assert await JsonFileStore(RecordType.EVENTS, handler).snapshot() == []

    @pytest.mark.asyncio
    async def test_open_file_stores(self, temp_data_dir):
        """测试为全部类型打开存储"""
        stores = open_file_stores(temp_data_dir / "stores")

        assert set(stores) == set(RecordType)
        assert stores[RecordType.SEMESTERS].filename == "semesters.json"


class TestSmallStores:
    """测试选择、标记和设置持久化"""

    @pytest.mark.asyncio
    async def test_selection_defaults_to_all(self, handler):
        """测试缺失的键视为启用"""
        handler.save("export_preferences.json", {"include_tasks": False})

        selection = await SelectionStore(handler).get()

        assert not selection.is_enabled(RecordType.TASKS)
        assert selection.is_enabled(RecordType.POMODORO_SESSIONS)

    @pytest.mark.asyncio
    async def test_selection_round_trip(self, handler):
        """测试保存后读取"""
        store = SelectionStore(handler)

        await store.save(BackupSelection.of(RecordType.SEMESTERS, RecordType.PREFERENCES))

        data = handler.load("export_preferences.json")
        assert data["include_semesters"] is True
        assert data["include_pomodoro"] is False
        assert (await store.get()).enabled_types() == [RecordType.SEMESTERS, RecordType.PREFERENCES]

    @pytest.mark.asyncio
    async def test_corrupt_selection_file(self, handler):
        """测试文件损坏时使用默认值"""
        handler.save_text("export_preferences.json", "{broken")

        selection = await SelectionStore(handler).get()

        assert selection.has_any_enabled()

    @pytest.mark.asyncio
    async def test_flags(self, handler):
        """测试布尔标记"""
        flags = FlagStore(handler)

        assert flags.get("ready") is False
        await flags.set("ready", True)
        assert flags.get("ready") is True

    @pytest.mark.asyncio
    async def test_course_settings(self, handler):
        """测试课程表设置持久化"""
        store = CourseSettingsStore(handler)

        assert await store.get() == CourseSettings()
        await store.set(CourseSettings(total_periods=12, show_weekends=False))

        settings = await store.get()
        assert settings.total_periods == 12
        assert settings.show_weekends is False


class TestPathManager:
    """测试路径管理器"""

    def test_initialization(self, temp_data_dir):
        """测试初始化"""
        pm = PathManager(temp_data_dir)

        assert pm.paths.stores_dir == temp_data_dir / "stores"
        assert pm.paths.scratch_dir == temp_data_dir / "temp"
        assert pm.paths.selection_file == temp_data_dir / "config" / "export_preferences.json"

    def test_ensure_directories(self, path_manager):
        """测试确保目录存在"""
        assert path_manager.paths.stores_dir.exists()
        assert path_manager.paths.exports_dir.exists()
        assert path_manager.paths.selection_file.parent.exists()

    def test_file_names(self, path_manager):
        """测试生成的文件名"""
        now = datetime(2024, 9, 1, 8, 30, 5)

        assert path_manager.archive_file_name(now) == "saison_backup_20240901_083005.zip"
        assert (
            path_manager.single_file_name(RecordType.POMODORO_SESSIONS, now)
            == "saison_pomodoro_sessions_20240901_083005.json"
        )
        assert path_manager.get_store_file(RecordType.TASKS).name == "tasks.json"

    def test_format_size(self, path_manager):
        """测试格式化大小"""
        assert path_manager.format_size(100) == "100.00 B"
        assert path_manager.format_size(1024) == "1.00 KB"
        assert path_manager.format_size(1024 * 1024) == "1.00 MB"


class TestJsonFileHandler:
    """测试文件处理器"""

    def test_save_and_load(self, handler):
        """测试保存和加载"""
        handler.save("data.json", {"名称": "值"})

        assert handler.load("data.json") == {"名称": "值"}
        assert handler.exists("data.json")
        assert not handler.path_of(".data.json.tmp").exists()

    def test_load_default(self, handler):
        """测试文件不存在或损坏时返回默认值"""
        assert handler.load("missing.json", []) == []
        handler.save_text("bad.json", "{")
        assert handler.load("bad.json", {}) == {}

    def test_delete(self, handler):
        """测试删除文件"""
        handler.save("data.json", [])

        assert handler.delete("data.json")
        assert not handler.exists("data.json")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
