"""记录编解码器单元测试

测试各记录类型的编码、严格解码和宽松解码
"""

import json
from datetime import datetime

import pytest

from conftest import make_course, make_routine, make_samples, make_task
from saison.core.backup import BackupFormatError, RecordType, get_codec
from saison.core.backup.codec import serialize_cycle_config
from saison.core.backup.models import DayOfWeek, Priority, Task


class TestRoundTrip:
    """测试编码后解码还原"""

    @pytest.mark.parametrize("record_type", list(RecordType))
    def test_round_trip(self, record_type):
        """测试每种类型编码解码后字段一致"""
        codec = get_codec(record_type)
        samples = make_samples(record_type, 3)

        decoded = codec.decode(codec.encode(samples))

        assert decoded == samples

    def test_empty_list(self):
        """测试空列表"""
        codec = get_codec(RecordType.TASKS)

        assert codec.encode([]) == "[]"
        assert codec.decode("[]") == []


class TestEncode:
    """测试编码"""

    def test_encode_writes_every_field(self):
        """测试所有字段都会写出，可选字段为显式 null"""
        codec = get_codec(RecordType.TASKS)
        task = Task(title="只有标题")

        records = json.loads(codec.encode([task]))

        assert len(records) == 1
        assert records[0]["title"] == "只有标题"
        assert "dueDate" in records[0]
        assert records[0]["dueDate"] is None
        assert records[0]["priority"] == "MEDIUM"

    def test_encode_uses_iso_dates(self):
        """测试日期时间使用 ISO-8601"""
        codec = get_codec(RecordType.COURSES)

        record = json.loads(codec.encode([make_course(1)]))[0]

        assert record["startTime"] == "09:00:00"
        assert record["startDate"] == "2024-09-02"
        assert record["dayOfWeek"] == "TUESDAY"

    def test_cycle_config_serialized_canonically(self):
        """测试周期配置以规范 JSON 字符串写出"""
        codec = get_codec(RecordType.ROUTINES)
        routine = make_routine(0, cycle_config={"b": 2, "a": 1})

        record = json.loads(codec.encode([routine]))[0]

        assert record["cycleConfig"] == '{"a":1,"b":2}'
        assert serialize_cycle_config({"b": 2, "a": 1}) == serialize_cycle_config({"a": 1, "b": 2})


class TestDecode:
    """测试解码"""

    def test_unknown_fields_ignored(self):
        """测试忽略未知字段"""
        codec = get_codec(RecordType.TASKS)
        text = json.dumps([{"title": "任务", "futureField": 42}])

        tasks = codec.parse(text)

        assert tasks[0].title == "任务"
        assert tasks[0].id == 0

    def test_missing_optional_fields_use_defaults(self):
        """测试缺失的可选字段使用默认值"""
        codec = get_codec(RecordType.TASKS)

        task = codec.parse('[{"title": "任务"}]')[0]

        assert task.priority == Priority.MEDIUM
        assert task.is_completed is False
        assert task.due_date is None

    def test_epoch_millis_datetime(self):
        """测试兼容毫秒时间戳"""
        codec = get_codec(RecordType.TASKS)
        millis = int(datetime(2024, 5, 1, 12, 0).timestamp() * 1000)

        task = codec.parse(json.dumps([{"title": "任务", "dueDate": millis}]))[0]

        assert task.due_date == datetime(2024, 5, 1, 12, 0)

    def test_day_of_week_number(self):
        """测试星期兼容 1-7 数字"""
        codec = get_codec(RecordType.COURSES)
        record = codec.to_record(make_course(0))
        record["dayOfWeek"] = 5

        course = codec.parse(json.dumps([record]))[0]

        assert course.day_of_week == DayOfWeek.FRIDAY

    def test_cycle_config_accepts_object(self):
        """测试周期配置也可以是对象"""
        codec = get_codec(RecordType.ROUTINES)
        record = codec.to_record(make_routine(0))
        record["cycleConfig"] = {"days": [2]}

        routine = codec.parse(json.dumps([record]))[0]

        assert routine.cycle_config == {"days": [2]}

    def test_parse_invalid_json_raises(self):
        """测试严格解码遇到无效 JSON 抛出格式错误"""
        with pytest.raises(BackupFormatError):
            get_codec(RecordType.TASKS).parse("{not json")

    def test_parse_non_array_raises(self):
        """测试严格解码要求数组"""
        with pytest.raises(BackupFormatError):
            get_codec(RecordType.TASKS).parse('{"title": "任务"}')

    def test_parse_missing_required_field_raises(self):
        """测试缺少必填字段"""
        with pytest.raises(BackupFormatError):
            get_codec(RecordType.TASKS).parse('[{"description": "没有标题"}]')

    def test_parse_invalid_enum_raises(self):
        """测试无效的枚举取值"""
        with pytest.raises(BackupFormatError):
            get_codec(RecordType.TASKS).parse('[{"title": "任务", "priority": "SOON"}]')

    def test_decode_returns_empty_on_failure(self):
        """测试宽松解码失败时返回空列表"""
        codec = get_codec(RecordType.TASKS)

        assert codec.decode("{not json") == []
        assert codec.decode('{"title": "任务"}') == []
        assert codec.decode('[{"title": 1}]') == []

    @pytest.mark.parametrize(
        "text",
        [
            '[{"title": "任务", "dueDate": 1e20}]',
            '[{"title": "任务", "dueDate": Infinity}]',
            '[{"title": "任务", "dueDate": -1e20}]',
        ],
    )
    def test_out_of_range_timestamp(self, text):
        """测试超出范围的时间戳视为格式错误"""
        codec = get_codec(RecordType.TASKS)

        with pytest.raises(BackupFormatError):
            codec.parse(text)
        assert codec.decode(text) == []

    def test_deeply_nested_json(self):
        """测试嵌套过深的 JSON 视为格式错误"""
        codec = get_codec(RecordType.TASKS)
        text = "[" * 100000 + "]" * 100000

        with pytest.raises(BackupFormatError):
            codec.parse(text)
        assert codec.decode(text) == []

    def test_decode_keeps_order(self):
        """测试解码保持记录顺序"""
        codec = get_codec(RecordType.TASKS)
        tasks = [make_task(i) for i in range(5)]

        decoded = codec.decode(codec.encode(tasks))

        assert [task.title for task in decoded] == [task.title for task in tasks]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
