"""记录类型识别单元测试"""

import json

import pytest

from conftest import make_samples
from saison.core.backup import RecordType, classify, get_codec
from saison.core.backup.classifier import SIGNATURES, classify_fields


class TestClassify:
    """测试根据字段推断类型"""

    @pytest.mark.parametrize("record_type", list(RecordType))
    def test_encoded_output_classified(self, record_type):
        """测试编码结果能被识别为原类型"""
        text = get_codec(record_type).encode(make_samples(record_type, 2))

        assert classify(text) == record_type

    @pytest.mark.parametrize("required, record_type", SIGNATURES)
    def test_exact_signature(self, required, record_type):
        """测试只包含某类型必需字段的记录"""
        record = {name: None for name in required}

        assert classify(json.dumps([record])) == record_type

    def test_deterministic(self):
        """测试同一输入多次识别结果一致"""
        text = get_codec(RecordType.COURSES).encode(make_samples(RecordType.COURSES, 1))

        results = {classify(text) for _ in range(10)}

        assert results == {RecordType.COURSES}

    def test_first_match_wins(self):
        """测试同时满足多个类型时按顺序取第一个"""
        fields = {"dueDate", "isCompleted", "priority", "key", "value"}

        assert classify_fields(fields) == RecordType.TASKS

    def test_only_first_element_inspected(self):
        """测试只检查第一条记录"""
        text = json.dumps([{"key": "a", "value": 1}, {"dueDate": None, "isCompleted": False, "priority": "LOW"}])

        assert classify(text) == RecordType.PREFERENCES

    @pytest.mark.parametrize(
        "text",
        [
            "[]",
            "{}",
            "not json",
            "[1, 2]",
            '[{"unrelated": true}]',
            '"tasks"',
        ],
    )
    def test_undetermined(self, text):
        """测试无法识别时返回 None"""
        assert classify(text) is None

    def test_deeply_nested_json(self):
        """测试嵌套过深的 JSON 返回 None"""
        assert classify("[" * 100000 + "]" * 100000) is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
