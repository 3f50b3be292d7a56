"""Tests for the JSON export loader."""
import json

import pytest

from asyncapi_gen.parser.json_loader import (
    extract_topic_segments,
    get_unique_topics,
    group_by_model,
    load_json_file,
    parse_json_content,
)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def simple_export():
    return json.dumps([
        {"topic": "line/1/temp", "payload": {"value": 20.5}},
        {"topic": "line/2/temp", "payload": 21.5, "modelName": "Reading"},
    ])


@pytest.fixture
def hierarchical_export():
    return json.dumps({
        "Plant": {
            "_path": "Plant",
            "_model": "PlantModel",
            "name": "North",
            "Line1": {
                "_path": "Plant\\Line1",
                "_model": "LineModel",
                "_timestamp": "2024-01-15T10:30:00Z",
                "_elementID": "abc",
                "speed": 12,
                "meta": {"shift": "A"},
            },
            "Empty": {"_path": "Plant\\Empty", "_name": "Empty"},
        }
    })


# ============================================================================
# SIMPLE FORMAT
# ============================================================================


class TestSimpleFormat:
    """Test the topic/payload array layout."""

    def test_parse(self, simple_export):
        messages = parse_json_content(simple_export)
        assert [m.topic for m in messages] == ["line/1/temp", "line/2/temp"]
        assert messages[0].payload == {"value": 20.5}

    def test_non_object_payload_wrapped(self, simple_export):
        messages = parse_json_content(simple_export)
        assert messages[1].payload == {"value": 21.5}
        assert messages[1].model_name == "Reading"

    def test_non_string_model_name_ignored(self):
        content = json.dumps([{"topic": "t", "payload": {"a": 1}, "modelName": 7}])
        assert parse_json_content(content)[0].model_name is None

    def test_invalid_json_raises_value_error(self):
        with pytest.raises(ValueError):
            parse_json_content("{not json")


# ============================================================================
# HIERARCHICAL FORMAT
# ============================================================================


class TestHierarchicalFormat:
    """Test the _path node layout."""

    def test_topics_from_paths(self, hierarchical_export):
        messages = parse_json_content(hierarchical_export)
        assert [m.topic for m in messages] == ["Plant", "Plant/Line1"]

    def test_metadata_and_children_excluded(self, hierarchical_export):
        plant, line = parse_json_content(hierarchical_export)
        assert plant.payload == {"name": "North"}
        assert line.payload == {"speed": 12, "meta": {"shift": "A"}}

    def test_model_and_timestamp(self, hierarchical_export):
        line = parse_json_content(hierarchical_export)[1]
        assert line.model_name == "LineModel"
        assert line.timestamp.year == 2024

    def test_non_string_model_ignored(self):
        content = json.dumps({"plant": {"_path": "plant\\line1", "_model": 5, "temp": 20}})
        message = parse_json_content(content)[0]
        assert message.model_name is None
        assert message.payload == {"temp": 20}

    def test_empty_payload_skipped(self, hierarchical_export):
        topics = [m.topic for m in parse_json_content(hierarchical_export)]
        assert "Plant/Empty" not in topics

    def test_nested_grouping_nodes(self):
        content = json.dumps({"Site": {"Area": {"Cell": {"_path": "Site/Area/Cell", "ok": True}}}})
        messages = parse_json_content(content)
        assert [m.topic for m in messages] == ["Site/Area/Cell"]

    def test_root_array(self):
        content = json.dumps([{"_path": "a", "x": 1}, {"_path": "b", "y": 2}])
        assert [m.topic for m in parse_json_content(content)] == ["a", "b"]


# ============================================================================
# HELPERS
# ============================================================================


class TestHelpers:
    """Test grouping helpers."""

    def test_load_json_file(self, tmp_path, simple_export):
        path = tmp_path / "export.json"
        path.write_text(simple_export, encoding="utf-8")
        assert len(load_json_file(path)) == 2

    def test_group_by_model(self, simple_export):
        groups = group_by_model(parse_json_content(simple_export))
        assert set(groups) == {"Reading", "__unknown__"}

    def test_unique_topics_sorted(self, simple_export):
        messages = parse_json_content(simple_export) * 2
        assert get_unique_topics(messages) == ["line/1/temp", "line/2/temp"]

    def test_topic_segments(self, simple_export):
        segments = extract_topic_segments(parse_json_content(simple_export))
        assert segments == {0: {"line"}, 1: {"1", "2"}, 2: {"temp"}}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
