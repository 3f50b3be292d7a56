"""
Unit tests for the schema inferrer

Tests:
- Scalar and string-format inference
- Array and object inference in both dialects
- merge_schemas generalization rules
- hash_schema stability
"""

import pytest

from asyncapi_gen.config import InferenceDialect
from asyncapi_gen.inference.inferrer import (
    MAX_MERGED_EXAMPLES,
    UNDEFINED,
    SchemaInferrer,
    detect_string_format,
    hash_schema,
    infer_schema,
    merge_schemas,
    normalize_schema,
    schemas_equal,
)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def strict_inferrer():
    return SchemaInferrer(InferenceDialect.STRICT)


@pytest.fixture
def rbe_inferrer():
    return SchemaInferrer(InferenceDialect.REPORT_BY_EXCEPTION)


# ============================================================================
# SCALARS
# ============================================================================


class TestScalarInference:
    """Test inference of primitive values."""

    def test_null(self, strict_inferrer):
        assert strict_inferrer.infer(None) == {"type": "null"}

    def test_undefined_is_empty(self, strict_inferrer):
        assert strict_inferrer.infer(UNDEFINED) == {}

    def test_boolean_is_not_integer(self, strict_inferrer):
        assert strict_inferrer.infer(True) == {"type": "boolean", "examples": [True]}

    def test_integer(self, strict_inferrer):
        assert strict_inferrer.infer(42, include_examples=False) == {"type": "integer"}

    def test_float_with_fraction_is_number(self, strict_inferrer):
        assert strict_inferrer.infer(21.5, include_examples=False) == {"type": "number"}

    def test_integral_float_is_integer(self, strict_inferrer):
        assert strict_inferrer.infer(3.0, include_examples=False) == {"type": "integer"}

    def test_examples_attached(self, strict_inferrer):
        assert strict_inferrer.infer(7)["examples"] == [7]

    def test_empty_string_has_no_examples(self, strict_inferrer):
        assert strict_inferrer.infer("") == {"type": "string"}

    def test_unsupported_type_is_empty(self, strict_inferrer):
        assert strict_inferrer.infer(object()) == {}


class TestStringFormats:
    """Test semantic string format detection."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2024-01-15T10:30:00Z", "date-time"),
            ("2024-01-15T10:30:00.123+02:00", "date-time"),
            ("2024-01-15", "date"),
            ("1/15/2024 10:30:00 AM", "date-time"),
            ("10:30:00", "time"),
            ("550e8400-e29b-41d4-a716-446655440000", "uuid"),
            ("ops@example.com", "email"),
            ("https://example.com/x", "uri"),
            ("hello", None),
        ],
    )
    def test_detect_format(self, value, expected):
        assert detect_string_format(value) == expected

    def test_format_in_fragment(self, strict_inferrer):
        schema = strict_inferrer.infer("2024-01-15", include_examples=False)
        assert schema == {"type": "string", "format": "date"}


# ============================================================================
# ARRAYS AND OBJECTS
# ============================================================================


class TestArrayInference:
    """Test array inference."""

    def test_empty_array_has_no_items(self, strict_inferrer):
        assert strict_inferrer.infer([]) == {"type": "array"}

    def test_homogeneous_items(self, strict_inferrer):
        schema = strict_inferrer.infer([1, 2, 3], include_examples=False)
        assert schema == {"type": "array", "items": {"type": "integer"}}

    def test_mixed_items_become_union(self, strict_inferrer):
        schema = strict_inferrer.infer([1, "a"], include_examples=False)
        assert schema["items"] == {"type": ["integer", "string"]}

    def test_only_first_ten_items_sampled(self, strict_inferrer):
        value = [1] * 10 + ["late"]
        schema = strict_inferrer.infer(value, include_examples=False)
        assert schema["items"] == {"type": "integer"}

    def test_array_example_truncated(self, strict_inferrer):
        schema = strict_inferrer.infer([1, 2, 3, 4, 5])
        assert schema["examples"] == [[1, 2, 3]]
        assert "examples" not in schema["items"]


class TestObjectInference:
    """Test both object dialects."""

    def test_strict_requires_every_key_sorted(self, strict_inferrer):
        schema = strict_inferrer.infer({"b": 1, "a": "x"}, include_examples=False)
        assert schema == {
            "type": "object",
            "properties": {"b": {"type": "integer"}, "a": {"type": "string"}},
            "required": ["a", "b"],
        }

    def test_strict_nested(self, strict_inferrer):
        schema = strict_inferrer.infer({"pos": {"x": 1.5}}, include_examples=False)
        assert schema["properties"]["pos"]["properties"]["x"] == {"type": "number"}
        assert schema["properties"]["pos"]["required"] == ["x"]

    def test_report_by_exception_has_no_required(self, rbe_inferrer):
        schema = rbe_inferrer.infer({"temp": 20}, include_examples=False)
        assert "required" not in schema

    def test_report_by_exception_skips_metadata_keys(self, rbe_inferrer):
        schema = rbe_inferrer.infer({"_model": "X", "temp": 20}, include_examples=False)
        assert "_model" not in schema["properties"]
        assert "temp" in schema["properties"]

    def test_report_by_exception_adds_timestamp(self, rbe_inferrer):
        schema = rbe_inferrer.infer({"temp": 20}, include_examples=False)
        timestamp = schema["properties"]["_timestamp"]
        assert timestamp["type"] == "string"
        assert timestamp["format"] == "date-time"

    def test_report_by_exception_nested_objects_get_timestamp(self, rbe_inferrer):
        schema = rbe_inferrer.infer({"pos": {"x": 1}}, include_examples=False)
        assert "_timestamp" in schema["properties"]["pos"]["properties"]

    def test_infer_schema_wrapper(self):
        schema = infer_schema({"a": 1}, include_examples=False, dialect=InferenceDialect.STRICT)
        assert schema["required"] == ["a"]


# ============================================================================
# MERGING
# ============================================================================


class TestMergeSchemas:
    """Test fragment generalization."""

    def test_empty_side_yields_other(self):
        assert merge_schemas({}, {"type": "integer"}) == {"type": "integer"}
        assert merge_schemas({"type": "integer"}, {}) == {"type": "integer"}

    def test_different_tags_become_sorted_union(self):
        merged = merge_schemas({"type": "string"}, {"type": "integer"})
        assert merged == {"type": ["integer", "string"]}

    def test_union_with_union(self):
        union = {"type": ["integer", "string"]}
        assert merge_schemas(union, {"type": ["integer", "string"]}) == union

    def test_union_absorbs_new_tag(self):
        merged = merge_schemas({"type": ["integer", "string"]}, {"type": "null"})
        assert merged == {"type": ["integer", "null", "string"]}

    def test_required_is_intersection(self):
        first = {
            "type": "object",
            "properties": {"x": {"type": "integer"}, "y": {"type": "integer"}},
            "required": ["x", "y"],
        }
        second = {
            "type": "object",
            "properties": {"x": {"type": "integer"}, "z": {"type": "integer"}},
            "required": ["x"],
        }
        merged = merge_schemas(first, second)
        assert merged["required"] == ["x"]
        assert set(merged["properties"]) == {"x", "y", "z"}

    def test_object_properties_merged_recursively(self):
        first = {"type": "object", "properties": {"a": {"type": "integer"}}, "required": ["a"]}
        second = {"type": "object", "properties": {"a": {"type": "string"}}, "required": ["a"]}
        merged = merge_schemas(first, second)
        assert merged["properties"]["a"] == {"type": ["integer", "string"]}

    def test_array_items_merged(self):
        merged = merge_schemas(
            {"type": "array", "items": {"type": "integer"}},
            {"type": "array", "items": {"type": "number"}},
        )
        assert merged["items"] == {"type": ["integer", "number"]}

    def test_examples_unioned_and_capped(self):
        first = {"type": "integer", "examples": [1, 2, 3]}
        second = {"type": "integer", "examples": [3, 4, 5, 6]}
        merged = merge_schemas(first, second)
        assert merged["examples"] == [1, 2, 3, 4, 5]
        assert len(merged["examples"]) == MAX_MERGED_EXAMPLES

    def test_conflicting_format_dropped(self):
        merged = merge_schemas(
            {"type": "string", "format": "date"},
            {"type": "string", "format": "uuid"},
        )
        assert "format" not in merged

    def test_inputs_not_modified(self):
        first = {"type": "object", "properties": {"a": {"type": "integer"}}, "required": ["a"]}
        second = {"type": "object", "properties": {"b": {"type": "integer"}}, "required": ["b"]}
        merge_schemas(first, second)
        assert first == {"type": "object", "properties": {"a": {"type": "integer"}}, "required": ["a"]}
        assert second["required"] == ["b"]


# ============================================================================
# HASHING
# ============================================================================


class TestHashSchema:
    """Test content fingerprints."""

    def test_property_order_ignored(self):
        first = {"type": "object", "properties": {"a": {"type": "integer"}, "b": {"type": "string"}}}
        second = {"type": "object", "properties": {"b": {"type": "string"}, "a": {"type": "integer"}}}
        assert hash_schema(first) == hash_schema(second)

    def test_required_order_ignored(self):
        first = {"type": "object", "properties": {}, "required": ["a", "b"]}
        second = {"type": "object", "properties": {}, "required": ["b", "a"]}
        assert schemas_equal(first, second)

    def test_examples_ignored(self):
        assert hash_schema({"type": "integer", "examples": [1]}) == hash_schema({"type": "integer"})

    def test_different_content_differs(self):
        assert hash_schema({"type": "integer"}) != hash_schema({"type": "string"})

    def test_normalize_drops_nested_examples(self):
        schema = {"type": "object", "properties": {"a": {"type": "integer", "examples": [1]}}}
        assert normalize_schema(schema) == {"type": "object", "properties": {"a": {"type": "integer"}}}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
