"""
Schema Inferrer - Builds JSON-Schema-like fragments from example payloads.

Supports:
- Scalar typing (integer vs number via exactness check)
- String format detection (date-time, date, time, uuid, email, uri)
- Array item generalization across the first sampled elements
- Two object dialects (strict / report-by-exception)
- Fragment merging ("most general wins") and content hashing
"""

import copy
import hashlib
import json
import logging
import re
from typing import Any, Dict, List, Optional, Set, Tuple

from asyncapi_gen.config import InferenceDialect
from asyncapi_gen.schema.models import SchemaFragment

logger = logging.getLogger(__name__)

# Stands in for "no value at all"; inferring it yields an empty fragment.
UNDEFINED = object()

MAX_ARRAY_SAMPLES = 10
MAX_ARRAY_EXAMPLE_ITEMS = 3
MAX_MERGED_EXAMPLES = 5

TIMESTAMP_PROPERTY = "_timestamp"

# Ordered: date-time-like patterns first, the looser ones last. First match wins.
STRING_FORMATS: List[Tuple[str, "re.Pattern[str]"]] = [
    ("date-time", re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})?$", re.ASCII)),
    ("date", re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)),
    ("date-time", re.compile(r"^\d{1,2}/\d{1,2}/\d{4}\s+\d{1,2}:\d{2}:\d{2}\s*(AM|PM)?$", re.ASCII | re.IGNORECASE)),
    ("time", re.compile(r"^\d{2}:\d{2}:\d{2}$", re.ASCII)),
    ("uuid", re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)),
    ("email", re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")),
    ("uri", re.compile(r"^https?://")),
]


def detect_string_format(value: str) -> Optional[str]:
    """Return the first matching semantic format for a string, or None."""
    for format_name, pattern in STRING_FORMATS:
        if pattern.match(value):
            return format_name
    return None


class SchemaInferrer:
    """
    Turns one example value into a schema fragment.

    Usage:
    ```python
    inferrer = SchemaInferrer(InferenceDialect.STRICT)
    fragment = inferrer.infer({"temp": 21.5, "unit": "C"})
    # {"type": "object", "properties": {...}, "required": ["temp", "unit"]}
    ```
    """

    def __init__(self, dialect: InferenceDialect = InferenceDialect.STRICT):
        self.dialect = InferenceDialect(dialect)

    def infer(self, value: Any, include_examples: bool = True) -> SchemaFragment:
        """
        Infer a fragment from a single value

        Args:
            value: Decoded JSON value (dict, list, str, int, float, bool, None)
            include_examples: Attach the observed value under ``examples``

        Returns:
            Fresh fragment; ``{}`` for UNDEFINED or unsupported values
        """
        if value is None:
            return {"type": "null"}

        if value is UNDEFINED:
            return {}

        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return self._with_examples({"type": "boolean"}, value, include_examples)

        if isinstance(value, int):
            return self._with_examples({"type": "integer"}, value, include_examples)

        if isinstance(value, float):
            schema_type = "integer" if value.is_integer() else "number"
            return self._with_examples({"type": schema_type}, value, include_examples)

        if isinstance(value, str):
            return self._infer_string(value, include_examples)

        if isinstance(value, (list, tuple)):
            return self._infer_array(list(value), include_examples)

        if isinstance(value, dict):
            return self._infer_object(value, include_examples)

        logger.debug(f"No schema for unsupported value type {type(value).__name__}")
        return {}

    @staticmethod
    def _with_examples(schema: SchemaFragment, value: Any, include_examples: bool) -> SchemaFragment:
        if include_examples:
            schema["examples"] = [value]
        return schema

    def _infer_string(self, value: str, include_examples: bool) -> SchemaFragment:
        schema: SchemaFragment = {"type": "string"}

        string_format = detect_string_format(value)
        if string_format:
            schema["format"] = string_format

        if include_examples and value:
            schema["examples"] = [value]

        return schema

    def _infer_array(self, value: List[Any], include_examples: bool) -> SchemaFragment:
        """Item schema is generalized over the first MAX_ARRAY_SAMPLES elements."""
        schema: SchemaFragment = {"type": "array"}

        if value:
            items = self.infer(value[0], include_examples=False)
            for element in value[1:MAX_ARRAY_SAMPLES]:
                items = merge_schemas(items, self.infer(element, include_examples=False))
            schema["items"] = items

            if include_examples:
                schema["examples"] = [copy.deepcopy(value[:MAX_ARRAY_EXAMPLE_ITEMS])]

        return schema

    def _infer_object(self, value: Dict[str, Any], include_examples: bool) -> SchemaFragment:
        if self.dialect == InferenceDialect.REPORT_BY_EXCEPTION:
            return self._infer_open_object(value, include_examples)
        return self._infer_closed_object(value, include_examples)

    def _infer_closed_object(self, value: Dict[str, Any], include_examples: bool) -> SchemaFragment:
        """Strict: every key observed in the sample is required."""
        properties = {
            str(key): self.infer(val, include_examples) for key, val in value.items()
        }
        return {
            "type": "object",
            "properties": properties,
            "required": sorted(properties.keys()),
        }

    def _infer_open_object(self, value: Dict[str, Any], include_examples: bool) -> SchemaFragment:
        """Report-by-exception: nothing is required, metadata keys are dropped."""
        properties: Dict[str, SchemaFragment] = {}
        for key, val in value.items():
            key = str(key)
            if key.startswith("_"):
                continue
            properties[key] = self.infer(val, include_examples)

        properties[TIMESTAMP_PROPERTY] = {
            "type": "string",
            "format": "date-time",
            "description": "Timestamp when the data was published",
        }

        return {"type": "object", "properties": properties}


def infer_schema(
    value: Any,
    include_examples: bool = True,
    dialect: InferenceDialect = InferenceDialect.STRICT,
) -> SchemaFragment:
    """Convenience wrapper around SchemaInferrer.infer."""
    return SchemaInferrer(dialect).infer(value, include_examples)


# ============================================================================
# Merging
# ============================================================================


def _type_set(schema: SchemaFragment) -> Set[str]:
    schema_type = schema.get("type")
    if schema_type is None:
        return set()
    if isinstance(schema_type, (list, tuple)):
        return set(schema_type)
    return {schema_type}


def _merge_examples(merged: SchemaFragment, first: SchemaFragment, second: SchemaFragment) -> None:
    examples: List[Any] = []
    for example in list(first.get("examples", [])) + list(second.get("examples", [])):
        if example not in examples:
            examples.append(copy.deepcopy(example))
    if examples:
        merged["examples"] = examples[:MAX_MERGED_EXAMPLES]
    else:
        merged.pop("examples", None)


def merge_schemas(first: SchemaFragment, second: SchemaFragment) -> SchemaFragment:
    """
    Merge two fragments into a new, more general one

    Rules:
    - an empty fragment carries no information; the other side wins
    - different type tags collapse to a union (structure is dropped)
    - objects merge key by key; ``required`` is the intersection
    - arrays merge their ``items``
    - same-tag primitives union their examples (max 5); conflicting
      formats are dropped

    Neither input is modified.
    """
    first_types = _type_set(first)
    second_types = _type_set(second)

    if not first_types:
        return copy.deepcopy(second)
    if not second_types:
        return copy.deepcopy(first)

    if first_types != second_types or len(first_types) > 1:
        return {"type": sorted(first_types | second_types)}

    tag = next(iter(first_types))

    if tag == "object":
        return _merge_object_schemas(first, second)

    if tag == "array":
        return _merge_array_schemas(first, second)

    merged = copy.deepcopy(first)
    if first.get("format") != second.get("format"):
        merged.pop("format", None)
    _merge_examples(merged, first, second)
    return merged


def _merge_object_schemas(first: SchemaFragment, second: SchemaFragment) -> SchemaFragment:
    merged: SchemaFragment = {"type": "object"}
    if "description" in first or "description" in second:
        merged["description"] = first.get("description", second.get("description"))

    first_props = first.get("properties") or {}
    second_props = second.get("properties") or {}

    properties: Dict[str, SchemaFragment] = {}
    for key, prop in first_props.items():
        if key in second_props:
            properties[key] = merge_schemas(prop, second_props[key])
        else:
            properties[key] = copy.deepcopy(prop)
    for key, prop in second_props.items():
        if key not in properties:
            properties[key] = copy.deepcopy(prop)
    merged["properties"] = properties

    # A field stays required only if every merged sample required it
    if "required" in first or "required" in second:
        required = set(first.get("required") or []) & set(second.get("required") or [])
        merged["required"] = sorted(required)

    return merged


def _merge_array_schemas(first: SchemaFragment, second: SchemaFragment) -> SchemaFragment:
    merged: SchemaFragment = {"type": "array"}

    first_items = first.get("items")
    second_items = second.get("items")
    if first_items and second_items:
        merged["items"] = merge_schemas(first_items, second_items)
    elif first_items or second_items:
        merged["items"] = copy.deepcopy(first_items or second_items)

    _merge_examples(merged, first, second)
    return merged


# ============================================================================
# Hashing
# ============================================================================


def normalize_schema(schema: SchemaFragment) -> SchemaFragment:
    """Drop examples and sort order-insensitive lists, recursively."""
    normalized: SchemaFragment = {}

    for key, value in schema.items():
        if key == "examples":
            continue

        if key == "properties" and isinstance(value, dict):
            normalized[key] = {name: normalize_schema(prop) for name, prop in value.items()}
        elif key in ("items", "additionalProperties") and isinstance(value, dict):
            normalized[key] = normalize_schema(value)
        elif key in ("oneOf", "anyOf", "allOf") and isinstance(value, list):
            normalized[key] = [normalize_schema(s) for s in value]
        elif key in ("required", "type") and isinstance(value, list):
            normalized[key] = sorted(value)
        else:
            normalized[key] = value

    return normalized


def hash_schema(schema: SchemaFragment) -> str:
    """Deterministic content fingerprint (examples and key order ignored)."""
    canonical = json.dumps(
        normalize_schema(schema),
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def schemas_equal(first: SchemaFragment, second: SchemaFragment) -> bool:
    """True when both fragments hash identically."""
    return hash_schema(first) == hash_schema(second)
