"""
Schema inference module

Turns sampled payloads into JSON-Schema-like fragments and keeps them in a
deduplicating registry:
- Scalar, string-format, array and object inference
- Strict and report-by-exception object dialects
- Merge ("most general wins") and content hashing
- Name-stable registry with generalize / suffix collision policies
"""

from .inferrer import (
    SchemaInferrer,
    detect_string_format,
    hash_schema,
    infer_schema,
    merge_schemas,
    schemas_equal,
)
from .registry import SchemaRegistry

__all__ = [
    "SchemaInferrer",
    "SchemaRegistry",
    "detect_string_format",
    "hash_schema",
    "infer_schema",
    "merge_schemas",
    "schemas_equal",
]
