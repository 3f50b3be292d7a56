"""JSON export loading."""

from .json_loader import (
    extract_topic_segments,
    get_unique_topics,
    group_by_model,
    group_by_topic,
    load_json_file,
    parse_json_content,
)

__all__ = [
    "extract_topic_segments",
    "get_unique_topics",
    "group_by_model",
    "group_by_topic",
    "load_json_file",
    "parse_json_content",
]
