"""
JSON loader - Extracts topic/payload records from JSON exports.

Two layouts are accepted:

1. Simple: a JSON array of ``{"topic": ..., "payload": ..., "modelName": ...}``
2. Hierarchical: nested objects where every node carrying ``_path`` is a
   message. ``_path`` uses ``\\`` or ``/`` as level separator.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from asyncapi_gen.mapper.channels import TOPIC_SEPARATOR
from asyncapi_gen.schema.models import ExtractedMessage

logger = logging.getLogger(__name__)

METADATA_FIELDS = ("_path", "_model", "_name", "_timestamp", "_elementID")

UNKNOWN_MODEL = "__unknown__"


def parse_json_content(content: str) -> List[ExtractedMessage]:
    """
    Parse a JSON export into messages

    Args:
        content: JSON text in the simple or hierarchical layout

    Returns:
        List[ExtractedMessage]: One record per message-bearing entry

    Raises:
        ValueError: If the text is not valid JSON
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON input: {e}") from e

    if _is_simple_format(data):
        messages = _parse_simple_format(data)
    else:
        messages = extract_messages_from_hierarchy(data)

    logger.info(f"Loaded {len(messages)} messages")
    return messages


def load_json_file(path: Path) -> List[ExtractedMessage]:
    """Read and parse a JSON export from disk."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()
    logger.debug(f"Parsing {path}")
    return parse_json_content(content)


def _is_simple_format(data: Any) -> bool:
    return (
        isinstance(data, list)
        and len(data) > 0
        and isinstance(data[0], dict)
        and "topic" in data[0]
    )


def _parse_simple_format(data: List[Dict[str, Any]]) -> List[ExtractedMessage]:
    messages = []
    for item in data:
        if not isinstance(item, dict) or "topic" not in item:
            logger.debug(f"Skipping record without topic: {item!r}")
            continue

        payload = item.get("payload")
        if not isinstance(payload, dict):
            payload = {"value": payload}

        messages.append(
            ExtractedMessage(
                topic=str(item["topic"]),
                payload=payload,
                model_name=_model_hint(item.get("modelName")),
            )
        )
    return messages


def extract_messages_from_hierarchy(node: Any) -> List[ExtractedMessage]:
    """Walk a hierarchical export depth-first, collecting ``_path`` nodes."""
    if isinstance(node, list):
        messages = []
        for item in node:
            messages.extend(extract_messages_from_hierarchy(item))
        return messages

    if not isinstance(node, dict):
        return []

    messages = []

    if node.get("_path"):
        payload = _extract_payload(node)
        if payload:
            messages.append(
                ExtractedMessage(
                    topic=convert_path_to_topic(str(node["_path"])),
                    payload=payload,
                    model_name=_model_hint(node.get("_model")),
                    timestamp=_parse_timestamp(node.get("_timestamp")),
                )
            )

    for key, value in node.items():
        if key in METADATA_FIELDS:
            continue
        if _is_hierarchy_node(value):
            messages.extend(extract_messages_from_hierarchy(value))

    return messages


def convert_path_to_topic(path: str) -> str:
    return path.replace("\\", TOPIC_SEPARATOR)


def _extract_payload(node: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: value
        for key, value in node.items()
        if key not in METADATA_FIELDS and not _is_hierarchy_node(value)
    }


def _is_hierarchy_node(value: Any) -> bool:
    """A mapping that carries ``_path`` itself or nests a mapping that does."""
    if not isinstance(value, dict):
        return False

    if "_path" in value:
        return True

    return any(_is_hierarchy_node(child) for child in value.values())


def _model_hint(value: Any) -> Optional[str]:
    """Model hints name registry schemas, so only non-empty strings count."""
    if isinstance(value, str) and value:
        return value
    if value is not None:
        logger.debug(f"Ignoring non-string model hint {value!r}")
    return None


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Unparsable _timestamp {value!r}, using current time")
    return datetime.now()


# ============================================================================
# Grouping helpers
# ============================================================================


def group_by_model(messages: List[ExtractedMessage]) -> Dict[str, List[ExtractedMessage]]:
    """Group messages by model hint; missing hints land under ``__unknown__``."""
    groups: Dict[str, List[ExtractedMessage]] = {}
    for message in messages:
        groups.setdefault(message.model_name or UNKNOWN_MODEL, []).append(message)
    return groups


def group_by_topic(messages: List[ExtractedMessage]) -> Dict[str, List[ExtractedMessage]]:
    groups: Dict[str, List[ExtractedMessage]] = {}
    for message in messages:
        groups.setdefault(message.topic, []).append(message)
    return groups


def get_unique_topics(messages: List[ExtractedMessage]) -> List[str]:
    return sorted({m.topic for m in messages})


def extract_topic_segments(messages: List[ExtractedMessage]) -> Dict[int, Set[str]]:
    """Map each topic level to the set of segments seen there."""
    segments: Dict[int, Set[str]] = {}
    for message in messages:
        for level, segment in enumerate(message.topic.split(TOPIC_SEPARATOR)):
            segments.setdefault(level, set()).add(segment)
    return segments


def model_names(messages: List[ExtractedMessage]) -> List[str]:
    return sorted({m.model_name for m in messages if m.model_name})
