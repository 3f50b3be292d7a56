"""Data models shared by the loader, mapper, registry and builders."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

# A schema fragment is a plain JSON-Schema-like dict:
# {"type": "object", "properties": {...}, "required": [...], "items": {...},
#  "format": "...", "examples": [...]}
SchemaFragment = Dict[str, Any]

MAX_CHANNEL_EXAMPLES = 3


@dataclass
class ExtractedMessage:
    """One sampled message: topic plus decoded payload."""

    topic: str
    payload: Dict[str, Any]
    model_name: Optional[str] = None  # from the _model field, when present
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = {
            "topic": self.topic,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.model_name:
            result["modelName"] = self.model_name
        return result


@dataclass
class ParameterDefinition:
    """A ``{name}`` placeholder in a channel topic."""

    description: Optional[str] = None
    enum: List[str] = field(default_factory=list)
    examples: List[str] = field(default_factory=list)  # literal values captured

    def add_example(self, value: str) -> None:
        if value not in self.examples:
            self.examples.append(value)
            self.examples.sort()


@dataclass
class Channel:
    """
    A channel groups every message whose (possibly parameterized) topic is equal.

    ``schema_counts`` and ``schema_examples`` are filled in when the
    channel's messages are registered against a schema registry. Only the
    first MAX_CHANNEL_EXAMPLES messages contribute examples.
    """

    channel_id: str
    topic: str
    parameters: Dict[str, ParameterDefinition] = field(default_factory=dict)
    messages: List[ExtractedMessage] = field(default_factory=list)
    message_count: int = 0
    schema_ref: Optional[str] = None
    schema_counts: Dict[str, int] = field(default_factory=dict)
    schema_examples: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)

    def add_message(self, message: ExtractedMessage) -> None:
        self.messages.append(message)
        self.message_count += 1

    @property
    def schema_names(self) -> List[str]:
        return list(self.schema_counts.keys())


@dataclass
class SchemaEntry:
    """A named schema held by the registry."""

    name: str
    schema: SchemaFragment
    usage_count: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "schema": self.schema,
            "usageCount": self.usage_count,
        }
