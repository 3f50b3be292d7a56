"""Helpers shared by the 2.6.0 and 3.0.0 document builders."""
import copy
import re
from typing import Any, Dict, List

from asyncapi_gen.config import GeneratorConfig
from asyncapi_gen.schema.models import Channel, ParameterDefinition

CONTENT_TYPE = "application/json"
SECURITY_SCHEME = "userPassword"


def schema_ref(schema_name: str) -> str:
    return f"#/components/schemas/{schema_name}"


def format_title(name: str) -> str:
    """``line_temp_payload`` -> ``Line Temp Payload``, ``MachineState`` -> ``Machine State``."""
    title = name.replace("_", " ")
    title = re.sub(r"([a-z])([A-Z])", r"\1 \2", title)
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), title)


def channel_description(topic: str) -> str:
    """Human readable description derived from the topic levels."""
    parts = [p for p in re.split(r"[/.\-_]", topic.replace("{", "").replace("}", "")) if p]
    if not parts:
        return "Data channel"
    humanized = " ".join(p[:1].upper() + p[1:].lower() for p in parts)
    return f"{humanized} data channel"


def operation_description(channel: Channel) -> str:
    return (
        "Subscribe to this channel to receive messages. "
        f"{channel.message_count} message(s) observed."
    )


def build_info(config: GeneratorConfig) -> Dict[str, Any]:
    return config.info.to_dict()


def channel_bindings(config: GeneratorConfig) -> Dict[str, Any]:
    """Empty MQTT binding for every channel once a broker is configured."""
    if not config.servers:
        return {}
    return {"mqtt": {}}


def security_schemes(config: GeneratorConfig) -> Dict[str, Any]:
    """``components.securitySchemes`` when any server carries a username."""
    if not any(server.username for server in config.servers):
        return {}
    return {
        SECURITY_SCHEME: {
            "type": "userPassword",
            "description": "Username and password authentication against the broker",
        }
    }


def build_message(schema_name: str, channel: Channel, config: GeneratorConfig) -> Dict[str, Any]:
    """Message definition referencing a registry schema by name."""
    message: Dict[str, Any] = {
        "name": schema_name,
        "title": format_title(schema_name),
        "contentType": CONTENT_TYPE,
        "payload": {"$ref": schema_ref(schema_name)},
    }

    examples = channel.schema_examples.get(schema_name) or []
    if config.include_examples and examples:
        message["examples"] = [{"payload": copy.deepcopy(ex)} for ex in examples]

    return message


def parameter_fields(definition: ParameterDefinition) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    if definition.description:
        fields["description"] = definition.description
    if definition.enum:
        fields["enum"] = list(definition.enum)
    if definition.examples:
        fields["examples"] = list(definition.examples)
    return fields


def merge_unique(existing: List[Any], incoming: List[Any]) -> List[Any]:
    """Concatenate two lists, skipping incoming items already present."""
    result = copy.deepcopy(existing)
    for item in incoming:
        if item not in result:
            result.append(copy.deepcopy(item))
    return result


def deep_merge(existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two mappings into a new one.

    Nested mappings are merged, lists are unioned, and on scalar conflicts
    the existing value is kept.
    """
    merged = copy.deepcopy(existing)
    for key, value in incoming.items():
        if key not in merged:
            merged[key] = copy.deepcopy(value)
        elif isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = deep_merge(merged[key], value)
        elif isinstance(merged[key], list) and isinstance(value, list):
            merged[key] = merge_unique(merged[key], value)
    return merged


def union_by_name(existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """Union of two named collections; existing entries win on a name collision."""
    merged = copy.deepcopy(existing)
    for name, value in incoming.items():
        if name not in merged:
            merged[name] = copy.deepcopy(value)
    return merged
