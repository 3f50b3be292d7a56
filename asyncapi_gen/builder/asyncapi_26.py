"""
AsyncAPI 2.6.0 builder - verbose publish/subscribe document shape.

Channels are keyed by topic. Each channel item carries one ``subscribe``
operation whose message is either inline or a ``oneOf`` list when
heterogeneous payloads landed on the same topic.
"""

import copy
import logging
from typing import Any, Dict, List

from asyncapi_gen.builder.common import (
    SECURITY_SCHEME,
    build_info,
    build_message,
    channel_bindings,
    channel_description,
    deep_merge,
    operation_description,
    parameter_fields,
    security_schemes,
    union_by_name,
)
from asyncapi_gen.config import AsyncApiVersion, GeneratorConfig
from asyncapi_gen.schema.models import Channel, SchemaFragment

logger = logging.getLogger(__name__)

OPERATION_KEYS = ("subscribe", "publish")


def build_document_26(
    channels: List[Channel],
    schemas: Dict[str, SchemaFragment],
    config: GeneratorConfig,
) -> Dict[str, Any]:
    """
    Assemble a 2.6.0 document

    Args:
        channels: Channels with registered schema names
        schemas: Registry snapshot (name -> fragment)
        config: Generator configuration (info, servers, examples)

    Returns:
        Document dict ready for YAML/JSON serialization
    """
    doc: Dict[str, Any] = {
        "asyncapi": AsyncApiVersion.V2_6.value,
        "info": build_info(config),
    }

    servers = _build_servers(config)
    if servers:
        doc["servers"] = servers

    doc["channels"] = {}
    messages: Dict[str, Any] = {}

    for channel in channels:
        doc["channels"][channel.topic] = _build_channel_item(channel, config, messages)

    doc["components"] = {
        "schemas": copy.deepcopy(schemas),
        "messages": messages,
    }
    schemes = security_schemes(config)
    if schemes:
        doc["components"]["securitySchemes"] = schemes

    logger.info(f"Assembled AsyncAPI 2.6.0 document with {len(channels)} channels")
    return doc


def _build_servers(config: GeneratorConfig) -> Dict[str, Any]:
    servers = {}
    for server in config.servers:
        servers[server.name] = {
            "url": server.url,
            "protocol": server.protocol,
            "description": server.description or f"{server.protocol.upper()} Broker",
        }
        if server.username:
            servers[server.name]["security"] = [{SECURITY_SCHEME: []}]
    return servers


def _build_channel_item(
    channel: Channel,
    config: GeneratorConfig,
    component_messages: Dict[str, Any],
) -> Dict[str, Any]:
    item: Dict[str, Any] = {"description": channel_description(channel.topic)}

    if channel.parameters:
        item["parameters"] = {}
        for name, definition in channel.parameters.items():
            fields = parameter_fields(definition)
            parameter_schema: Dict[str, Any] = {"type": "string"}
            for key in ("enum", "examples"):
                if key in fields:
                    parameter_schema[key] = fields[key]

            parameter: Dict[str, Any] = {}
            if "description" in fields:
                parameter["description"] = fields["description"]
            parameter["schema"] = parameter_schema
            item["parameters"][name] = parameter

    bindings = channel_bindings(config)
    if bindings:
        item["bindings"] = bindings

    operation: Dict[str, Any] = {
        "operationId": f"subscribe_{channel.channel_id}",
        "summary": f"Subscribe to {channel.topic} to receive data",
        "description": operation_description(channel),
    }

    messages = [build_message(name, channel, config) for name in channel.schema_names]
    for message in messages:
        component_messages.setdefault(message["name"], copy.deepcopy(message))

    if len(messages) == 1:
        operation["message"] = messages[0]
    elif messages:
        operation["message"] = {"oneOf": messages}

    item["subscribe"] = operation
    return item


# ============================================================================
# Merging
# ============================================================================


def merge_documents_26(existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two 2.6.0 documents; the existing document wins on name collisions."""
    merged = copy.deepcopy(existing)

    channels = merged.setdefault("channels", {})
    for topic, item in (incoming.get("channels") or {}).items():
        if topic in channels:
            channels[topic] = _merge_channel_items(channels[topic], item)
        else:
            channels[topic] = copy.deepcopy(item)

    if incoming.get("servers"):
        merged["servers"] = union_by_name(merged.get("servers") or {}, incoming["servers"])

    components = merged.setdefault("components", {})
    incoming_components = incoming.get("components") or {}
    for section in ("schemas", "messages"):
        components[section] = union_by_name(
            components.get(section) or {},
            incoming_components.get(section) or {},
        )
    if incoming_components.get("securitySchemes"):
        components["securitySchemes"] = union_by_name(
            components.get("securitySchemes") or {},
            incoming_components["securitySchemes"],
        )

    return merged


def _merge_channel_items(existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(existing)

    if incoming.get("parameters"):
        merged["parameters"] = deep_merge(merged.get("parameters") or {}, incoming["parameters"])

    if incoming.get("bindings"):
        merged["bindings"] = deep_merge(merged.get("bindings") or {}, incoming["bindings"])

    for key in OPERATION_KEYS:
        incoming_op = incoming.get(key)
        if not incoming_op:
            continue

        if key not in merged:
            merged[key] = copy.deepcopy(incoming_op)
            continue

        if "message" in incoming_op:
            existing_message = merged[key].get("message")
            if existing_message is None:
                merged[key]["message"] = copy.deepcopy(incoming_op["message"])
            else:
                merged[key]["message"] = _merge_messages(existing_message, incoming_op["message"])

    return merged


def _message_list(message: Dict[str, Any]) -> List[Dict[str, Any]]:
    if "oneOf" in message:
        return list(message["oneOf"])
    return [message]


def _message_target(message: Dict[str, Any]) -> Any:
    """What a message points at: its own $ref or its payload's $ref."""
    if "$ref" in message:
        return message["$ref"]
    payload = message.get("payload") or {}
    return payload.get("$ref") or message.get("name")


def _merge_messages(existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """Union of message references, deduplicated by reference target."""
    messages = [copy.deepcopy(m) for m in _message_list(existing)]
    seen = {_message_target(m) for m in messages}

    for message in _message_list(incoming):
        target = _message_target(message)
        if target not in seen:
            messages.append(copy.deepcopy(message))
            seen.add(target)

    if len(messages) == 1:
        return messages[0]
    return {"oneOf": messages}
