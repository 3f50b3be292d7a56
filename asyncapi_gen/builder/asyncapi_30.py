"""
AsyncAPI 3.0.0 builder - address + operations document shape.

Channels are keyed by channel id and carry the topic as ``address``.
Every channel gets one ``receive_<channelId>`` operation, and every
distinct schema on a channel gets one message under ``components.messages``.
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


def build_document_30(
    channels: List[Channel],
    schemas: Dict[str, SchemaFragment],
    config: GeneratorConfig,
) -> Dict[str, Any]:
    """Assemble a 3.0.0 document from channels and a registry snapshot."""
    doc: Dict[str, Any] = {
        "asyncapi": AsyncApiVersion.V3_0.value,
        "info": build_info(config),
    }

    servers = _build_servers(config)
    if servers:
        doc["servers"] = servers

    doc["channels"] = {}
    doc["operations"] = {}
    component_messages: Dict[str, Any] = {}

    for channel in channels:
        channel_def, operation, messages = _build_channel(channel, config)
        doc["channels"][channel.channel_id] = channel_def
        doc["operations"][f"receive_{channel.channel_id}"] = operation
        component_messages.update(messages)

    doc["components"] = {
        "schemas": copy.deepcopy(schemas),
        "messages": component_messages,
    }
    schemes = security_schemes(config)
    if schemes:
        doc["components"]["securitySchemes"] = schemes

    logger.info(f"Assembled AsyncAPI 3.0.0 document with {len(channels)} channels")
    return doc


def _build_servers(config: GeneratorConfig) -> Dict[str, Any]:
    servers = {}
    for server in config.servers:
        servers[server.name] = {
            "host": server.host,
            "protocol": server.protocol,
            "description": server.description or f"{server.protocol.upper()} Broker",
        }
        if server.username:
            servers[server.name]["security"] = [
                {"$ref": f"#/components/securitySchemes/{SECURITY_SCHEME}"}
            ]
    return servers


def _build_channel(channel: Channel, config: GeneratorConfig):
    channel_def: Dict[str, Any] = {
        "address": channel.topic,
        "description": channel_description(channel.topic),
        "messages": {},
    }

    if channel.parameters:
        channel_def["parameters"] = {
            name: parameter_fields(definition)
            for name, definition in channel.parameters.items()
        }

    bindings = channel_bindings(config)
    if bindings:
        channel_def["bindings"] = bindings

    messages: Dict[str, Any] = {}
    for schema_name in channel.schema_names:
        message_id = f"{channel.channel_id}_{schema_name}"
        messages[message_id] = build_message(schema_name, channel, config)
        channel_def["messages"][message_id] = {"$ref": f"#/components/messages/{message_id}"}

    operation = {
        "action": "receive",
        "channel": {"$ref": f"#/channels/{channel.channel_id}"},
        "summary": f"Subscribe to {channel.topic} to receive data",
        "description": operation_description(channel),
        "messages": [
            {"$ref": f"#/channels/{channel.channel_id}/messages/{message_id}"}
            for message_id in messages
        ],
    }

    return channel_def, operation, messages


# ============================================================================
# Merging
# ============================================================================


def merge_documents_30(existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two 3.0.0 documents; the existing document wins on name collisions."""
    merged = copy.deepcopy(existing)

    channels = merged.setdefault("channels", {})
    for channel_id, channel in (incoming.get("channels") or {}).items():
        if channel_id in channels:
            channels[channel_id] = _merge_channels(channels[channel_id], channel)
        else:
            channels[channel_id] = copy.deepcopy(channel)

    operations = merged.setdefault("operations", {})
    for operation_id, operation in (incoming.get("operations") or {}).items():
        if operation_id in operations:
            operations[operation_id] = _merge_operations(operations[operation_id], operation)
        else:
            operations[operation_id] = copy.deepcopy(operation)

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


def _merge_channels(existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(existing)

    if incoming.get("parameters"):
        merged["parameters"] = deep_merge(merged.get("parameters") or {}, incoming["parameters"])

    if incoming.get("bindings"):
        merged["bindings"] = deep_merge(merged.get("bindings") or {}, incoming["bindings"])

    if incoming.get("messages"):
        merged["messages"] = union_by_name(merged.get("messages") or {}, incoming["messages"])

    return merged


def _merge_operations(existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """Union message references, deduplicated by ``$ref`` target."""
    merged = copy.deepcopy(existing)

    messages: List[Dict[str, Any]] = list(merged.get("messages") or [])
    seen = {m.get("$ref") for m in messages if "$ref" in m}

    for message in incoming.get("messages") or []:
        ref = message.get("$ref")
        if ref is not None and ref in seen:
            continue
        messages.append(copy.deepcopy(message))
        if ref is not None:
            seen.add(ref)

    merged["messages"] = messages
    return merged
