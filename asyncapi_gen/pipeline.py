"""
Generation pipeline: messages -> channels -> registered schemas -> document.
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Tuple

from asyncapi_gen.builder import assemble_document
from asyncapi_gen.config import GeneratorConfig
from asyncapi_gen.exporter.document_exporter import export_document
from asyncapi_gen.inference.inferrer import SchemaInferrer
from asyncapi_gen.inference.registry import SchemaRegistry
from asyncapi_gen.mapper.channels import build_channels
from asyncapi_gen.parser.json_loader import parse_json_content
from asyncapi_gen.schema.models import MAX_CHANNEL_EXAMPLES, Channel, ExtractedMessage

logger = logging.getLogger(__name__)


def payload_schema_name(message: ExtractedMessage, channel: Channel) -> str:
    """Proposed registry name: the model hint, else ``<channelId>_payload``."""
    if message.model_name:
        return message.model_name
    return f"{channel.channel_id}_payload"


def register_channel_schemas(
    channels: List[Channel],
    registry: SchemaRegistry,
    config: GeneratorConfig,
) -> None:
    """
    Infer and register a schema for every message of every channel

    Fills ``schema_counts``, ``schema_ref`` and ``schema_examples`` on each
    channel. Only the first few messages of a channel contribute examples.
    """
    inferrer = SchemaInferrer(config.dialect)

    for channel in channels:
        channel.schema_counts = {}
        channel.schema_examples = {}

        for index, message in enumerate(channel.messages):
            fragment = inferrer.infer(message.payload, include_examples=config.include_examples)
            name = registry.register(payload_schema_name(message, channel), fragment)

            channel.schema_counts[name] = channel.schema_counts.get(name, 0) + 1
            examples = channel.schema_examples.setdefault(name, [])
            if index < MAX_CHANNEL_EXAMPLES:
                examples.append(copy.deepcopy(message.payload))

        channel.schema_ref = next(iter(channel.schema_counts), None)

    logger.info(f"Registered schemas for {len(channels)} channels ({len(registry)} distinct)")


def generate_document(
    messages: List[ExtractedMessage],
    config: GeneratorConfig,
    registry: Optional[SchemaRegistry] = None,
) -> Dict[str, Any]:
    """
    Build a full document from a message history

    Args:
        messages: Every message observed so far
        config: Generator configuration
        registry: Registry to reuse; it is cleared first

    Returns:
        Document dict in the configured dialect
    """
    if registry is None:
        registry = SchemaRegistry(config.collision_policy)
    else:
        registry.clear()

    channels = build_channels(messages, config)
    register_channel_schemas(channels, registry, config)
    return assemble_document(channels, registry.to_record(), config)


def generate_from_json(content: str, config: GeneratorConfig) -> Tuple[Dict[str, Any], str]:
    """Parse a JSON export and return the document plus its serialized text."""
    messages = parse_json_content(content)
    document = generate_document(messages, config)
    return document, export_document(document, config.output_format)
