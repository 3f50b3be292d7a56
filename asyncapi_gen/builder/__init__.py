"""
Document assembly for the two supported AsyncAPI dialects.

``assemble_document`` picks the builder from ``config.asyncapi_version``;
``merge_documents`` picks it from the ``asyncapi`` marker of the documents.
"""

import logging
from typing import Any, Dict, List

from asyncapi_gen.builder.asyncapi_26 import build_document_26, merge_documents_26
from asyncapi_gen.builder.asyncapi_30 import build_document_30, merge_documents_30
from asyncapi_gen.config import AsyncApiVersion, GeneratorConfig
from asyncapi_gen.schema.models import Channel, SchemaFragment

logger = logging.getLogger(__name__)


class DocumentDialectError(ValueError):
    """A document has a missing, unknown or mismatched ``asyncapi`` marker."""


def assemble_document(
    channels: List[Channel],
    schemas: Dict[str, SchemaFragment],
    config: GeneratorConfig,
) -> Dict[str, Any]:
    """Build a document in the dialect selected by the config."""
    if config.asyncapi_version == AsyncApiVersion.V2_6:
        return build_document_26(channels, schemas, config)
    return build_document_30(channels, schemas, config)


def detect_version(document: Dict[str, Any]) -> AsyncApiVersion:
    """
    Read the dialect of a document from its ``asyncapi`` marker.

    Raises:
        DocumentDialectError: If the marker is missing or not 2.x / 3.x
    """
    if not isinstance(document, dict):
        raise DocumentDialectError("Document must be a mapping")

    marker = document.get("asyncapi")
    if marker is None:
        raise DocumentDialectError("Document has no 'asyncapi' version marker")

    marker = str(marker)
    if marker.startswith("2."):
        return AsyncApiVersion.V2_6
    if marker.startswith("3."):
        return AsyncApiVersion.V3_0

    raise DocumentDialectError(f"Unsupported AsyncAPI version: {marker}")


def merge_documents(existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge an incoming document into an existing one of the same dialect

    Args:
        existing: Document that wins on name collisions
        incoming: Document whose new channels/operations/schemas are added

    Returns:
        A new merged document; neither input is modified

    Raises:
        DocumentDialectError: If the dialects are missing, unknown or differ
    """
    existing_version = detect_version(existing)
    incoming_version = detect_version(incoming)

    if existing_version != incoming_version:
        raise DocumentDialectError(
            f"Cannot merge AsyncAPI {incoming.get('asyncapi')} "
            f"into AsyncAPI {existing.get('asyncapi')}"
        )

    logger.info(f"Merging AsyncAPI {existing_version.value} documents")

    if existing_version == AsyncApiVersion.V2_6:
        return merge_documents_26(existing, incoming)
    return merge_documents_30(existing, incoming)


__all__ = [
    "DocumentDialectError",
    "assemble_document",
    "detect_version",
    "merge_documents",
]
