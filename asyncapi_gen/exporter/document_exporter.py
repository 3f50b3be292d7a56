"""AsyncAPI document exporter (YAML / JSON)."""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from asyncapi_gen.config import OutputFormat

logger = logging.getLogger(__name__)

EXTENSION_FORMATS = {
    ".yaml": OutputFormat.YAML,
    ".yml": OutputFormat.YAML,
    ".json": OutputFormat.JSON,
}


def to_yaml(document: Dict[str, Any]) -> str:
    """Block-style YAML with the document's key order preserved."""
    return yaml.safe_dump(
        document,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=120,
    )


def to_json(document: Dict[str, Any], pretty: bool = True) -> str:
    if pretty:
        return json.dumps(document, indent=2, ensure_ascii=False, default=str)
    return json.dumps(document, ensure_ascii=False, default=str)


def export_document(document: Dict[str, Any], output_format: Union[OutputFormat, str] = OutputFormat.YAML) -> str:
    """Serialize a document in the requested format."""
    if OutputFormat(output_format) == OutputFormat.JSON:
        return to_json(document)
    return to_yaml(document)


def format_for_path(path: Path) -> Optional[OutputFormat]:
    return EXTENSION_FORMATS.get(Path(path).suffix.lower())


def write_document(
    document: Dict[str, Any],
    path: Path,
    output_format: Optional[Union[OutputFormat, str]] = None,
) -> Path:
    """
    Write a document to disk

    Args:
        document: Document dict
        path: Target file; parent directories are created
        output_format: Format to use; guessed from the extension when omitted

    Returns:
        The path written
    """
    path = Path(path)
    if output_format is None:
        output_format = format_for_path(path) or OutputFormat.YAML

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(export_document(document, output_format))

    logger.info(f"Wrote {OutputFormat(output_format).value} document to {path}")
    return path


def load_document(content: str) -> Dict[str, Any]:
    """
    Parse a YAML or JSON document.

    Raises:
        ValueError: If the text is not a YAML/JSON mapping
    """
    try:
        # YAML is a superset of JSON, one parser covers both
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML/JSON document: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Document must be a YAML/JSON mapping")
    return data


def read_document(path: Path) -> Dict[str, Any]:
    with open(Path(path), "r", encoding="utf-8") as f:
        return load_document(f.read())
