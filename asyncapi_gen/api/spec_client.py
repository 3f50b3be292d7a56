"""HTTP client for fetching existing AsyncAPI documents."""
import logging
from typing import Any, Dict, Optional

import requests

from asyncapi_gen.exporter.document_exporter import load_document

logger = logging.getLogger(__name__)


class SpecFetchError(Exception):
    """A remote document could not be downloaded or parsed."""


class SpecClient:
    """Downloads YAML/JSON AsyncAPI documents to merge into."""

    def __init__(self, timeout: int = 30, headers: Optional[Dict[str, str]] = None):
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/yaml, application/json, text/plain"})

        if headers:
            self.session.headers.update(headers)

    def fetch_document(self, url: str) -> Dict[str, Any]:
        """
        Download and parse a document

        Args:
            url: http(s) URL of a YAML or JSON AsyncAPI document

        Returns:
            Parsed document dict

        Raises:
            SpecFetchError: On transport, HTTP status or parse errors
        """
        logger.info(f"Fetching document from {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise SpecFetchError(f"Error fetching {url}: {e}") from e

        try:
            return load_document(response.text)
        except ValueError as e:
            raise SpecFetchError(f"Error parsing document from {url}: {e}") from e

    def close(self) -> None:
        self.session.close()


def is_remote(location: str) -> bool:
    return location.startswith(("http://", "https://"))
