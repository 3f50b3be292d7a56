"""
Generator session - single owner of the message history and schema registry.

Every mutation (new messages, config changes, generation, reset) runs under
one re-entrant lock, so registry registration steps never interleave when a
live feed and an interactive caller touch the session at the same time.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from asyncapi_gen.builder import merge_documents
from asyncapi_gen.config import GeneratorConfig, TopicSubstitution
from asyncapi_gen.feed.listener import MessageFeed
from asyncapi_gen.inference.registry import SchemaRegistry
from asyncapi_gen.parser.json_loader import (
    get_unique_topics,
    load_json_file,
    model_names,
    parse_json_content,
)
from asyncapi_gen.pipeline import generate_document
from asyncapi_gen.schema.models import ExtractedMessage

logger = logging.getLogger(__name__)


class GeneratorSession:
    """
    Accumulates messages and regenerates the document on demand.

    Usage:
    ```python
    session = GeneratorSession(GeneratorConfig())
    session.load_json(text)
    document = session.generate()
    ```
    """

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self._lock = threading.RLock()
        self.config = config or GeneratorConfig()
        self.registry = SchemaRegistry(self.config.collision_policy)
        self.messages: List[ExtractedMessage] = []
        self.document: Optional[Dict[str, Any]] = None

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def add_messages(self, messages: Iterable[ExtractedMessage]) -> int:
        """Append messages to the history; returns how many were added."""
        with self._lock:
            added = list(messages)
            self.messages.extend(added)
            logger.debug(f"Session history now holds {len(self.messages)} messages")
            return len(added)

    def add_message(self, message: ExtractedMessage) -> None:
        self.add_messages([message])

    def load_json(self, content: str) -> int:
        """Parse a JSON export and add its messages."""
        return self.add_messages(parse_json_content(content))

    def load_file(self, path: Path) -> int:
        return self.add_messages(load_json_file(path))

    def attach_feed(self, feed: MessageFeed) -> None:
        """Route every message received by a live feed into this session."""
        feed.on_message(self.add_message)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def update_config(self, **changes) -> GeneratorConfig:
        """
        Replace config fields.

        A changed collision policy swaps in a fresh registry; the policy is
        fixed for the lifetime of a registry.
        """
        with self._lock:
            new_config = self.config.replace(**changes)
            if new_config.collision_policy != self.config.collision_policy:
                self.registry = SchemaRegistry(new_config.collision_policy)
            self.config = new_config
            return self.config

    def add_substitution(self, substitution: TopicSubstitution) -> None:
        """Add a rule, replacing any rule with the same parameter name."""
        with self._lock:
            rules = [
                s for s in self.config.topic_substitutions
                if s.parameter_name != substitution.parameter_name
            ]
            rules.append(substitution)
            self.config = self.config.replace(topic_substitutions=rules)

    def remove_substitution(self, parameter_name: str) -> bool:
        """Remove a rule by parameter name; returns False if there was none."""
        with self._lock:
            rules = [
                s for s in self.config.topic_substitutions
                if s.parameter_name != parameter_name
            ]
            removed = len(rules) != len(self.config.topic_substitutions)
            self.config = self.config.replace(topic_substitutions=rules)
            return removed

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def generate(self) -> Dict[str, Any]:
        """Regenerate the document from the full message history."""
        with self._lock:
            self.document = generate_document(self.messages, self.config, self.registry)
            logger.info(
                f"Generated document from {len(self.messages)} messages, "
                f"{len(self.registry)} schemas"
            )
            return self.document

    def merge_existing(self, existing: Dict[str, Any]) -> Dict[str, Any]:
        """
        Generate, then merge the result into an existing document.

        Raises:
            DocumentDialectError: If the existing document is of another dialect
        """
        with self._lock:
            generated = self.generate()
            self.document = merge_documents(existing, generated)
            return self.document

    def clear(self) -> None:
        """Drop the history, the registry entries and the last document."""
        with self._lock:
            self.messages.clear()
            self.registry.clear()
            self.document = None
            logger.info("Session cleared")

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "message_count": len(self.messages),
                "unique_topics": len(get_unique_topics(self.messages)),
                "model_names": model_names(self.messages),
                "registry": self.registry.stats(),
            }
