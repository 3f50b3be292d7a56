"""
Schema Registry - Deduplicates and names schema fragments.

Registration protocol:
1. Exact content match (by hash) wins: the existing name is returned.
2. A free proposed name creates a new entry.
3. A taken name with different content is resolved by the registry's
   CollisionPolicy: GENERALIZE merges into the existing entry and keeps
   the name; SUFFIX mints ``name_1``, ``name_2``, ...

The registry is not thread-safe. Callers serialize access through a
single owner (see asyncapi_gen.session).
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from asyncapi_gen.config import CollisionPolicy
from asyncapi_gen.inference.inferrer import hash_schema, merge_schemas
from asyncapi_gen.schema.models import SchemaEntry, SchemaFragment

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Registry of named, deduplicated schema fragments."""

    def __init__(self, policy: CollisionPolicy = CollisionPolicy.GENERALIZE):
        self.policy = CollisionPolicy(policy)
        self._schemas: Dict[str, SchemaEntry] = {}
        self._hash_to_name: Dict[str, str] = {}

    def register(self, name: str, schema: SchemaFragment) -> str:
        """
        Register a fragment under a proposed name

        Args:
            name: Proposed name (model hint or channel-derived)
            schema: Inferred fragment

        Returns:
            The canonical name the fragment is stored under
        """
        schema_hash = hash_schema(schema)

        existing_name = self._hash_to_name.get(schema_hash)
        if existing_name is not None:
            self._schemas[existing_name].usage_count += 1
            logger.debug(f"Schema for '{name}' matches existing '{existing_name}'")
            return existing_name

        if name not in self._schemas:
            self._add(name, schema, schema_hash)
            return name

        if self.policy == CollisionPolicy.SUFFIX:
            return self._register_with_suffix(name, schema, schema_hash)

        self.merge_with(name, schema)
        return name

    def _add(self, name: str, schema: SchemaFragment, schema_hash: str) -> None:
        self._schemas[name] = SchemaEntry(name=name, schema=copy.deepcopy(schema), usage_count=1)
        self._hash_to_name[schema_hash] = name
        logger.debug(f"Registered new schema '{name}'")

    def _register_with_suffix(self, name: str, schema: SchemaFragment, schema_hash: str) -> str:
        counter = 1
        unique_name = f"{name}_{counter}"
        while unique_name in self._schemas:
            counter += 1
            unique_name = f"{name}_{counter}"

        self._add(unique_name, schema, schema_hash)
        return unique_name

    def merge_with(self, name: str, schema: SchemaFragment) -> None:
        """Generalize an existing entry with a new fragment, in place."""
        entry = self._schemas.get(name)
        if entry is None:
            return

        old_hash = hash_schema(entry.schema)
        merged = merge_schemas(entry.schema, schema)
        new_hash = hash_schema(merged)

        if self._hash_to_name.get(old_hash) == name:
            del self._hash_to_name[old_hash]
        # A hash keeps the first name it was registered under
        self._hash_to_name.setdefault(new_hash, name)

        entry.schema = merged
        entry.usage_count += 1
        logger.debug(f"Merged new content into schema '{name}'")

    def get(self, name: str) -> Optional[SchemaFragment]:
        """Get a schema fragment by name."""
        entry = self._schemas.get(name)
        return entry.schema if entry else None

    def get_entry(self, name: str) -> Optional[SchemaEntry]:
        return self._schemas.get(name)

    def has(self, name: str) -> bool:
        return name in self._schemas

    def find_by_schema(self, schema: SchemaFragment) -> Optional[str]:
        """Find the name registered for this exact content."""
        return self._hash_to_name.get(hash_schema(schema))

    def entries(self) -> List[SchemaEntry]:
        return list(self._schemas.values())

    def to_record(self) -> Dict[str, SchemaFragment]:
        """Name -> fragment mapping, in registration order."""
        return {name: copy.deepcopy(entry.schema) for name, entry in self._schemas.items()}

    def clear(self) -> None:
        """Drop every entry."""
        self._schemas.clear()
        self._hash_to_name.clear()

    def __len__(self) -> int:
        return len(self._schemas)

    @property
    def size(self) -> int:
        return len(self._schemas)

    def stats(self, top_n: int = 10) -> Dict[str, Any]:
        """Totals and the most used schemas."""
        entries = self.entries()
        most_used = sorted(entries, key=lambda e: e.usage_count, reverse=True)[:top_n]
        return {
            "total_schemas": len(entries),
            "total_usages": sum(e.usage_count for e in entries),
            "most_used": [{"name": e.name, "count": e.usage_count} for e in most_used],
        }

    def export(self) -> Dict[str, Dict[str, Any]]:
        """Snapshot of the registry state."""
        return {name: copy.deepcopy(entry.to_dict()) for name, entry in self._schemas.items()}

    def load(self, snapshot: Dict[str, Dict[str, Any]]) -> None:
        """Replace the registry state with a snapshot taken by export()."""
        self.clear()
        for name, data in snapshot.items():
            schema = copy.deepcopy(data["schema"])
            self._schemas[name] = SchemaEntry(
                name=name,
                schema=schema,
                usage_count=int(data.get("usageCount", 1)),
            )
            self._hash_to_name.setdefault(hash_schema(schema), name)
