"""
Type registry for the asset hierarchy.

The TypeRegistry holds every EntityType declared by the types sheet.
It provides:
- Registration with last-write-wins overwrite semantics
- Lookup by type identifier
- Iteration in registration order

Invariants:
    - Type identifiers are unique keys; re-registering replaces the entry
    - Registered EntityType values are immutable
    - The registry is owned by exactly one HierarchyStore

Example:
    >>> from hierarchy.model import TypeRegistry, EntityType
    >>> registry = TypeRegistry()
    >>> registry.register(EntityType("Pump", "{}"))
    >>> registry.get("Pump")
    EntityType(type='Pump', attribute_schema='{}')
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, Optional

from .types import EntityType

logger = logging.getLogger(__name__)


class TypeRegistry:
    """Registry of entity types keyed by type identifier.

    Unlike a schema registry with frozen ids, this registry mirrors the
    tolerant import rules: duplicates overwrite silently and never raise.

    Example:
        >>> registry = TypeRegistry()
        >>> registry.register(EntityType("Site", "v1"))
        >>> registry.register(EntityType("Site", "v2"))
        >>> registry.get("Site").attribute_schema
        'v2'
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._types: Dict[str, EntityType] = {}

    def register(self, entity_type: EntityType) -> None:
        """Register or overwrite an entity type.

        Args:
            entity_type: The type to register
        """
        existing = self._types.get(entity_type.type)
        if existing is not None and existing != entity_type:
            logger.debug(
                f"Overwriting entity type '{entity_type.type}' "
                f"(schema {existing.attribute_schema!r} -> {entity_type.attribute_schema!r})"
            )
        self._types[entity_type.type] = entity_type

    def get(self, type_key: str) -> Optional[EntityType]:
        """Get an entity type by identifier.

        Returns:
            EntityType if registered, None otherwise
        """
        return self._types.get(type_key)

    def types(self) -> Iterator[EntityType]:
        """Iterate over registered types in registration order."""
        yield from self._types.values()

    def clear(self) -> None:
        """Remove every registered type."""
        self._types.clear()

    def to_dict(self) -> dict:
        """Convert registry to dictionary representation."""
        return {"entity_types": [t.to_dict() for t in self._types.values()]}

    def __contains__(self, type_key: object) -> bool:
        return type_key in self._types

    def __len__(self) -> int:
        return len(self._types)
