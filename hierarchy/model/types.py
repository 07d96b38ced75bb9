"""
Core type definitions for the asset hierarchy model.

This module defines the foundational types of the entity graph:
- EntityType: A declared type with its opaque attribute schema
- EntityNode: An entity with containment (children) and lateral (links) edges
- RelationshipKind: HAS (containment) or LINK (association)
- ExportAction: The action tag stamped onto exported rows

Invariants:
    - Node edges are stored as node ids, never as object references
    - EntityType is immutable once created
    - attributes is an opaque string; nothing here parses it

How to change safely:
    - Keep row tuple shapes stable, they mirror the spreadsheet columns
    - Add new RelationshipKind values only together with exporter support

Example:
    >>> from hierarchy.model.types import EntityNode, EntityType
    >>> pump = EntityType(type="Pump", attribute_schema='{"rpm": "int"}')
    >>> node = EntityNode(id="P-1", name="Feed pump", entity_type=pump)
    >>> node.children.append("V-7")
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import Any

# Row shapes as they appear in the spreadsheet sheets
TypeRow = tuple[str, str]
EntityRow = tuple[str, str, str, str, str, str]
RelationshipRow = tuple[str, str, str]
ExportRelationshipRow = tuple[str, str, str, str]


class RelationshipKind(Enum):
    """Kinds of edges between entities.

    HAS denotes containment and drives subtree membership.
    LINK denotes a non-owning association.
    """

    HAS = "HAS"
    LINK = "LINK"

    @classmethod
    def from_str(cls, value: str) -> RelationshipKind:
        """Map a relationship kind cell to a RelationshipKind.

        Only the exact literal "HAS" is containment; every other value,
        including blanks, is treated as a link.
        """
        if value == cls.HAS.value:
            return cls.HAS
        return cls.LINK


class ExportAction(Enum):
    """Action tag applied uniformly to every exported row."""

    INSERT = "INSERT"
    DELETE = "DELETE"

    @classmethod
    def from_str(cls, value: str | ExportAction) -> ExportAction:
        """Convert a string (case-insensitive) to an ExportAction.

        Args:
            value: Action name or an ExportAction

        Returns:
            Corresponding ExportAction

        Raises:
            ValueError: If value is not a known action
        """
        if isinstance(value, ExportAction):
            return value
        normalized = str(value).strip().upper()
        for action in cls:
            if action.value == normalized:
                return action
        valid = [a.value for a in cls]
        raise ValueError(f"Invalid export action '{value}'. Valid actions: {valid}")


@dataclass(frozen=True)
class EntityType:
    """A declared entity type.

    Attributes:
        type: Type identifier, unique within a registry
        attribute_schema: Free-form description of the type's attributes
    """

    type: str
    attribute_schema: str = ""

    def to_row(self) -> TypeRow:
        """Convert to a type sheet row."""
        return (self.type, self.attribute_schema)

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary representation."""
        return {"type": self.type, "attribute_schema": self.attribute_schema}


@dataclass
class EntityNode:
    """An entity in the hierarchy.

    Attributes:
        id: Primary key within a store
        name: Display name
        entity_type: The node's type (owned by the store's registry)
        source: Provenance string carried through unchanged
        attributes: JSON-encoded payload, opaque to the store
        action: Advisory action value read from the input row
        children: Ids of contained nodes (HAS edges), in import order
        links: Ids of associated nodes (LINK edges), in import order
    """

    id: str
    name: str
    entity_type: EntityType
    source: str = ""
    attributes: str = ""
    action: str = ""
    children: list[str] = dataclass_field(default_factory=list)
    links: list[str] = dataclass_field(default_factory=list)

    @property
    def has_children(self) -> bool:
        return len(self.children) > 0

    @property
    def has_links(self) -> bool:
        return len(self.links) > 0

    def to_row(self, action: ExportAction) -> EntityRow:
        """Convert to an entity sheet row stamped with the export action."""
        return (
            self.id,
            self.name,
            self.entity_type.type,
            self.source,
            self.attributes,
            action.value,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "entity_type": self.entity_type.type,
            "source": self.source,
            "attributes": self.attributes,
            "action": self.action,
            "children": list(self.children),
            "links": list(self.links),
        }


@dataclass
class HierarchyRows:
    """The three row groups produced by serializing a store.

    Attributes:
        types: One (type, attribute_schema) row per used type
        entities: One row per node, stamped with the export action
        relationships: HAS rows then LINK rows per node, stamped with the action
    """

    types: list[TypeRow] = dataclass_field(default_factory=list)
    entities: list[EntityRow] = dataclass_field(default_factory=list)
    relationships: list[ExportRelationshipRow] = dataclass_field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.types or self.entities or self.relationships)


@dataclass
class LoadReport:
    """Summary of a best-effort load.

    Attributes:
        types_registered: Type rows applied (including overwrites)
        entities_loaded: Entity rows that produced a node (including overwrites)
        entities_dropped: Entity rows dropped for an unknown type
        relationships_linked: Relationship rows that produced an edge
        relationships_dropped: Relationship rows dropped for unknown ids or self-containment
    """

    types_registered: int = 0
    entities_loaded: int = 0
    entities_dropped: int = 0
    relationships_linked: int = 0
    relationships_dropped: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary representation."""
        return {
            "types_registered": self.types_registered,
            "entities_loaded": self.entities_loaded,
            "entities_dropped": self.entities_dropped,
            "relationships_linked": self.relationships_linked,
            "relationships_dropped": self.relationships_dropped,
        }
