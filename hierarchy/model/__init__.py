"""
Hierarchy model for the asset hierarchy manager.

This module provides the in-memory entity graph, including:
- Type definitions (EntityType, EntityNode, RelationshipKind, ExportAction)
- The type registry owned by each store
- HierarchyStore with load, roots, edit, cascading delete and serialize

Invariants:
    - Edges are node ids, resolved against the store
    - No dangling edge survives a delete
    - Loading is best-effort per row; nothing here raises for bad rows

How to change safely:
    - Keep the row tuple shapes aligned with the workbook sheets
    - Preserve the root definition; orphans are opt-in
"""

from .registry import TypeRegistry
from .store import HierarchyStore
from .types import (
    EntityNode,
    EntityRow,
    EntityType,
    ExportAction,
    ExportRelationshipRow,
    HierarchyRows,
    LoadReport,
    RelationshipKind,
    RelationshipRow,
    TypeRow,
)

__all__ = [
    # Types
    "EntityType",
    "EntityNode",
    "RelationshipKind",
    "ExportAction",
    "HierarchyRows",
    "LoadReport",
    "TypeRow",
    "EntityRow",
    "RelationshipRow",
    "ExportRelationshipRow",
    # Registry
    "TypeRegistry",
    # Store
    "HierarchyStore",
]
