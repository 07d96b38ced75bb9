"""
In-memory hierarchy store.

The HierarchyStore owns the authoritative mapping from entity id to
EntityNode together with the TypeRegistry. It provides:
- Best-effort loading from three tabular row sequences
- Root computation over containment edges
- Attribute edits and cascading subtree deletion
- Serialization back to three row groups for export

Invariants:
    - Node ids are unique; later rows overwrite earlier ones
    - Edges are node ids resolved against the store at access time
    - After delete_cascade no remaining node references a removed id
    - Containment may be cyclic; every traversal tracks visited ids
    - The store never parses or validates attributes

How to change safely:
    - Keep load tolerant: a bad row is dropped, never fatal
    - Keep roots() observable behavior (childless nodes are not roots)
      unless callers opt in with include_orphans
    - Run the cycle and round-trip tests after touching traversal code

Example:
    >>> store = HierarchyStore()
    >>> store.load(
    ...     [("Site", "{}"), ("Pump", "{}")],
    ...     [("S1", "Plant", "Site", "erp", "{}", "INSERT"),
    ...      ("P1", "Pump 1", "Pump", "erp", "{}", "INSERT")],
    ...     [("S1", "P1", "HAS")],
    ... )
    >>> [n.id for n in store.roots()]
    ['S1']
    >>> sorted(store.delete_cascade("S1"))
    ['P1', 'S1']
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Any

from .registry import TypeRegistry
from .types import (
    EntityNode,
    EntityType,
    ExportAction,
    HierarchyRows,
    LoadReport,
    RelationshipKind,
)

logger = logging.getLogger(__name__)


def _cells(row: Sequence[Any], width: int) -> tuple[str, ...]:
    """Normalize a row to exactly `width` string cells."""
    values = ["" if value is None else str(value) for value in list(row)[:width]]
    values.extend([""] * (width - len(values)))
    return tuple(values)


class HierarchyStore:
    """Arena of entity nodes keyed by id.

    All edges are stored as ids, so deleting is a set-membership filter
    over every remaining node's edge lists.

    Thread safety:
        Not designed for concurrent mutation. Callers serialize access
        (one UI event loop, one CLI invocation).

    Attributes:
        types: The registry of declared entity types
        last_load_report: Counters from the most recent load()
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._nodes: dict[str, EntityNode] = {}
        self.types = TypeRegistry()
        self.last_load_report = LoadReport()

    # =========================================================================
    # Load
    # =========================================================================

    def load(
        self,
        type_rows: Iterable[Sequence[Any]],
        entity_rows: Iterable[Sequence[Any]],
        relationship_rows: Iterable[Sequence[Any]],
    ) -> Mapping[str, EntityNode]:
        """Replace the store contents with the given rows.

        Args:
            type_rows: (type, attribute_schema) rows
            entity_rows: (id, name, type_key, source, attributes, action) rows
            relationship_rows: (parent_id, child_id, kind) rows

        Returns:
            Read-only view of the node map
        """
        self._nodes.clear()
        self.types.clear()
        report = LoadReport()

        for row in type_rows:
            type_key, attribute_schema = _cells(row, 2)
            self.types.register(EntityType(type_key, attribute_schema))
            report.types_registered += 1

        for row in entity_rows:
            node_id, name, type_key, source, attributes, action = _cells(row, 6)
            entity_type = self.types.get(type_key)
            if entity_type is None:
                logger.debug(f"Dropping entity '{node_id}': unknown type '{type_key}'")
                report.entities_dropped += 1
                continue
            if node_id in self._nodes:
                logger.debug(f"Entity '{node_id}' redefined, keeping the later row")
            self._nodes[node_id] = EntityNode(
                id=node_id,
                name=name,
                entity_type=entity_type,
                source=source,
                attributes=attributes,
                action=action,
            )
            report.entities_loaded += 1

        for row in relationship_rows:
            parent_id, child_id, kind = _cells(row, 3)
            parent = self._nodes.get(parent_id)
            if parent is None or child_id not in self._nodes:
                logger.debug(
                    f"Dropping relationship {parent_id!r} -> {child_id!r}: unknown id"
                )
                report.relationships_dropped += 1
                continue
            if RelationshipKind.from_str(kind) is RelationshipKind.HAS:
                if parent_id == child_id:
                    logger.debug(f"Dropping self-containment of '{parent_id}'")
                    report.relationships_dropped += 1
                    continue
                parent.children.append(child_id)
            else:
                parent.links.append(child_id)
            report.relationships_linked += 1

        self.last_load_report = report
        logger.info(
            f"Loaded {len(self._nodes)} entities of {len(self.types)} types",
            extra=report.to_dict(),
        )
        return self.node_map

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def node_map(self) -> Mapping[str, EntityNode]:
        """Read-only view of id -> node."""
        return MappingProxyType(self._nodes)

    def get(self, node_id: str) -> EntityNode | None:
        return self._nodes.get(node_id)

    def nodes(self) -> Iterator[EntityNode]:
        """Iterate over nodes in map order."""
        yield from self._nodes.values()

    def children_of(self, node_id: str) -> list[EntityNode]:
        """Resolve a node's containment edges to nodes."""
        node = self._nodes.get(node_id)
        if node is None:
            return []
        return [self._nodes[c] for c in node.children if c in self._nodes]

    def links_of(self, node_id: str) -> list[EntityNode]:
        """Resolve a node's link edges to nodes."""
        node = self._nodes.get(node_id)
        if node is None:
            return []
        return [self._nodes[link_id] for link_id in node.links if link_id in self._nodes]

    def roots(self, include_orphans: bool = False) -> list[EntityNode]:
        """Nodes that have children and are nobody's child.

        A childless node is never a root, even when nothing references it.
        Such nodes are unreachable from a root-based traversal unless
        include_orphans is set.

        Args:
            include_orphans: Also return childless nodes that no node contains

        Returns:
            Root nodes in map order
        """
        contained = {child_id for node in self._nodes.values() for child_id in node.children}
        return [
            node
            for node in self._nodes.values()
            if node.id not in contained and (node.has_children or include_orphans)
        ]

    def walk(
        self,
        node_id: str,
        max_depth: int | None = None,
        seen: set[str] | None = None,
    ) -> Iterator[tuple[int, EntityNode, bool]]:
        """Depth-first (depth, node, expanded) traversal of a containment subtree.

        Each node's children are expanded at most once per walk. A node
        reached again, through a second parent or by closing a cycle, is
        yielded with expanded=False and nothing below it. Nodes at
        max_depth are yielded unexpanded as well. The number of yields is
        bounded by the node count plus the containment edge count.

        Args:
            node_id: Start of the traversal
            max_depth: Depth whose nodes are not expanded (None for no limit)
            seen: Ids already expanded, shared across walks that render
                several roots; updated in place

        Yields:
            (depth, node, expanded) in depth-first order
        """
        root = self._nodes.get(node_id)
        if root is None:
            return
        if seen is None:
            seen = set()
        stack: list[tuple[int, EntityNode]] = [(0, root)]
        while stack:
            depth, node = stack.pop()
            if node.id in seen or (max_depth is not None and depth >= max_depth):
                yield depth, node, False
                continue
            seen.add(node.id)
            yield depth, node, True
            for child_id in reversed(node.children):
                child = self._nodes.get(child_id)
                if child is not None:
                    stack.append((depth + 1, child))

    def relationships(self) -> Iterator[tuple[str, str, RelationshipKind]]:
        """Flat (parent_id, child_id, kind) view, HAS edges before LINK per node."""
        for node in self._nodes.values():
            for child_id in node.children:
                yield node.id, child_id, RelationshipKind.HAS
            for link_id in node.links:
                yield node.id, link_id, RelationshipKind.LINK

    def used_types(self) -> list[EntityType]:
        """Distinct types referenced by at least one node, in first-use order."""
        used: dict[str, EntityType] = {}
        for node in self._nodes.values():
            used.setdefault(node.entity_type.type, node.entity_type)
        return list(used.values())

    def stats(self) -> dict[str, int]:
        """Counts shown alongside the tree."""
        return {
            "total_entities": len(self._nodes),
            "total_roots": len(self.roots()),
            "total_types": len(self.types),
            "total_relationships": sum(
                len(n.children) + len(n.links) for n in self._nodes.values()
            ),
        }

    # =========================================================================
    # Mutations
    # =========================================================================

    def set_attributes(self, node_id: str, new_attributes: str) -> bool:
        """Overwrite a node's attributes string.

        The value is stored as given; JSON validation belongs to the caller.

        Returns:
            True if the node exists, False if this was a no-op
        """
        node = self._nodes.get(node_id)
        if node is None:
            return False
        node.attributes = new_attributes
        logger.debug(f"Updated attributes of '{node_id}'")
        return True

    def delete_cascade(self, node_id: str) -> set[str]:
        """Remove a node and its full containment subtree.

        Only children are followed; nodes reachable solely through links
        survive. References to removed ids are pruned from every remaining
        node's children and links.

        Returns:
            The removed ids (empty if node_id is unknown)
        """
        if node_id not in self._nodes:
            return set()

        removed: set[str] = set()
        stack = [node_id]
        while stack:
            current = stack.pop()
            if current in removed:
                continue
            node = self._nodes.get(current)
            if node is None:
                continue
            removed.add(current)
            stack.extend(c for c in node.children if c not in removed)

        for rid in removed:
            del self._nodes[rid]

        for node in self._nodes.values():
            node.children = [c for c in node.children if c not in removed]
            node.links = [link_id for link_id in node.links if link_id not in removed]

        logger.info(
            f"Deleted subtree of '{node_id}' ({len(removed)} entities)",
            extra={"root_id": node_id, "removed": len(removed)},
        )
        return removed

    # =========================================================================
    # Serialize
    # =========================================================================

    def serialize(self, action: ExportAction | str = ExportAction.INSERT) -> HierarchyRows:
        """Produce the three export row groups.

        Args:
            action: Export tag stamped onto every entity and relationship row

        Returns:
            HierarchyRows with used types, entities and relationships

        Raises:
            ValueError: If action is not a known ExportAction
        """
        tag = ExportAction.from_str(action)
        rows = HierarchyRows()
        rows.types = [t.to_row() for t in self.used_types()]
        rows.entities = [node.to_row(tag) for node in self._nodes.values()]
        rows.relationships = [
            (parent_id, child_id, kind.value, tag.value)
            for parent_id, child_id, kind in self.relationships()
        ]
        return rows

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)
