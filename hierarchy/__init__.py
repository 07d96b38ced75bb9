"""
Asset Hierarchy Manager - entity hierarchy editing over spreadsheets.

This package implements the core of a hierarchy editor built on:
- Entity types, entities and relationships imported from a three-sheet workbook
- An in-memory store with containment (HAS) and association (LINK) edges
- Validated JSON attribute edits and cascading subtree deletion
- Export back to a three-sheet workbook stamped with an INSERT/DELETE tag

Architecture:
    ┌────────────┐     ┌──────────────┐     ┌────────────────┐
    │  Workbook  │────▶│read_workbook │────▶│ HierarchyStore │
    │  (.xlsx)   │     └──────────────┘     │     .load      │
    └────────────┘                          └───────┬────────┘
                                                    │
                     ┌──────────────────────────────┼───────────────┐
                     │                              │               │
                     ▼                              ▼               ▼
              ┌────────────┐               ┌──────────────┐  ┌────────────┐
              │ HTTP editor│               │ edit / delete│  │ serialize  │
              │  and CLI   │               │  (mutations) │  │ + export   │
              └────────────┘               └──────────────┘  └────────────┘

Invariants:
    - The store is the single owner of nodes and types
    - Attribute JSON is validated at the boundary, never inside the store
    - Import tolerates bad rows by dropping them

Version: see _version.py.
"""

from ._version import __version__

__all__ = ["__version__"]
