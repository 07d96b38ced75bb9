"""
Asset Hierarchy Editor - HTTP API over a HierarchyStore.

Replaces the browser UI actions with JSON endpoints:
- Import a three-sheet workbook
- Browse the tree, entities, relationships and entity types
- Edit attributes (validated JSON) and delete subtrees
- Export a workbook stamped with INSERT or DELETE

Usage:
    uvicorn hierarchy_editor.app:app --port 8082
"""
