"""
Error types for the asset hierarchy manager.

This module defines the exceptions raised at the boundary layers
(attribute editor, workbook adapter, HTTP API, CLI):
- HierarchyError: Base exception
- InvalidAttributesError: Attribute text is not valid JSON
- NodeNotFoundError: Unknown entity id at an edit/delete boundary
- EmptyHierarchyError: Nothing to export
- WorkbookError: Workbook could not be read

Invariants:
    - All errors inherit from HierarchyError
    - HierarchyStore itself never raises these for tolerated conditions
    - Error messages are shown to users as-is
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class HierarchyError(Exception):
    """Base exception for all hierarchy errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "HIERARCHY_ERROR"
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation for API responses."""
        return {"code": self.code, "message": self.message, "details": self.details}


class InvalidAttributesError(HierarchyError):
    """Attribute payload failed JSON validation.

    Raised when:
    - A save is attempted with unparsable JSON
    - Formatting is requested for blank or unparsable input
    """

    def __init__(
        self,
        message: str,
        node_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="INVALID_ATTRIBUTES",
            details={"node_id": node_id},
        )
        self.node_id = node_id


class NodeNotFoundError(HierarchyError):
    """Entity id does not exist in the store."""

    def __init__(self, node_id: str) -> None:
        super().__init__(
            f"Entity not found: {node_id}",
            code="NODE_NOT_FOUND",
            details={"node_id": node_id},
        )
        self.node_id = node_id


class EmptyHierarchyError(HierarchyError):
    """Export requested for a store without entities."""

    def __init__(self, message: str = "No hierarchy to export!") -> None:
        super().__init__(message, code="EMPTY_HIERARCHY")


class WorkbookError(HierarchyError):
    """Workbook could not be read or has the wrong shape.

    Raised when:
    - The file is not a readable spreadsheet
    - Fewer than three sheets are present
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="WORKBOOK_ERROR",
            details={"source": source},
        )
        self.source = source
