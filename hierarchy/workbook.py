"""
Workbook adapter for the asset hierarchy.

Reads and writes the three-sheet spreadsheet exchanged with other tools:

    Import (by sheet position, first row is a header by default):
        0: [type, attributeSchema]
        1: [id, name, typeKey, source, attributes, action]
        2: [parentId, childId, kind]

    Export (by sheet name, always with a header row):
        EntityTypes:   Type, Attributes
        Entities:      ID, Name, EntityType, Source, Attributes, Action
        Relationships: ParentID, ChildID, Type, Action

Invariants:
    - Every imported cell is a string; empty cells become ""
    - Columns are matched by position, header text is ignored
    - Exports contain exactly three sheets in the order above

How to change safely:
    - Keep sheet names and header labels stable, downstream loaders match them
    - New columns go at the end of a sheet
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Union

import pandas as pd

from .errors import EmptyHierarchyError, WorkbookError
from .model import ExportAction, HierarchyRows, HierarchyStore, LoadReport

logger = logging.getLogger(__name__)

ENGINE = "openpyxl"
DEFAULT_EXPORT_FILENAME = "AssetHierarchy.xlsx"

ENTITY_TYPES_SHEET = "EntityTypes"
ENTITIES_SHEET = "Entities"
RELATIONSHIPS_SHEET = "Relationships"

ENTITY_TYPES_HEADER = ["Type", "Attributes"]
ENTITIES_HEADER = ["ID", "Name", "EntityType", "Source", "Attributes", "Action"]
RELATIONSHIPS_HEADER = ["ParentID", "ChildID", "Type", "Action"]

WorkbookSource = Union[str, Path, IO[bytes]]


@dataclass
class WorkbookRows:
    """Rows read from the three import sheets.

    Attributes:
        types: Rows of sheet 0
        entities: Rows of sheet 1
        relationships: Rows of sheet 2
    """

    types: list[tuple[str, ...]] = field(default_factory=list)
    entities: list[tuple[str, ...]] = field(default_factory=list)
    relationships: list[tuple[str, ...]] = field(default_factory=list)


def _describe(source: Any) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, "name", type(source).__name__)


def _frame_rows(frame: pd.DataFrame) -> list[tuple[str, ...]]:
    frame = frame.fillna("").astype(str)
    return [tuple(row) for row in frame.itertuples(index=False, name=None)]


def read_workbook(source: WorkbookSource, has_header: bool = True) -> WorkbookRows:
    """Read the first three sheets of a workbook as string rows.

    Args:
        source: Path or binary file object of an .xlsx workbook
        has_header: Whether the first row of each sheet is a header

    Returns:
        WorkbookRows for the types, entities and relationships sheets

    Raises:
        WorkbookError: If the workbook cannot be read or has fewer than three sheets
    """
    name = _describe(source)
    try:
        sheets = pd.read_excel(
            source,
            sheet_name=None,
            header=0 if has_header else None,
            dtype=str,
            keep_default_na=False,
            engine=ENGINE,
        )
    except Exception as e:
        raise WorkbookError(f"Could not read workbook: {e}", source=name) from e

    frames = list(sheets.values())
    if len(frames) < 3:
        raise WorkbookError(
            f"Workbook must have 3 sheets (types, entities, relationships), found {len(frames)}",
            source=name,
        )

    rows = WorkbookRows(
        types=_frame_rows(frames[0]),
        entities=_frame_rows(frames[1]),
        relationships=_frame_rows(frames[2]),
    )
    logger.debug(
        f"Read workbook {name}: {len(rows.types)} type rows, "
        f"{len(rows.entities)} entity rows, {len(rows.relationships)} relationship rows"
    )
    return rows


def load_workbook(
    store: HierarchyStore,
    source: WorkbookSource,
    has_header: bool = True,
) -> LoadReport:
    """Read a workbook and load it into a store, replacing its contents.

    Returns:
        The store's load report
    """
    rows = read_workbook(source, has_header=has_header)
    store.load(rows.types, rows.entities, rows.relationships)
    return store.last_load_report


def write_workbook(rows: HierarchyRows, target: WorkbookSource) -> None:
    """Write serialized rows as a three-sheet workbook.

    Args:
        rows: Rows produced by HierarchyStore.serialize
        target: Output path or binary file object
    """
    sheets = [
        (ENTITY_TYPES_SHEET, ENTITY_TYPES_HEADER, rows.types),
        (ENTITIES_SHEET, ENTITIES_HEADER, rows.entities),
        (RELATIONSHIPS_SHEET, RELATIONSHIPS_HEADER, rows.relationships),
    ]
    with pd.ExcelWriter(target, engine=ENGINE) as writer:
        for sheet_name, header, data in sheets:
            frame = pd.DataFrame([list(r) for r in data], columns=header, dtype=object)
            frame.to_excel(writer, sheet_name=sheet_name, index=False)
    logger.debug(f"Wrote workbook {_describe(target)}")


def export_workbook(
    store: HierarchyStore,
    action: ExportAction | str,
    target: WorkbookSource,
) -> HierarchyRows:
    """Serialize a store and write it as a workbook.

    Args:
        store: Store to export
        action: Tag stamped on every entity and relationship row
        target: Output path or binary file object

    Returns:
        The rows that were written

    Raises:
        EmptyHierarchyError: If the store has no entities
        ValueError: If action is not INSERT or DELETE
    """
    if len(store) == 0:
        raise EmptyHierarchyError()
    rows = store.serialize(action)
    write_workbook(rows, target)
    logger.info(
        f"Exported {len(rows.entities)} entities and {len(rows.relationships)} relationships",
        extra={"action": ExportAction.from_str(action).value},
    )
    return rows
