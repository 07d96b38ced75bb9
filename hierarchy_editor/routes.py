"""
API routes for the Asset Hierarchy Editor.

Each endpoint corresponds to an action of the hierarchy editor:
import, tree view, listings, attribute edit, subtree delete, export.

All handlers are async and never await while touching the store, so
store access is serialized on the event loop.
"""

from __future__ import annotations

import io
import logging
from typing import Any

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, Field

from hierarchy.attributes import edit_attributes, format_attributes
from hierarchy.errors import (
    EmptyHierarchyError,
    InvalidAttributesError,
    NodeNotFoundError,
    WorkbookError,
)
from hierarchy.model import EntityNode, ExportAction, HierarchyStore
from hierarchy.workbook import export_workbook, read_workbook

from .config import Settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Hierarchy Editor"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Deepest containment level returned in one tree response
MAX_TREE_DEPTH = 100
DEFAULT_TREE_DEPTH = 50


# =============================================================================
# Request/Response Models
# =============================================================================


class AttributesRequest(BaseModel):
    """Attribute text submitted from the editor."""

    attributes: str = Field(..., description="Attribute payload as JSON text")


class FormattedAttributesResponse(BaseModel):
    """Pretty-printed attribute text."""

    attributes: str


class StatsResponse(BaseModel):
    """Counts shown next to the tree."""

    total_entities: int
    total_roots: int
    total_types: int
    total_relationships: int


class EntityResponse(BaseModel):
    """A single entity with its edges as ids."""

    id: str
    name: str
    entity_type: str
    source: str
    attributes: str
    action: str
    children: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)


class TreeNodeResponse(BaseModel):
    """An entity rendered inside the containment tree.

    collapsed is set when the entity has children that are not listed here:
    it was already expanded elsewhere in the tree, or max_depth was reached.
    Fetch /hierarchy/{id} to expand it.
    """

    id: str
    name: str
    entity_type: str
    action: str
    links: list[str] = Field(default_factory=list)
    children: list[TreeNodeResponse] = Field(default_factory=list)
    collapsed: bool = False


TreeNodeResponse.model_rebuild()


class HierarchyResponse(BaseModel):
    """Tree view from the root entities."""

    roots: list[TreeNodeResponse]
    stats: StatsResponse


class RelationshipResponse(BaseModel):
    """One containment or link edge."""

    parent_id: str
    child_id: str
    type: str


class EntityTypeResponse(BaseModel):
    """A registered entity type."""

    type: str
    attribute_schema: str
    entity_count: int


class ImportResponse(BaseModel):
    """Result of a workbook import."""

    filename: str | None
    report: dict[str, int]
    stats: StatsResponse


class DeleteResponse(BaseModel):
    """Result of a cascading delete."""

    removed: list[str]
    stats: StatsResponse


# =============================================================================
# Dependencies
# =============================================================================


def get_store(request: Request) -> HierarchyStore:
    """Get the hierarchy store from app state."""
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    """Get settings from app state."""
    return request.app.state.settings


def _entity(node: EntityNode) -> EntityResponse:
    return EntityResponse(**node.to_dict())


def _tree(
    store: HierarchyStore, roots: list[EntityNode], max_depth: int
) -> list[TreeNodeResponse]:
    """Nest walk() output into response trees, expanding each entity once."""
    trees: list[TreeNodeResponse] = []
    seen: set[str] = set()
    for root in roots:
        parents: list[TreeNodeResponse] = []
        for depth, node, expanded in store.walk(root.id, max_depth=max_depth, seen=seen):
            item = TreeNodeResponse(
                id=node.id,
                name=node.name,
                entity_type=node.entity_type.type,
                action=node.action,
                links=list(node.links),
                collapsed=not expanded and node.has_children,
            )
            del parents[depth:]
            if parents:
                parents[-1].children.append(item)
            else:
                trees.append(item)
            parents.append(item)
    return trees


def _stats(store: HierarchyStore) -> StatsResponse:
    return StatsResponse(**store.stats())


# =============================================================================
# Workbook Endpoints
# =============================================================================


@router.post("/workbook", response_model=ImportResponse)
async def import_workbook(
    file: UploadFile = File(...),
    store: HierarchyStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Import a three-sheet workbook, replacing the current hierarchy."""
    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="Workbook is too large")

    try:
        rows = read_workbook(io.BytesIO(content), has_header=settings.has_header)
    except WorkbookError as e:
        logger.warning(f"Workbook import failed: {e.message}")
        raise HTTPException(status_code=400, detail=e.message)

    store.load(rows.types, rows.entities, rows.relationships)
    return ImportResponse(
        filename=file.filename,
        report=store.last_load_report.to_dict(),
        stats=_stats(store),
    )


@router.get("/workbook")
async def download_workbook(
    action: str | None = Query(None, description="Export tag: INSERT or DELETE"),
    store: HierarchyStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Export the hierarchy as a three-sheet workbook."""
    try:
        tag = ExportAction.from_str(action or settings.default_action)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    buffer = io.BytesIO()
    try:
        export_workbook(store, tag, buffer)
    except EmptyHierarchyError as e:
        raise HTTPException(status_code=409, detail=e.message)

    return Response(
        content=buffer.getvalue(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{settings.export_filename}"'},
    )


# =============================================================================
# View Endpoints
# =============================================================================


@router.get("/hierarchy", response_model=HierarchyResponse)
async def get_hierarchy(
    include_orphans: bool = Query(False, description="Also list childless unreferenced entities"),
    max_depth: int = Query(
        DEFAULT_TREE_DEPTH, ge=0, le=MAX_TREE_DEPTH, description="Depth of collapsed entities"
    ),
    store: HierarchyStore = Depends(get_store),
):
    """Containment tree starting from the root entities."""
    roots = store.roots(include_orphans=include_orphans)
    return HierarchyResponse(
        roots=_tree(store, roots, max_depth),
        stats=_stats(store),
    )


@router.get("/hierarchy/{node_id}", response_model=TreeNodeResponse)
async def get_subtree(
    node_id: str,
    max_depth: int = Query(
        DEFAULT_TREE_DEPTH, ge=0, le=MAX_TREE_DEPTH, description="Depth of collapsed entities"
    ),
    store: HierarchyStore = Depends(get_store),
):
    """Containment subtree below one entity, used to expand collapsed nodes."""
    node = store.get(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail=f"Entity not found: {node_id}")
    return _tree(store, [node], max_depth)[0]


@router.get("/entities", response_model=list[EntityResponse])
async def list_entities(store: HierarchyStore = Depends(get_store)):
    """All entities in import order."""
    return [_entity(node) for node in store.nodes()]


@router.get("/entities/{node_id}", response_model=EntityResponse)
async def get_entity(node_id: str, store: HierarchyStore = Depends(get_store)):
    node = store.get(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail=f"Entity not found: {node_id}")
    return _entity(node)


@router.get("/relationships", response_model=list[RelationshipResponse])
async def list_relationships(store: HierarchyStore = Depends(get_store)):
    """All HAS and LINK edges."""
    return [
        RelationshipResponse(parent_id=parent_id, child_id=child_id, type=kind.value)
        for parent_id, child_id, kind in store.relationships()
    ]


@router.get("/types", response_model=list[EntityTypeResponse])
async def list_types(store: HierarchyStore = Depends(get_store)):
    """Registered entity types with the number of entities using each."""
    counts: dict[str, int] = {}
    for node in store.nodes():
        counts[node.entity_type.type] = counts.get(node.entity_type.type, 0) + 1
    return [
        EntityTypeResponse(
            type=t.type,
            attribute_schema=t.attribute_schema,
            entity_count=counts.get(t.type, 0),
        )
        for t in store.types.types()
    ]


# =============================================================================
# Edit Endpoints
# =============================================================================


@router.put("/entities/{node_id}/attributes", response_model=EntityResponse)
async def update_attributes(
    node_id: str,
    request: AttributesRequest,
    store: HierarchyStore = Depends(get_store),
):
    """Save new attributes after JSON validation."""
    try:
        edit_attributes(store, node_id, request.attributes)
    except NodeNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except InvalidAttributesError as e:
        raise HTTPException(status_code=422, detail=e.message)
    return _entity(store.get(node_id))


@router.post("/attributes/format", response_model=FormattedAttributesResponse)
async def format_attribute_text(request: AttributesRequest):
    """Pretty-print attribute JSON without saving it."""
    try:
        return FormattedAttributesResponse(attributes=format_attributes(request.attributes))
    except InvalidAttributesError as e:
        raise HTTPException(status_code=422, detail=e.message)


@router.delete("/entities/{node_id}", response_model=DeleteResponse)
async def delete_entity(node_id: str, store: HierarchyStore = Depends(get_store)):
    """Delete an entity and its containment subtree."""
    if node_id not in store:
        raise HTTPException(status_code=404, detail=f"Entity not found: {node_id}")
    removed = store.delete_cascade(node_id)
    return DeleteResponse(removed=sorted(removed), stats=_stats(store))


def describe_routes() -> dict[str, Any]:
    """Endpoint summary served at /api."""
    return {
        "import": "POST /api/v1/workbook",
        "export": "GET /api/v1/workbook?action=INSERT|DELETE",
        "tree": "GET /api/v1/hierarchy",
        "subtree": "GET /api/v1/hierarchy/{id}",
        "entities": "GET /api/v1/entities",
        "relationships": "GET /api/v1/relationships",
        "types": "GET /api/v1/types",
        "edit_attributes": "PUT /api/v1/entities/{id}/attributes",
        "format_attributes": "POST /api/v1/attributes/format",
        "delete": "DELETE /api/v1/entities/{id}",
    }
