"""
Asset Hierarchy Editor - HTTP application.

Holds one HierarchyStore per process. Importing a workbook replaces its
contents; edits and deletes mutate it in place; exports read it.

Usage:
    uvicorn hierarchy_editor.app:app --port 8082
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hierarchy import __version__
from hierarchy.model import HierarchyStore

from .config import Settings
from .routes import describe_routes, router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log store state on startup and shutdown."""
    logger.info(
        "Hierarchy editor started",
        extra={"default_action": app.state.settings.default_action},
    )

    yield

    logger.info(
        "Hierarchy editor stopped",
        extra={"entities": len(app.state.store)},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the editor FastAPI app."""
    settings = settings or Settings()

    app = FastAPI(
        title="Asset Hierarchy Editor",
        description=(
            "Import a three-sheet workbook of entity types, entities and relationships, "
            "edit entity attributes, delete subtrees and export the result."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = HierarchyStore()

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api/v1")

    @app.get("/api")
    async def api_info():
        return {
            "service": "hierarchy-editor",
            "version": __version__,
            "default_action": settings.default_action,
            "endpoints": describe_routes(),
        }

    @app.get("/health")
    async def health():
        return {"status": "healthy", "service": "hierarchy-editor"}

    return app


app = create_app()
