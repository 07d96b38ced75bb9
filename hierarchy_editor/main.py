"""
Asset Hierarchy Editor - server entry point.

Usage:
    python -m hierarchy_editor.main

Configuration is via HIERARCHY_EDITOR_* environment variables.
See config.py for all available settings.
"""

import uvicorn

from hierarchy.config import ObservabilityConfig
from hierarchy.main import setup_logging

from .app import create_app
from .config import Settings


def main() -> None:
    """Run the editor with uvicorn."""
    settings = Settings()
    setup_logging(ObservabilityConfig(log_level=settings.log_level, log_format=settings.log_format))
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
