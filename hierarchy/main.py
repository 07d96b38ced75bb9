"""
Asset hierarchy tool - main entry point.

Usage:
    python -m hierarchy.main show AssetHierarchy.xlsx
    hierarchy export in.xlsx out.xlsx --action DELETE

Configuration is entirely via environment variables.
See config.py for all available settings.
"""

from __future__ import annotations

import logging
import sys
from typing import Sequence

import json_log_formatter

from .config import HierarchyConfig, ObservabilityConfig
from .tools import run

logger = logging.getLogger(__name__)


def setup_logging(config: ObservabilityConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Observability configuration
    """
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    if config.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("openpyxl").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    try:
        config = HierarchyConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    setup_logging(config.observability)
    config.log_config()
    sys.exit(run(argv, config))


if __name__ == "__main__":
    main()
