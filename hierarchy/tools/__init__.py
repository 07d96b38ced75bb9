"""
Command line tools for the asset hierarchy.
"""

from .hierarchy_cli import HierarchyCLI, build_parser, run

__all__ = ["HierarchyCLI", "build_parser", "run"]
