"""
Hierarchy CLI tool.

This tool works on exported workbooks without the HTTP editor:
- show: Print the containment tree and counts
- export: Load a workbook and re-export it with an action tag
- delete: Delete a subtree, then export
- edit: Replace an entity's attributes (validated JSON), then export
- format: Pretty-print attribute JSON

Usage:
    hierarchy show AssetHierarchy.xlsx
    hierarchy export in.xlsx out.xlsx --action DELETE
    hierarchy export in.xlsx  # writes HIERARCHY_EXPORT_FILENAME
    hierarchy delete in.xlsx PUMP-1 out.xlsx
    hierarchy edit in.xlsx PUMP-1 '{"rpm": 1500}' out.xlsx
    hierarchy format '{"a": "{\\"b\\": 1}"}'

Invariants:
    - Reported errors exit with status 1, never a traceback
    - Input workbooks are never modified in place

How to change safely:
    - Add new commands, don't change existing arguments
    - Keep show output stable for scripts that grep it
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence, TextIO

from ..attributes import edit_attributes, format_attributes
from ..config import HierarchyConfig
from ..errors import HierarchyError, NodeNotFoundError, WorkbookError
from ..model import ExportAction, HierarchyStore
from ..workbook import export_workbook, load_workbook

logger = logging.getLogger(__name__)


class HierarchyCLI:
    """Commands over a workbook-backed HierarchyStore.

    Example:
        >>> cli = HierarchyCLI(HierarchyConfig())
        >>> store = cli.open("AssetHierarchy.xlsx")
        >>> print(cli.render_tree(store))
    """

    def __init__(self, config: HierarchyConfig, out: TextIO | None = None) -> None:
        self.config = config
        self.out = out or sys.stdout

    def open(self, path: str) -> HierarchyStore:
        """Load a workbook into a new store."""
        store = HierarchyStore()
        report = load_workbook(store, path, has_header=self.config.workbook.has_header)
        if report.entities_dropped or report.relationships_dropped:
            logger.warning(
                f"Dropped {report.entities_dropped} entity rows and "
                f"{report.relationships_dropped} relationship rows from {path}"
            )
        return store

    def render_tree(self, store: HierarchyStore, include_orphans: bool = False) -> str:
        """Render the containment tree as indented text.

        Args:
            store: Store to render
            include_orphans: Also render childless unreferenced entities

        Returns:
            Multi-line tree text followed by a count line
        """
        lines = []
        seen: set[str] = set()
        for root in store.roots(include_orphans=include_orphans):
            for depth, node, expanded in store.walk(root.id, seen=seen):
                line = f"{'  ' * depth}{node.name} [{node.entity_type.type}] ({node.id})"
                if node.has_links:
                    line += f" -> {', '.join(node.links)}"
                if not expanded and node.has_children:
                    line += " ..."
                lines.append(line)
        if not lines:
            lines.append("No hierarchy data")
        stats = store.stats()
        lines.append(f"{stats['total_entities']} entities, {stats['total_roots']} root nodes")
        return "\n".join(lines)

    def show(self, path: str, include_orphans: bool = False) -> None:
        store = self.open(path)
        print(self.render_tree(store, include_orphans=include_orphans), file=self.out)

    def export(self, path: str, output: str | None, action: str) -> None:
        output = self._output_path(path, output)
        store = self.open(path)
        self._write(store, output, action)

    def delete(self, path: str, node_id: str, output: str | None, action: str) -> None:
        output = self._output_path(path, output)
        store = self.open(path)
        if node_id not in store:
            raise NodeNotFoundError(node_id)
        removed = store.delete_cascade(node_id)
        print(f"Deleted {len(removed)} entities", file=self.out)
        self._write(store, output, action)

    def edit(
        self, path: str, node_id: str, attributes: str, output: str | None, action: str
    ) -> None:
        output = self._output_path(path, output)
        store = self.open(path)
        edit_attributes(store, node_id, attributes)
        self._write(store, output, action)

    def format(self, attributes: str) -> None:
        print(format_attributes(attributes), file=self.out)

    def _output_path(self, path: str, output: str | None) -> str:
        """Resolve the output workbook, defaulting to the configured export name."""
        output = output or self.config.workbook.export_filename
        if Path(output).resolve() == Path(path).resolve():
            raise WorkbookError(
                f"Refusing to overwrite input workbook {path}, pass an output path",
                source=output,
            )
        return output

    def _write(self, store: HierarchyStore, output: str, action: str) -> None:
        rows = export_workbook(store, action, output)
        print(
            f"Exported {len(rows.entities)} entities to {output} "
            f"({ExportAction.from_str(action).value})",
            file=self.out,
        )


def build_parser(default_action: str = ExportAction.INSERT.value) -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(description="Asset hierarchy workbook tool")
    subparsers = parser.add_subparsers(dest="command", required=True)
    actions = [a.value for a in ExportAction]

    show_parser = subparsers.add_parser("show", help="Print the entity tree")
    show_parser.add_argument("input", help="Workbook to read")
    show_parser.add_argument(
        "--include-orphans",
        action="store_true",
        help="Also show childless entities that no entity contains",
    )

    export_parser = subparsers.add_parser("export", help="Re-export a workbook")
    export_parser.add_argument("input", help="Workbook to read")
    export_parser.add_argument(
        "output", nargs="?", help="Workbook to write (default: HIERARCHY_EXPORT_FILENAME)"
    )

    delete_parser = subparsers.add_parser("delete", help="Delete an entity and its subtree")
    delete_parser.add_argument("input", help="Workbook to read")
    delete_parser.add_argument("node_id", help="Entity ID to delete")
    delete_parser.add_argument(
        "output", nargs="?", help="Workbook to write (default: HIERARCHY_EXPORT_FILENAME)"
    )

    edit_parser = subparsers.add_parser("edit", help="Replace an entity's attributes")
    edit_parser.add_argument("input", help="Workbook to read")
    edit_parser.add_argument("node_id", help="Entity ID to edit")
    edit_parser.add_argument("attributes", help="New attributes (JSON)")
    edit_parser.add_argument(
        "output", nargs="?", help="Workbook to write (default: HIERARCHY_EXPORT_FILENAME)"
    )

    for sub in (export_parser, delete_parser, edit_parser):
        sub.add_argument(
            "--action",
            "-a",
            type=str.upper,
            choices=actions,
            default=default_action.upper(),
            help="Action tag for exported rows",
        )

    format_parser = subparsers.add_parser("format", help="Pretty-print attribute JSON")
    format_parser.add_argument("attributes", help="Attributes (JSON)")

    return parser


def run(
    argv: Sequence[str] | None,
    config: HierarchyConfig,
    out: TextIO | None = None,
) -> int:
    """Parse arguments and execute a command.

    Returns:
        Process exit code
    """
    args = build_parser(config.workbook.default_action).parse_args(argv)
    cli = HierarchyCLI(config, out=out)

    try:
        if args.command == "show":
            cli.show(args.input, include_orphans=args.include_orphans)
        elif args.command == "export":
            cli.export(args.input, args.output, args.action)
        elif args.command == "delete":
            cli.delete(args.input, args.node_id, args.output, args.action)
        elif args.command == "edit":
            cli.edit(args.input, args.node_id, args.attributes, args.output, args.action)
        elif args.command == "format":
            cli.format(args.attributes)
    except HierarchyError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    return 0
