"""
Attribute payload editing.

Entity attributes are JSON text that the store keeps as an opaque string.
This module holds the editor-side rules applied before a save:
- validate_attributes: reject text that does not parse as JSON
- format_attributes: pretty-print, expanding JSON nested inside strings
- edit_attributes: validate, then write through HierarchyStore.set_attributes

Invariants:
    - Only text that parses as JSON reaches set_attributes through here
    - Formatting never changes the parsed value of objects and arrays,
      except that string values holding JSON containers are expanded
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .errors import InvalidAttributesError, NodeNotFoundError
from .model import HierarchyStore

logger = logging.getLogger(__name__)

INVALID_JSON_MESSAGE = "Invalid JSON format - please check syntax"
EMPTY_JSON_MESSAGE = "JSON input is empty"


def validate_attributes(text: str, node_id: str | None = None) -> Any:
    """Check that attribute text parses as JSON.

    Args:
        text: Raw attribute text
        node_id: Entity being edited, for error context

    Returns:
        The parsed value

    Raises:
        InvalidAttributesError: If text is not valid JSON
    """
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise InvalidAttributesError(INVALID_JSON_MESSAGE, node_id=node_id) from e


def _expand_string(value: str) -> Any:
    """Parse a string value that itself holds a JSON object or array."""
    try:
        parsed = json.loads(value)
    except ValueError:
        return value
    return parsed if isinstance(parsed, (dict, list)) else value


def _format_value(value: Any, indent: int, level: int) -> str:
    if isinstance(value, list):
        items = [_format_value(v, indent, level + 1) for v in value]
        return f"[{', '.join(items)}]"

    if isinstance(value, dict):
        if not value:
            return "{}"
        spaces = " " * (indent * level)
        entries = []
        for key, item in value.items():
            if isinstance(item, str):
                item = _expand_string(item)
            entries.append(
                f"{spaces}{json.dumps(key, ensure_ascii=False)}: "
                f"{_format_value(item, indent, level + 1)}"
            )
        closing = " " * (indent * (level - 1))
        return "{\n" + ",\n".join(entries) + "\n" + closing + "}"

    return json.dumps(value, ensure_ascii=False)


def format_attributes(text: str, indent: int = 2) -> str:
    """Pretty-print attribute JSON.

    Objects are expanded one key per line; arrays stay on one line.
    Object values that are strings containing a JSON object or array
    are parsed and expanded in place. Strings holding JSON scalars such
    as "123" stay strings, and an empty object is written as {}.

    Args:
        text: Raw attribute text
        indent: Spaces per nesting level

    Returns:
        Formatted JSON text

    Raises:
        InvalidAttributesError: If text is blank or not valid JSON
    """
    if text is None or not text.strip():
        raise InvalidAttributesError(EMPTY_JSON_MESSAGE)
    try:
        parsed = json.loads(text)
    except ValueError as e:
        raise InvalidAttributesError(f"Invalid JSON: {e}") from e
    return _format_value(parsed, indent, 1)


def edit_attributes(store: HierarchyStore, node_id: str, text: str) -> None:
    """Validate attribute text and save it on an entity.

    Args:
        store: Store holding the entity
        node_id: Entity to edit
        text: New attribute text

    Raises:
        NodeNotFoundError: If node_id is not in the store
        InvalidAttributesError: If text is not valid JSON
    """
    if node_id not in store:
        raise NodeNotFoundError(node_id)
    validate_attributes(text, node_id=node_id)
    store.set_attributes(node_id, text)
    logger.info(f"Saved attributes for '{node_id}'", extra={"node_id": node_id})
