"""
Validation and sanitization utilities.

This module contains functions for validating node documents, tags and
account fields, and sanitizing user input data before it is persisted.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import re
from typing import Any, Dict, List, Optional

from fastapi import HTTPException

from .config import COORDINATE_LIMIT, DEFAULT_NODE_COLOR, ensure_node_fields

ALLOWED_NODE_FIELDS = {
    "id": str,
    "content": str,
    "position": dict,
    "parent": (str, type(None)),
    "connections": list,
    "color": str,
}

EDITABLE_NODE_FIELDS = {"content", "color", "position", "parent"}

COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MAX_NODE_ID_LEN = 64
MAX_CONTENT_LEN = 1000
MAX_TAG_LEN = 50


def is_valid_email(value: str) -> bool:
    """Check that a string looks like an email address."""
    return bool(EMAIL_PATTERN.match(value or ""))


def sanitise_node_id(value: Any) -> str:
    """Sanitize and validate a node identifier.

    Args:
        value: Candidate node id.

    Returns:
        Stripped node id.

    Raises:
        HTTPException: If the id is missing, not a string or too long.
    """
    if not isinstance(value, str) or not value.strip():
        raise HTTPException(400, "Node id is required")
    value = value.strip()
    if len(value) > MAX_NODE_ID_LEN:
        raise HTTPException(400, "Node id too long")
    return value


def sanitise_content(value: Any) -> str:
    """Sanitize node content.

    Raises:
        HTTPException: If content is empty after trimming or too long.
    """
    if not isinstance(value, str):
        raise HTTPException(400, "Node content must be a string")
    value = value.strip()
    if not value:
        raise HTTPException(400, "Node content is required")
    if len(value) > MAX_CONTENT_LEN:
        raise HTTPException(400, "Node content too long")
    return value


def sanitise_color(value: Any) -> str:
    """Validate a hex color string.

    Args:
        value: Color in ``#RGB`` or ``#RRGGBB`` form, or None for the default.

    Returns:
        The color string.

    Raises:
        HTTPException: If the value is not a hex color.
    """
    if value is None:
        return DEFAULT_NODE_COLOR
    if not isinstance(value, str) or not COLOR_PATTERN.match(value.strip()):
        raise HTTPException(400, "Invalid color")
    return value.strip()


def sanitise_coordinate(value: Any) -> float:
    """Validate a single coordinate value.

    Raises:
        HTTPException: If the value is not a number within COORDINATE_LIMIT
            of the origin.
    """
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise HTTPException(400, "Invalid position")
    # NaN fails both comparisons
    if not -COORDINATE_LIMIT <= value <= COORDINATE_LIMIT:
        raise HTTPException(400, "Invalid position")
    return value


def sanitise_position(value: Any) -> Dict[str, float]:
    """Validate a ``{x, y}`` position, defaulting missing axes to 0."""
    if value is None:
        return {"x": 0, "y": 0}
    if not isinstance(value, dict):
        raise HTTPException(400, "Invalid position")
    return {
        "x": sanitise_coordinate(value.get("x")),
        "y": sanitise_coordinate(value.get("y")),
    }


def sanitise_parent(value: Any) -> Optional[str]:
    if value is None:
        return None
    return sanitise_node_id(value)


def sanitise_connections(value: Any) -> List[str]:
    """Validate a connection list, collapsing duplicates while keeping order."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise HTTPException(400, "Connections must be a list")
    result = []
    for target in value:
        target = sanitise_node_id(target)
        if target not in result:
            result.append(target)
    return result


def sanitise_node(raw: Any) -> Dict[str, Any]:
    """Sanitize and validate a full node document.

    Args:
        raw: Node dictionary from the client.

    Returns:
        New node dictionary containing only known fields, with defaults.

    Raises:
        HTTPException: If the node is malformed or carries unknown fields.
    """
    if not isinstance(raw, dict):
        raise HTTPException(400, "Node must be an object")

    for key in raw.keys():
        if key not in ALLOWED_NODE_FIELDS and key != "_id":
            raise HTTPException(400, f"Illegal node field: {key}")

    node = {
        "id": sanitise_node_id(raw.get("id")),
        "content": sanitise_content(raw.get("content")),
        "position": sanitise_position(raw.get("position")),
        "parent": sanitise_parent(raw.get("parent")),
        "connections": sanitise_connections(raw.get("connections")),
        "color": sanitise_color(raw.get("color")),
    }
    return ensure_node_fields(node)


def sanitise_nodes(raw_nodes: Any) -> List[Dict[str, Any]]:
    """Sanitize a node array, rejecting duplicate ids.

    Args:
        raw_nodes: List of node dictionaries, or None.

    Returns:
        List of sanitized nodes in the original order.

    Raises:
        HTTPException: If any node is invalid or two nodes share an id.
    """
    if raw_nodes is None:
        return []
    if not isinstance(raw_nodes, list):
        raise HTTPException(400, "Nodes must be a list")

    nodes = []
    seen = set()
    for index, raw in enumerate(raw_nodes):
        try:
            node = sanitise_node(raw)
        except HTTPException as e:
            raise HTTPException(400, f"Invalid node at index {index}: {e.detail}")
        if node["id"] in seen:
            raise HTTPException(400, f"Duplicate node id: {node['id']}")
        seen.add(node["id"])
        nodes.append(node)
    return nodes


def sanitise_tags(value: Any) -> List[str]:
    """Trim tags and drop empty ones.

    Raises:
        HTTPException: If tags are not a list of strings or a tag is too long.
    """
    if value is None:
        return []
    if not isinstance(value, list):
        raise HTTPException(400, "Tags must be a list")
    tags = []
    for tag in value:
        if not isinstance(tag, str):
            raise HTTPException(400, "Tags must be strings")
        tag = tag.strip()
        if not tag:
            continue
        if len(tag) > MAX_TAG_LEN:
            raise HTTPException(400, "Tag too long")
        tags.append(tag)
    return tags
