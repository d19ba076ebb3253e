"""
Mind map document defaults and limits.

This module holds the field limits shared by the API and the editing logic,
and utilities for filling in default values on map and node documents.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

from typing import Any, Dict, Optional

TITLE_MAX_LEN = 100
DESCRIPTION_MAX_LEN = 500
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 30
PASSWORD_MIN_LEN = 6

DEFAULT_NODE_COLOR = "#3B82F6"
DEFAULT_NODE_CONTENT = "New Node"

# Undo depth kept per map
MAX_HISTORY = 100

# Maps whose undo history is held in memory at once
MAX_TRACKED_HISTORIES = 1000

# Node positions must stay within this distance of the origin
COORDINATE_LIMIT = 100000

# Largest PNG export edge in pixels
MAX_CANVAS_SIZE = 4000


def get_default_mindmap() -> Dict[str, Any]:
    """Get default mind map structure.

    Returns:
        Default mind map dictionary.
    """
    return {
        "title": "",
        "description": "",
        "tags": [],
        "nodes": [],
        "is_public": False,
    }


def get_default_node(node_id: str, content: Optional[str] = None) -> Dict[str, Any]:
    """Build a node with every field at its default.

    Args:
        node_id: Identifier for the node.
        content: Node text, defaults to DEFAULT_NODE_CONTENT.

    Returns:
        Node dictionary.
    """
    return {
        "id": node_id,
        "content": content or DEFAULT_NODE_CONTENT,
        "position": {"x": 0, "y": 0},
        "parent": None,
        "connections": [],
        "color": DEFAULT_NODE_COLOR,
    }


def ensure_node_fields(node: Dict[str, Any]) -> Dict[str, Any]:
    """Ensure a node has all required fields with appropriate defaults.

    Args:
        node: Node dictionary to update.

    Returns:
        The same dictionary, updated in place.
    """
    defaults = {
        "parent": None,
        "connections": [],
        "color": DEFAULT_NODE_COLOR,
    }

    for key, default in defaults.items():
        node.setdefault(key, default)

    position = node.get("position")
    if not isinstance(position, dict):
        position = {}
    position.setdefault("x", 0)
    position.setdefault("y", 0)
    node["position"] = position

    return node


def ensure_mindmap_fields(mindmap: Dict[str, Any]) -> Dict[str, Any]:
    """Ensure all optional fields are present in a mind map payload.

    Args:
        mindmap: Mind map dictionary to update.

    Returns:
        Updated mind map dictionary.
    """
    for key, default in get_default_mindmap().items():
        if mindmap.get(key) is None:
            mindmap[key] = default

    for node in mindmap["nodes"]:
        ensure_node_fields(node)

    return mindmap
