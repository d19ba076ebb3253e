"""
Node editing operations for mind maps.

Pure functions that apply the editor's operations (add, update, move,
delete, connect) to a list of node dictionaries. Every function returns a
new list and leaves its input untouched, so callers can keep the previous
list as an undo snapshot.
"""

import copy
import time
from typing import Any, Dict, List, Optional

from .config import DEFAULT_NODE_CONTENT, get_default_node
from .validation import (
    EDITABLE_NODE_FIELDS,
    sanitise_color,
    sanitise_content,
    sanitise_node_id,
    sanitise_parent,
    sanitise_position,
)


class NodeError(ValueError):
    """Raised when an edit would leave the node graph inconsistent."""


class NodeNotFound(NodeError):
    """Raised when an operation references a node id that does not exist."""


def find_node(nodes: List[Dict[str, Any]], node_id: str) -> Optional[Dict[str, Any]]:
    return next((n for n in nodes if n.get("id") == node_id), None)


def _require(nodes: List[Dict[str, Any]], node_id: str) -> Dict[str, Any]:
    node = find_node(nodes, node_id)
    if node is None:
        raise NodeNotFound(f"Node '{node_id}' not found")
    return node


def children_of(nodes: List[Dict[str, Any]], node_id: str) -> List[Dict[str, Any]]:
    """Get the direct children of a node, in array order."""
    return [n for n in nodes if n.get("parent") == node_id]


def roots(nodes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Get nodes with no parent, or whose parent no longer exists.

    Args:
        nodes: List of node dictionaries.

    Returns:
        Root nodes in array order.
    """
    ids = {n.get("id") for n in nodes}
    return [n for n in nodes if n.get("parent") is None or n.get("parent") not in ids]


def generate_node_id(nodes: List[Dict[str, Any]]) -> str:
    """Generate a ``node-<millis>`` id that is unique within the map."""
    existing = {n.get("id") for n in nodes}
    stamp = int(time.time() * 1000)
    node_id = f"node-{stamp}"
    while node_id in existing:
        stamp += 1
        node_id = f"node-{stamp}"
    return node_id


def _is_descendant(nodes: List[Dict[str, Any]], node_id: str, ancestor_id: str) -> bool:
    """Check whether ancestor_id appears on node_id's parent chain."""
    seen = set()
    current = find_node(nodes, node_id)
    while current is not None and current.get("parent") is not None:
        parent_id = current["parent"]
        if parent_id == ancestor_id:
            return True
        if parent_id in seen:
            return False
        seen.add(parent_id)
        current = find_node(nodes, parent_id)
    return False


def add_node(
    nodes: List[Dict[str, Any]],
    content: Optional[str] = None,
    position: Optional[Dict[str, Any]] = None,
    parent: Optional[str] = None,
    color: Optional[str] = None,
    node_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Append a new node to the map.

    Args:
        nodes: Current node list.
        content: Node text, defaults to "New Node".
        position: ``{x, y}`` position, defaults to the origin.
        parent: Id of the parent node, or None for a root node.
        color: Hex color, defaults to the standard node color.
        node_id: Explicit id; generated when omitted.

    Returns:
        New node list with the node appended last.

    Raises:
        NodeError: If the id is already taken.
        NodeNotFound: If the parent does not exist.
    """
    if node_id is None:
        node_id = generate_node_id(nodes)
    else:
        node_id = sanitise_node_id(node_id)
        if find_node(nodes, node_id) is not None:
            raise NodeError(f"Node id '{node_id}' already exists")

    parent = sanitise_parent(parent)
    if parent is not None:
        _require(nodes, parent)

    node = get_default_node(node_id)
    node["content"] = sanitise_content(content if content is not None else DEFAULT_NODE_CONTENT)
    node["position"] = sanitise_position(position)
    node["parent"] = parent
    node["color"] = sanitise_color(color)

    result = copy.deepcopy(nodes)
    result.append(node)
    return result


def update_node(
    nodes: List[Dict[str, Any]], node_id: str, updates: Dict[str, Any]
) -> List[Dict[str, Any]]:
    """Apply field updates to a single node.

    Args:
        nodes: Current node list.
        node_id: Id of the node to update.
        updates: Mapping of field names to new values. Only content, color,
            position and parent may be changed.

    Returns:
        New node list.

    Raises:
        NodeError: If an illegal field is supplied or the new parent would
            create a cycle.
        NodeNotFound: If the node or new parent does not exist.
    """
    _require(nodes, node_id)

    if not updates:
        raise NodeError("No valid fields supplied")

    for key in updates.keys():
        if key not in EDITABLE_NODE_FIELDS:
            raise NodeError(f"Illegal field: {key}")

    result = copy.deepcopy(nodes)
    node = find_node(result, node_id)

    for key, value in updates.items():
        if key == "content":
            node["content"] = sanitise_content(value)
        elif key == "color":
            node["color"] = sanitise_color(value)
        elif key == "position":
            node["position"] = sanitise_position(value)
        elif key == "parent":
            parent = sanitise_parent(value)
            if parent is not None:
                if parent == node_id:
                    raise NodeError("A node cannot be its own parent")
                _require(result, parent)
                if _is_descendant(result, parent, node_id):
                    raise NodeError("Parent would create a cycle")
            node["parent"] = parent

    return result


def move_node(nodes: List[Dict[str, Any]], node_id: str, x: Any, y: Any) -> List[Dict[str, Any]]:
    """Set a node's position."""
    return update_node(nodes, node_id, {"position": {"x": x, "y": y}})


def delete_node(nodes: List[Dict[str, Any]], node_id: str) -> List[Dict[str, Any]]:
    """Remove a node from the map.

    Connections pointing at the node are removed, and its children are
    re-attached to the deleted node's own parent.

    Raises:
        NodeNotFound: If the node does not exist.
    """
    target = _require(nodes, node_id)
    new_parent = target.get("parent")

    result = []
    for node in copy.deepcopy(nodes):
        if node.get("id") == node_id:
            continue
        if node.get("parent") == node_id:
            node["parent"] = new_parent
        node["connections"] = [c for c in node.get("connections", []) if c != node_id]
        result.append(node)
    return result


def connect_nodes(nodes: List[Dict[str, Any]], source_id: str, target_id: str) -> List[Dict[str, Any]]:
    """Add a connection from source to target.

    Connecting an already connected pair leaves the list unchanged.

    Raises:
        NodeError: If source and target are the same node.
        NodeNotFound: If either node does not exist.
    """
    if source_id == target_id:
        raise NodeError("A node cannot connect to itself")
    _require(nodes, source_id)
    _require(nodes, target_id)

    result = copy.deepcopy(nodes)
    source = find_node(result, source_id)
    connections = source.setdefault("connections", [])
    if target_id not in connections:
        connections.append(target_id)
    return result


def disconnect_nodes(nodes: List[Dict[str, Any]], source_id: str, target_id: str) -> List[Dict[str, Any]]:
    """Remove a connection from source to target.

    Raises:
        NodeNotFound: If the source does not exist or is not connected to target.
    """
    source = _require(nodes, source_id)
    if target_id not in source.get("connections", []):
        raise NodeNotFound(f"Connection '{source_id}' -> '{target_id}' not found")

    result = copy.deepcopy(nodes)
    source = find_node(result, source_id)
    source["connections"] = [c for c in source["connections"] if c != target_id]
    return result
