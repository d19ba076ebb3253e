"""
Node editing API routes.

This module exposes the editor's node operations (add, update, delete,
connect, disconnect) and undo/redo on a single mind map. Each edit records
the previous state in the map's history and persists the new node list.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import User, get_db
from logic.history import get_history_registry
from logic.nodes import (
    NodeError,
    NodeNotFound,
    add_node,
    connect_nodes,
    delete_node,
    disconnect_nodes,
    find_node,
    update_node,
)
from server.mindmaps import get_owned_mindmap, save_mindmap
from user_context import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mindmaps/{map_id}")


class NodeCreate(BaseModel):
    """Request model for adding a node."""

    id: Optional[str] = None
    content: Optional[str] = None
    position: Optional[Dict[str, Any]] = None
    parent: Optional[str] = None
    color: Optional[str] = None


class ConnectionCreate(BaseModel):
    """Request model for connecting two nodes."""

    target: str


def apply_edit(db: Session, user: User, map_id: str, operation, *args) -> list:
    """Run a node operation against a map and persist the result.

    Args:
        db: Database session.
        user: Authenticated user.
        map_id: Mind map id.
        operation: Function from logic.nodes taking the node list first.
        *args: Remaining arguments for the operation.

    Returns:
        The new node list.

    Raises:
        HTTPException: 404 for unknown maps or nodes, 400 for invalid edits.
    """
    mindmap = get_owned_mindmap(db, map_id, user)
    before = mindmap.snapshot()

    try:
        nodes = operation(list(mindmap.nodes or []), *args)
    except NodeNotFound as e:
        raise HTTPException(404, "Node not found") from e
    except NodeError as e:
        raise HTTPException(400, str(e)) from e

    mindmap.nodes = nodes
    save_mindmap(db, mindmap, "Edit")
    get_history_registry().get(user.id, mindmap.id).record(before)
    return nodes


@router.post("/nodes", status_code=201)
def create_node(
    map_id: str,
    data: NodeCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Add a node to the map.

    Returns:
        The new node.
    """
    nodes = apply_edit(
        db, user, map_id, add_node,
        data.content, data.position, data.parent, data.color, data.id,
    )
    return nodes[-1]


@router.patch("/nodes/{node_id}")
def patch_node(
    map_id: str,
    node_id: str,
    updates: Dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update a node's content, color, position or parent.

    Returns:
        The updated node.
    """
    nodes = apply_edit(db, user, map_id, update_node, node_id, updates)
    return find_node(nodes, node_id)


@router.delete("/nodes/{node_id}")
def remove_node(
    map_id: str,
    node_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a node, detaching its connections and re-parenting its children."""
    nodes = apply_edit(db, user, map_id, delete_node, node_id)
    return {"success": True, "nodeCount": len(nodes)}


@router.post("/nodes/{node_id}/connections")
def add_connection(
    map_id: str,
    node_id: str,
    data: ConnectionCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Connect a node to another node in the same map.

    Returns:
        The source node.
    """
    nodes = apply_edit(db, user, map_id, connect_nodes, node_id, data.target)
    return find_node(nodes, node_id)


@router.delete("/nodes/{node_id}/connections/{target_id}")
def remove_connection(
    map_id: str,
    node_id: str,
    target_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Remove a connection between two nodes.

    Returns:
        The source node.
    """
    nodes = apply_edit(db, user, map_id, disconnect_nodes, node_id, target_id)
    return find_node(nodes, node_id)


@router.post("/undo")
def undo(map_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Revert the most recent edit made through this server.

    Returns:
        The map after the undo.

    Raises:
        HTTPException: 400 if there is nothing to undo.
    """
    mindmap = get_owned_mindmap(db, map_id, user)
    history = get_history_registry().get(user.id, mindmap.id)

    try:
        previous = history.undo(mindmap.snapshot())
    except IndexError:
        raise HTTPException(400, "Nothing to undo")

    mindmap.restore(previous)
    save_mindmap(db, mindmap, "Undo")
    return mindmap.to_dict()


@router.post("/redo")
def redo(map_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Re-apply the most recently undone edit.

    Raises:
        HTTPException: 400 if there is nothing to redo.
    """
    mindmap = get_owned_mindmap(db, map_id, user)
    history = get_history_registry().get(user.id, mindmap.id)

    try:
        following = history.redo(mindmap.snapshot())
    except IndexError:
        raise HTTPException(400, "Nothing to redo")

    mindmap.restore(following)
    save_mindmap(db, mindmap, "Redo")
    return mindmap.to_dict()
