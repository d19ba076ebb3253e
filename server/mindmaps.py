"""
Mind map management API routes.

This module contains endpoints for listing, creating, reading, updating and
deleting the authenticated user's mind maps, plus read-only access to maps
marked public.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import logging
from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import MindMap, User, get_db
from logic.config import DESCRIPTION_MAX_LEN, TITLE_MAX_LEN, ensure_mindmap_fields
from logic.history import get_history_registry
from logic.validation import sanitise_nodes, sanitise_tags
from user_context import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mindmaps")

NOT_FOUND = "Mind map not found"


def _check_title(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Title is required")
    if len(value) > TITLE_MAX_LEN:
        raise ValueError(f"Title must be at most {TITLE_MAX_LEN} characters")
    return value


def _check_description(value: str) -> str:
    value = value.strip()
    if len(value) > DESCRIPTION_MAX_LEN:
        raise ValueError(f"Description must be at most {DESCRIPTION_MAX_LEN} characters")
    return value


Title = Annotated[str, AfterValidator(_check_title)]
Description = Annotated[str, AfterValidator(_check_description)]


class MindMapCreate(BaseModel):
    """Request model for creating a mind map."""

    model_config = ConfigDict(populate_by_name=True)

    title: Title
    description: Optional[Description] = None
    tags: Optional[List[Any]] = None
    nodes: Optional[List[Any]] = None
    is_public: Optional[bool] = Field(default=None, alias="isPublic")


class MindMapUpdate(BaseModel):
    """Request model for updating a mind map. Omitted fields are left unchanged."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[Title] = None
    description: Optional[Description] = None
    tags: Optional[List[Any]] = None
    nodes: Optional[List[Any]] = None
    is_public: Optional[bool] = Field(default=None, alias="isPublic")


def get_owned_mindmap(db: Session, map_id: str, user: User) -> MindMap:
    """Load a mind map that belongs to the user.

    Args:
        db: Database session.
        map_id: Mind map id.
        user: Authenticated user.

    Returns:
        The MindMap row.

    Raises:
        HTTPException: 404 if the map does not exist or belongs to someone else.
    """
    mindmap = (
        db.query(MindMap)
        .filter(MindMap.id == map_id, MindMap.user_id == user.id)
        .first()
    )
    if mindmap is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return mindmap


def save_mindmap(db: Session, mindmap: MindMap, operation: str):
    """Refresh updated_at and commit the map.

    Raises:
        HTTPException: 500 if the database write fails.
    """
    mindmap.touch()
    try:
        db.add(mindmap)
        db.commit()
        db.refresh(mindmap)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("%s mind map error", operation)
        raise HTTPException(status_code=500, detail="Server error")


@router.get("/dashboard")
def list_mindmaps(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Get all mind maps for the authenticated user.

    Returns:
        List of map summaries, most recently updated first. Each summary
        carries a node count instead of the nodes themselves.
    """
    mindmaps = (
        db.query(MindMap)
        .filter(MindMap.user_id == user.id)
        .order_by(MindMap.updated_at.desc())
        .all()
    )
    return [m.to_summary() for m in mindmaps]


@router.post("/dashboard", status_code=201)
def create_mindmap(
    data: MindMapCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a new mind map.

    Args:
        data: Title plus optional description, tags, nodes and visibility.

    Returns:
        The created map.

    Raises:
        HTTPException: 400 if nodes or tags are invalid.
    """
    payload = data.model_dump()
    payload["tags"] = sanitise_tags(payload["tags"])
    payload["nodes"] = sanitise_nodes(payload["nodes"])
    payload = ensure_mindmap_fields(payload)

    mindmap = MindMap(
        title=payload["title"],
        description=payload["description"],
        tags=payload["tags"],
        nodes=payload["nodes"],
        is_public=payload["is_public"],
        user_id=user.id,
    )

    save_mindmap(db, mindmap, "Create")
    logger.info("Created mind map %s for user %s", mindmap.id, user.id)
    return mindmap.to_dict()


@router.get("/public/{map_id}")
def get_public_mindmap(map_id: str, db: Session = Depends(get_db)):
    """Get a mind map that its owner marked public. No authentication needed.

    Raises:
        HTTPException: 404 if the map does not exist or is private.
    """
    mindmap = (
        db.query(MindMap)
        .filter(MindMap.id == map_id, MindMap.is_public.is_(True))
        .first()
    )
    if mindmap is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return mindmap.to_dict()


@router.get("/{map_id}")
def get_mindmap(map_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Get a specific mind map owned by the authenticated user."""
    return get_owned_mindmap(db, map_id, user).to_dict()


@router.put("/{map_id}")
def update_mindmap(
    map_id: str,
    data: MindMapUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update a mind map.

    Only fields present in the request body are changed. The previous state
    is recorded so the edit can be undone.

    Returns:
        The updated map.
    """
    mindmap = get_owned_mindmap(db, map_id, user)
    updates: Dict[str, Any] = {
        key: value
        for key, value in data.model_dump(exclude_unset=True).items()
        if value is not None
    }

    if "tags" in updates:
        updates["tags"] = sanitise_tags(updates["tags"])
    if "nodes" in updates:
        updates["nodes"] = sanitise_nodes(updates["nodes"])

    before = mindmap.snapshot()
    mindmap.restore(updates)
    save_mindmap(db, mindmap, "Update")

    if updates:
        get_history_registry().get(user.id, mindmap.id).record(before)

    return mindmap.to_dict()


@router.delete("/{map_id}")
def delete_mindmap(map_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Delete a mind map and drop its edit history."""
    mindmap = get_owned_mindmap(db, map_id, user)

    try:
        db.delete(mindmap)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Delete mind map error")
        raise HTTPException(status_code=500, detail="Server error")

    get_history_registry().discard(user.id, map_id)
    logger.info("Deleted mind map %s for user %s", map_id, user.id)
    return {"message": "Mind map removed"}
