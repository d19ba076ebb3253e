"""
Mind map export module.

This module provides an endpoint for downloading a mind map as JSON, as a
Markdown outline, or as a PNG image rendered server-side.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-18
"""

import json
import logging
import re

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from database import User, get_db
from logic.render import render_map_to_image, render_markdown
from server.mindmaps import get_owned_mindmap
from user_context import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

EXPORT_FORMATS = {
    "json": ("application/json", "json"),
    "markdown": ("text/markdown; charset=utf-8", "md"),
    "png": ("image/png", "png"),
}


def export_filename(title: str, extension: str) -> str:
    """Build a safe download filename from a map title."""
    slug = re.sub(r"[^A-Za-z0-9]+", "-", title or "").strip("-").lower()
    return f"{slug or 'mindmap'}.{extension}"


@router.get("/api/mindmaps/{map_id}/export")
def export_mindmap(
    map_id: str,
    export_format: str = Query("json", alias="format"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Export a mind map as a downloadable file.

    Args:
        map_id: Mind map id.
        export_format: One of ``json``, ``markdown`` or ``png``.

    Returns:
        File response with a Content-Disposition attachment header.

    Raises:
        HTTPException: 400 for unknown formats, 404 if the map is not found.
    """
    if export_format not in EXPORT_FORMATS:
        raise HTTPException(400, f"Unsupported export format: {export_format}")

    mindmap = get_owned_mindmap(db, map_id, user).to_dict()
    media_type, extension = EXPORT_FORMATS[export_format]

    if export_format == "json":
        content = json.dumps(mindmap, indent=2, ensure_ascii=False)
    elif export_format == "markdown":
        content = render_markdown(mindmap)
    else:
        try:
            content = render_map_to_image(mindmap)
        except (OSError, ValueError) as e:
            logger.exception("Error generating image for mind map %s", map_id)
            raise HTTPException(500, "Error generating image") from e

    filename = export_filename(mindmap["title"], extension)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
