"""
Basic API routes.

This module contains the fundamental API endpoints for checking that the
service is up and reporting its version.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import json
import os

from fastapi import APIRouter

router = APIRouter()

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
VERSION_PATH = os.path.join(BASE_DIR, "version.json")
DEFAULT_VERSION = "1.0.0"


@router.get("/")
def index():
    """Report that the API is running."""
    return {"message": "Mind Map Builder API is running!"}


@router.get("/api/version")
def get_version():
    """Get the current application version.

    Returns:
        Dictionary with the version string from version.json, or the
        default version if the file is missing or unreadable.
    """
    try:
        with open(VERSION_PATH, "r", encoding="utf-8") as f:
            data = json.load(f)
        return {"version": data.get("version", DEFAULT_VERSION)}
    except (FileNotFoundError, json.JSONDecodeError):
        return {"version": DEFAULT_VERSION}
