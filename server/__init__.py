"""
Server modules for Mind Map Builder application.

This package contains FastAPI router modules for handling authentication,
mind map CRUD, node editing and export endpoints.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""
