"""Database setup and models for mind map persistence.

This module provides the database connection, the User and MindMap models,
and the session dependency used by the API routers. A mind map is stored as
one row whose nodes and tags live in JSON columns, so the whole nested
document is read and written in a single operation.
"""

import os
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    String,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

# Database setup
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./mindmaps.db")
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autoflush=False, bind=engine)

Base = declarative_base()


def new_object_id() -> str:
    """Generate a 24 character hex identifier."""
    return secrets.token_hex(12)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a stored UTC timestamp as ISO-8601 with millisecond precision."""
    if value is None:
        return None
    return value.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


class User(Base):
    """Registered account.

    Attributes:
        id: 24 character hex identifier.
        username: Unique display name.
        email: Unique, lowercased login email.
        password_hash: Salted password hash, never the clear password.
        created_at: When the account was registered.
    """

    __tablename__ = "users"

    id = Column(String(24), primary_key=True, default=new_object_id)
    username = Column(String(30), unique=True, nullable=False, index=True)
    email = Column(String(254), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    mindmaps = relationship(
        "MindMap", back_populates="owner", cascade="all, delete-orphan"
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "username": self.username,
            "email": self.email,
            "createdAt": format_timestamp(self.created_at),
        }


class MindMap(Base):
    """Mind map document owned by a single user.

    Attributes:
        id: 24 character hex identifier.
        title: Map title, at most 100 characters.
        description: Free text description, at most 500 characters.
        nodes: JSON array of node documents.
        tags: JSON array of tag strings.
        user_id: Owner of the map.
        is_public: Whether the map can be read without authentication.
        created_at: When the map was created.
        updated_at: When the map was last written.
    """

    __tablename__ = "mindmaps"

    id = Column(String(24), primary_key=True, default=new_object_id)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False, default="")
    nodes = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)
    user_id = Column(String(24), ForeignKey("users.id"), nullable=False, index=True)
    is_public = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    owner = relationship("User", back_populates="mindmaps")

    def touch(self):
        """Refresh the last-modified timestamp before a write."""
        self.updated_at = utcnow()

    def snapshot(self) -> Dict[str, Any]:
        """Capture the editable fields of the map.

        Returns:
            Dictionary of copies of title, description, tags, nodes and
            visibility, suitable for restoring later.
        """
        return {
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags or []),
            "nodes": [dict(node) for node in (self.nodes or [])],
            "is_public": bool(self.is_public),
        }

    def restore(self, snapshot: Dict[str, Any]):
        """Apply a snapshot produced by ``snapshot``."""
        for key in ("title", "description", "tags", "nodes", "is_public"):
            if key in snapshot:
                setattr(self, key, snapshot[key])

    def to_summary(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "title": self.title,
            "description": self.description,
            "tags": self.tags or [],
            "updatedAt": format_timestamp(self.updated_at),
            "nodeCount": len(self.nodes) if isinstance(self.nodes, list) else 0,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert the mind map to its wire representation.

        Returns:
            Dictionary using the client's field names.
        """
        return {
            "_id": self.id,
            "title": self.title,
            "description": self.description,
            "nodes": self.nodes or [],
            "tags": self.tags or [],
            "userId": self.user_id,
            "isPublic": bool(self.is_public),
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }


def init_db(bind=None):
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """Dependency for getting database session.

    Yields:
        Database session that will be closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
