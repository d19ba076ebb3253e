"""User context management for authenticated requests.

This module issues and verifies the signed bearer tokens handed out at
login, and provides the dependency that resolves the current user for
protected routes.
"""

import logging
import os
import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.orm import Session

from database import User, get_db

logger = logging.getLogger(__name__)

SECRET_KEY = os.getenv("SECRET_KEY")
TOKEN_MAX_AGE = int(os.getenv("TOKEN_MAX_AGE", 60 * 60 * 24))  # 1 day in seconds
TOKEN_SALT = "mindmap-auth"

# Validate required environment variables
if not SECRET_KEY:
    SECRET_KEY = secrets.token_urlsafe(32)
    logger.warning(
        "SECRET_KEY not set. Using temporary key. Set this in .env for production."
    )

# Token serializer for signing user ids
serializer = URLSafeTimedSerializer(SECRET_KEY, salt=TOKEN_SALT)


def create_token(user_id: str) -> str:
    """Create a signed, time-limited token for the user.

    Args:
        user_id: Identifier of the authenticated user.

    Returns:
        Signed token string.
    """
    return serializer.dumps({"id": user_id})


def read_token(token: Optional[str], max_age: Optional[int] = None) -> Optional[str]:
    """Validate a token and return the user id it carries.

    Args:
        token: Signed token string.
        max_age: Maximum token age in seconds, defaults to TOKEN_MAX_AGE.

    Returns:
        User id if the token is valid and unexpired, None otherwise.
    """
    if not token:
        return None

    try:
        payload = serializer.loads(token, max_age=TOKEN_MAX_AGE if max_age is None else max_age)
    except (BadSignature, SignatureExpired):
        return None

    if not isinstance(payload, dict):
        return None
    return payload.get("id")


def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> User:
    """Get the authenticated user from the Authorization header.

    Args:
        authorization: ``Bearer <token>`` header value.
        db: Database session.

    Returns:
        The User owning the token.

    Raises:
        HTTPException: 401 if the token is missing, invalid, expired, or
            belongs to a user that no longer exists.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authorized, no token")

    user_id = read_token(authorization[len("Bearer "):].strip())
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")

    return user
