"""Account registration and login routes.

This module handles user registration, email/password login and profile
lookup. Passwords are hashed with passlib, and successful logins return a
signed bearer token from user_context.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from passlib.context import CryptContext
from pydantic import BaseModel, field_validator
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from database import User, get_db
from logic.config import PASSWORD_MIN_LEN, USERNAME_MAX_LEN, USERNAME_MIN_LEN
from logic.validation import is_valid_email
from user_context import create_token, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth")

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

DUPLICATE_USER_MESSAGE = "User already exists with this email or username"


class RegisterRequest(BaseModel):
    """Request model for creating an account."""

    username: str
    email: str
    password: str

    @field_validator("username")
    @classmethod
    def check_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Username is required")
        if not USERNAME_MIN_LEN <= len(value) <= USERNAME_MAX_LEN:
            raise ValueError(
                f"Username must be between {USERNAME_MIN_LEN} and {USERNAME_MAX_LEN} characters"
            )
        return value

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not is_valid_email(value):
            raise ValueError("Please include a valid email")
        return value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if len(value) < PASSWORD_MIN_LEN:
            raise ValueError(f"Password must be at least {PASSWORD_MIN_LEN} characters")
        return value


class LoginRequest(BaseModel):
    """Request model for email/password login."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not is_valid_email(value):
            raise ValueError("Please include a valid email")
        return value


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def _auth_response(user: User) -> dict:
    return {
        "_id": user.id,
        "username": user.username,
        "email": user.email,
        "token": create_token(user.id),
    }


@router.post("/register", status_code=201)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new user.

    Args:
        data: Username, email and password.
        db: Database session.

    Returns:
        The new user's id, username, email and a bearer token.

    Raises:
        HTTPException: 400 if the email or username is already taken.
    """
    existing = (
        db.query(User)
        .filter(or_(User.email == data.email, User.username == data.username))
        .first()
    )
    if existing:
        raise HTTPException(status_code=400, detail=DUPLICATE_USER_MESSAGE)

    user = User(
        username=data.username,
        email=data.email,
        password_hash=get_password_hash(data.password),
    )

    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail=DUPLICATE_USER_MESSAGE)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Registration error")
        raise HTTPException(status_code=500, detail="Server error during registration")

    logger.info("Registered user %s", user.id)
    return _auth_response(user)


@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """Log in with email and password.

    Returns:
        The user's id, username, email and a bearer token.

    Raises:
        HTTPException: 401 if the credentials do not match.
    """
    user = db.query(User).filter(User.email == data.email).first()

    if user is None or not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    return _auth_response(user)


@router.get("/profile")
def profile(user: User = Depends(get_current_user)):
    """Get the authenticated user's profile.

    Returns:
        Id, username, email and registration time.
    """
    return user.to_dict()
