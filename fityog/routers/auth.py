"""
Authentication API endpoints.

Provides:
- User registration (logs the new user in)
- Login / logout with a server-side session cookie
- Current user lookup
"""
from fastapi import APIRouter, Depends, Response, status
from typing import Optional
import logging

from fityog.core.auth import get_current_user, get_session_id, get_settings, get_storage
from fityog.core.config import Settings
from fityog.core.exceptions import AuthenticationRequired
from fityog.core.security import (
    clear_session_cookie,
    get_password_hash,
    set_session_cookie,
    verify_password,
)
from fityog.schemas import Credentials, User, UserCreate, UserResponse
from fityog.services.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


def _public(user: User) -> UserResponse:
    return UserResponse.model_validate(user.model_dump())


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    credentials: Credentials,
    response: Response,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """
    Register a new user account and start a session for it.

    Registration never creates experts; experts come from seed data.
    """
    user = storage.create_user(
        UserCreate(
            username=credentials.username,
            password=get_password_hash(credentials.password),
        )
    )
    sid = storage.session_store.create(user.id)
    set_session_cookie(response, sid, settings)
    logger.info(f"User registered: {user.id}")
    return _public(user)


@router.post("/login", response_model=UserResponse)
def login(
    credentials: Credentials,
    response: Response,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """Check credentials and start a session."""
    user = storage.get_user_by_username(credentials.username)
    if user is None or not verify_password(credentials.password, user.password):
        logger.info(f"Failed login for username: {credentials.username}")
        raise AuthenticationRequired("Invalid username or password")

    sid = storage.session_store.create(user.id)
    set_session_cookie(response, sid, settings)
    logger.info(f"User logged in: {user.id}")
    return _public(user)


@router.post("/logout")
def logout(
    response: Response,
    sid: Optional[str] = Depends(get_session_id),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """End the current session. Safe to call without one."""
    if sid:
        storage.session_store.destroy(sid)
    clear_session_cookie(response, settings)
    return {"ok": True}


@router.get("/user", response_model=UserResponse)
def current_user(user: User = Depends(get_current_user)):
    return _public(user)
