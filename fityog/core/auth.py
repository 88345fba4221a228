"""
Authentication and dependency wiring.

Provides FastAPI dependencies for:
- The storage backend and recommendation gateway attached to the app
- Getting the current user from the session cookie
"""
from typing import Optional

from fastapi import Depends, Request

from fityog.core.config import Settings
from fityog.core.exceptions import AuthenticationRequired
from fityog.schemas import User
from fityog.services.recommendation_gateway import RecommendationGateway
from fityog.services.storage import Storage


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_gateway(request: Request) -> RecommendationGateway:
    return request.app.state.gateway


def get_session_id(request: Request, settings: Settings = Depends(get_settings)) -> Optional[str]:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_current_user_optional(
    sid: Optional[str] = Depends(get_session_id),
    storage: Storage = Depends(get_storage),
) -> Optional[User]:
    """
    Get the user behind the session cookie.
    Returns None if there is no cookie, the session expired, or the user is gone.
    """
    if not sid:
        return None
    user_id = storage.session_store.get(sid)
    if user_id is None:
        return None
    return storage.get_user(user_id)


def get_current_user(
    user: Optional[User] = Depends(get_current_user_optional),
) -> User:
    """
    Get the current authenticated user.

    Raises AuthenticationRequired (HTTP 401, empty body) otherwise.
    """
    if user is None:
        raise AuthenticationRequired()
    return user
