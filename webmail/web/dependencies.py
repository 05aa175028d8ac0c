"""Request-scoped accessors for objects stored in app state."""

from fastapi import Request

from ..config import Config
from ..exceptions import AuthenticationError
from ..mail.service import MessageService
from ..models import User
from ..users import UserService
from .auth import SessionManager


def get_config(request: Request) -> Config:
    """Get configuration from app state."""
    return request.app.state.config


def get_session_manager(request: Request) -> SessionManager:
    """Get session manager from app state."""
    return request.app.state.session_manager


def get_message_service(request: Request) -> MessageService:
    """Get message service from app state."""
    return request.app.state.message_service


def get_user_service(request: Request) -> UserService:
    """Get user service from app state."""
    return request.app.state.user_service


def current_user(request: Request) -> User:
    """Return the signed-in user, or raise if there is none.

    The account is re-loaded on every request so deactivation takes effect
    on existing sessions.
    """
    user_id = get_session_manager(request).get_user_id(request)
    if user_id is None:
        raise AuthenticationError("Authentication required")

    user = request.app.state.user_repo.get_by_id(user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("Authentication required")
    return user
