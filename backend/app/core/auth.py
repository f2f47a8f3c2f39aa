"""Request authentication dependencies."""
import logging
import os
from typing import Annotated

from fastapi import Depends, Header

from app.errors import AppError, log_error
from app.services.supabase_auth import AuthUser, get_user_from_token

logger = logging.getLogger(__name__)


def get_bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.startswith("Bearer "):
        raise AppError("Authentication required", 401)
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise AppError("Authentication required", 401)
    return token


def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
) -> AuthUser:
    """FastAPI dependency resolving the caller from the bearer token."""
    return get_user_from_token(get_bearer_token(authorization))


def get_admin_email() -> str | None:
    """Get the admin email from environment."""
    return os.environ.get("ADMIN_EMAIL")


def require_admin(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """Allow only the configured admin account through."""
    admin_email = get_admin_email()
    if not admin_email:
        raise AppError("Admin configuration error", 500)

    if (user.email or "").lower() != admin_email.lower():
        log_error({"userId": user.id, "email": user.email}, "Unauthorized admin access attempt")
        raise AppError("Access denied. Admin privileges required.", 403)
    return user
