"""Client for the Supabase Auth REST API.

The API never handles passwords itself: a bearer token issued by Supabase is
resolved to a user here, and the admin endpoints list identities with the
service role key.
"""
import logging
import os
from dataclasses import dataclass

import requests

from app.errors import AppError, log_error

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 10


@dataclass
class AuthUser:
    """Identity resolved from a bearer token."""
    id: str
    email: str | None = None
    created_at: str | None = None


def _supabase_url() -> str:
    url = os.environ.get("SUPABASE_URL", "")
    if not url:
        raise AppError("Database configuration error", 500)
    return url.rstrip("/")


def get_user_from_token(token: str) -> AuthUser:
    """Resolve an access token through ``GET /auth/v1/user``.

    Raises:
        AppError: 401 if Supabase rejects the token, 500 if not configured.
    """
    anon_key = os.environ.get("SUPABASE_ANON_KEY", "")
    if not anon_key:
        raise AppError("Database configuration error", 500)

    try:
        response = requests.get(
            f"{_supabase_url()}/auth/v1/user",
            headers={"apikey": anon_key, "Authorization": f"Bearer {token}"},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        log_error(e, "Supabase auth request failed")
        raise AppError("Authentication service unavailable", 503)

    if response.status_code != 200:
        log_error({"status": response.status_code}, "User authentication failed")
        raise AppError("Invalid authentication token", 401)

    data = response.json()
    if not data.get("id"):
        raise AppError("Invalid authentication token", 401)
    return AuthUser(id=data["id"], email=data.get("email"), created_at=data.get("created_at"))


def list_auth_users(per_page: int = 1000) -> list[AuthUser]:
    """List every identity via the admin API (service role key required)."""
    service_key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")
    if not service_key:
        raise AppError("Database configuration error", 500)

    users: list[AuthUser] = []
    page = 1
    while True:
        try:
            response = requests.get(
                f"{_supabase_url()}/auth/v1/admin/users",
                headers={"apikey": service_key, "Authorization": f"Bearer {service_key}"},
                params={"page": page, "per_page": per_page},
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            log_error(e, "Failed to fetch auth users")
            raise AppError("Failed to fetch auth users", 500)

        if response.status_code != 200:
            log_error({"status": response.status_code, "body": response.text}, "Failed to fetch auth users")
            raise AppError("Failed to fetch auth users", 500)

        batch = response.json().get("users", [])
        users.extend(
            AuthUser(id=u["id"], email=u.get("email"), created_at=u.get("created_at"))
            for u in batch
        )
        if len(batch) < per_page:
            break
        page += 1

    logger.debug("Fetched %d auth users", len(users))
    return users
