from __future__ import annotations

import hashlib
from contextvars import ContextVar
from typing import Callable, List, Optional

from fastapi import Depends, Header, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from src.lifeline import policy
from src.lifeline.config import settings
from src.lifeline.domain.models.user import Principal

# API key is expected in this header when ENABLE_API_AUTH is true.
_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

# Context variable storing a stable, non-raw identifier for the current caller
# (e.g., a hashed API key). This allows downstream consumers such as the
# audit logger to associate events with a subject without exposing the raw
# secret.
_current_subject: ContextVar[Optional[str]] = ContextVar("current_subject", default=None)

ANONYMOUS_USER_ID = "anonymous"


def get_current_subject() -> Optional[str]:
    """Return the current subject identifier, if any.

    This is typically set by ``get_api_key`` when API authentication is
    enabled. The value is a stable hash-derived identifier, not the raw
    secret.
    """

    return _current_subject.get()


def _parse_api_keys() -> List[str]:
    """Return the configured API keys as a normalized list.

    API_KEYS is treated as a comma-separated list. Whitespace is stripped and
    empty entries are ignored.
    """

    if not settings.api_keys:
        return []
    return [key.strip() for key in settings.api_keys.split(",") if key.strip()]


def check_api_key(api_key: Optional[str]) -> str:
    if not settings.enable_api_auth:
        _current_subject.set(None)
        return ""

    allowed_keys = _parse_api_keys()
    if not allowed_keys:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API authentication is enabled but no API keys are configured.",
        )

    if not api_key or api_key not in allowed_keys:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key.",
        )

    subject_id = "api-key:" + hashlib.sha256(api_key.encode("utf-8")).hexdigest()[:16]
    _current_subject.set(subject_id)
    return api_key


async def get_api_key(api_key: Optional[str] = Security(_api_key_header)) -> str:
    """FastAPI dependency for simple API-key based authentication.

    - If ENABLE_API_AUTH is false (default for development/tests), this is a
      no-op and always succeeds.
    - If ENABLE_API_AUTH is true, a valid API key must be supplied in the
      X-API-Key header and match the configured API_KEYS list.
    """

    return check_api_key(api_key)


def principal_from_session(user_id: Optional[str], role: Optional[str]) -> Principal:
    """Build the principal from the session forwarded by the auth proxy.

    The role comes straight from session metadata and falls back to
    ``responder`` when absent or unknown.
    """

    if not user_id:
        if settings.enable_api_auth:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing authenticated user.",
            )
        user_id = ANONYMOUS_USER_ID
    return Principal(id=user_id, role=policy.resolve_role(role))


async def get_current_principal(
    api_key: str = Depends(get_api_key),
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
) -> Principal:
    """Resolve the acting user for an HTTP request."""

    return principal_from_session(x_user_id, x_user_role)


def ensure_can_access_path(principal: Principal, path: str) -> None:
    """Raise HTTP 403 if ``path`` is not in the principal's navigation."""

    if policy.can_access_path(principal.role, path):
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Not authorized to access this page",
    )


def page_principal(path: str) -> Callable[..., Principal]:
    """Dependency factory resolving the principal and gating on a page path."""

    async def _dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        ensure_can_access_path(principal, path)
        return principal

    return _dependency
