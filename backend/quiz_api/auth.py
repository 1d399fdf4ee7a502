"""Authentication helpers and FastAPI security dependencies.

This module provides three layers of request dependencies:

- `get_token_payload` extracts the bearer token and verifies it. A
  missing token is a 401, an invalid or expired one a 403.
- `require_permissions(...)` builds a coarse per-endpoint gate that checks
  the permission map carried inside the token.
- `get_current_user` resolves the token's user name to the `User` row so
  handlers can run the finer ownership-or-admin check.
"""

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from . import models
from .config import Settings
from .database import get_session
from .errors import ErrorMessages
from .permissions import Permission
from .services import decode_token, resolve_user

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_payload(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Return the verified token claims or fail the request."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail=ErrorMessages.WITHOUT_TOKEN)
    return decode_token(settings, credentials.credentials)


def require_permissions(*required: Permission):
    """Dependency factory: every flag in `required` must be granted in the token."""
    def checker(payload: dict = Depends(get_token_payload)) -> dict:
        granted = payload.get('permissions') or {}
        if not isinstance(granted, dict) or not all(granted.get(p.name) is True for p in required):
            raise HTTPException(status_code=403, detail=ErrorMessages.FORBIDDEN)
        return payload
    return checker


def get_current_user(
    payload: dict = Depends(get_token_payload),
    db: Session = Depends(get_session),
) -> models.User:
    """FastAPI dependency that returns the authenticated user.

    Raises `NotFoundError` when the user named in the token no longer
    exists.
    """
    return resolve_user(db, payload.get('name'))
