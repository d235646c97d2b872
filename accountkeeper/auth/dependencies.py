"""FastAPI dependencies for authentication and ownership checks.

Protected per-account routes depend on :func:`require_owner`, which resolves
its sub-dependencies in order: the path ID shape check (400), then the bearer
token (401), then the ownership comparison (403). Routes that take a body
read it through :func:`owner_json_body`, so the body is parsed only after those
checks pass.
"""

import json
import re
from typing import Any

from fastapi import Depends, Path, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from accountkeeper.errors import (
    AccessDeniedError,
    AccessTokenRequiredError,
    MalformedIdentifierError,
    ValidationError,
)
from accountkeeper.models.user import User
from accountkeeper.services.accounts import AccountService

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_account_service(request: Request) -> AccountService:
    """The service instance created by the app factory."""
    return request.app.state.account_service


def valid_user_id(user_id: str = Path(..., description="Account ID (UUID)")) -> str:
    """Reject path IDs that are not canonical UUIDs."""
    if not UUID_PATTERN.match(user_id):
        raise MalformedIdentifierError(f"Invalid ID format: '{user_id}'. Expected a valid UUID.")
    return user_id


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    service: AccountService = Depends(get_account_service),
) -> User:
    """Get the current authenticated user from the bearer token.

    Raises:
        AccessTokenRequiredError: If no bearer token was sent
        TokenInvalidError / TokenExpiredError / StaleTokenError: If the token cannot be used
    """
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise AccessTokenRequiredError()

    user = service.authenticate(credentials.credentials)
    request.state.user = user
    return user


def require_owner(
    user_id: str = Depends(valid_user_id),
    current_user: User = Depends(get_current_user),
) -> User:
    """Allow the request only if the caller owns the account in the path."""
    caller_id = current_user.id if current_user is not None else None
    if not isinstance(caller_id, str) or not isinstance(user_id, str) or not caller_id or not user_id:
        raise AccessDeniedError()
    if caller_id != user_id:
        raise AccessDeniedError()
    return current_user


async def owner_json_body(request: Request, owner: User = Depends(require_owner)) -> Any:
    """Parse the JSON body once the caller is known to own the account."""
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        raise ValidationError(["Request body must be valid JSON"])
