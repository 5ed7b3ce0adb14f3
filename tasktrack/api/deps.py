"""Auth gate and shared request dependencies (get_current_user, require_roles, ensure_ownership)."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from tasktrack.core.config import Settings
from tasktrack.core.database import get_db
from tasktrack.core.errors import AuthenticationError, AuthorizationError
from tasktrack.core.security import TokenKind, TokenService
from tasktrack.repositories.users import UserRepository
from tasktrack.schemas.auth import CurrentUser, UserRole
from tasktrack.services.auth import AuthService
from tasktrack.services.tasks import TaskService

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# One message for every gate failure so clients cannot tell which check failed.
_UNAUTHENTICATED = "Invalid or expired access token"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> AuthService:
    return AuthService(db, tokens, bcrypt_rounds=settings.BCRYPT_ROUNDS)


def get_task_service(db: Annotated[Session, Depends(get_db)]) -> TaskService:
    return TaskService(db)


def _reject(reason: str) -> AuthenticationError:
    logger.debug("Auth gate rejected request: %s", reason)
    return AuthenticationError(_UNAUTHENTICATED, headers={"WWW-Authenticate": "Bearer"})


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> CurrentUser:
    """
    Dependency: require a valid Bearer access token for a live, active user.

    Missing header, bad or expired token, unknown user and deactivated user all
    raise the same 401. The identity is also stored on request.state.user.
    """
    if credentials is None or not credentials.credentials:
        raise _reject("missing bearer token")

    result = tokens.verify(credentials.credentials, TokenKind.ACCESS)
    if not result.ok:
        raise _reject(f"token {result.failure.value}")

    user = UserRepository(db).get(result.claims.user_id)
    if user is None:
        raise _reject("user not found")
    if not user.is_active:
        raise _reject("user inactive")

    current = CurrentUser(id=user.id, email=user.email, role=user.role)
    request.state.user = current
    return current


def require_roles(*roles: UserRole) -> Callable[..., CurrentUser]:
    """Dependency factory: authenticated user whose role is one of roles, else 403."""
    allowed = {UserRole(r) for r in roles}

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if current_user.role not in allowed:
            raise AuthorizationError("Insufficient permissions")
        return current_user

    return dependency


require_admin = require_roles(UserRole.ADMIN)


def ensure_ownership(owner_id: str, current_user: CurrentUser) -> None:
    """Raise 403 unless current_user owns the resource or is an admin."""
    if str(owner_id) != current_user.id and not current_user.is_admin:
        raise AuthorizationError("Access denied: You can only access your own resources")
