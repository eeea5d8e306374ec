"""
Authentication and Authorization Module

FastAPI dependencies that turn a bearer token into a CurrentUser and
enforce the caller's role. Record-level scoping (which advisor may act
on which application) lives in the internships AuthorizationGuard.

SECURITY NOTE:
- Development test tokens are ONLY accepted when PYTHON_ENV=development
- Production environments MUST set PYTHON_ENV=production
"""

import logging
import os
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.security import decode_token
from app.modules.users.models import UserRole

logger = logging.getLogger(__name__)

security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)


@dataclass(frozen=True)
class CurrentUser:
    """
    The authenticated caller, populated from JWT claims.

    Attributes:
        id: User primary key
        email: User email, used to match advisor-of-record bindings
        role: User role
        name: Display name (optional)
    """

    id: int
    email: str
    role: UserRole
    name: str | None = None

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, email={self.email}, role={self.role.value})"


def _is_dev_mode_safe() -> bool:
    """
    Development test tokens require PYTHON_ENV=development in both the
    settings object and the raw environment.
    """
    env_var = os.getenv("PYTHON_ENV", "").lower()
    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var not in ("production", "staging")
    )
    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )
    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()


def _parse_dev_token(token: str) -> CurrentUser | None:
    """
    Parse ``dev-<role>-<id>`` test tokens, e.g. ``dev-advisor-12``.

    Returns None for anything else.
    """
    parts = token.split("-")
    if len(parts) != 3 or parts[0] != "dev":
        return None
    try:
        role = UserRole(parts[1].upper())
        user_id = int(parts[2])
    except ValueError:
        return None
    return CurrentUser(
        id=user_id,
        email=f"{role.value.lower()}-{user_id}@university.dev",
        role=role,
        name=f"Dev {role.value.title()} {user_id}",
    )


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _validate_jwt_token(token: str) -> CurrentUser:
    """
    Validate a JWT and extract the caller.

    Raises:
        HTTPException 401: If the token is invalid, expired or malformed
    """
    if _DEVELOPMENT_MODE:
        dev_user = _parse_dev_token(token)
        if dev_user is not None:
            logger.debug(f"Development mode: using test token for {dev_user}")
            return dev_user

    payload = decode_token(token)
    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    if payload.get("type", "access") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        return CurrentUser(
            id=int(payload["sub"]),
            email=str(payload.get("email", "")).strip().lower(),
            role=UserRole(str(payload.get("role", "")).upper()),
            name=payload.get("name"),
        )
    except (ValueError, KeyError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """FastAPI dependency returning the authenticated caller."""
    return await _validate_jwt_token(credentials.credentials)


def _require_role(user: CurrentUser, *allowed: UserRole) -> CurrentUser:
    if user.role not in allowed:
        logger.warning(
            f"Access denied: user {user.id} ({user.email}) has role '{user.role.value}', "
            f"required one of {[r.value for r in allowed]}"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ROLE_REQUIRED",
                "message": "Your role does not permit this operation.",
            },
        )
    return user


async def get_current_advisor(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Caller must be an academic advisor."""
    return _require_role(user, UserRole.ADVISOR)


async def get_current_career_center(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Caller must be career center staff (admins are accepted too)."""
    return _require_role(user, UserRole.CAREER_CENTER, UserRole.ADMIN)


async def get_current_student(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Caller must be a student."""
    return _require_role(user, UserRole.STUDENT)


__all__ = [
    "CurrentUser",
    "get_current_user",
    "get_current_advisor",
    "get_current_career_center",
    "get_current_student",
]
