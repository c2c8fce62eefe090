from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError
from app.models.user import Role
from app.schemas.auth import Identity
from app.utils.exceptions import Forbidden, Unauthorized
from app.utils.security import decode_token

# Missing headers are reported as 401 by us rather than by HTTPBearer
security = HTTPBearer(auto_error=False)


def _identity_from_token(token: str) -> Identity:
    payload = decode_token(token)
    if payload is None:
        raise Unauthorized("Invalid or expired token")
    try:
        return Identity(
            id=int(payload.get("sub")),
            username=payload.get("name"),
            role=payload.get("role"),
        )
    except (TypeError, ValueError, ValidationError):
        raise Unauthorized("Invalid token claims")


# Dependency to get the current authenticated user
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Identity:
    if credentials is None:
        raise Unauthorized("Not authenticated")
    return _identity_from_token(credentials.credentials)


# Anonymous access allowed, but a presented token must be valid
async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Identity]:
    if credentials is None:
        return None
    return _identity_from_token(credentials.credentials)


def require_role(role: Role):
    """Dependency factory restricting a route to one role"""
    async def checker(current_user: Identity = Depends(get_current_user)) -> Identity:
        if current_user.role != role:
            raise Forbidden(f"{role.value} role required")
        return current_user
    return checker
