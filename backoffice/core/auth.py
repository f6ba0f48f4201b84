"""
Authentication Utilities

Sign-up, login and passwords live with the external identity provider. This
module only verifies the bearer token it issues and resolves it to a row in
the users table.
"""

import logging
from typing import Callable

from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from .config import get_settings
from .database_client import get_db
from ..models.enums import Role
from ..models.user import User

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer()


def decode_access_token(token: str) -> dict:
    """
    Decode and validate a JWT issued by the identity provider

    Returns:
        Decoded token payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    settings = get_settings()
    options = {"verify_aud": bool(settings.jwt_audience)}
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience or None,
            options=options,
        )
    except JWTError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get the calling user from the bearer token

    The token's "sub" claim is the user_id the identity provider assigned,
    which is also the primary key of the users table.

    Raises:
        HTTPException: 401 for a bad token or unknown user, 403 for a disabled one
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(credentials.credentials)
    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    user = db.get(User, user_id)
    if user is None:
        raise credentials_exception

    if user.is_disabled:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled"
        )

    return user


def require_roles(*roles: Role) -> Callable[..., User]:
    """
    Dependency factory allowing only the given roles

    Usage:
        @router.patch("/{user_id}/role")
        def set_role(..., current_user: User = Depends(require_roles(Role.ADMIN))):
    """
    allowed = {role.value for role in roles}

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed for your role")
        return current_user

    return dependency


def forbid_roles(*roles: Role) -> Callable[..., User]:
    """Dependency factory rejecting the given roles, e.g. guests on write routes."""
    denied = {role.value for role in roles}

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role in denied:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed for your role")
        return current_user

    return dependency
