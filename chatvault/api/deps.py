"""
FastAPI dependencies
Authentication, roles, storage
"""

from fastapi import Depends, Header
from sqlalchemy.orm import Session
from typing import Optional
import logging

import jwt

from chatvault.database import get_db
from chatvault.models.user import UserRole
from chatvault.schemas.user import CurrentUser
from chatvault.core.security import verify_session_token, TokenKeyNotConfigured
from chatvault.core.exceptions import (
    http_401_unauthorized,
    http_403_forbidden,
    http_500_not_configured,
)
from chatvault.services.identity_service import IdentityService
from chatvault.utils.sanitize import mask_token

logger = logging.getLogger(__name__)


async def get_current_user(
    authorization: Optional[str] = Header(None, description="Bearer token"),
    db: Session = Depends(get_db)
) -> CurrentUser:
    """
    Get current authenticated user from the identity provider token

    The local user row is created on the first authenticated request.

    Args:
        authorization: Authorization header (format: "Bearer <jwt>")
        db: Database session

    Returns:
        CurrentUser: Minimal descriptor of the caller

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
        HTTPException: 401 if the account is inactive
        HTTPException: 500 if no verification key is configured
    """
    token = None
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer":
            token = credentials.strip()

    if not token:
        raise http_401_unauthorized("Access token required")

    try:
        claims = verify_session_token(token)
    except TokenKeyNotConfigured:
        logger.error("CLERK_JWT_KEY missing, cannot authenticate requests")
        raise http_500_not_configured("Authentication provider key")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Token verification failed for {mask_token(token)}: {e}")
        raise http_401_unauthorized("Invalid or expired token")

    user = IdentityService(db).resolve_user(claims)

    return CurrentUser.model_validate(user)


def require_role(*roles: UserRole):
    """
    Build a dependency that only admits the given roles

    Returns:
        Dependency returning the current user

    Raises:
        HTTPException: 403 if the caller's role is not allowed
    """
    async def dependency(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in roles:
            raise http_403_forbidden("Insufficient permissions")
        return current_user

    return dependency


require_user = require_role(UserRole.ADMIN, UserRole.USER)


# ==============================================================================
# Service Singletons
# ==============================================================================

from functools import lru_cache


@lru_cache(maxsize=1)
def get_storage():
    """
    Get singleton LocalStorage instance

    Returns:
        LocalStorage: Upload and temp directory storage
    """
    from chatvault.storage import get_storage_backend
    return get_storage_backend()
