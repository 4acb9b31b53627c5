"""
Identity Bridge

Maps verified identity provider claims to a local User row, creating the
row on the first authenticated request.
"""

from typing import Any, Dict
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from chatvault.models.user import User, UserRole
from chatvault.core.security import extract_email
from chatvault.core.exceptions import http_401_unauthorized

logger = logging.getLogger(__name__)


class IdentityService:
    """Resolve (and lazily provision) the local user for a token"""

    def __init__(self, db: Session):
        self.db = db

    def resolve_user(self, claims: Dict[str, Any]) -> User:
        """
        Get or create the user described by verified claims

        Two concurrent first requests for the same identity may both try
        to insert; the loser hits the primary key constraint and reads the
        winner's row instead of failing.

        Args:
            claims: Verified token claims

        Returns:
            User: Existing or newly provisioned user

        Raises:
            HTTPException: 401 if the claims carry no email
            HTTPException: 401 if the account is inactive
        """
        user_id = claims.get("sub")
        email = extract_email(claims)

        if not user_id:
            raise http_401_unauthorized("Invalid token")

        if not email:
            raise http_401_unauthorized("Email not found in token")

        user = self.db.query(User).filter(User.id == user_id).first()

        if not user:
            user = self._provision(user_id, email, claims)

        if not user.is_active:
            raise http_401_unauthorized("User account is inactive")

        return user

    def _provision(self, user_id: str, email: str, claims: Dict[str, Any]) -> User:
        user = User(
            id=user_id,
            email=email,
            first_name=claims.get("first_name") or None,
            last_name=claims.get("last_name") or None,
            role=UserRole.USER,
            is_active=True,
        )
        self.db.add(user)

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"User {user_id} was provisioned concurrently, reloading")
            existing = self.db.query(User).filter(User.id == user_id).first()
            if existing is None:
                raise
            return existing

        self.db.refresh(user)
        logger.info(f"Provisioned new user {user_id}")
        return user
