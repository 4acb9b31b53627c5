"""
Pydantic Schemas for the authenticated caller
"""

from typing import Optional

from chatvault.models.user import UserRole
from chatvault.schemas.base import CamelModel


class CurrentUser(CamelModel):
    """Minimal user descriptor attached to each authenticated request"""
    id: str
    email: str
    role: UserRole
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserSummary(CamelModel):
    """User embedded in chat responses"""
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
