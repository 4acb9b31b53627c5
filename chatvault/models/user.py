"""
User Model - Local account mirrored from the identity provider
"""

from sqlalchemy import Column, String, Boolean, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from chatvault.database import Base


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    USER = "USER"


class User(Base):
    """
    User model, provisioned on the first authenticated request

    Attributes:
        id: Identity provider subject id (e.g. "user_2abc...")
        email: User email from the token claims
        first_name, last_name: Optional name claims
        role: ADMIN or USER
        is_active: Whether user can authenticate
        created_at: Account creation timestamp
        updated_at: Last modification timestamp

    Relationships:
        chats: Archived chats (one-to-many)
        subscription: Stripe subscription state (one-to-one)
    """

    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), nullable=False, index=True)
    first_name = Column(String(255))
    last_name = Column(String(255))
    role = Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.USER)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    chats = relationship("Chat", back_populates="user", cascade="all, delete-orphan")
    sources = relationship("Source", cascade="all, delete-orphan")
    categories = relationship("Category", cascade="all, delete-orphan")
    subcategories = relationship("Subcategory", cascade="all, delete-orphan")
    projects = relationship("Project", cascade="all, delete-orphan")
    phases = relationship("Phase", cascade="all, delete-orphan")
    file_formats = relationship("FileFormat", cascade="all, delete-orphan")
    subscription = relationship(
        "Subscription", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
