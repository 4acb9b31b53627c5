"""
Category Model - Top-level classification of chats
"""

from sqlalchemy import Column, String, Text, Boolean, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from chatvault.database import Base


class Category(Base):
    """
    Category lookup - unique per (name, user_id)

    Cascade Delete:
        - Deleting a category deletes its subcategories
    """

    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint('name', 'user_id', name='uq_category_name_user'),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    subcategories = relationship("Subcategory", back_populates="category", cascade="all, delete-orphan")
    chats = relationship("Chat", back_populates="category")

    def __repr__(self):
        return f"<Category(id={self.id}, name={self.name}, user_id={self.user_id})>"
