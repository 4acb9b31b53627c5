"""
Subcategory Model - Classification nested under a Category
"""

from sqlalchemy import Column, String, Text, Boolean, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from chatvault.database import Base


class Subcategory(Base):
    """
    Subcategory lookup - unique per (name, category_id)
    """

    __tablename__ = "subcategories"
    __table_args__ = (
        UniqueConstraint('name', 'category_id', name='uq_subcategory_name_category'),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(UUID(as_uuid=True), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    category = relationship("Category", back_populates="subcategories")
    chats = relationship("Chat", back_populates="subcategory")

    def __repr__(self):
        return f"<Subcategory(id={self.id}, name={self.name}, category_id={self.category_id})>"
