"""
FileFormat Model - Upload formats a user accepts (".md", ".txt", ".html")
"""

from sqlalchemy import Column, String, Text, Boolean, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from chatvault.database import Base


class FileFormat(Base):
    """
    File format lookup - unique per (name, user_id)

    The name is the file extension including the dot. Uploads are only
    accepted when the caller owns a format matching the file extension.
    """

    __tablename__ = "file_formats"
    __table_args__ = (
        UniqueConstraint('name', 'user_id', name='uq_file_format_name_user'),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    chats = relationship("Chat", back_populates="format")

    def __repr__(self):
        return f"<FileFormat(id={self.id}, name={self.name}, user_id={self.user_id})>"
