"""
Chat Model - Archived conversation and its stored files
"""

from sqlalchemy import Column, String, Text, ForeignKey, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from chatvault.database import Base


class Chat(Base):
    """
    Chat model - one archived chat export owned by a single user

    Attributes:
        id: Unique chat identifier (UUID)
        user_id: Owning user (tenant)

        title: Display title (defaults to the uploaded filename)
        description, notes: Free text
        chat_date: When the conversation took place
        content: Raw text of the uploaded export

        original_file: Stored name of the uploaded file (under UPLOAD_DIR)
        html_file: Stored name of the HTML rendition (under UPLOAD_DIR)

        source_id, category_id, subcategory_id,
        project_id, phase_id, format_id: Optional classification

        created_at: Creation timestamp
        updated_at: Last modification timestamp

    Lookup rows referenced here cannot be deleted (checked by the
    management endpoints before delete).
    """

    __tablename__ = "chats"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(512), nullable=False)
    description = Column(Text)
    notes = Column(Text)
    chat_date = Column(DateTime(timezone=True), nullable=False, index=True)
    content = Column(Text)

    # Stored files
    original_file = Column(String(512))
    html_file = Column(String(512))

    # Classification
    source_id = Column(UUID(as_uuid=True), ForeignKey("sources.id"), nullable=True, index=True)
    category_id = Column(UUID(as_uuid=True), ForeignKey("categories.id"), nullable=True, index=True)
    subcategory_id = Column(UUID(as_uuid=True), ForeignKey("subcategories.id"), nullable=True, index=True)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id"), nullable=True, index=True)
    phase_id = Column(UUID(as_uuid=True), ForeignKey("phases.id"), nullable=True, index=True)
    format_id = Column(UUID(as_uuid=True), ForeignKey("file_formats.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="chats")
    source = relationship("Source", back_populates="chats")
    category = relationship("Category", back_populates="chats")
    subcategory = relationship("Subcategory", back_populates="chats")
    project = relationship("Project", back_populates="chats")
    phase = relationship("Phase", back_populates="chats")
    format = relationship("FileFormat", back_populates="chats")

    def __repr__(self):
        return f"<Chat(id={self.id}, title={self.title}, user_id={self.user_id})>"
