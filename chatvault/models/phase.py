"""
Phase Model - Stage within a Project
"""

from sqlalchemy import Column, String, Text, Boolean, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from chatvault.database import Base


class Phase(Base):
    """
    Phase lookup - unique per (name, project_id)
    """

    __tablename__ = "phases"
    __table_args__ = (
        UniqueConstraint('name', 'project_id', name='uq_phase_name_project'),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    project = relationship("Project", back_populates="phases")
    chats = relationship("Chat", back_populates="phase")

    def __repr__(self):
        return f"<Phase(id={self.id}, name={self.name}, project_id={self.project_id})>"
