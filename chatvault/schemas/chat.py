"""
Pydantic Schemas for Chat endpoints
Request/Response validation
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime, timezone
from uuid import UUID

from chatvault.schemas.base import CamelModel
from chatvault.schemas.management import LookupRef
from chatvault.schemas.user import UserSummary


def parse_iso_datetime(value):
    """
    Parse ISO 8601 dates ("2024-01-05", "2024-01-05T10:00:00Z")

    Naive values are taken as UTC.
    """
    if value is None or isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValueError("must be a valid ISO 8601 date")
    else:
        raise ValueError("must be a valid ISO 8601 date")

    if parsed is not None and parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


CLASSIFICATION_FIELDS = (
    "source_id",
    "category_id",
    "subcategory_id",
    "project_id",
    "phase_id",
)


class ChatCreate(CamelModel):
    """Schema for creating a chat without a file"""
    title: str = Field(..., min_length=1, max_length=512)
    chat_date: datetime = Field(..., description="When the conversation took place")
    description: Optional[str] = None
    notes: Optional[str] = None
    source_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    subcategory_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    phase_id: Optional[UUID] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Title is required")
        return value

    @field_validator("chat_date", mode="before")
    @classmethod
    def parse_chat_date(cls, value):
        if value is None:
            raise ValueError("Chat date is required")
        return parse_iso_datetime(value)

    @field_validator(*CLASSIFICATION_FIELDS, mode="before")
    @classmethod
    def empty_id_is_null(cls, value):
        # Forms send "" for an unselected dropdown
        return value or None


class ChatUpdate(CamelModel):
    """Schema for updating a chat (all fields optional, partial update)"""
    title: Optional[str] = Field(None, min_length=1, max_length=512)
    chat_date: Optional[datetime] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    content: Optional[str] = None
    source_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    subcategory_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    phase_id: Optional[UUID] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("Title cannot be empty")
        return value

    @field_validator("chat_date", mode="before")
    @classmethod
    def parse_chat_date(cls, value):
        return parse_iso_datetime(value)

    @field_validator(*CLASSIFICATION_FIELDS, mode="before")
    @classmethod
    def empty_id_is_null(cls, value):
        return value or None


class ChatResponse(CamelModel):
    """Schema for chat responses with embedded classification"""
    id: UUID
    user_id: str
    title: str
    description: Optional[str] = None
    notes: Optional[str] = None
    chat_date: datetime
    content: Optional[str] = None
    original_file: Optional[str] = None
    html_file: Optional[str] = None

    source_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    subcategory_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    phase_id: Optional[UUID] = None
    format_id: Optional[UUID] = None

    source: Optional[LookupRef] = None
    category: Optional[LookupRef] = None
    subcategory: Optional[LookupRef] = None
    project: Optional[LookupRef] = None
    phase: Optional[LookupRef] = None
    format: Optional[LookupRef] = None
    user: Optional[UserSummary] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaginationInfo(CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    has_next_page: bool
    has_previous_page: bool


class ChatListResponse(CamelModel):
    """Schema for paginated list of chats"""
    chats: List[ChatResponse]
    pagination: PaginationInfo


class ExportSelectedRequest(CamelModel):
    """Body of POST /chats/export-selected"""
    chat_ids: List[UUID] = Field(default_factory=list)
    format: str = Field("all", description="all, original or html")


class MessageResponse(BaseModel):
    message: str
