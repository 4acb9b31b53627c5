"""
Pydantic Schemas for lookup management endpoints
Sources, categories, subcategories, projects, phases, file formats
"""

from pydantic import Field, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID

from chatvault.schemas.base import CamelModel


class LookupRef(CamelModel):
    """Id/name pair embedded in other responses"""
    id: UUID
    name: str


class LookupBase(CamelModel):
    """Base schema with common fields"""
    name: str = Field(..., min_length=1, max_length=255, description="Unique within scope")
    description: Optional[str] = Field(None, description="Optional description")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class LookupCreate(LookupBase):
    """Schema for creating a source, category, project or file format"""
    pass


class SubcategoryCreate(LookupBase):
    """Schema for creating a subcategory under a category"""
    category_id: UUID = Field(..., description="Parent category")


class PhaseCreate(LookupBase):
    """Schema for creating a phase under a project"""
    project_id: UUID = Field(..., description="Parent project")


class LookupUpdate(CamelModel):
    """Schema for updating a lookup (all fields optional)"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Name cannot be empty")
        return value


class LookupResponse(CamelModel):
    """Schema for lookup responses"""
    id: UUID
    user_id: str
    name: str
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SubcategoryResponse(LookupResponse):
    category_id: UUID
    category: Optional[LookupRef] = None


class PhaseResponse(LookupResponse):
    project_id: UUID
    project: Optional[LookupRef] = None
