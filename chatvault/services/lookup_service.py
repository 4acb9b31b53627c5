"""
Lookup management service

CRUD for the per-user classification tables (sources, categories,
subcategories, projects, phases, file formats). Every query is scoped to
the calling user; rows owned by someone else behave exactly like rows
that do not exist.
"""

from typing import Dict, List, Optional, Type
from uuid import UUID
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session
import logging

from chatvault.models import (
    Chat,
    Source,
    Category,
    Subcategory,
    Project,
    Phase,
    FileFormat,
)
from chatvault.core.exceptions import http_400_bad_request, http_404_not_found

logger = logging.getLogger(__name__)

# Marks an argument the caller did not send (None clears the field)
UNSET = object()


class LookupKind:
    """How one lookup table is scoped and referenced"""

    def __init__(
        self,
        model,
        label: str,
        chat_column,
        parent_model=None,
        parent_field: Optional[str] = None,
        child_model=None,
        child_field: Optional[str] = None,
        child_chat_column=None,
    ):
        self.model = model
        self.label = label
        self.chat_column = chat_column
        self.parent_model = parent_model
        self.parent_field = parent_field
        self.child_model = child_model
        self.child_field = child_field
        self.child_chat_column = child_chat_column

    @property
    def noun(self) -> str:
        """Lowercase label for messages ("file format")"""
        return self.label.lower()


LOOKUP_KINDS: Dict[Type, LookupKind] = {
    Source: LookupKind(Source, "Source", Chat.source_id),
    Category: LookupKind(
        Category, "Category", Chat.category_id,
        child_model=Subcategory, child_field="category_id", child_chat_column=Chat.subcategory_id,
    ),
    Subcategory: LookupKind(
        Subcategory, "Subcategory", Chat.subcategory_id,
        parent_model=Category, parent_field="category_id",
    ),
    Project: LookupKind(
        Project, "Project", Chat.project_id,
        child_model=Phase, child_field="project_id", child_chat_column=Chat.phase_id,
    ),
    Phase: LookupKind(
        Phase, "Phase", Chat.phase_id,
        parent_model=Project, parent_field="project_id",
    ),
    FileFormat: LookupKind(FileFormat, "File format", Chat.format_id),
}


class LookupService:
    """
    Tenant-scoped CRUD for one lookup model

    Names are unique per user (per parent for subcategories and phases).
    A lookup referenced by any chat cannot be deleted.
    """

    def __init__(self, db: Session, user_id: str, model):
        self.db = db
        self.user_id = user_id
        self.kind = LOOKUP_KINDS[model]
        self.model = model

    def _owned(self):
        return self.db.query(self.model).filter(self.model.user_id == self.user_id)

    def _get_owned(self, lookup_id: UUID):
        item = self._owned().filter(self.model.id == lookup_id).first()
        if not item:
            raise http_404_not_found(f"{self.kind.label} not found")
        return item

    def _get_parent(self, parent_id: UUID):
        parent_model = self.kind.parent_model
        parent = self.db.query(parent_model).filter(
            parent_model.id == parent_id,
            parent_model.user_id == self.user_id
        ).first()

        if not parent:
            raise http_404_not_found(f"{LOOKUP_KINDS[parent_model].label} not found")
        return parent

    def _name_taken(self, name: str, parent_id: Optional[UUID] = None, exclude_id: Optional[UUID] = None) -> bool:
        query = self._owned().filter(self.model.name == name)

        if self.kind.parent_field:
            query = query.filter(getattr(self.model, self.kind.parent_field) == parent_id)

        if exclude_id is not None:
            query = query.filter(self.model.id != exclude_id)

        return query.first() is not None

    def list(self, parent_id: Optional[UUID] = None) -> List:
        """
        List the caller's lookups ordered by name

        Args:
            parent_id: Only children of this category/project (subcategories, phases)

        Returns:
            List of lookup rows
        """
        query = self._owned()

        if parent_id is not None and self.kind.parent_field:
            query = query.filter(getattr(self.model, self.kind.parent_field) == parent_id)

        return query.order_by(self.model.name.asc()).all()

    def create(self, name: str, description: Optional[str] = None, parent_id: Optional[UUID] = None):
        """
        Create a lookup owned by the caller

        Raises:
            HTTPException: 404 if the parent is not the caller's
            HTTPException: 400 if the name is already used in scope
        """
        fields = {"user_id": self.user_id, "name": name, "description": description}

        if self.kind.parent_field:
            self._get_parent(parent_id)
            fields[self.kind.parent_field] = parent_id

        if self._name_taken(name, parent_id):
            raise http_400_bad_request(f"{self.kind.label} already exists")

        item = self.model(**fields)
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)

        logger.info(f"Created {self.kind.noun} '{name}' ({item.id}) for user {self.user_id}")
        return item

    def update(self, lookup_id: UUID, name: Optional[str] = None, description=UNSET):
        """
        Rename and/or re-describe a lookup

        A description of None or "" clears it; leaving it out keeps it.

        Raises:
            HTTPException: 404 if missing or not the caller's
            HTTPException: 400 if the new name is already used in scope
        """
        item = self._get_owned(lookup_id)

        if name is not None and name != item.name:
            parent_id = getattr(item, self.kind.parent_field) if self.kind.parent_field else None
            if self._name_taken(name, parent_id, exclude_id=item.id):
                raise http_400_bad_request(f"{self.kind.label} already exists")
            item.name = name

        if description is not UNSET:
            item.description = description or None

        self.db.commit()
        self.db.refresh(item)
        return item

    def count_references(self, item) -> int:
        """Chats referencing the lookup (directly or through its children)"""
        conditions = [self.kind.chat_column == item.id]

        if self.kind.child_model is not None:
            child_model = self.kind.child_model
            child_ids = select(child_model.id).where(
                getattr(child_model, self.kind.child_field) == item.id
            )
            conditions.append(self.kind.child_chat_column.in_(child_ids))

        return self.db.query(func.count(Chat.id)).filter(or_(*conditions)).scalar()

    def delete(self, lookup_id: UUID) -> None:
        """
        Delete a lookup no chat refers to

        Raises:
            HTTPException: 404 if missing or not the caller's
            HTTPException: 400 if any chat references it
        """
        item = self._get_owned(lookup_id)

        references = self.count_references(item)
        if references:
            logger.warning(
                f"Refusing to delete {self.kind.noun} {item.id}: referenced by {references} chat(s)"
            )
            raise http_400_bad_request(f"Cannot delete {self.kind.noun} that is referenced by chats")

        self.db.delete(item)
        self.db.commit()
        logger.info(f"Deleted {self.kind.noun} {lookup_id} for user {self.user_id}")


def get_owned_lookup(db: Session, user_id: str, model, lookup_id: UUID):
    """
    Fetch one lookup owned by user_id

    Raises:
        HTTPException: 404 "<Label> not found"
    """
    return LookupService(db, user_id, model)._get_owned(lookup_id)
