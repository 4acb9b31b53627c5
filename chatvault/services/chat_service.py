"""
Chat record service

Listing, CRUD and file upload for archived chats. Every operation is
scoped to one user; classification ids supplied by the caller must point
at the caller's own lookups.
"""

from datetime import datetime, timezone
from math import ceil
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload
import logging

from chatvault.config import settings
from chatvault.models import (
    Chat,
    Source,
    Category,
    Subcategory,
    Project,
    Phase,
    FileFormat,
)
from chatvault.schemas.chat import ChatCreate, ChatUpdate
from chatvault.services.lookup_service import get_owned_lookup
from chatvault.services.markdown_renderer import render_markdown
from chatvault.storage.base import StorageBackend
from chatvault.utils.content_type import file_extension
from chatvault.core.exceptions import http_400_bad_request, http_404_not_found

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Chat column -> lookup model it references
CLASSIFICATION_MODELS = {
    "source_id": Source,
    "category_id": Category,
    "subcategory_id": Subcategory,
    "project_id": Project,
    "phase_id": Phase,
}

CHAT_RELATIONS = (
    Chat.user,
    Chat.source,
    Chat.category,
    Chat.subcategory,
    Chat.project,
    Chat.phase,
    Chat.format,
)

LIKE_ESCAPE = "\\"


def escape_like(text: str) -> str:
    """Search text with LIKE wildcards matched literally"""
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


class ChatService:
    """Tenant-scoped chat operations"""

    def __init__(self, db: Session, user_id: str, storage: Optional[StorageBackend] = None):
        self.db = db
        self.user_id = user_id
        self.storage = storage

    def _query(self):
        return self.db.query(Chat).options(
            *[selectinload(relation) for relation in CHAT_RELATIONS]
        ).filter(Chat.user_id == self.user_id)

    def _check_classification(self, values: Dict[str, Any]) -> None:
        """404 for any classification id that is not the caller's"""
        for field, model in CLASSIFICATION_MODELS.items():
            lookup_id = values.get(field)
            if lookup_id is not None:
                get_owned_lookup(self.db, self.user_id, model, lookup_id)

    def list_chats(
        self,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        search: Optional[str] = None,
        category_id: Optional[UUID] = None,
        source_id: Optional[UUID] = None,
        project_id: Optional[UUID] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Tuple[List[Chat], Dict[str, Any]]:
        """
        List chats newest first with pagination

        Args:
            page: 1-based page number
            limit: Page size (1-100)
            search: Case-insensitive substring of title, description, notes or content
            category_id, source_id, project_id: Exact filters
            start_date, end_date: Inclusive chat_date bounds

        Returns:
            (chats, pagination) where pagination holds current_page, total_pages,
            total_count, has_next_page, has_previous_page
        """
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)

        query = self.db.query(Chat).filter(Chat.user_id == self.user_id)

        if search:
            pattern = f"%{escape_like(search.strip())}%"
            query = query.filter(or_(
                Chat.title.ilike(pattern, escape=LIKE_ESCAPE),
                Chat.description.ilike(pattern, escape=LIKE_ESCAPE),
                Chat.notes.ilike(pattern, escape=LIKE_ESCAPE),
                Chat.content.ilike(pattern, escape=LIKE_ESCAPE),
            ))

        if category_id:
            query = query.filter(Chat.category_id == category_id)
        if source_id:
            query = query.filter(Chat.source_id == source_id)
        if project_id:
            query = query.filter(Chat.project_id == project_id)
        if start_date:
            query = query.filter(Chat.chat_date >= start_date)
        if end_date:
            query = query.filter(Chat.chat_date <= end_date)

        total_count = query.with_entities(func.count(Chat.id)).scalar()

        chats = query.options(
            *[selectinload(relation) for relation in CHAT_RELATIONS]
        ).order_by(
            Chat.chat_date.desc(), Chat.created_at.desc()
        ).offset((page - 1) * limit).limit(limit).all()

        total_pages = ceil(total_count / limit) if total_count else 0
        pagination = {
            "current_page": page,
            "total_pages": total_pages,
            "total_count": total_count,
            "has_next_page": page < total_pages,
            "has_previous_page": page > 1,
        }
        return chats, pagination

    def get_chat(self, chat_id: UUID) -> Chat:
        """
        Get one of the caller's chats

        Raises:
            HTTPException: 404 if missing or owned by another user
        """
        chat = self._query().filter(Chat.id == chat_id).first()
        if not chat:
            raise http_404_not_found("Chat not found")
        return chat

    def get_chats(self, chat_ids: List[UUID]) -> List[Chat]:
        """The caller's chats among chat_ids (foreign and unknown ids dropped)"""
        if not chat_ids:
            return []
        return self._query().filter(Chat.id.in_(chat_ids)).order_by(Chat.chat_date.desc()).all()

    def create_chat(self, data: ChatCreate) -> Chat:
        """
        Create a chat without an uploaded file

        Raises:
            HTTPException: 404 if a classification id is not the caller's
        """
        values = data.model_dump()
        self._check_classification(values)

        chat = Chat(user_id=self.user_id, **values)
        self.db.add(chat)
        self.db.commit()

        logger.info(f"Created chat {chat.id} for user {self.user_id}")
        return self.get_chat(chat.id)

    def update_chat(self, chat_id: UUID, data: ChatUpdate) -> Chat:
        """
        Partially update a chat (only fields present in the request)

        Raises:
            HTTPException: 404 if the chat or a classification id is not the caller's
            HTTPException: 400 if title or chatDate is cleared
        """
        chat = self.get_chat(chat_id)
        values = data.model_dump(exclude_unset=True)

        if "title" in values and not values["title"]:
            raise http_400_bad_request("Title cannot be empty")
        if "chat_date" in values and values["chat_date"] is None:
            raise http_400_bad_request("Chat date is required")

        self._check_classification(values)

        for field, value in values.items():
            setattr(chat, field, value)

        self.db.commit()
        self.db.expire(chat)
        return self.get_chat(chat_id)

    def delete_chat(self, chat_id: UUID) -> None:
        """
        Delete a chat and its stored files

        Files already missing from storage are ignored.

        Raises:
            HTTPException: 404 if missing or owned by another user
        """
        chat = self.get_chat(chat_id)

        if self.storage is not None:
            for stored in {chat.original_file, chat.html_file}:
                if stored:
                    self.storage.delete(stored)

        self.db.delete(chat)
        self.db.commit()
        logger.info(f"Deleted chat {chat_id} for user {self.user_id}")

    def validate_upload(self, filename: str, size: int) -> FileFormat:
        """
        Check an upload before anything is stored

        Returns:
            FileFormat: The caller's format row for the file extension

        Raises:
            HTTPException: 400 for a disallowed extension, oversize file,
                or an extension the caller has no FileFormat for
        """
        extension = file_extension(filename)

        if extension not in settings.ALLOWED_UPLOAD_EXTENSIONS:
            raise http_400_bad_request("Invalid file type. Only .md, .txt, and .html files are allowed.")

        if size > settings.MAX_UPLOAD_SIZE:
            raise http_400_bad_request(
                f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE / 1024 / 1024:.0f}MB"
            )

        file_format = self.db.query(FileFormat).filter(
            FileFormat.user_id == self.user_id,
            func.lower(FileFormat.name) == extension
        ).first()

        if not file_format:
            raise http_400_bad_request(f"File format {extension} not supported")

        return file_format

    def upload_chat(self, filename: str, content: bytes, fields: Dict[str, Any]) -> Chat:
        """
        Store an uploaded chat export and create its chat record

        Markdown uploads get a rendered HTML sibling; HTML uploads are their
        own HTML rendition.

        Args:
            filename: Original client filename
            content: Uploaded bytes
            fields: Optional form fields (title, chatDate, description, notes,
                classification ids); title defaults to the filename and
                chatDate to now

        Returns:
            Chat: Created chat

        Raises:
            HTTPException: 400 on file validation failures
            HTTPException: 404 if a classification id is not the caller's
            pydantic.ValidationError: Malformed form fields
        """
        file_format = self.validate_upload(filename, len(content))
        extension = file_extension(filename)

        values = {key: value for key, value in fields.items() if value not in (None, "")}
        values.setdefault("title", filename)
        values.setdefault("chat_date", datetime.now(timezone.utc))
        data = ChatCreate.model_validate(values)
        self._check_classification(data.model_dump())

        text = content.decode("utf-8", errors="replace")

        stored_name = self.storage.generate_name(extension)
        original_file = self.storage.save(content, stored_name)
        html_file = None

        try:
            if extension == ".md":
                html_name = stored_name[: -len(extension)] + ".html"
                html_file = self.storage.save(render_markdown(text, data.title).encode("utf-8"), html_name)
            elif extension == ".html":
                html_file = original_file

            chat = Chat(
                user_id=self.user_id,
                content=text,
                original_file=original_file,
                html_file=html_file,
                format_id=file_format.id,
                **data.model_dump(),
            )
            self.db.add(chat)
            self.db.commit()

        except Exception as e:
            logger.error(f"Failed to complete upload of {filename}: {e}")
            self.db.rollback()
            self.storage.delete(original_file)
            if html_file and html_file != original_file:
                self.storage.delete(html_file)
            raise

        logger.info(
            f"Stored upload {filename} as {original_file}"
            f"{f' (+{html_file})' if html_file and html_file != original_file else ''} "
            f"for chat {chat.id}"
        )
        return self.get_chat(chat.id)
