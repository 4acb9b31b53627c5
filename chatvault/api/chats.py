"""
Chat API endpoints
CRUD, file upload and export of archived chats
"""

from fastapi import APIRouter, Depends, Query, Request, status, UploadFile, File, Form
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, StreamingResponse
from starlette.background import BackgroundTask
from pydantic import ValidationError
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional
from uuid import UUID
import logging

from chatvault.database import get_db
from chatvault.api.deps import require_user, get_storage
from chatvault.schemas.user import CurrentUser
from chatvault.schemas.chat import (
    ChatCreate,
    ChatUpdate,
    ChatResponse,
    ChatListResponse,
    ExportSelectedRequest,
    MessageResponse,
    parse_iso_datetime,
)
from chatvault.services.chat_service import ChatService, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from chatvault.services.export_service import (
    ARCHIVE_EXPORT_FORMATS,
    resolve_single_export,
    build_export_archive,
    stream_and_remove,
    remove_archive,
    archive_download_name,
)
from chatvault.storage.base import StorageBackend
from chatvault.middleware.rate_limiter import upload_rate_limit
from chatvault.core.exceptions import http_400_bad_request, http_404_not_found

router = APIRouter(prefix="/chats", tags=["chats"])
logger = logging.getLogger(__name__)


def _date_param(value: Optional[str], field: str) -> Optional[datetime]:
    try:
        return parse_iso_datetime(value) if value else None
    except ValueError:
        raise http_400_bad_request(f"{field} must be a valid ISO 8601 date")


@router.get("", response_model=ChatListResponse)
async def list_chats(
    page: int = Query(1, ge=1, description="Page number (1-based)"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Chats per page"),
    search: Optional[str] = Query(None, description="Search title, description, notes and content"),
    category_id: Optional[UUID] = Query(None, alias="categoryId"),
    source_id: Optional[UUID] = Query(None, alias="sourceId"),
    project_id: Optional[UUID] = Query(None, alias="projectId"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_user)
):
    """
    List the caller's chats, newest chat date first

    Args:
        page: Page number (>= 1)
        limit: Page size (1-100)
        search: Case-insensitive substring filter
        category_id, source_id, project_id: Exact filters
        start_date, end_date: ISO 8601 bounds on chatDate (inclusive)
        db: Database session
        current_user: Authenticated user

    Returns:
        ChatListResponse: Chats plus pagination info
    """
    chats, pagination = ChatService(db, current_user.id).list_chats(
        page=page,
        limit=limit,
        search=search,
        category_id=category_id,
        source_id=source_id,
        project_id=project_id,
        start_date=_date_param(start_date, "startDate"),
        end_date=_date_param(end_date, "endDate"),
    )

    return ChatListResponse(
        chats=[ChatResponse.model_validate(chat) for chat in chats],
        pagination=pagination,
    )


@router.post("", response_model=ChatResponse, status_code=status.HTTP_201_CREATED)
async def create_chat(
    chat: ChatCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_user)
):
    """
    Create a chat record without a file

    Args:
        chat: Title, chatDate and optional classification
        db: Database session
        current_user: Authenticated user

    Returns:
        ChatResponse: Created chat

    Raises:
        HTTPException: 404 if a classification id does not belong to the caller
    """
    return ChatService(db, current_user.id).create_chat(chat)


@router.post("/upload", response_model=ChatResponse, status_code=status.HTTP_201_CREATED)
@upload_rate_limit()
async def upload_chat(
    request: Request,
    file: UploadFile = File(..., description="Chat export (.md, .txt or .html)"),
    title: Optional[str] = Form(None),
    chat_date: Optional[str] = Form(None, alias="chatDate"),
    description: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    source_id: Optional[str] = Form(None, alias="sourceId"),
    category_id: Optional[str] = Form(None, alias="categoryId"),
    subcategory_id: Optional[str] = Form(None, alias="subcategoryId"),
    project_id: Optional[str] = Form(None, alias="projectId"),
    phase_id: Optional[str] = Form(None, alias="phaseId"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_user),
    storage: StorageBackend = Depends(get_storage)
):
    """
    Upload a chat export and create its chat record

    Markdown files are rendered to HTML alongside the original.

    Args:
        request: Incoming request (rate limiting)
        file: Uploaded file
        title: Defaults to the filename
        chat_date: ISO 8601, defaults to now
        description, notes: Optional text
        source_id .. phase_id: Optional classification
        db: Database session
        current_user: Authenticated user
        storage: File storage

    Returns:
        ChatResponse: Created chat

    Raises:
        HTTPException: 400 for a disallowed type, oversize file or unknown format
        HTTPException: 404 if a classification id does not belong to the caller
    """
    content = await file.read()

    fields = {
        "title": title,
        "chat_date": chat_date,
        "description": description,
        "notes": notes,
        "source_id": source_id,
        "category_id": category_id,
        "subcategory_id": subcategory_id,
        "project_id": project_id,
        "phase_id": phase_id,
    }

    try:
        return ChatService(db, current_user.id, storage).upload_chat(file.filename or "", content, fields)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


@router.post("/export-selected")
async def export_selected_chats(
    export_request: ExportSelectedRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_user),
    storage: StorageBackend = Depends(get_storage)
):
    """
    Download a ZIP archive of selected chats

    Args:
        export_request: chatIds and format (all, original or html)
        db: Database session
        current_user: Authenticated user
        storage: File storage

    Returns:
        StreamingResponse: application/zip attachment

    Raises:
        HTTPException: 400 if no ids are given or the format is unknown
        HTTPException: 404 if none of the ids is one of the caller's chats
    """
    if not export_request.chat_ids:
        raise http_400_bad_request("No chat IDs provided")

    if export_request.format not in ARCHIVE_EXPORT_FORMATS:
        raise http_400_bad_request("Invalid format specified")

    chats = ChatService(db, current_user.id).get_chats(export_request.chat_ids)
    if not chats:
        raise http_404_not_found("No chats found to export")

    archive_path = build_export_archive(chats, export_request.format, storage)
    download_name = archive_download_name()

    logger.info(f"User {current_user.id} exporting {len(chats)} chat(s) as {download_name}")

    return StreamingResponse(
        stream_and_remove(archive_path),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{download_name}"'},
        background=BackgroundTask(remove_archive, archive_path)
    )


@router.get("/{chat_id}", response_model=ChatResponse)
async def get_chat(
    chat_id: UUID,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_user)
):
    """
    Get a chat by ID

    Raises:
        HTTPException: 404 if not found or owned by another user
    """
    return ChatService(db, current_user.id).get_chat(chat_id)


@router.put("/{chat_id}", response_model=ChatResponse)
async def update_chat(
    chat_id: UUID,
    chat_update: ChatUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_user)
):
    """
    Update chat fields (partial update)

    Only fields present in the request body are changed.

    Raises:
        HTTPException: 404 if the chat or a classification id is not the caller's
        HTTPException: 400 if title or chatDate is cleared
    """
    return ChatService(db, current_user.id).update_chat(chat_id, chat_update)


@router.delete("/{chat_id}", response_model=MessageResponse)
async def delete_chat(
    chat_id: UUID,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_user),
    storage: StorageBackend = Depends(get_storage)
):
    """
    Delete a chat together with its stored files

    Raises:
        HTTPException: 404 if not found or owned by another user
    """
    ChatService(db, current_user.id, storage).delete_chat(chat_id)
    return MessageResponse(message="Chat deleted successfully")


@router.get("/{chat_id}/export")
async def export_chat(
    chat_id: UUID,
    format: str = Query("original", description="original or html"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_user),
    storage: StorageBackend = Depends(get_storage)
):
    """
    Download one chat's original upload or its HTML rendition

    Raises:
        HTTPException: 400 for an unknown format
        HTTPException: 404 if the chat, its file, or the stored file is missing
    """
    chat = ChatService(db, current_user.id).get_chat(chat_id)
    path, download_name, media_type = resolve_single_export(chat, format, storage)

    return FileResponse(path, media_type=media_type, filename=download_name)
