"""
Chat export

Single-file downloads and ZIP archives of selected chats. Archives are
written to the temp directory and removed once they have been streamed.
"""

from datetime import datetime
from typing import Dict, Iterator, List, Optional, Set, Tuple
import json
import logging
import os
import time
import zipfile

from chatvault.models import Chat
from chatvault.storage.base import StorageBackend
from chatvault.utils.content_type import detect_content_type, file_extension
from chatvault.utils.sanitize import safe_filename
from chatvault.core.exceptions import http_400_bad_request, http_404_not_found

logger = logging.getLogger(__name__)

SINGLE_EXPORT_FORMATS = ("original", "html")
ARCHIVE_EXPORT_FORMATS = ("all", "original", "html")

ARCHIVE_PREFIX = "chatvault-selected-export"
STREAM_CHUNK_SIZE = 64 * 1024
STALE_ARCHIVE_SECONDS = 60 * 60


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _name_of(lookup) -> Optional[str]:
    return lookup.name if lookup is not None else None


def chat_metadata(chat: Chat) -> Dict:
    """Metadata document written next to each exported chat"""
    return {
        "id": str(chat.id),
        "title": chat.title,
        "description": chat.description,
        "notes": chat.notes,
        "chatDate": _isoformat(chat.chat_date),
        "source": _name_of(chat.source),
        "category": _name_of(chat.category),
        "format": _name_of(chat.format),
        "createdAt": _isoformat(chat.created_at),
        "updatedAt": _isoformat(chat.updated_at),
    }


def resolve_single_export(chat: Chat, export_format: str, storage: StorageBackend) -> Tuple[str, str, str]:
    """
    Locate the file to download for one chat

    Args:
        chat: Chat owned by the caller
        export_format: "original" or "html"
        storage: Storage holding the chat's files

    Returns:
        (absolute path, download filename, media type)

    Raises:
        HTTPException: 400 for any other format
        HTTPException: 404 "No file available for export" if the chat has no such file
        HTTPException: 404 "File not found" if the file is gone from storage
    """
    if export_format not in SINGLE_EXPORT_FORMATS:
        raise http_400_bad_request("Invalid format specified")

    if export_format == "html":
        stored = chat.html_file
        extension = ".html"
    else:
        stored = chat.original_file
        extension = file_extension(stored or "")

    if not stored:
        raise http_404_not_found("No file available for export")

    if not storage.exists(stored):
        logger.warning(f"Export of chat {chat.id}: stored file {stored} is missing")
        raise http_404_not_found("File not found")

    download_name = f"{safe_filename(chat.title)}{extension}"
    return storage.get_local_path(stored), download_name, detect_content_type(download_name)


def _unique_name(name: str, used: Set[str]) -> str:
    """name, or "name (2).ext", "name (3).ext"... if already used in the archive"""
    if name not in used:
        used.add(name)
        return name

    stem, extension = os.path.splitext(name)
    if stem.endswith("-metadata"):
        stem, extension = stem[: -len("-metadata")], "-metadata" + extension

    counter = 2
    while f"{stem} ({counter}){extension}" in used:
        counter += 1

    unique = f"{stem} ({counter}){extension}"
    used.add(unique)
    return unique


def build_export_archive(chats: List[Chat], export_format: str, storage: StorageBackend) -> str:
    """
    Write a ZIP archive of the given chats

    Per chat the archive holds the original upload (format all|original),
    the HTML rendition (format all|html) and always a metadata JSON.
    Files missing from storage are skipped.

    Args:
        chats: Chats owned by the caller
        export_format: "all", "original" or "html"
        storage: Storage holding the chats' files

    Returns:
        str: Path of the archive in the temp directory

    Raises:
        HTTPException: 400 for an unknown format
    """
    if export_format not in ARCHIVE_EXPORT_FORMATS:
        raise http_400_bad_request("Invalid format specified")

    archive_name = storage.generate_name(".zip", prefix=ARCHIVE_PREFIX)
    archive_path = storage.temp_path(archive_name)
    used_names: Set[str] = set()
    included = 0

    try:
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
            for chat in chats:
                base_name = safe_filename(chat.title)

                if export_format in ("all", "original") and chat.original_file:
                    if storage.exists(chat.original_file):
                        entry = _unique_name(f"{base_name}{file_extension(chat.original_file)}", used_names)
                        archive.write(storage.get_local_path(chat.original_file), entry)
                        included += 1
                    else:
                        logger.warning(f"Export: original file {chat.original_file} of chat {chat.id} is missing, skipped")

                # .html uploads are their own rendition; add them once
                wants_html = export_format == "html" or (
                    export_format == "all" and chat.html_file != chat.original_file
                )
                if wants_html and chat.html_file:
                    if storage.exists(chat.html_file):
                        entry = _unique_name(f"{base_name}.html", used_names)
                        archive.write(storage.get_local_path(chat.html_file), entry)
                        included += 1
                    else:
                        logger.warning(f"Export: HTML file {chat.html_file} of chat {chat.id} is missing, skipped")

                metadata_entry = _unique_name(f"{base_name}-metadata.json", used_names)
                archive.writestr(metadata_entry, json.dumps(chat_metadata(chat), indent=2, ensure_ascii=False))

    except Exception as e:
        logger.error(f"Failed to build export archive {archive_path}: {e}")
        if os.path.exists(archive_path):
            os.remove(archive_path)
        raise

    logger.info(
        f"Built export archive {archive_name}: {len(chats)} chat(s), "
        f"{included} file(s), format={export_format}"
    )
    return archive_path


def stream_and_remove(path: str, chunk_size: int = STREAM_CHUNK_SIZE) -> Iterator[bytes]:
    """
    Yield a file in chunks and delete it afterwards

    The file is removed when the stream completes, fails or is
    abandoned by the client.
    """
    try:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                yield chunk
    finally:
        remove_archive(path)


def remove_archive(path: str) -> bool:
    """Delete a temporary archive (already gone is fine)"""
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    logger.debug(f"Removed temporary archive {path}")
    return True


def sweep_stale_archives(temp_dir: str, max_age_seconds: int = STALE_ARCHIVE_SECONDS) -> int:
    """
    Remove export archives left behind in the temp directory

    Archives whose download never started are not cleaned up by the
    stream, so they are collected here at startup.

    Returns:
        int: Number of archives removed
    """
    if not os.path.isdir(temp_dir):
        return 0

    cutoff = time.time() - max_age_seconds
    removed = 0
    for entry in os.scandir(temp_dir):
        if not (entry.is_file() and entry.name.startswith(ARCHIVE_PREFIX) and entry.name.endswith(".zip")):
            continue
        if entry.stat().st_mtime < cutoff and remove_archive(entry.path):
            removed += 1

    if removed:
        logger.info(f"Removed {removed} stale export archive(s) from {temp_dir}")
    return removed


def archive_download_name(today: Optional[datetime] = None) -> str:
    """Attachment name for a selected-chats archive"""
    today = today or datetime.now()
    return f"{ARCHIVE_PREFIX}-{today.strftime('%Y-%m-%d')}.zip"
