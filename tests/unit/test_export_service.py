"""
Unit tests for the export pipeline

Tests:
- Single-file export resolution
- Archive contents per format
- Missing files skipped, names sanitized and de-duplicated
- Archive removed after streaming, when never streamed, and when stale
"""

import json
import os
import time
import pytest
import zipfile
from datetime import datetime, timezone
from uuid import uuid4
from fastapi import HTTPException

from chatvault.models import Chat
from chatvault.services.export_service import (
    resolve_single_export,
    build_export_archive,
    stream_and_remove,
    remove_archive,
    sweep_stale_archives,
    archive_download_name,
    chat_metadata,
)


def make_export_chat(storage, title="Standup", original=b"# Standup", extension=".md", html=b"<h1>Standup</h1>"):
    """Transient chat with files saved in storage (None skips a file)"""
    chat = Chat(
        id=uuid4(),
        user_id="user_alice",
        title=title,
        chat_date=datetime(2024, 1, 5, tzinfo=timezone.utc),
    )
    if original is not None:
        chat.original_file = storage.save(original, storage.generate_name(extension))
    if html is not None:
        chat.html_file = storage.save(html, storage.generate_name(".html"))
    return chat


def archive_names(path):
    with zipfile.ZipFile(path) as archive:
        return sorted(archive.namelist())


@pytest.mark.unit
class TestSingleExport:
    """Test resolve_single_export"""

    def test_original(self, storage):
        chat = make_export_chat(storage)

        path, name, media_type = resolve_single_export(chat, "original", storage)

        assert os.path.exists(path)
        assert name == "Standup.md"
        assert media_type == "text/markdown"

    def test_html(self, storage):
        chat = make_export_chat(storage)

        path, name, media_type = resolve_single_export(chat, "html", storage)

        assert name == "Standup.html"
        assert media_type == "text/html"

    def test_invalid_format(self, storage):
        with pytest.raises(HTTPException) as exc_info:
            resolve_single_export(make_export_chat(storage), "pdf", storage)

        assert exc_info.value.status_code == 400

    def test_no_html_artifact(self, storage):
        chat = make_export_chat(storage, extension=".txt", html=None)

        with pytest.raises(HTTPException) as exc_info:
            resolve_single_export(chat, "html", storage)

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "No file available for export"

    def test_file_missing_on_disk(self, storage):
        chat = make_export_chat(storage)
        storage.delete(chat.original_file)

        with pytest.raises(HTTPException) as exc_info:
            resolve_single_export(chat, "original", storage)

        assert exc_info.value.detail == "File not found"

    def test_title_sanitized(self, storage):
        chat = make_export_chat(storage, title="../../etc/passwd: notes?")

        _, name, _ = resolve_single_export(chat, "original", storage)

        assert "/" not in name
        assert name.endswith(".md")


@pytest.mark.unit
class TestExportArchive:
    """Test build_export_archive"""

    def test_all_formats(self, storage):
        chat = make_export_chat(storage)

        path = build_export_archive([chat], "all", storage)

        assert archive_names(path) == ["Standup-metadata.json", "Standup.html", "Standup.md"]
        assert os.path.basename(path).startswith("chatvault-selected-export-")
        assert os.path.dirname(path) == str(storage.temp_dir)

    def test_original_only_counts(self, storage):
        # 3 chats, 2 with a stored original
        chats = [
            make_export_chat(storage, title="One"),
            make_export_chat(storage, title="Two"),
            make_export_chat(storage, title="Three", original=None),
        ]

        names = archive_names(build_export_archive(chats, "original", storage))

        assert len([n for n in names if n.endswith(".md")]) == 2
        assert len([n for n in names if n.endswith("-metadata.json")]) == 3
        assert not [n for n in names if n.endswith(".html")]

    def test_html_only(self, storage):
        names = archive_names(build_export_archive([make_export_chat(storage)], "html", storage))

        assert names == ["Standup-metadata.json", "Standup.html"]

    def test_html_upload_added_once(self, storage):
        chat = make_export_chat(storage, original=b"<p>x</p>", extension=".html", html=None)
        chat.html_file = chat.original_file

        names = archive_names(build_export_archive([chat], "all", storage))

        assert names == ["Standup-metadata.json", "Standup.html"]

    def test_missing_files_skipped(self, storage):
        chat = make_export_chat(storage)
        storage.delete(chat.original_file)

        names = archive_names(build_export_archive([chat], "all", storage))

        assert names == ["Standup-metadata.json", "Standup.html"]

    def test_duplicate_titles_deduplicated(self, storage):
        chats = [make_export_chat(storage, title="Same"), make_export_chat(storage, title="Same")]

        names = archive_names(build_export_archive(chats, "original", storage))

        assert names == ["Same (2)-metadata.json", "Same (2).md", "Same-metadata.json", "Same.md"]

    def test_metadata_contents(self, storage):
        chat = make_export_chat(storage)
        chat.notes = "remember"

        path = build_export_archive([chat], "original", storage)
        with zipfile.ZipFile(path) as archive:
            metadata = json.loads(archive.read("Standup-metadata.json"))

        assert metadata["id"] == str(chat.id)
        assert metadata["notes"] == "remember"
        assert metadata["chatDate"].startswith("2024-01-05")
        assert metadata["source"] is None
        assert set(metadata) == {
            "id", "title", "description", "notes", "chatDate",
            "source", "category", "format", "createdAt", "updatedAt",
        }

    def test_invalid_format(self, storage):
        with pytest.raises(HTTPException):
            build_export_archive([make_export_chat(storage)], "pdf", storage)

        assert list(storage.temp_dir.iterdir()) == []

    def test_failure_removes_partial_archive(self, storage, monkeypatch):
        chat = make_export_chat(storage)

        def broken_metadata(chat):
            raise RuntimeError("boom")

        monkeypatch.setattr("chatvault.services.export_service.chat_metadata", broken_metadata)

        with pytest.raises(RuntimeError):
            build_export_archive([chat], "all", storage)

        assert list(storage.temp_dir.iterdir()) == []


@pytest.mark.unit
class TestStreaming:
    """Test stream_and_remove"""

    def test_streams_then_removes(self, storage):
        path = build_export_archive([make_export_chat(storage)], "all", storage)
        with open(path, "rb") as f:
            expected = f.read()

        streamed = b"".join(stream_and_remove(path, chunk_size=16))

        assert streamed == expected
        assert not os.path.exists(path)

    def test_abandoned_stream_removes_file(self, storage):
        path = build_export_archive([make_export_chat(storage)], "all", storage)

        stream = stream_and_remove(path, chunk_size=16)
        next(stream)
        stream.close()

        assert not os.path.exists(path)

    def test_unstarted_stream_removed_by_cleanup(self, storage):
        path = build_export_archive([make_export_chat(storage)], "all", storage)
        stream_and_remove(path)

        assert remove_archive(path) is True
        assert not os.path.exists(path)
        assert remove_archive(path) is False

    def test_sweep_removes_only_stale_archives(self, storage):
        stale = build_export_archive([make_export_chat(storage)], "all", storage)
        fresh = build_export_archive([make_export_chat(storage)], "all", storage)
        other = storage.temp_path("notes.zip")
        with open(other, "wb") as f:
            f.write(b"keep")
        two_hours_ago = time.time() - 2 * 60 * 60
        os.utime(stale, (two_hours_ago, two_hours_ago))
        os.utime(other, (two_hours_ago, two_hours_ago))

        removed = sweep_stale_archives(str(storage.temp_dir))

        assert removed == 1
        assert not os.path.exists(stale)
        assert os.path.exists(fresh)
        assert os.path.exists(other)

    def test_sweep_missing_directory(self, tmp_path):
        assert sweep_stale_archives(str(tmp_path / "absent")) == 0

    def test_download_name(self):
        assert archive_download_name(datetime(2024, 3, 9)) == "chatvault-selected-export-2024-03-09.zip"


def test_chat_metadata_uses_lookup_names(storage):
    from chatvault.models import Source
    chat = make_export_chat(storage)
    chat.source = Source(name="Slack", user_id="user_alice")

    assert chat_metadata(chat)["source"] == "Slack"
