"""
Unit tests for ChatService

Tests:
- Upload validation order (extension, size, format)
- Markdown/HTML/text upload artifacts
- Classification ownership checks
- Partial updates
- Delete removes stored files
- Pagination and search
"""

import pytest
from datetime import datetime, timedelta, timezone
from fastapi import HTTPException
from pydantic import ValidationError

from chatvault.config import settings
from chatvault.models import Chat, Source
from chatvault.schemas.chat import ChatCreate, ChatUpdate
from chatvault.services.chat_service import ChatService


@pytest.mark.unit
class TestUpload:
    """Test chat uploads"""

    def test_markdown_upload_stores_original_and_html(self, db_session, user_a, formats_a, storage):
        service = ChatService(db_session, user_a.id, storage)

        chat = service.upload_chat("standup.md", b"# Standup\n\n- shipped export", {})

        assert chat.title == "standup.md"
        assert chat.original_file.startswith("file-")
        assert chat.original_file.endswith(".md")
        assert chat.html_file == chat.original_file[:-3] + ".html"
        assert storage.exists(chat.original_file)
        assert storage.exists(chat.html_file)
        assert b"<h1>Standup</h1>" in (storage.base_path / chat.html_file).read_bytes()
        assert chat.content.startswith("# Standup")
        assert chat.format_id == formats_a[".md"].id

    def test_html_upload_is_its_own_rendition(self, db_session, user_a, formats_a, storage):
        chat = ChatService(db_session, user_a.id, storage).upload_chat(
            "page.html", b"<p>hello</p>", {"title": "Page"}
        )

        assert chat.html_file == chat.original_file
        assert chat.title == "Page"

    def test_text_upload_has_no_html(self, db_session, user_a, formats_a, storage):
        chat = ChatService(db_session, user_a.id, storage).upload_chat("log.txt", b"plain", {})

        assert chat.html_file is None
        assert chat.format.name == ".txt"

    def test_disallowed_extension_rejected_before_storing(self, db_session, user_a, formats_a, storage):
        with pytest.raises(HTTPException) as exc_info:
            ChatService(db_session, user_a.id, storage).upload_chat("virus.exe", b"MZ", {})

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Invalid file type. Only .md, .txt, and .html files are allowed."
        assert db_session.query(Chat).count() == 0
        assert list(storage.base_path.iterdir()) == []

    def test_extension_checked_before_format_lookup(self, db_session, user_a, storage):
        # No FileFormat rows at all: the type error still wins
        with pytest.raises(HTTPException) as exc_info:
            ChatService(db_session, user_a.id, storage).upload_chat("virus.exe", b"MZ", {})

        assert "Invalid file type" in exc_info.value.detail

    def test_oversize_rejected(self, db_session, user_a, formats_a, storage, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 10)

        with pytest.raises(HTTPException) as exc_info:
            ChatService(db_session, user_a.id, storage).upload_chat("big.txt", b"x" * 11, {})

        assert exc_info.value.status_code == 400
        assert "too large" in exc_info.value.detail

    def test_missing_file_format_rejected(self, db_session, user_a, storage):
        with pytest.raises(HTTPException) as exc_info:
            ChatService(db_session, user_a.id, storage).upload_chat("notes.md", b"# hi", {})

        assert exc_info.value.detail == "File format .md not supported"
        assert list(storage.base_path.iterdir()) == []

    def test_foreign_classification_rejected(self, db_session, user_a, user_b, formats_a, storage):
        foreign = Source(user_id=user_b.id, name="Bob's")
        db_session.add(foreign)
        db_session.commit()

        with pytest.raises(HTTPException) as exc_info:
            ChatService(db_session, user_a.id, storage).upload_chat(
                "a.md", b"# a", {"source_id": str(foreign.id)}
            )

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "Source not found"
        assert db_session.query(Chat).count() == 0

    def test_malformed_chat_date(self, db_session, user_a, formats_a, storage):
        with pytest.raises(ValidationError):
            ChatService(db_session, user_a.id, storage).upload_chat("a.md", b"# a", {"chat_date": "yesterday"})


@pytest.mark.unit
class TestCreateUpdateDelete:
    """Test chat CRUD"""

    def test_create_with_own_classification(self, db_session, user_a, lookups_a):
        chat = ChatService(db_session, user_a.id).create_chat(ChatCreate(
            title="Kickoff",
            chatDate="2024-02-01T09:30:00Z",
            sourceId=str(lookups_a["source"].id),
        ))

        assert chat.source.name == "Slack"
        assert chat.category is None
        assert chat.chat_date.year == 2024

    def test_create_with_foreign_category(self, db_session, user_a, user_b):
        from chatvault.models import Category
        foreign = Category(user_id=user_b.id, name="Hidden")
        db_session.add(foreign)
        db_session.commit()

        with pytest.raises(HTTPException) as exc_info:
            ChatService(db_session, user_a.id).create_chat(ChatCreate(
                title="x", chatDate="2024-01-01", categoryId=str(foreign.id)
            ))

        assert exc_info.value.detail == "Category not found"

    def test_partial_update_keeps_other_fields(self, db_session, user_a, make_chat):
        chat = make_chat(user_a, title="Old", notes="keep me")

        updated = ChatService(db_session, user_a.id).update_chat(
            chat.id, ChatUpdate.model_validate({"title": "New"})
        )

        assert updated.title == "New"
        assert updated.notes == "keep me"

    def test_update_cannot_clear_title(self, db_session, user_a, make_chat):
        chat = make_chat(user_a)

        with pytest.raises(HTTPException) as exc_info:
            ChatService(db_session, user_a.id).update_chat(chat.id, ChatUpdate.model_validate({"title": None}))

        assert exc_info.value.status_code == 400

    def test_update_foreign_chat_is_not_found(self, db_session, user_a, user_b, make_chat):
        chat = make_chat(user_a)

        with pytest.raises(HTTPException) as exc_info:
            ChatService(db_session, user_b.id).update_chat(chat.id, ChatUpdate.model_validate({"title": "Mine"}))

        assert exc_info.value.status_code == 404

    def test_delete_removes_files_and_tolerates_missing(self, db_session, user_a, formats_a, storage):
        service = ChatService(db_session, user_a.id, storage)
        chat = service.upload_chat("a.md", b"# a", {})
        original, html = chat.original_file, chat.html_file
        storage.delete(html)  # already gone

        service.delete_chat(chat.id)

        assert not storage.exists(original)
        assert db_session.query(Chat).count() == 0


@pytest.mark.unit
class TestListChats:
    """Test listing, pagination and search"""

    def test_pagination(self, db_session, user_a, make_chat):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i in range(12):
            make_chat(user_a, title=f"Chat {i}", chat_date=start + timedelta(days=i))

        chats, pagination = ChatService(db_session, user_a.id).list_chats(page=2, limit=5)

        assert len(chats) == 5
        assert [c.title for c in chats] == ["Chat 6", "Chat 5", "Chat 4", "Chat 3", "Chat 2"]
        assert pagination == {
            "current_page": 2,
            "total_pages": 3,
            "total_count": 12,
            "has_next_page": True,
            "has_previous_page": True,
        }

    def test_search_is_case_insensitive_across_fields(self, db_session, user_a, user_b, make_chat):
        make_chat(user_a, title="Budget review")
        make_chat(user_a, title="Other", notes="mentions BUDGET")
        make_chat(user_a, title="Content hit", content="the budget is tight")
        make_chat(user_a, title="Unrelated")
        make_chat(user_b, title="Budget of Bob")

        chats, pagination = ChatService(db_session, user_a.id).list_chats(search="budget")

        assert pagination["total_count"] == 3
        assert "Budget of Bob" not in [c.title for c in chats]

    @pytest.mark.parametrize("search,expected", [
        ("50%", ["Budget at 50% done"]),
        ("a_b", ["a_b meeting"]),
        ("C:\\temp", ["Path C:\\temp"]),
    ])
    def test_search_matches_wildcards_literally(self, db_session, user_a, make_chat, search, expected):
        make_chat(user_a, title="Budget at 50 percent")
        make_chat(user_a, title="Budget at 50% done")
        make_chat(user_a, title="axb meeting")
        make_chat(user_a, title="a_b meeting")
        make_chat(user_a, title="Path C:\\temp")
        make_chat(user_a, title="Path C:temp")

        chats, _ = ChatService(db_session, user_a.id).list_chats(search=search)

        assert [c.title for c in chats] == expected

    def test_date_range_filter(self, db_session, user_a, make_chat):
        make_chat(user_a, title="Jan", chat_date=datetime(2024, 1, 10, tzinfo=timezone.utc))
        make_chat(user_a, title="Mar", chat_date=datetime(2024, 3, 10, tzinfo=timezone.utc))

        chats, _ = ChatService(db_session, user_a.id).list_chats(
            start_date=datetime(2024, 2, 1, tzinfo=timezone.utc),
            end_date=datetime(2024, 12, 31, tzinfo=timezone.utc),
        )

        assert [c.title for c in chats] == ["Mar"]

    def test_empty_list(self, db_session, user_a):
        chats, pagination = ChatService(db_session, user_a.id).list_chats()

        assert chats == []
        assert pagination["total_pages"] == 0
        assert pagination["has_next_page"] is False
