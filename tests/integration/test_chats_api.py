"""
Integration tests for Chat API endpoints

Tests:
- Create/get/update/delete over HTTP with camelCase payloads
- Upload (.md/.html/.txt accepted, .exe rejected)
- Pagination and search
- Tenant isolation
"""

import pytest
from datetime import datetime, timedelta, timezone

from chatvault.models import Chat


@pytest.mark.integration
class TestChatCRUD:
    """Integration tests for chat records"""

    def test_standup_scenario(self, client):
        created = client.post("/api/chats", json={"title": "Standup 2024-01-05", "chatDate": "2024-01-05"})

        assert created.status_code == 201
        body = created.json()
        for field in ("sourceId", "categoryId", "subcategoryId", "projectId", "phaseId", "formatId"):
            assert body[field] is None
        assert body["chatDate"].startswith("2024-01-05")

        fetched = client.get(f"/api/chats/{body['id']}")
        assert fetched.status_code == 200
        record = fetched.json()
        assert record["id"] == body["id"]
        assert record["title"] == "Standup 2024-01-05"
        for relation in ("source", "category", "subcategory", "project", "phase", "format"):
            assert record[relation] is None
        assert record["user"] == {"id": "user_alice", "firstName": "Alice", "lastName": "Tester"}

    def test_create_requires_title_and_date(self, client):
        response = client.post("/api/chats", json={"description": "no title"})

        assert response.status_code == 400
        fields = {detail["field"] for detail in response.json()["details"]}
        assert {"title", "chatDate"} <= fields

    def test_invalid_date_rejected(self, client):
        response = client.post("/api/chats", json={"title": "x", "chatDate": "not a date"})

        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"

    def test_create_with_classification(self, client, lookups_a):
        response = client.post("/api/chats", json={
            "title": "Classified",
            "chatDate": "2024-03-01T10:00:00Z",
            "sourceId": str(lookups_a["source"].id),
            "categoryId": str(lookups_a["category"].id),
            "projectId": "",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["source"]["name"] == "Slack"
        assert body["category"]["name"] == "Work"
        assert body["project"] is None

    def test_partial_update(self, client):
        chat = client.post("/api/chats", json={"title": "Old", "chatDate": "2024-01-05", "notes": "keep"}).json()

        response = client.put(f"/api/chats/{chat['id']}", json={"title": "New", "chatDate": "2024-02-02"})

        assert response.status_code == 200
        assert response.json()["title"] == "New"
        assert response.json()["notes"] == "keep"
        assert response.json()["chatDate"].startswith("2024-02-02")

    def test_update_empty_title_rejected(self, client):
        chat = client.post("/api/chats", json={"title": "Old", "chatDate": "2024-01-05"}).json()

        response = client.put(f"/api/chats/{chat['id']}", json={"title": ""})

        assert response.status_code == 400

    def test_delete(self, client):
        chat = client.post("/api/chats", json={"title": "Bye", "chatDate": "2024-01-05"}).json()

        response = client.delete(f"/api/chats/{chat['id']}")

        assert response.status_code == 200
        assert response.json() == {"message": "Chat deleted successfully"}
        assert client.get(f"/api/chats/{chat['id']}").status_code == 404

    def test_tenant_isolation(self, client, acting_as, user_b):
        chat = client.post("/api/chats", json={"title": "Alice only", "chatDate": "2024-01-05"}).json()

        acting_as["user"] = user_b
        assert client.get(f"/api/chats/{chat['id']}").status_code == 404
        assert client.get(f"/api/chats/{chat['id']}").json() == {"error": "Chat not found"}
        assert client.put(f"/api/chats/{chat['id']}", json={"title": "Mine"}).status_code == 404
        assert client.delete(f"/api/chats/{chat['id']}").status_code == 404
        assert client.get("/api/chats").json()["pagination"]["totalCount"] == 0

    def test_malformed_id(self, client):
        assert client.get("/api/chats/not-a-uuid").status_code == 400


@pytest.mark.integration
class TestChatList:
    """Integration tests for listing"""

    def test_pagination(self, client, user_a, make_chat):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i in range(12):
            make_chat(user_a, title=f"Chat {i}", chat_date=start + timedelta(days=i))

        response = client.get("/api/chats", params={"page": 2, "limit": 5})

        assert response.status_code == 200
        body = response.json()
        assert len(body["chats"]) == 5
        assert body["pagination"] == {
            "currentPage": 2,
            "totalPages": 3,
            "totalCount": 12,
            "hasNextPage": True,
            "hasPreviousPage": True,
        }

    @pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"limit": 101}])
    def test_pagination_bounds(self, client, params):
        assert client.get("/api/chats", params=params).status_code == 400

    def test_search_and_filters(self, client, user_a, make_chat, lookups_a):
        make_chat(user_a, title="Quarterly planning", category_id=lookups_a["category"].id)
        make_chat(user_a, title="Lunch", notes="planning the menu")
        make_chat(user_a, title="Other")

        by_search = client.get("/api/chats", params={"search": "PLANNING"}).json()
        assert by_search["pagination"]["totalCount"] == 2

        by_category = client.get("/api/chats", params={"categoryId": str(lookups_a["category"].id)}).json()
        assert [c["title"] for c in by_category["chats"]] == ["Quarterly planning"]

    def test_date_filter_validation(self, client):
        response = client.get("/api/chats", params={"startDate": "soon"})

        assert response.status_code == 400
        assert response.json() == {"error": "startDate must be a valid ISO 8601 date"}


@pytest.mark.integration
class TestChatUpload:
    """Integration tests for /api/chats/upload"""

    def test_markdown_upload(self, client, formats_a, storage):
        response = client.post(
            "/api/chats/upload",
            files={"file": ("standup.md", b"# Standup\n\n- shipped", "text/markdown")},
            data={"title": "Standup", "chatDate": "2024-01-05"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Standup"
        assert body["format"]["name"] == ".md"
        assert storage.exists(body["originalFile"])
        assert storage.exists(body["htmlFile"])
        assert body["htmlFile"] != body["originalFile"]

    def test_title_defaults_to_filename(self, client, formats_a):
        response = client.post("/api/chats/upload", files={"file": ("notes.txt", b"hello", "text/plain")})

        assert response.status_code == 201
        assert response.json()["title"] == "notes.txt"
        assert response.json()["htmlFile"] is None
        assert response.json()["content"] == "hello"

    def test_exe_rejected_before_any_record(self, client, formats_a, db_session, storage):
        response = client.post(
            "/api/chats/upload",
            files={"file": ("setup.exe", b"MZ\x90\x00", "application/octet-stream")},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid file type. Only .md, .txt, and .html files are allowed."}
        assert db_session.query(Chat).count() == 0
        assert list(storage.base_path.iterdir()) == []

    def test_unsupported_format_for_user(self, client):
        response = client.post("/api/chats/upload", files={"file": ("a.md", b"# a", "text/markdown")})

        assert response.status_code == 400
        assert response.json() == {"error": "File format .md not supported"}

    def test_missing_file(self, client):
        response = client.post("/api/chats/upload", data={"title": "no file"})

        assert response.status_code == 400

    def test_invalid_form_date(self, client, formats_a):
        response = client.post(
            "/api/chats/upload",
            files={"file": ("a.md", b"# a", "text/markdown")},
            data={"chatDate": "tomorrow-ish"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"
