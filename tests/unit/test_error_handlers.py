"""
Unit tests for centralized error handling

Tests:
- HTTP errors use {"error": detail}
- Validation errors become 400 with field details
- Integrity errors become 400
- Unexpected errors become 500 with stack outside production
- Unknown routes become 404
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

from chatvault.config import settings
from chatvault.core.exceptions import http_404_not_found
from chatvault.utils.error_handlers import setup_error_handlers


class Payload(BaseModel):
    title: str
    count: int


@pytest.fixture
def error_client():
    app = FastAPI()
    setup_error_handlers(app)

    @app.get("/missing")
    async def missing():
        raise http_404_not_found("Chat not found")

    @app.post("/validate")
    async def validate(payload: Payload):
        return payload

    @app.get("/integrity")
    async def integrity():
        raise IntegrityError("INSERT", {}, Exception("duplicate key"))

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.unit
class TestErrorHandlers:
    """Test error response formatting"""

    def test_http_exception(self, error_client):
        response = error_client.get("/missing")

        assert response.status_code == 404
        assert response.json() == {"error": "Chat not found"}

    def test_unknown_route(self, error_client):
        response = error_client.get("/nowhere")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}

    def test_validation_error(self, error_client):
        response = error_client.post("/validate", json={"count": "many"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation failed"
        fields = {detail["field"] for detail in body["details"]}
        assert fields == {"title", "count"}

    def test_integrity_error(self, error_client):
        response = error_client.get("/integrity")

        assert response.status_code == 400
        assert response.json() == {"error": "Data integrity violation"}

    def test_unexpected_error_with_stack(self, error_client):
        response = error_client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Internal Server Error"
        assert "kaboom" in body["stack"]

    def test_unexpected_error_production_hides_stack(self, error_client, monkeypatch):
        monkeypatch.setattr(settings, "ENVIRONMENT", "production")

        response = error_client.get("/boom")

        assert response.json() == {"error": "Internal Server Error"}
