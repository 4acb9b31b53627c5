"""
Pytest configuration and shared fixtures for ChatVault tests

Provides:
- In-memory SQLite database per test
- Two tenants (users A and B) and a default set of lookups
- TestClient with database, authentication and storage overridden
- Local storage rooted in a temporary directory
- Stripe webhook signature helper
"""

import os
import tempfile

# Settings are read at import time; point everything at throwaway resources
_TEST_ROOT = tempfile.mkdtemp(prefix="chatvault-tests-")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["CLERK_JWT_KEY"] = ""
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = ""
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_ROOT, "uploads")
os.environ["TEMP_DIR"] = os.path.join(_TEST_ROOT, "temp")

import hashlib
import hmac
import time
import pytest
from typing import Generator
from datetime import datetime, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from chatvault.database import Base, get_db
from chatvault.models import User, UserRole, Source, Category, Project, FileFormat, Chat
from chatvault.schemas.user import CurrentUser
from chatvault.storage.local import LocalStorage


@pytest.fixture
def test_db_engine():
    """Create in-memory SQLite database (fast, isolated per test)"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(test_db_engine) -> Generator[Session, None, None]:
    """Database session bound to the per-test engine"""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def _make_user(db_session, user_id, email, role=UserRole.USER, first_name=None) -> User:
    user = User(
        id=user_id,
        email=email,
        first_name=first_name,
        last_name="Tester",
        role=role,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def user_a(db_session) -> User:
    """First tenant"""
    return _make_user(db_session, "user_alice", "alice@example.com", first_name="Alice")


@pytest.fixture
def user_b(db_session) -> User:
    """Second tenant"""
    return _make_user(db_session, "user_bob", "bob@example.com", first_name="Bob")


@pytest.fixture
def formats_a(db_session, user_a):
    """File formats .md, .txt and .html for user A"""
    formats = {}
    for name in (".md", ".txt", ".html"):
        file_format = FileFormat(user_id=user_a.id, name=name, description=f"{name} files")
        db_session.add(file_format)
        formats[name] = file_format
    db_session.commit()
    return formats


@pytest.fixture
def lookups_a(db_session, user_a):
    """One source, category and project for user A"""
    source = Source(user_id=user_a.id, name="Slack")
    category = Category(user_id=user_a.id, name="Work")
    project = Project(user_id=user_a.id, name="Website Redesign")
    db_session.add_all([source, category, project])
    db_session.commit()
    return {"source": source, "category": category, "project": project}


@pytest.fixture
def make_chat(db_session):
    """Factory inserting a chat row directly"""
    def factory(user, title="Chat", chat_date=None, **fields) -> Chat:
        chat = Chat(
            user_id=user.id,
            title=title,
            chat_date=chat_date or datetime(2024, 1, 5, tzinfo=timezone.utc),
            **fields,
        )
        db_session.add(chat)
        db_session.commit()
        db_session.refresh(chat)
        return chat

    return factory


@pytest.fixture
def storage(tmp_path) -> LocalStorage:
    """Local storage in a per-test temporary directory"""
    return LocalStorage(base_path=str(tmp_path / "uploads"), temp_dir=str(tmp_path / "temp"))


@pytest.fixture
def acting_as(user_a):
    """Mutable holder for the user the test client authenticates as"""
    return {"user": user_a}


@pytest.fixture
def client(db_session, acting_as, storage):
    """Create test client with mocked dependencies"""
    from chatvault.main import app
    from chatvault.api.deps import get_current_user, get_storage

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    def override_get_current_user():
        return CurrentUser.model_validate(acting_as["user"])

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_storage] = lambda: storage

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


@pytest.fixture
def stripe_signature():
    """Build a Stripe-Signature header for a payload"""
    def sign(payload: str, secret: str, timestamp: int = None) -> str:
        timestamp = timestamp or int(time.time())
        signed_payload = f"{timestamp}.{payload}".encode("utf-8")
        digest = hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()
        return f"t={timestamp},v1={digest}"

    return sign


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for API endpoints"
    )
