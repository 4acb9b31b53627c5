"""
Seed a user with the default lookups

Usage:
    python -m chatvault.seed --user-id user_2abc --email admin@example.com [--admin] [--sample-chat]

Idempotent: existing rows (matched by name within their scope) are left
untouched, so the command can be re-run safely.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple
import argparse
import logging
import sys

from sqlalchemy import text
from sqlalchemy.orm import Session

from chatvault.database import SessionLocal, create_tables, engine
from chatvault.models import (
    Chat,
    User,
    UserRole,
    Source,
    Category,
    Subcategory,
    Project,
    Phase,
    FileFormat,
)
from chatvault.services.markdown_renderer import render_markdown
from chatvault.storage import StorageBackend, get_storage_backend
from chatvault.utils.retry import retry_on_database_error

logger = logging.getLogger(__name__)

DEFAULT_SOURCES: List[Tuple[str, str]] = [
    ("WhatsApp", "WhatsApp chat exports"),
    ("Telegram", "Telegram chat exports"),
    ("Discord", "Discord chat exports"),
    ("Slack", "Slack chat exports"),
]

DEFAULT_CATEGORIES: List[Tuple[str, str, List[Tuple[str, str]]]] = [
    ("Work", "Work-related conversations", [
        ("Meetings", "Meeting discussions"),
        ("Planning", "Planning discussions"),
    ]),
    ("Personal", "Personal conversations", []),
    ("Project", "Project-related discussions", []),
]

DEFAULT_PROJECTS: List[Tuple[str, str, List[Tuple[str, str]]]] = [
    ("ChatVault Development", "Development of the ChatVault system", [
        ("Planning", "Initial planning phase"),
        ("Development", "Active development phase"),
        ("Testing", "Testing and quality assurance"),
    ]),
    ("Website Redesign", "Website redesign project", []),
]

DEFAULT_FORMATS: List[Tuple[str, str]] = [
    (".md", "Markdown files"),
    (".txt", "Text files"),
    (".html", "HTML files"),
]

SAMPLE_CHAT_MARKDOWN = """# Sample Chat Export

**Alice:** Did everyone get the agenda?

**Bob:** Yes, looks good. Let's start with the roadmap.
"""


def _get_or_create(db: Session, model, lookup: Dict, defaults: Optional[Dict] = None):
    """Row matching lookup, created with lookup + defaults when absent"""
    instance = db.query(model).filter_by(**lookup).first()
    if instance:
        return instance, False

    instance = model(**lookup, **(defaults or {}))
    db.add(instance)
    db.flush()
    return instance, True


def seed_user(
    db: Session,
    user_id: str,
    email: str,
    admin: bool = False,
    sample_chat: bool = False,
    storage: Optional[StorageBackend] = None,
) -> Dict[str, int]:
    """
    Create the user (if needed) and its default lookups

    Args:
        db: Database session
        user_id: Identity provider subject id
        email: User email
        admin: Give the user the ADMIN role
        sample_chat: Also create one sample chat with stored files
        storage: Storage for the sample chat files

    Returns:
        dict: Number of rows created per table
    """
    created = {"users": 0, "sources": 0, "categories": 0, "subcategories": 0,
               "projects": 0, "phases": 0, "formats": 0, "chats": 0}

    user, is_new = _get_or_create(db, User, {"id": user_id}, {
        "email": email,
        "first_name": "Admin" if admin else None,
        "last_name": "User" if admin else None,
        "role": UserRole.ADMIN if admin else UserRole.USER,
        "is_active": True,
    })
    created["users"] += int(is_new)
    if admin and user.role != UserRole.ADMIN:
        user.role = UserRole.ADMIN

    sources = {}
    for name, description in DEFAULT_SOURCES:
        sources[name], is_new = _get_or_create(
            db, Source, {"user_id": user.id, "name": name}, {"description": description}
        )
        created["sources"] += int(is_new)

    categories = {}
    for name, description, children in DEFAULT_CATEGORIES:
        category, is_new = _get_or_create(
            db, Category, {"user_id": user.id, "name": name}, {"description": description}
        )
        categories[name] = category
        created["categories"] += int(is_new)
        for child_name, child_description in children:
            _, is_new = _get_or_create(
                db, Subcategory,
                {"category_id": category.id, "name": child_name},
                {"user_id": user.id, "description": child_description},
            )
            created["subcategories"] += int(is_new)

    for name, description, children in DEFAULT_PROJECTS:
        project, is_new = _get_or_create(
            db, Project, {"user_id": user.id, "name": name}, {"description": description}
        )
        created["projects"] += int(is_new)
        for child_name, child_description in children:
            _, is_new = _get_or_create(
                db, Phase,
                {"project_id": project.id, "name": child_name},
                {"user_id": user.id, "description": child_description},
            )
            created["phases"] += int(is_new)

    formats = {}
    for name, description in DEFAULT_FORMATS:
        formats[name], is_new = _get_or_create(
            db, FileFormat, {"user_id": user.id, "name": name}, {"description": description}
        )
        created["formats"] += int(is_new)

    if sample_chat:
        exists = db.query(Chat).filter(
            Chat.user_id == user.id,
            Chat.title == "Sample Chat Export"
        ).first()

        if not exists:
            storage = storage or get_storage_backend()
            original_name = storage.generate_name(".md")
            html_name = original_name[: -len(".md")] + ".html"

            db.add(Chat(
                user_id=user.id,
                title="Sample Chat Export",
                description="This is a sample chat export for testing purposes",
                notes="This is a test chat entry",
                chat_date=datetime.now(timezone.utc),
                content=SAMPLE_CHAT_MARKDOWN,
                original_file=storage.save(SAMPLE_CHAT_MARKDOWN.encode("utf-8"), original_name),
                html_file=storage.save(
                    render_markdown(SAMPLE_CHAT_MARKDOWN, "Sample Chat Export").encode("utf-8"),
                    html_name,
                ),
                source_id=sources["WhatsApp"].id,
                category_id=categories["Work"].id,
                format_id=formats[".md"].id,
            ))
            created["chats"] += 1

    db.commit()
    return created


@retry_on_database_error(max_attempts=5)
def wait_for_database():
    """Block until the database accepts connections"""
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m chatvault.seed",
        description="Create a ChatVault user with the default sources, categories, projects and formats",
    )
    parser.add_argument("--user-id", required=True, help="Identity provider subject id (sub claim)")
    parser.add_argument("--email", required=True, help="User email address")
    parser.add_argument("--admin", action="store_true", help="Grant the ADMIN role")
    parser.add_argument("--sample-chat", action="store_true", help="Also create a sample chat")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
    args = parse_args(argv)

    wait_for_database()
    create_tables()

    db = SessionLocal()
    try:
        created = seed_user(
            db,
            user_id=args.user_id,
            email=args.email,
            admin=args.admin,
            sample_chat=args.sample_chat,
        )
    except Exception:
        db.rollback()
        logger.exception("Seeding failed")
        return 1
    finally:
        db.close()

    summary = ", ".join(f"{table}={count}" for table, count in created.items())
    logger.info(f"Seeded user {args.user_id}: created {summary}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
