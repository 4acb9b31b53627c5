"""
SQLAlchemy Database Models

Lookup and chat records use UUID primary keys. Users are keyed by the
identity provider's subject id so the Identity Bridge can resolve them
without a mapping table.

Models:
    - User: Local account mirrored from the identity provider
    - Chat: Archived conversation with optional stored files
    - Source, Category, Project, FileFormat: Per-user lookup tables
    - Subcategory: Lookup nested under a Category
    - Phase: Lookup nested under a Project
    - Subscription: Stripe subscription state (one per user)

Relationships:
    User 1:N Chat
    User 1:N Source, Category, Subcategory, Project, Phase, FileFormat
    User 1:1 Subscription
    Category 1:N Subcategory
    Project 1:N Phase
    Source/Category/Subcategory/Project/Phase/FileFormat 1:N Chat (optional)

Cascade Deletes:
    - Delete User → Delete all chats, lookups and the subscription
    - Delete Category → Delete its Subcategories
    - Delete Project → Delete its Phases
    - Lookups referenced by chats are never deleted (checked before delete)
"""

from chatvault.models.user import User, UserRole
from chatvault.models.source import Source
from chatvault.models.category import Category
from chatvault.models.subcategory import Subcategory
from chatvault.models.project import Project
from chatvault.models.phase import Phase
from chatvault.models.file_format import FileFormat
from chatvault.models.chat import Chat
from chatvault.models.subscription import Subscription

__all__ = [
    "User",
    "UserRole",
    "Source",
    "Category",
    "Subcategory",
    "Project",
    "Phase",
    "FileFormat",
    "Chat",
    "Subscription",
]
