"""
Pydantic Schemas for Request/Response Validation

Management Schemas:
    - LookupCreate / SubcategoryCreate / PhaseCreate: POST /management/*
    - LookupUpdate: PUT /management/*/{id}
    - LookupResponse / SubcategoryResponse / PhaseResponse

Chat Schemas:
    - ChatCreate: POST /chats
    - ChatUpdate: PUT /chats/{id}
    - ChatResponse: Single chat with embedded lookups
    - ChatListResponse: List with pagination
    - ExportSelectedRequest: POST /chats/export-selected

Subscription Schemas:
    - SubscriptionResponse
    - CheckoutSessionRequest / CheckoutSessionResponse
"""

from chatvault.schemas.user import CurrentUser, UserSummary
from chatvault.schemas.management import (
    LookupRef,
    LookupCreate,
    SubcategoryCreate,
    PhaseCreate,
    LookupUpdate,
    LookupResponse,
    SubcategoryResponse,
    PhaseResponse,
)
from chatvault.schemas.chat import (
    ChatCreate,
    ChatUpdate,
    ChatResponse,
    ChatListResponse,
    PaginationInfo,
    ExportSelectedRequest,
    MessageResponse,
)
from chatvault.schemas.subscription import (
    SubscriptionResponse,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
)

__all__ = [
    "CurrentUser",
    "UserSummary",
    # Management schemas
    "LookupRef",
    "LookupCreate",
    "SubcategoryCreate",
    "PhaseCreate",
    "LookupUpdate",
    "LookupResponse",
    "SubcategoryResponse",
    "PhaseResponse",
    # Chat schemas
    "ChatCreate",
    "ChatUpdate",
    "ChatResponse",
    "ChatListResponse",
    "PaginationInfo",
    "ExportSelectedRequest",
    "MessageResponse",
    # Subscription schemas
    "SubscriptionResponse",
    "CheckoutSessionRequest",
    "CheckoutSessionResponse",
]
