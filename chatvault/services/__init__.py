"""
Business Logic Services

Includes:
- IdentityService: Maps identity provider claims to local users
- LookupService: Per-user sources, categories, projects and their children
- ChatService: Chat records and file uploads
- SubscriptionService: Stripe customers, checkout and webhooks
- export_service: Single-file and ZIP exports
- markdown_renderer: Markdown to standalone HTML
"""

# Lazy imports to avoid circular dependencies
# Import services directly from their modules instead

__all__ = [
    "IdentityService",
    "LookupService",
    "ChatService",
    "SubscriptionService",
]
