"""
API Routes and Endpoints

Routers:
    - management: Sources, categories, subcategories, projects, phases, formats
    - chats: Chat CRUD, upload and export
    - subscriptions: Plans, Stripe checkout and webhook
"""

from chatvault.api import management, chats, subscriptions

__all__ = ["management", "chats", "subscriptions"]
