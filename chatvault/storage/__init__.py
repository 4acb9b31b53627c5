"""
File storage system
Uploaded chat files and temporary export archives
"""

from chatvault.storage.base import StorageBackend
from chatvault.storage.local import LocalStorage
from chatvault.storage.factory import get_storage_backend

__all__ = [
    "StorageBackend",
    "LocalStorage",
    "get_storage_backend",
]
