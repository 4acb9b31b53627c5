"""
Storage backend factory
Creates the storage backend from configuration
"""

import logging
from chatvault.config import settings
from chatvault.storage.base import StorageBackend
from chatvault.storage.local import LocalStorage

logger = logging.getLogger(__name__)


def get_storage_backend() -> StorageBackend:
    """
    Create and return the storage backend based on configuration

    Returns:
        StorageBackend: LocalStorage rooted at UPLOAD_DIR / TEMP_DIR
    """
    logger.info(f"Using local file storage: uploads={settings.UPLOAD_DIR}, temp={settings.TEMP_DIR}")
    return LocalStorage(base_path=settings.UPLOAD_DIR, temp_dir=settings.TEMP_DIR)
