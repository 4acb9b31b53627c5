"""
Abstract base class for storage backends
Defines the interface for chat file storage
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, Optional, Union
from datetime import datetime
import secrets


class StorageBackend(ABC):
    """Abstract base class for chat file storage backends"""

    @staticmethod
    def generate_name(extension: str, prefix: str = "file") -> str:
        """
        Generate a collision-resistant stored filename

        Format: "<prefix>-<epoch ms>-<random><extension>"

        Args:
            extension: File extension including the dot (".md")
            prefix: Name prefix

        Returns:
            str: Generated filename
        """
        millis = int(datetime.now().timestamp() * 1000)
        return f"{prefix}-{millis}-{secrets.randbelow(10**9)}{extension.lower()}"

    @abstractmethod
    def save(self, file: Union[BinaryIO, bytes], filename: str) -> str:
        """
        Save file content under the given stored name

        Args:
            file: File object or bytes to save
            filename: Stored filename (see generate_name)

        Returns:
            str: Storage key recorded on the chat
        """
        pass

    @abstractmethod
    def exists(self, storage_key: Optional[str]) -> bool:
        """
        Check if a stored file exists

        Args:
            storage_key: Key returned by save() (None is never present)

        Returns:
            bool: True if the file is present
        """
        pass

    @abstractmethod
    def delete(self, storage_key: Optional[str]) -> bool:
        """
        Delete a stored file, tolerating files that are already gone

        Args:
            storage_key: Key returned by save()

        Returns:
            bool: True if a file was removed
        """
        pass

    @abstractmethod
    def get_local_path(self, storage_key: str) -> str:
        """
        Get local filesystem path for the stored file

        Args:
            storage_key: Key returned by save()

        Returns:
            str: Absolute filesystem path
        """
        pass

    @abstractmethod
    def temp_path(self, filename: str) -> str:
        """
        Path for a short-lived file (export archives)

        Args:
            filename: Name of the temporary file

        Returns:
            str: Absolute path inside the temp directory
        """
        pass
