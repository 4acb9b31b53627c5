"""
Local file storage for uploaded chats and export archives
Implements StorageBackend interface for local filesystem
"""

from pathlib import Path
from typing import BinaryIO, Optional, Union
import logging

from chatvault.config import settings
from chatvault.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class LocalStorage(StorageBackend):
    """Flat upload directory plus a temp directory for archives"""

    def __init__(self, base_path: str = settings.UPLOAD_DIR, temp_dir: str = settings.TEMP_DIR):
        self.base_path = Path(base_path).resolve()
        self.temp_dir = Path(temp_dir).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.temp_dir.mkdir(parents=True, exist_ok=True)

    def _resolve(self, storage_key: str) -> Path:
        """Absolute path for a key, refusing anything outside the upload dir"""
        # Normalize path separators (keys written on Windows may use backslashes)
        normalized = storage_key.replace("\\", "/")
        absolute_path = (self.base_path / normalized).resolve()

        try:
            absolute_path.relative_to(self.base_path)
        except ValueError:
            raise PermissionError(f"Access denied: {storage_key} is outside the upload directory")

        return absolute_path

    def save(self, file: Union[BinaryIO, bytes], filename: str) -> str:
        """Save file to the upload directory"""
        file_path = self._resolve(filename)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "wb") as f:
            if isinstance(file, bytes):
                f.write(file)
            else:
                content = file.read()
                # Reset file pointer if possible
                if hasattr(file, "seek"):
                    file.seek(0)
                f.write(content)

        return str(file_path.relative_to(self.base_path))

    def exists(self, storage_key: Optional[str]) -> bool:
        """Check if file exists"""
        if not storage_key:
            return False

        try:
            return self._resolve(storage_key).is_file()
        except PermissionError:
            return False

    def delete(self, storage_key: Optional[str]) -> bool:
        """Delete file if present"""
        if not storage_key:
            return False

        absolute_path = self._resolve(storage_key)
        try:
            absolute_path.unlink()
        except FileNotFoundError:
            logger.warning(f"Stored file already missing: {storage_key}")
            return False

        return True

    def get_local_path(self, storage_key: str) -> str:
        """Get local filesystem path (already local, just return absolute path)"""
        absolute_path = self._resolve(storage_key)

        if not absolute_path.exists():
            raise FileNotFoundError(f"File not found: {storage_key}")

        return str(absolute_path)

    def temp_path(self, filename: str) -> str:
        """Path inside the temp directory"""
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        return str(self.temp_dir / Path(filename).name)
