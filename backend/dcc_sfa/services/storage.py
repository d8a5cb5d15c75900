"""
File storage for generated documents and uploads

Files live under settings.STORAGE_DIR and are served by the app at
settings.STORAGE_PUBLIC_URL.
"""
import logging
import os
from pathlib import Path

from dcc_sfa.core.config import settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class LocalFileStorage:
    def __init__(self, base_dir: str, public_url: str):
        self.base_dir = Path(base_dir).resolve()
        self.public_url = public_url.rstrip("/")

    def _path_for(self, key: str) -> Path:
        path = (self.base_dir / key.lstrip("/")).resolve()
        if self.base_dir not in path.parents:
            raise StorageError(f"Invalid file key: {key}")
        return path

    def key_from_url(self, url: str) -> str:
        """Public URL (or bare key) back to the storage key"""
        if url.startswith(self.public_url + "/"):
            return url[len(self.public_url) + 1:]
        return url.lstrip("/")

    def exists(self, key: str) -> bool:
        return self._path_for(key).exists()

    def upload_file(self, data: bytes, key: str, content_type: str = "application/octet-stream") -> str:
        """Store bytes under key and return the public URL"""
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info(f"📁 Stored {key} ({len(data)} bytes, {content_type})")
        return f"{self.public_url}/{key}"

    def delete_file(self, key_or_url: str) -> None:
        """Remove a stored file; a missing file is an error"""
        key = self.key_from_url(key_or_url)
        path = self._path_for(key)
        if not path.exists():
            raise StorageError(f"File not found: {key}")
        os.remove(path)
        logger.info(f"🗑️ Deleted {key}")


def get_storage() -> LocalFileStorage:
    return LocalFileStorage(settings.STORAGE_DIR, settings.STORAGE_PUBLIC_URL)
