"""
Upload Storage
==============

Local-disk storage for logos and images, served under UPLOAD_URL_PREFIX:

    /uploads/{clubs,colleges,departments,events,posts}/<uuid>.<ext>

Contract used by the services: ``save(file, category) -> url`` and
``delete(url)``. ``UploadBatch`` tracks files saved during a request and
deletes them again if the request fails afterwards.
"""

import uuid
from pathlib import Path
from typing import List, Optional

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from app.core.config import settings
from app.core.exceptions import InvalidFileTypeError, StorageError, ValidationError
from app.core.logging_config import logger


UPLOAD_CATEGORIES = frozenset(["clubs", "colleges", "departments", "events", "posts"])

EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class UploadStorage:
    """Save/delete uploaded images on local disk"""

    def __init__(self, base_dir: Optional[Path] = None, url_prefix: Optional[str] = None):
        self.base_dir = Path(base_dir) if base_dir else settings.UPLOAD_PATH
        self.url_prefix = (url_prefix or settings.UPLOAD_URL_PREFIX).rstrip("/")

    def _extension(self, file: UploadFile) -> str:
        content_type = (file.content_type or "").lower()
        if content_type not in settings.ALLOWED_IMAGE_TYPES:
            raise InvalidFileTypeError(content_type or "unknown", settings.ALLOWED_IMAGE_TYPES)
        return EXTENSIONS.get(content_type) or (file.filename or "").rsplit(".", 1)[-1].lower() or "jpg"

    async def save(self, file: UploadFile, category: str) -> str:
        """
        Validate and write an image, returning its public URL.

        Raises:
            InvalidFileTypeError: not JPEG, PNG or WebP
            ValidationError: empty or larger than MAX_IMAGE_SIZE
            StorageError: the file could not be written
        """
        if category not in UPLOAD_CATEGORIES:
            raise ValueError(f"Unknown upload category: {category}")

        ext = self._extension(file)
        content = await file.read()
        if not content:
            raise ValidationError("Uploaded file is empty", field="image")
        if len(content) > settings.MAX_IMAGE_SIZE:
            max_mb = settings.MAX_IMAGE_SIZE // (1024 * 1024)
            raise ValidationError(f"Image must be {max_mb}MB or smaller", field="image")

        filename = f"{uuid.uuid4()}.{ext}"
        directory = self.base_dir / category
        try:
            await aiofiles.os.makedirs(directory, exist_ok=True)
            async with aiofiles.open(directory / filename, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.log_error_with_context(e, context="upload.save", category=category)
            raise StorageError("Failed to save uploaded file")

        url = f"{self.url_prefix}/{category}/{filename}"
        logger.info(f"[Storage] Saved {url} ({len(content)} bytes)")
        return url

    def path_for(self, url: str) -> Optional[Path]:
        """Map a public URL back to a file under base_dir, or None if it is not ours"""
        if not url or not url.startswith(self.url_prefix + "/"):
            return None
        relative = url[len(self.url_prefix) + 1:]
        path = (self.base_dir / relative).resolve()
        if self.base_dir.resolve() not in path.parents:
            return None
        return path

    async def delete(self, url: Optional[str]) -> None:
        """Remove a previously saved file; missing files are ignored"""
        path = self.path_for(url) if url else None
        if path is None:
            return
        try:
            await aiofiles.os.remove(path)
            logger.info(f"[Storage] Deleted {url}")
        except FileNotFoundError:
            logger.debug(f"[Storage] Already gone: {url}")
        except OSError as e:
            logger.log_error_with_context(e, context="upload.delete", url=url)
            raise StorageError("Failed to delete uploaded file")


class UploadBatch:
    """
    Files saved within one operation. Used as an async context manager:
    if the body raises, every file saved through the batch is deleted.

        async with UploadBatch(storage) as uploads:
            club.logo_url = await uploads.save(logo, "clubs")
            await store.flush()
    """

    def __init__(self, storage: UploadStorage):
        self.storage = storage
        self.saved: List[str] = []

    async def save(self, file: Optional[UploadFile], category: str) -> Optional[str]:
        if file is None:
            return None
        url = await self.storage.save(file, category)
        self.saved.append(url)
        return url

    async def __aenter__(self) -> "UploadBatch":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None and self.saved:
            logger.warning(f"[Storage] Rolling back {len(self.saved)} upload(s) after {exc_type.__name__}")
            for url in self.saved:
                try:
                    await self.storage.delete(url)
                except StorageError:
                    logger.warning(f"[Storage] Could not clean up {url}")
        return False


_storage: Optional[UploadStorage] = None


def get_upload_storage() -> UploadStorage:
    """FastAPI dependency; tests override it with a temp-dir storage"""
    global _storage
    if _storage is None:
        _storage = UploadStorage()
    return _storage


def uploaded(file: Optional[UploadFile]) -> Optional[UploadFile]:
    """Multipart fields left empty arrive as a nameless UploadFile"""
    if file is None or not file.filename:
        return None
    return file
