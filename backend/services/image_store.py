"""
Image storage for restaurant and review uploads.

Routers depend on :class:`ImageStore` only. :class:`LocalImageStore`
writes into ``UPLOAD_DIR`` and hands back URLs served under
``UPLOAD_URL_PREFIX``.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence, Union

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from config import settings
from services.file_validator import (
    IMAGE_EXTENSIONS,
    MAX_IMAGES_PER_REQUEST,
    validate_image,
)

logger = logging.getLogger(__name__)


class ImageRejectedError(ValueError):
    """One or more uploads failed validation. Nothing was stored."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


class ImageStore(ABC):
    """Object storage for uploaded images."""

    @abstractmethod
    def save(self, content: bytes, content_type: str, folder: str) -> str:
        """Store one image and return its public URL."""
        pass

    @abstractmethod
    def delete(self, url: str) -> None:
        """Remove an image previously returned by :meth:`save`. Missing images are ignored."""
        pass


class LocalImageStore(ImageStore):
    """Stores images on the local filesystem."""

    def __init__(self, root: Union[str, Path], url_prefix: str):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def save(self, content: bytes, content_type: str, folder: str) -> str:
        name = f"{uuid.uuid4().hex}{IMAGE_EXTENSIONS.get(content_type, '')}"
        target_dir = self.root / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / name).write_bytes(content)
        logger.debug(f"Stored image {folder}/{name} ({len(content)} bytes)")
        return f"{self.url_prefix}/{folder}/{name}"

    def delete(self, url: str) -> None:
        prefix = f"{self.url_prefix}/"
        if not url.startswith(prefix):
            raise ValueError(f"Not a stored image URL: {url}")
        relative = url[len(prefix):]
        if ".." in Path(relative).parts:
            raise ValueError(f"Not a stored image URL: {url}")
        (self.root / relative).unlink(missing_ok=True)
        logger.debug(f"Deleted image {relative}")


_default_store: Optional[ImageStore] = None


def get_image_store() -> ImageStore:
    """Dependency returning the configured image store."""
    global _default_store
    if _default_store is None:
        _default_store = LocalImageStore(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)
    return _default_store


async def save_uploads(
    store: ImageStore,
    uploads: Optional[Sequence[UploadFile]],
    folder: str,
) -> List[str]:
    """
    Validate every upload, then store them all.

    Writes run in the threadpool. If a write fails part way, the images
    already stored for this call are removed before the error propagates.

    Raises:
        ImageRejectedError: Too many files, or any file is not an
            acceptable image. No file is stored in that case.
    """
    uploads = [u for u in (uploads or []) if u.filename]
    if not uploads:
        return []
    if len(uploads) > MAX_IMAGES_PER_REQUEST:
        raise ImageRejectedError(
            [f"At most {MAX_IMAGES_PER_REQUEST} images may be uploaded at once"]
        )

    files = []
    errors = []
    for upload in uploads:
        content = await upload.read()
        result = validate_image(upload.filename, upload.content_type, content)
        if not result.passed:
            errors.extend(f"{upload.filename}: {e}" for e in result.errors)
        files.append((content, upload.content_type))

    if errors:
        raise ImageRejectedError(errors)

    urls: List[str] = []
    try:
        for content, content_type in files:
            urls.append(await run_in_threadpool(store.save, content, content_type, folder))
    except Exception:
        await discard_uploads(store, urls)
        raise
    return urls


async def discard_uploads(store: ImageStore, urls: Sequence[str]) -> None:
    """
    Remove images stored for a request whose database write failed.

    Cleanup failures are logged, not raised, so the original error reaches
    the caller.
    """
    for url in urls:
        try:
            await run_in_threadpool(store.delete, url)
        except Exception as e:
            logger.error(f"Failed to remove orphaned image {url}: {e}")
    if urls:
        logger.warning(f"Discarded {len(urls)} stored image(s) after a failed write")
