"""
Validation for uploaded restaurant and review images.

Uploads are rejected (not just logged) when the declared content type,
size or header bytes do not look like a supported image.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)

MAX_IMAGE_SIZE_BYTES = 5_000_000
MAX_IMAGES_PER_REQUEST = 5

ACCEPTED_IMAGE_TYPES = frozenset({
    "image/jpeg", "image/jpg", "image/png", "image/webp",
})

# Extension used when storing each accepted content type
IMAGE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}

# Magic byte signatures for accepted image formats
MAGIC_BYTES = {
    b"\xff\xd8\xff": "jpeg",
    b"\x89PNG\r\n\x1a\n": "png",
}


class FileValidationResult:
    """Result of image validation checks."""

    def __init__(self, filename: Optional[str] = None):
        self.filename = filename
        self.errors: list[str] = []

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0


def check_content_type(content_type: Optional[str]) -> Optional[str]:
    """Returns an error message if the type is not an accepted image type."""
    if content_type not in ACCEPTED_IMAGE_TYPES:
        return (
            f"Invalid file type '{content_type}'. "
            "Only JPEG, JPG, PNG and webp are allowed."
        )
    return None


def check_file_size(content_length: int) -> Optional[str]:
    if content_length == 0:
        return "File is empty"
    if content_length > MAX_IMAGE_SIZE_BYTES:
        return (
            f"File size should be less than or equal to "
            f"{MAX_IMAGE_SIZE_BYTES / 1_000_000:.0f}MB."
        )
    return None


def check_magic_bytes(content: bytes) -> Optional[str]:
    """Check the file header against known image signatures."""
    header = content[:16]
    for magic, file_type in MAGIC_BYTES.items():
        if header.startswith(magic):
            logger.debug(f"Magic bytes match: {file_type}")
            return None
    # RIFF container with a WEBP fourcc
    if header[:4] == b"RIFF" and header[8:12] == b"WEBP":
        return None
    return "File header does not match any supported image format"


def validate_image(
    filename: Optional[str],
    content_type: Optional[str],
    content: bytes,
) -> FileValidationResult:
    """Run all checks on one uploaded image."""
    result = FileValidationResult(filename)

    for error in (
        check_content_type(content_type),
        check_file_size(len(content)),
        check_magic_bytes(content) if content else None,
    ):
        if error:
            result.errors.append(error)

    if not result.passed:
        logger.info(f"Image '{filename}' rejected: {'; '.join(result.errors)}")
    return result
