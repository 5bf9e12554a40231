"""
Unit tests for the geo helpers, image validation and image storage.
"""

from io import BytesIO

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from services.file_validator import (
    MAX_IMAGE_SIZE_BYTES,
    check_content_type,
    check_file_size,
    check_magic_bytes,
    validate_image,
)
from services.geo import bounding_box, haversine_m
from services.image_store import ImageRejectedError, LocalImageStore, discard_uploads, save_uploads

from conftest import JPEG_BYTES, PNG_BYTES

WEBP_BYTES = b"RIFF\x24\x00\x00\x00WEBPVP8 " + b"\x00" * 32


def _upload(filename: str, content: bytes, content_type: str) -> UploadFile:
    return UploadFile(
        file=BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


# ──────────────────────────────────────────────────────────────────────────────
# GEO
# ──────────────────────────────────────────────────────────────────────────────


class TestHaversine:

    def test_same_point_is_zero(self):
        assert haversine_m(52.37, 4.89, 52.37, 4.89) == 0

    def test_one_degree_of_latitude(self):
        assert haversine_m(0, 0, 1, 0) == pytest.approx(111_195, rel=1e-3)

    def test_amsterdam_to_rotterdam(self):
        assert haversine_m(52.3676, 4.9041, 51.9244, 4.4777) == pytest.approx(57_000, rel=0.02)

    def test_across_antimeridian(self):
        assert haversine_m(0, 179.9, 0, -179.9) == pytest.approx(22_239, rel=1e-3)


class TestBoundingBox:

    def test_box_contains_radius(self):
        box = bounding_box(52.0, 4.0, 10_000)

        assert not box.wraps
        assert box.min_lat < 52.0 < box.max_lat
        assert haversine_m(52.0, 4.0, box.max_lat, 4.0) == pytest.approx(10_000, rel=1e-6)
        assert haversine_m(52.0, 4.0, 52.0, box.max_lng) >= 10_000

    def test_box_wraps_at_antimeridian(self):
        box = bounding_box(0.0, 179.99, 5_000)

        assert box.wraps
        assert box.min_lng > box.max_lng
        assert box.max_lng < -179.9

    def test_near_pole_covers_all_longitudes(self):
        box = bounding_box(89.99, 10.0, 5_000)

        assert box.max_lat == 90.0
        assert (box.min_lng, box.max_lng) == (-180.0, 180.0)


# ──────────────────────────────────────────────────────────────────────────────
# IMAGE VALIDATION
# ──────────────────────────────────────────────────────────────────────────────


class TestImageValidation:

    @pytest.mark.parametrize("content_type", ["image/jpeg", "image/jpg", "image/png", "image/webp"])
    def test_accepted_types(self, content_type):
        assert check_content_type(content_type) is None

    @pytest.mark.parametrize("content_type", ["image/gif", "application/pdf", None])
    def test_rejected_types(self, content_type):
        assert "Invalid file type" in check_content_type(content_type)

    def test_size_limits(self):
        assert check_file_size(MAX_IMAGE_SIZE_BYTES) is None
        assert check_file_size(MAX_IMAGE_SIZE_BYTES + 1) is not None
        assert check_file_size(0) == "File is empty"

    @pytest.mark.parametrize("content", [PNG_BYTES, JPEG_BYTES, WEBP_BYTES])
    def test_magic_bytes_match(self, content):
        assert check_magic_bytes(content) is None

    def test_renamed_text_file_is_rejected(self):
        result = validate_image("cat.png", "image/png", b"just some text")

        assert not result.passed
        assert result.errors == ["File header does not match any supported image format"]

    def test_collects_every_error(self):
        result = validate_image("notes.txt", "text/plain", b"")
        assert len(result.errors) == 2


# ──────────────────────────────────────────────────────────────────────────────
# IMAGE STORAGE
# ──────────────────────────────────────────────────────────────────────────────


class TestSaveUploads:

    @pytest.mark.asyncio
    async def test_stores_every_file(self, image_store):
        urls = await save_uploads(
            image_store,
            [_upload("a.png", PNG_BYTES, "image/png"), _upload("b.jpg", JPEG_BYTES, "image/jpeg")],
            "reviews",
        )

        assert len(urls) == 2
        assert urls[0].startswith("/uploads/reviews/") and urls[0].endswith(".png")
        assert urls[1].endswith(".jpg")
        stored = sorted(p.read_bytes() for p in (image_store.root / "reviews").iterdir())
        assert stored == sorted([PNG_BYTES, JPEG_BYTES])

    @pytest.mark.asyncio
    async def test_no_uploads(self, image_store):
        assert await save_uploads(image_store, None, "reviews") == []

    @pytest.mark.asyncio
    async def test_one_bad_file_stores_nothing(self, image_store):
        with pytest.raises(ImageRejectedError) as exc_info:
            await save_uploads(
                image_store,
                [_upload("a.png", PNG_BYTES, "image/png"), _upload("b.gif", b"GIF89a", "image/gif")],
                "reviews",
            )

        assert exc_info.value.errors[0].startswith("b.gif:")
        assert not image_store.root.exists()

    @pytest.mark.asyncio
    async def test_failed_write_removes_earlier_files(self, tmp_path):
        class FailingSecondSave(LocalImageStore):
            def __init__(self, *args):
                super().__init__(*args)
                self.calls = 0

            def save(self, content, content_type, folder):
                self.calls += 1
                if self.calls == 2:
                    raise OSError("disk full")
                return super().save(content, content_type, folder)

        store = FailingSecondSave(tmp_path / "uploads", "/uploads")

        with pytest.raises(OSError):
            await save_uploads(
                store,
                [_upload("a.png", PNG_BYTES, "image/png"), _upload("b.png", PNG_BYTES, "image/png")],
                "reviews",
            )

        assert list((store.root / "reviews").iterdir()) == []


class TestLocalImageStore:

    def test_delete_removes_file(self, image_store):
        url = image_store.save(PNG_BYTES, "image/png", "restaurants")
        image_store.delete(url)
        assert list((image_store.root / "restaurants").iterdir()) == []

    def test_delete_missing_file_is_ignored(self, image_store):
        image_store.delete("/uploads/restaurants/gone.png")

    @pytest.mark.parametrize("url", ["/elsewhere/a.png", "/uploads/../secret.txt"])
    def test_delete_rejects_foreign_urls(self, image_store, url):
        with pytest.raises(ValueError):
            image_store.delete(url)

    @pytest.mark.asyncio
    async def test_discard_uploads(self, image_store):
        urls = [image_store.save(PNG_BYTES, "image/png", "reviews") for _ in range(2)]

        await discard_uploads(image_store, urls)

        assert list((image_store.root / "reviews").iterdir()) == []
