"""Services package for StarBite."""

from .geo import haversine_m, bounding_box, BoundingBox
from .image_store import (
    ImageStore,
    LocalImageStore,
    ImageRejectedError,
    discard_uploads,
    get_image_store,
    save_uploads,
)

__all__ = [
    "haversine_m",
    "bounding_box",
    "BoundingBox",
    "ImageStore",
    "LocalImageStore",
    "ImageRejectedError",
    "discard_uploads",
    "get_image_store",
    "save_uploads",
]
