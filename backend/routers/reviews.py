"""
Review endpoints. All require an access token.

    POST  /api/v1/reviews                   - create (multipart, up to 5 images)
    GET   /api/v1/edit/reviews/{review_id}  - text and rating of one of the caller's reviews
    PATCH /api/v1/reviews                   - update one of the caller's reviews
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models import Restaurant, Review, ReviewImage
from auth.dependencies import get_current_user_id
from schemas import CreatedResponse, ReviewEditView, ReviewPatchResponse
from services.image_store import (
    ImageRejectedError,
    ImageStore,
    discard_uploads,
    get_image_store,
    save_uploads,
)
from utils.audit import audit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["reviews"])


async def _own_review(db: AsyncSession, review_id: str, user_id: str) -> Review:
    """Fetch a review written by ``user_id`` or raise 404."""
    result = await db.execute(
        select(Review).where(Review.id == review_id, Review.added_by == user_id)
    )
    review = result.scalar_one_or_none()
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    return review


async def _save_review_images(
    store: ImageStore,
    images: Optional[List[UploadFile]],
) -> List[str]:
    try:
        return await save_uploads(store, images, folder="reviews")
    except ImageRejectedError as exc:
        raise HTTPException(
            status_code=400,
            detail={"message": "Invalid images", "errors": exc.errors},
        )


@router.post("/reviews", response_model=CreatedResponse, status_code=201)
async def create_review(
    restaurant_id: str = Form(..., alias="restaurantId"),
    rating: float = Form(..., ge=0.5, le=5),
    review: Optional[str] = Form(None, max_length=255),
    images: Optional[List[UploadFile]] = File(None),
    user_id: str = Depends(get_current_user_id),
    store: ImageStore = Depends(get_image_store),
    db: AsyncSession = Depends(get_db),
):
    """Add a review to a restaurant."""
    restaurant = await db.get(Restaurant, restaurant_id)
    if not restaurant:
        raise HTTPException(status_code=404, detail="Restaurant not found")

    urls = await _save_review_images(store, images)

    db_review = Review(
        text=review,
        rating=rating,
        restaurant_id=restaurant_id,
        added_by=user_id,
    )
    try:
        db.add(db_review)
        await db.flush()

        for url in urls:
            db.add(ReviewImage(review_id=db_review.id, url=url))
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        await discard_uploads(store, urls)
        raise

    audit.log_review_change("CREATE", db_review.id, restaurant_id=restaurant_id, rating=rating)
    return CreatedResponse(id=db_review.id)


@router.get("/edit/reviews/{review_id}", response_model=ReviewEditView)
async def get_review_for_edit(
    review_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Current text and rating of one of the caller's reviews."""
    review = await _own_review(db, review_id, user_id)
    return ReviewEditView(text=review.text, rating=review.rating)


@router.patch("/reviews", response_model=ReviewPatchResponse)
async def update_review(
    review_id: str = Form(..., alias="id"),
    rating: float = Form(..., ge=0.5, le=5),
    review: Optional[str] = Form(None, max_length=255),
    images: Optional[List[UploadFile]] = File(None),
    user_id: str = Depends(get_current_user_id),
    store: ImageStore = Depends(get_image_store),
    db: AsyncSession = Depends(get_db),
):
    """
    Update the rating (and text, when given) of one of the caller's reviews.

    New images are appended to the review's existing ones.
    """
    db_review = await _own_review(db, review_id, user_id)
    urls = await _save_review_images(store, images)

    db_review.rating = rating
    if review is not None:
        db_review.text = review
    db_review.edited_at = datetime.now(timezone.utc)

    try:
        for url in urls:
            db.add(ReviewImage(review_id=db_review.id, url=url))
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        await discard_uploads(store, urls)
        raise
    await db.refresh(db_review)

    audit.log_review_change("UPDATE", db_review.id, rating=rating)
    return ReviewPatchResponse(
        text=db_review.text,
        rating=db_review.rating,
        edited_at=db_review.edited_at,
    )
