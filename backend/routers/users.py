"""
User registration and profile history.

Public endpoints:
    POST /api/v1/users             - register, or return the existing user for the email

Protected endpoints:
    GET  /api/v1/users/me/reviews  - reviews written by the caller, newest first
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models import Review, User
from auth.dependencies import get_current_user_id
from schemas import HistoryReview, UserCreate, UserResponse
from utils.audit import audit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post("", response_model=UserResponse)
async def register_user(
    user: UserCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a user.

    Registration is idempotent on email: if a user with this email already
    exists it is returned unchanged.
    """
    result = await db.execute(select(User).where(User.email == user.email))
    existing = result.scalar_one_or_none()

    if existing:
        audit.log_user_registration(existing.id, created=False)
        return UserResponse.model_validate(existing)

    db_user = User(name=user.name, email=user.email, image=user.image)
    db.add(db_user)
    await db.commit()
    await db.refresh(db_user)

    logger.info(f"Registered user {db_user.id}")
    audit.log_user_registration(db_user.id, created=True)
    return UserResponse.model_validate(db_user)


@router.get("/me/reviews", response_model=List[HistoryReview])
async def review_history(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Reviews written by the authenticated user, newest first."""
    result = await db.execute(
        select(Review)
        .where(Review.added_by == user_id)
        .order_by(Review.date_added.desc())
        .offset(skip)
        .limit(limit)
    )
    return [
        HistoryReview(
            id=review.id,
            restaurant_id=review.restaurant_id,
            text=review.text,
            rating=review.rating,
            likes=review.likes or 0,
            dislikes=review.dislikes or 0,
            date_added=review.date_added,
            date_edited=review.edited_at,
        )
        for review in result.scalars().all()
    ]
