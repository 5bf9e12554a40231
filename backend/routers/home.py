"""Home feed: latest reviews and latest restaurants. Public."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models import Restaurant, Review, User
from schemas import HomeResponse, RecentReview, RestaurantCard

from .restaurants import images_by_restaurant

router = APIRouter(prefix="/api/v1/home", tags=["home"])

FEED_SIZE = 5


@router.get("", response_model=HomeResponse)
async def home_feed(db: AsyncSession = Depends(get_db)):
    """The five most recent reviews (with author) and five most recent restaurants."""
    review_rows = await db.execute(
        select(Review, User.name, User.image)
        .join(User, Review.added_by == User.id)
        .order_by(Review.date_added.desc())
        .limit(FEED_SIZE)
    )
    reviews = [
        RecentReview(
            id=review.id,
            text=review.text,
            rating=review.rating,
            restaurant_id=review.restaurant_id,
            name=name,
            image=image,
        )
        for review, name, image in review_rows.all()
    ]

    restaurant_rows = await db.execute(
        select(Restaurant).order_by(Restaurant.date_added.desc()).limit(FEED_SIZE)
    )
    restaurants = restaurant_rows.scalars().all()
    images = await images_by_restaurant(db, (r.id for r in restaurants))

    return HomeResponse(
        reviews=reviews,
        restaurants=[
            RestaurantCard(
                id=r.id,
                name=r.name,
                address=r.address,
                categories=r.categories or [],
                images=images.get(r.id, []),
            )
            for r in restaurants
        ],
    )
