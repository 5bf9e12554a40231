"""
Restaurant endpoints.

Public endpoints:
    GET  /api/v1/restaurants?loc=<lat>&loc=<lng>&radius=<m>  - radius search

Protected endpoints:
    POST /api/v1/restaurants                - create (multipart, up to 5 images)
    GET  /api/v1/restaurants/{restaurant_id} - full restaurant with reviews
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from models import Restaurant, RestaurantImage, Review, ReviewImage, User
from auth.dependencies import get_current_user_id
from schemas import (
    Author,
    CreatedResponse,
    RestaurantDetail,
    RestaurantPreview,
    ReviewDetail,
)
from services.geo import bounding_box, haversine_m
from services.image_store import (
    ImageRejectedError,
    ImageStore,
    discard_uploads,
    get_image_store,
    save_uploads,
)
from utils.audit import audit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/restaurants", tags=["restaurants"])

MAX_SEARCH_RADIUS_M = 50_000


async def images_by_restaurant(
    db: AsyncSession, restaurant_ids: Iterable[str]
) -> Dict[str, List[str]]:
    """Image URLs for each restaurant id, in upload order."""
    ids = list(restaurant_ids)
    images: Dict[str, List[str]] = defaultdict(list)
    if not ids:
        return images
    result = await db.execute(
        select(RestaurantImage.restaurant_id, RestaurantImage.url)
        .where(RestaurantImage.restaurant_id.in_(ids))
        .order_by(RestaurantImage.id)
    )
    for restaurant_id, url in result.all():
        images[restaurant_id].append(url)
    return images


async def images_by_review(
    db: AsyncSession, review_ids: Iterable[str]
) -> Dict[str, List[str]]:
    ids = list(review_ids)
    images: Dict[str, List[str]] = defaultdict(list)
    if not ids:
        return images
    result = await db.execute(
        select(ReviewImage.review_id, ReviewImage.url)
        .where(ReviewImage.review_id.in_(ids))
        .order_by(ReviewImage.id)
    )
    for review_id, url in result.all():
        images[review_id].append(url)
    return images


def _clean_categories(categories: Optional[List[str]]) -> List[str]:
    """Strip, drop blanks and de-duplicate while keeping order."""
    seen = []
    for category in categories or []:
        category = category.strip()
        if category and category not in seen:
            seen.append(category)
    return seen


def _parse_location(loc: Optional[List[str]]) -> Tuple[float, float]:
    """Latitude and longitude from the repeated ``loc`` parameter, or 400."""
    invalid = HTTPException(status_code=400, detail="Invalid user location coordinates!")
    if not loc or len(loc) != 2:
        raise invalid
    try:
        lat, lng = float(loc[0]), float(loc[1])
    except ValueError:
        raise invalid
    # float() accepts "nan" and "inf", which fail these range checks
    if not (-90 <= lat <= 90) or not (-180 <= lng <= 180):
        raise invalid
    return lat, lng


def _round_rating(value: Optional[float]) -> Optional[float]:
    return round(float(value), 2) if value is not None else None


@router.get("", response_model=List[RestaurantPreview])
async def search_restaurants(
    loc: Optional[List[str]] = Query(None, description="Latitude then longitude"),
    radius: Optional[float] = Query(None, gt=0, le=MAX_SEARCH_RADIUS_M),
    db: AsyncSession = Depends(get_db),
):
    """
    Restaurants within ``radius`` metres of ``loc``, nearest first.

    Query parameters:
    - loc: given twice, latitude then longitude (``?loc=52.37&loc=4.89``)
    - radius: search radius in metres (default 2000)
    """
    lat, lng = _parse_location(loc)
    radius_m = radius if radius is not None else settings.DEFAULT_SEARCH_RADIUS_M
    box = bounding_box(lat, lng, radius_m)

    if box.wraps:
        lng_filter = or_(Restaurant.longitude >= box.min_lng, Restaurant.longitude <= box.max_lng)
    else:
        lng_filter = Restaurant.longitude.between(box.min_lng, box.max_lng)

    result = await db.execute(
        select(Restaurant, func.avg(Review.rating))
        .outerjoin(Review, Review.restaurant_id == Restaurant.id)
        .where(and_(Restaurant.latitude.between(box.min_lat, box.max_lat), lng_filter))
        .group_by(Restaurant.id)
    )

    matches = []
    for restaurant, avg_rating in result.all():
        distance = haversine_m(lat, lng, restaurant.latitude, restaurant.longitude)
        if distance <= radius_m:
            matches.append((distance, restaurant, avg_rating))
    matches.sort(key=lambda m: m[0])

    images = await images_by_restaurant(db, (r.id for _, r, _ in matches))
    logger.debug(f"Radius search ({lat}, {lng}) r={radius_m}m: {len(matches)} results")

    return [
        RestaurantPreview(
            id=restaurant.id,
            name=restaurant.name,
            address=restaurant.address,
            categories=restaurant.categories or [],
            images=images.get(restaurant.id, []),
            rating=_round_rating(avg_rating),
            distance=round(distance, 1),
        )
        for distance, restaurant, avg_rating in matches
    ]


@router.post("", response_model=CreatedResponse, status_code=201)
async def create_restaurant(
    name: str = Form(..., min_length=2, max_length=100),
    address: str = Form(..., min_length=2, max_length=255),
    lat: float = Form(..., ge=-90, le=90),
    lng: float = Form(..., ge=-180, le=180),
    description: Optional[str] = Form(None, max_length=255),
    categories: Optional[List[str]] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    user_id: str = Depends(get_current_user_id),
    store: ImageStore = Depends(get_image_store),
    db: AsyncSession = Depends(get_db),
):
    """Create a restaurant owned by the authenticated user."""
    try:
        urls = await save_uploads(store, images, folder="restaurants")
    except ImageRejectedError as exc:
        raise HTTPException(
            status_code=400,
            detail={"message": "Invalid images", "errors": exc.errors},
        )

    restaurant = Restaurant(
        name=name.strip(),
        address=address.strip(),
        description=description,
        latitude=lat,
        longitude=lng,
        categories=_clean_categories(categories),
        added_by=user_id,
    )
    try:
        db.add(restaurant)
        await db.flush()

        for url in urls:
            db.add(RestaurantImage(restaurant_id=restaurant.id, url=url))
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        await discard_uploads(store, urls)
        raise

    audit.log_restaurant_create(restaurant.id, restaurant.name, len(urls))
    return CreatedResponse(id=restaurant.id)


@router.get("/{restaurant_id}", response_model=RestaurantDetail)
async def get_restaurant(
    restaurant_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Get a restaurant with its images and reviews (newest first)."""
    restaurant = await db.get(Restaurant, restaurant_id)
    if not restaurant:
        raise HTTPException(status_code=404, detail="Restaurant not found")

    result = await db.execute(
        select(Review, User)
        .join(User, Review.added_by == User.id)
        .where(Review.restaurant_id == restaurant_id)
        .order_by(Review.date_added.desc())
    )
    rows = result.all()

    restaurant_images = await images_by_restaurant(db, [restaurant_id])
    review_images = await images_by_review(db, (review.id for review, _ in rows))

    ratings = [review.rating for review, _ in rows]
    rating = round(sum(ratings) / len(ratings), 2) if ratings else 0.0

    return RestaurantDetail(
        id=restaurant.id,
        name=restaurant.name,
        lat=restaurant.latitude,
        lng=restaurant.longitude,
        rating=rating,
        added_by=restaurant.added_by,
        address=restaurant.address,
        description=restaurant.description,
        images=restaurant_images.get(restaurant_id, []),
        categories=restaurant.categories or [],
        reviews=[
            ReviewDetail(
                id=review.id,
                text=review.text,
                rating=review.rating,
                author=Author.model_validate(author),
                likes=review.likes or 0,
                dislikes=review.dislikes or 0,
                date_added=review.date_added,
                date_edited=review.edited_at,
                images=review_images.get(review.id, []),
            )
            for review, author in rows
        ],
        date_added=restaurant.date_added,
        date_edited=restaurant.edited_at,
    )
