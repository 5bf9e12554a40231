"""
Pydantic v2 request and response schemas.

Responses are serialized with camelCase aliases (``expiresAt``,
``dateAdded``...) to match the web client. Request bodies accept either
the alias or the field name.
"""

from datetime import datetime
from typing import List, Literal, Optional
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ApiModel(BaseModel):
    """Base for all API schemas: camelCase aliases, ORM-friendly."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CreatedResponse(ApiModel):
    id: str


# ═══════════════════════════════════════════════════════════════════════
# USERS & AUTH
# ═══════════════════════════════════════════════════════════════════════

class UserCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., max_length=255)
    image: Optional[str] = Field(None, max_length=1024)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_RE.match(v):
            raise ValueError(f"Invalid email address '{v}'")
        return v


class UserResponse(ApiModel):
    id: str
    name: str
    email: str
    image: Optional[str] = None


class LoginRequest(ApiModel):
    id: str = Field(..., min_length=1, max_length=36)


class TokenResponse(ApiModel):
    token: str
    type: Literal["access_token", "refresh_token"]
    expires_at: int


class LoginResponse(ApiModel):
    access_token: TokenResponse
    refresh_token: TokenResponse


# ═══════════════════════════════════════════════════════════════════════
# REVIEWS
# ═══════════════════════════════════════════════════════════════════════

class Author(ApiModel):
    id: str
    name: str
    email: str
    image: Optional[str] = None


class ReviewDetail(ApiModel):
    id: str
    text: Optional[str] = None
    rating: float
    author: Author
    likes: int = 0
    dislikes: int = 0
    date_added: datetime
    date_edited: Optional[datetime] = None
    images: List[str] = []


class RecentReview(ApiModel):
    id: str
    text: Optional[str] = None
    rating: float
    restaurant_id: str
    name: str
    image: Optional[str] = None


class HistoryReview(ApiModel):
    id: str
    restaurant_id: str
    text: Optional[str] = None
    rating: float
    likes: int = 0
    dislikes: int = 0
    date_added: datetime
    date_edited: Optional[datetime] = None


class ReviewEditView(ApiModel):
    text: Optional[str] = None
    rating: float


class ReviewPatchResponse(ApiModel):
    text: Optional[str] = None
    rating: float
    edited_at: datetime


# ═══════════════════════════════════════════════════════════════════════
# RESTAURANTS
# ═══════════════════════════════════════════════════════════════════════

class RestaurantCard(ApiModel):
    """Compact restaurant shown on the home feed."""

    id: str
    name: str
    address: str
    categories: List[str] = []
    images: List[str] = []


class RestaurantPreview(RestaurantCard):
    """Search result: card plus average rating and distance in metres."""

    rating: Optional[float] = None
    distance: float


class RestaurantDetail(ApiModel):
    id: str
    name: str
    lat: float
    lng: float
    rating: float
    added_by: str
    address: str
    description: Optional[str] = None
    images: List[str] = []
    categories: List[str] = []
    reviews: List[ReviewDetail] = []
    date_added: datetime
    date_edited: Optional[datetime] = None


class HomeResponse(ApiModel):
    reviews: List[RecentReview]
    restaurants: List[RestaurantCard]
