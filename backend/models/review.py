import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String
from database import Base


class Review(Base):
    """SQLAlchemy model for restaurant reviews."""

    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    text = Column(String(255), nullable=True)
    rating = Column(Float, nullable=False)  # 0.5 - 5.0
    likes = Column(Integer, nullable=False, default=0)
    dislikes = Column(Integer, nullable=False, default=0)

    restaurant_id = Column(
        String(36), ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    added_by = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    date_added = Column(
        DateTime, default=lambda: datetime.now(timezone.utc), nullable=False, index=True
    )
    edited_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Review {self.id} rating={self.rating}>"


class ReviewImage(Base):
    """Image URL attached to a review."""

    __tablename__ = "images_reviews"

    id = Column(Integer, primary_key=True, index=True)
    review_id = Column(
        String(36), ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url = Column(String(1024), nullable=False)
