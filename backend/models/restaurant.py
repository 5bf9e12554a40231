import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, JSON, String
from database import Base


class Restaurant(Base):
    """SQLAlchemy model for restaurants."""

    __tablename__ = "restaurants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    description = Column(String(255), nullable=True)
    address = Column(String(255), nullable=False)

    # WGS84 degrees
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    categories = Column(JSON, nullable=False, default=list)
    added_by = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    date_added = Column(
        DateTime, default=lambda: datetime.now(timezone.utc), nullable=False, index=True
    )
    edited_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_restaurant_lat_lng", "latitude", "longitude"),
    )

    def __repr__(self):
        return f"<Restaurant {self.name}>"


class RestaurantImage(Base):
    """Image URL attached to a restaurant."""

    __tablename__ = "images_restaurants"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(
        String(36), ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url = Column(String(1024), nullable=False)
