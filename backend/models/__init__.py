from .user import User
from .restaurant import Restaurant, RestaurantImage
from .review import Review, ReviewImage

__all__ = [
    "User",
    "Restaurant",
    "RestaurantImage",
    "Review",
    "ReviewImage",
]
