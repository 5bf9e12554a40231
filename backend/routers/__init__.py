from .auth import router as auth_router
from .users import router as users_router
from .home import router as home_router
from .restaurants import router as restaurants_router
from .reviews import router as reviews_router

__all__ = [
    "auth_router",
    "users_router",
    "home_router",
    "restaurants_router",
    "reviews_router",
]
