"""
FastAPI dependencies for authentication.

Usage in routers::

    from auth.dependencies import get_current_user_id

    @router.get("/users/me/reviews")
    async def history(user_id: str = Depends(get_current_user_id)):
        ...

Rejections are raised as :class:`auth.errors.AuthError` and rendered by
the exception handler registered in ``main.py``.
"""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import settings
from utils.audit import audit

from .guards import guard_access, guard_refresh
from .jwt_service import TokenCodec, TokenIssuer
from .keys import SigningKeys

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_token_codec() -> TokenCodec:
    """Process-wide codec built from settings. Raises ConfigurationError if unset."""
    return TokenCodec(SigningKeys.from_settings(settings))


def get_token_issuer(codec: TokenCodec = Depends(get_token_codec)) -> TokenIssuer:
    return TokenIssuer(codec)


async def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    codec: TokenCodec = Depends(get_token_codec),
) -> str:
    """
    Extract and verify the JWT from the ``Authorization: Bearer <token>`` header.

    Returns the authenticated user id and records it on ``request.state``.
    """
    token = credentials.credentials if credentials else None
    user_id = guard_access(token, codec)
    request.state.user_id = user_id
    audit.set_actor(f"user:{user_id}")
    return user_id


async def get_refresh_subject(
    request: Request,
    codec: TokenCodec = Depends(get_token_codec),
) -> str:
    """
    Verify the ``refreshToken`` field of the JSON body and return its subject.

    The body is read untyped so that a missing, non-JSON or wrongly shaped
    body reaches the refresh guard instead of failing request validation.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None

    token = body.get("refreshToken") if isinstance(body, dict) else None
    user_id = guard_refresh(token, codec)
    request.state.user_id = user_id
    audit.set_actor(f"user:{user_id}")
    return user_id
