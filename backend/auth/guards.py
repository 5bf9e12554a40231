"""
Request guards for access and refresh credentials.

Both guards resolve every failure to :class:`UnauthenticatedError` or
:class:`ForbiddenError`. Codec errors never escape.
"""

import logging
from typing import Any, Optional

from .errors import (
    ForbiddenError,
    TokenError,
    TokenExpiredError,
    UnauthenticatedError,
)
from .jwt_service import TokenCodec, TokenKind

logger = logging.getLogger(__name__)

REFRESH_EXPIRED = "refresh_expired"
INVALID_REFRESH_TOKEN = "invalid_refresh_token"


def guard_access(token: Optional[str], codec: TokenCodec) -> str:
    """
    Verify a bearer access credential and return its subject.

    Expired, forged and malformed tokens are rejected identically.
    """
    if not token:
        raise UnauthenticatedError()

    try:
        return codec.verify(token, TokenKind.ACCESS)
    except TokenError as exc:
        logger.info(f"Access token rejected: {type(exc).__name__}")
        raise ForbiddenError() from exc


def guard_refresh(token: Any, codec: TokenCodec) -> str:
    """
    Verify a refresh credential taken from the request body.

    ``token`` is the raw body value, so anything other than a string is
    rejected as an invalid refresh token. An expired refresh token carries
    the ``refresh_expired`` reason so the client knows to log in again.
    """
    if token is None or token == "":
        raise UnauthenticatedError(detail="Missing refresh token")
    if not isinstance(token, str):
        logger.info(f"Refresh token rejected: {type(token).__name__} value")
        raise ForbiddenError(
            detail="Invalid refresh token",
            reason=INVALID_REFRESH_TOKEN,
        )

    try:
        return codec.verify(token, TokenKind.REFRESH)
    except TokenExpiredError as exc:
        logger.info("Refresh token rejected: expired")
        raise ForbiddenError(
            detail="Refresh token expired, please log in again",
            reason=REFRESH_EXPIRED,
        ) from exc
    except TokenError as exc:
        logger.info(f"Refresh token rejected: {type(exc).__name__}")
        raise ForbiddenError(
            detail="Invalid refresh token",
            reason=INVALID_REFRESH_TOKEN,
        ) from exc
