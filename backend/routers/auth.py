"""
Token issuance endpoints.

Public endpoints:
    POST /api/v1/auth/login   - issue an access/refresh pair for a registered user
    POST /api/v1/auth/token   - exchange a refresh token (JSON body) for a new access token
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models import User
from auth.dependencies import get_refresh_subject, get_token_issuer
from auth.errors import UnauthenticatedError
from auth.jwt_service import IssuedToken, TokenIssuer
from schemas import LoginRequest, LoginResponse, TokenResponse
from utils.audit import audit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _to_response(issued: IssuedToken) -> TokenResponse:
    return TokenResponse(
        token=issued.token,
        type=f"{issued.kind.value}_token",
        expires_at=issued.expires_at,
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    issuer: TokenIssuer = Depends(get_token_issuer),
    db: AsyncSession = Depends(get_db),
):
    """
    Issue an access and a refresh token for a registered user.

    The client registers through ``POST /api/v1/users`` after its OAuth
    sign-in and logs in with the returned id.
    """
    result = await db.execute(select(User.id).where(User.id == request.id))
    user_id = result.scalar_one_or_none()

    if user_id is None:
        audit.log_login(request.id, "failure")
        raise UnauthenticatedError(detail="Unknown user", reason="unknown_user")

    pair = issuer.issue(user_id)
    audit.log_login(user_id, "success")

    return LoginResponse(
        access_token=_to_response(pair.access_token),
        refresh_token=_to_response(pair.refresh_token),
    )


@router.post("/token", response_model=TokenResponse)
async def refresh_access_token(
    user_id: str = Depends(get_refresh_subject),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Issue a new access token for the subject of a valid refresh token."""
    issued = issuer.issue_access(user_id)
    audit.log_token_refresh(user_id)
    return _to_response(issued)
