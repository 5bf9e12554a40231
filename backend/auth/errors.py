"""
Error taxonomy for the authentication layer.

Codec failures (``TokenError`` subclasses) stay inside the auth package.
The guards translate them into one of the two request-facing
``AuthError`` kinds, which the app maps to 401 / 403 responses.
"""

from typing import Optional


class ConfigurationError(RuntimeError):
    """Signing configuration is missing or unusable. Fatal at startup."""


# ── Codec failures ─────────────────────────────────────────────────────


class TokenError(Exception):
    """Base class for credential verification failures."""


class BadSignatureError(TokenError):
    """Signature does not match the secret for the expected kind."""


class TokenExpiredError(TokenError):
    """Clock is past the credential's embedded expiry."""


class MalformedPayloadError(TokenError):
    """Decoded payload does not have the expected shape."""


# ── Request-facing rejections ──────────────────────────────────────────


class AuthError(Exception):
    """A guard rejected the request."""

    status_code: int = 401
    default_detail: str = "Not authenticated"
    default_reason: str = "unauthenticated"

    def __init__(self, detail: Optional[str] = None, reason: Optional[str] = None):
        self.detail = detail or self.default_detail
        self.reason = reason or self.default_reason
        super().__init__(self.detail)

    @property
    def headers(self) -> dict[str, str]:
        return {}


class UnauthenticatedError(AuthError):
    """No credential was presented where one is required."""

    status_code = 401
    default_detail = "Missing authorization credentials"
    default_reason = "unauthenticated"

    @property
    def headers(self) -> dict[str, str]:
        return {"WWW-Authenticate": "Bearer"}


class ForbiddenError(AuthError):
    """A credential was presented but could not be trusted."""

    status_code = 403
    default_detail = "Invalid or expired token"
    default_reason = "invalid_token"
