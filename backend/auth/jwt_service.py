"""JWT credential signing, verification and issuance using python-jose."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from jose import JWTError, jwt
from jose.exceptions import JWTClaimsError

from .errors import BadSignatureError, MalformedPayloadError, TokenExpiredError
from .keys import SigningKeys

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


# Single source for both the embedded ``exp`` claim and the
# caller-visible ``expires_at``.
TOKEN_LIFETIMES: Dict[TokenKind, int] = {
    TokenKind.ACCESS: 30 * 60,
    TokenKind.REFRESH: 7 * 24 * 60 * 60,
}

SUBJECT_CLAIM = "userId"


def expiry_for(kind: TokenKind, issued_at: int) -> int:
    """Epoch second at which a credential of ``kind`` issued at ``issued_at`` expires."""
    return issued_at + TOKEN_LIFETIMES[kind]


class TokenCodec:
    """
    Encode and decode signed, time-bound credentials.

    Each kind is signed with its own secret, so a refresh token never
    verifies as an access token and vice versa. Expiry is checked against
    the injected clock rather than the library's wall clock.
    """

    def __init__(self, keys: SigningKeys, clock: Clock = time.time):
        self.keys = keys
        self.clock = clock

    def _secret(self, kind: TokenKind) -> str:
        if kind is TokenKind.ACCESS:
            return self.keys.access_secret
        return self.keys.refresh_secret

    def now(self) -> int:
        return int(self.clock())

    def sign(self, subject: str, kind: TokenKind, issued_at: Optional[int] = None) -> str:
        """
        Create a signed credential for ``subject``.

        Args:
            subject: Opaque user identifier, embedded under ``userId``.
            kind: Access or refresh; selects the secret and lifetime.
            issued_at: Epoch seconds (default: the codec clock).

        Returns:
            Compact JWS string.
        """
        if not isinstance(subject, str) or not subject:
            raise ValueError("subject must be a non-empty string")
        if issued_at is None:
            issued_at = self.now()

        payload = {
            SUBJECT_CLAIM: subject,
            "type": kind.value,
            "iat": issued_at,
            "exp": expiry_for(kind, issued_at),
        }
        return jwt.encode(payload, self._secret(kind), algorithm=self.keys.algorithm)

    def verify(self, token: str, kind: TokenKind) -> str:
        """
        Verify a credential of the given kind and return its subject.

        Raises:
            BadSignatureError: Signature mismatch or undecodable token.
            TokenExpiredError: Clock is past the embedded expiry.
            MalformedPayloadError: Payload is missing a string ``userId``,
                an integer ``exp``, or has the wrong ``type``.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret(kind),
                algorithms=[self.keys.algorithm],
                options={"verify_exp": False},
            )
        except JWTClaimsError as exc:
            raise MalformedPayloadError(str(exc)) from exc
        except JWTError as exc:
            raise BadSignatureError(str(exc)) from exc

        subject, expires_at = self._narrow(payload, kind)
        if self.clock() > expires_at:
            raise TokenExpiredError(f"{kind.value} token expired at {expires_at}")
        return subject

    @staticmethod
    def _narrow(payload: Any, kind: TokenKind) -> tuple[str, int]:
        if not isinstance(payload, dict):
            raise MalformedPayloadError("payload is not an object")

        subject = payload.get(SUBJECT_CLAIM)
        if not isinstance(subject, str) or not subject:
            raise MalformedPayloadError(f"payload has no string '{SUBJECT_CLAIM}'")

        expires_at = payload.get("exp")
        if isinstance(expires_at, bool) or not isinstance(expires_at, int):
            raise MalformedPayloadError("payload has no integer 'exp'")

        if payload.get("type") != kind.value:
            raise MalformedPayloadError(f"not a {kind.value} token")
        return subject, expires_at


@dataclass(frozen=True)
class IssuedToken:
    token: str
    kind: TokenKind
    expires_at: int


@dataclass(frozen=True)
class TokenPair:
    access_token: IssuedToken
    refresh_token: IssuedToken


class TokenIssuer:
    """Issue access/refresh credentials for a subject."""

    def __init__(self, codec: TokenCodec):
        self.codec = codec

    def _issue_one(self, subject: str, kind: TokenKind, issued_at: int) -> IssuedToken:
        token = self.codec.sign(subject, kind, issued_at=issued_at)
        return IssuedToken(token=token, kind=kind, expires_at=expiry_for(kind, issued_at))

    def issue(self, subject: str) -> TokenPair:
        """Issue both kinds together, as done at login."""
        now = self.codec.now()
        pair = TokenPair(
            access_token=self._issue_one(subject, TokenKind.ACCESS, now),
            refresh_token=self._issue_one(subject, TokenKind.REFRESH, now),
        )
        logger.debug(f"Issued token pair for subject {subject}")
        return pair

    def issue_access(self, subject: str) -> IssuedToken:
        """Issue a fresh access credential, as done at refresh exchange."""
        return self._issue_one(subject, TokenKind.ACCESS, self.codec.now())
