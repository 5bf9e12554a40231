"""Signing secrets for access and refresh credentials."""

from dataclasses import dataclass

from config import Settings

from .errors import ConfigurationError


@dataclass(frozen=True)
class SigningKeys:
    access_secret: str
    refresh_secret: str
    algorithm: str = "HS256"

    def __post_init__(self):
        if not self.access_secret:
            raise ConfigurationError("ACCESS_TOKEN_SECRET_KEY is not set")
        if not self.refresh_secret:
            raise ConfigurationError("REFRESH_TOKEN_SECRET_KEY is not set")
        if self.access_secret == self.refresh_secret:
            raise ConfigurationError(
                "ACCESS_TOKEN_SECRET_KEY and REFRESH_TOKEN_SECRET_KEY must differ"
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> "SigningKeys":
        return cls(
            access_secret=settings.ACCESS_TOKEN_SECRET_KEY or "",
            refresh_secret=settings.REFRESH_TOKEN_SECRET_KEY or "",
            algorithm=settings.JWT_ALGORITHM,
        )

    def __repr__(self) -> str:
        return f"SigningKeys(algorithm={self.algorithm!r})"
