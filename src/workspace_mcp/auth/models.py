"""Pydantic models for OAuth credentials and client keys."""

import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

# Tokens this close to expiry are refreshed opportunistically
REFRESH_HORIZON_MS = 5 * 60 * 1000

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"  # nosec B105


def now_millis() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def millis_to_datetime(value: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def datetime_to_millis(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds. Naive values are read as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


class TokenStatus(str, Enum):
    """Status of the persisted credential."""

    VALID = "valid"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    MISSING = "missing"
    INVALID = "invalid"


class CredentialState(str, Enum):
    """Lifecycle state tracked by CredentialManager."""

    UNLOADED = "unloaded"
    VALID = "valid"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    REFRESHING = "refreshing"
    FAILED = "failed"


class Credential(BaseModel):
    """OAuth2 token record.

    Attributes:
        access_token: Bearer token sent with API requests.
        refresh_token: Long-lived token used to mint new access tokens.
        token_type: Token type, normally "Bearer".
        expiry_date: Access-token expiry as epoch milliseconds, if known.
    """

    access_token: str | None = None
    refresh_token: str | None = None
    token_type: str | None = "Bearer"
    expiry_date: int | None = None

    model_config = {"extra": "ignore"}

    @model_validator(mode="after")
    def _require_a_token(self) -> "Credential":
        if not self.access_token and not self.refresh_token:
            raise ValueError("credential needs an access_token or a refresh_token")
        return self

    @property
    def expires_at(self) -> datetime | None:
        if self.expiry_date is None:
            return None
        return millis_to_datetime(self.expiry_date)

    def is_expired(self, now_ms: int | None = None) -> bool:
        """True when no expiry is recorded or the expiry has passed."""
        now_ms = now_millis() if now_ms is None else now_ms
        return self.expiry_date is None or self.expiry_date <= now_ms

    def is_expiring(self, now_ms: int | None = None, horizon_ms: int = REFRESH_HORIZON_MS) -> bool:
        """True when the token is still valid but expires within the horizon."""
        now_ms = now_millis() if now_ms is None else now_ms
        if self.expiry_date is None or self.is_expired(now_ms):
            return False
        return self.expiry_date - now_ms < horizon_ms

    def merged_with(self, refreshed: "Credential") -> "Credential":
        """Return the refreshed credential, keeping fields the refresh omitted."""
        return Credential(
            access_token=refreshed.access_token or self.access_token,
            refresh_token=refreshed.refresh_token or self.refresh_token,
            token_type=refreshed.token_type or self.token_type,
            expiry_date=refreshed.expiry_date,
        )


class ClientKeys(BaseModel):
    """OAuth client identity from a Google client-secret document.

    Attributes:
        client_id: OAuth client ID.
        client_secret: OAuth client secret.
        redirect_uris: Registered redirect URIs.
        client_type: Top-level key the document used ("installed" or "web").
    """

    client_id: str = Field(..., min_length=1)
    client_secret: str = Field(..., min_length=1)
    redirect_uris: list[str] = Field(default_factory=list)
    auth_uri: str = GOOGLE_AUTH_URI
    token_uri: str = GOOGLE_TOKEN_URI
    client_type: Literal["installed", "web"] = "installed"

    model_config = {"extra": "ignore"}

    @classmethod
    def from_document(cls, data: Any) -> "ClientKeys":
        """Parse a client-secret document with an ``installed`` or ``web`` key.

        Raises:
            ValueError: If neither key holds a client definition.
        """
        if not isinstance(data, dict):
            raise ValueError("client key document must be a JSON object")
        for client_type in ("installed", "web"):
            section = data.get(client_type)
            if isinstance(section, dict):
                return cls.model_validate({**section, "client_type": client_type})
        raise ValueError("client key document has no 'installed' or 'web' section")

    def to_client_config(self) -> dict[str, Any]:
        """Client config in the shape google-auth-oauthlib expects."""
        return {
            self.client_type: {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": self.auth_uri,
                "token_uri": self.token_uri,
                "redirect_uris": self.redirect_uris,
            }
        }


class StoredToken(BaseModel):
    """Persisted token document written to token.json."""

    type: str = "authorized_user"
    client_id: str
    client_secret: str
    refresh_token: str | None = None
    access_token: str | None = None
    token_type: str | None = None
    expiry_date: int | None = None

    @classmethod
    def build(cls, credential: Credential, keys: ClientKeys) -> "StoredToken":
        return cls(
            client_id=keys.client_id,
            client_secret=keys.client_secret,
            refresh_token=credential.refresh_token,
            access_token=credential.access_token,
            token_type=credential.token_type,
            expiry_date=credential.expiry_date,
        )
