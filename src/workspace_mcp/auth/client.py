"""Authenticated client handle shared with remote-service code."""

import asyncio

from google.oauth2.credentials import Credentials

from workspace_mcp.auth.errors import TokenRefreshError
from workspace_mcp.auth.models import (
    ClientKeys,
    Credential,
    datetime_to_millis,
    millis_to_datetime,
)


def credential_from_google(credentials: Credentials) -> Credential:
    """Convert google-auth Credentials to a Credential record."""
    expiry_date = datetime_to_millis(credentials.expiry) if credentials.expiry else None
    return Credential(
        access_token=credentials.token,
        refresh_token=credentials.refresh_token,
        token_type="Bearer",
        expiry_date=expiry_date,
    )


class AuthClient:
    """A Credential plus the client keys needed to refresh it.

    Only CredentialManager mutates the credential. Remote-service code reads
    ``access_token`` and nothing else.

    Attributes:
        credential: Current token record.
        keys: OAuth client identity used for refresh.
        source: Where the credential was loaded from (for diagnostics).
        lock: Serializes refresh-then-persist for this client.
    """

    def __init__(self, credential: Credential, keys: ClientKeys, source: str = "interactive") -> None:
        self.credential = credential
        self.keys = keys
        self.source = source
        self.lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"AuthClient(source={self.source!r}, expiry_date={self.credential.expiry_date!r})"

    @property
    def access_token(self) -> str | None:
        return self.credential.access_token

    def update(self, refreshed: Credential) -> Credential:
        """Install a refreshed credential.

        Fields the token endpoint did not return (usually the refresh token)
        are carried over from the current credential.

        Raises:
            TokenRefreshError: If the refreshed expiry is not strictly later
                than the current one. A token is never downgraded.
        """
        current = self.credential.expiry_date
        new = refreshed.expiry_date
        if new is None or (current is not None and new <= current):
            raise TokenRefreshError(
                f"Refreshed token expiry {new} does not extend current expiry {current}"
            )
        self.credential = self.credential.merged_with(refreshed)
        return self.credential

    def to_google_credentials(self, scopes: list[str] | None = None) -> Credentials:
        """Build google-auth Credentials for refresh or API use."""
        expiry = None
        if self.credential.expiry_date is not None:
            # google-auth compares against naive UTC datetimes
            expiry = millis_to_datetime(self.credential.expiry_date).replace(tzinfo=None)

        return Credentials(  # nosec B106 - token_uri is public Google OAuth endpoint
            token=self.credential.access_token,
            refresh_token=self.credential.refresh_token,
            token_uri=self.keys.token_uri,
            client_id=self.keys.client_id,
            client_secret=self.keys.client_secret,
            scopes=scopes,
            expiry=expiry,
        )
