"""OAuth2 credential lifecycle for workspace-mcp.

CredentialManager loads a credential from the configured sources, keeps it
fresh before every remote call, persists it after each refresh, and falls
back to an interactive grant when no usable credential exists.

Refresh policy (``ensure_valid``):

- no expiry recorded, or expired: mandatory refresh. Failure raises
  AuthExpiredError and the caller must re-authorize.
- expiring within five minutes: best-effort refresh. Failure is logged and
  the current token keeps being used.
- otherwise: nothing to do.
"""

import logging
from collections.abc import Callable, Sequence
from pathlib import Path

from workspace_mcp.auth.client import AuthClient
from workspace_mcp.auth.errors import (
    AuthError,
    AuthExpiredError,
    CredentialFormatError,
    CredentialNotFoundError,
    RefreshTransientError,
)
from workspace_mcp.auth.models import (
    REFRESH_HORIZON_MS,
    Credential,
    CredentialState,
    StoredToken,
    TokenStatus,
    now_millis,
)
from workspace_mcp.auth.providers import (
    AuthorizationProvider,
    GoogleTokenEndpoint,
    LocalServerAuthorizationProvider,
    TokenEndpoint,
)
from workspace_mcp.auth.sources import (
    CredentialSource,
    KeySource,
    default_credential_sources,
    default_key_sources,
    resolve_keys,
)
from workspace_mcp.auth.token_storage import TokenStorage
from workspace_mcp.config import WORKSPACE_SCOPES, Settings

logger = logging.getLogger(__name__)


class CredentialManager:
    """Owns the credential lifecycle for a single AuthClient.

    Attributes:
        settings: Resolved configuration.
        storage: Token file persistence.
        sources: Ordered credential sources tried by ``load``.
        key_sources: Ordered client-key sources used by ``save`` and
            ``authorize``.
        token_endpoint: Remote refresh/probe collaborator.
        authorization_provider: Interactive consent collaborator.
        state: Current lifecycle state.

    Example:
        ```python
        manager = CredentialManager()
        client = await manager.authorize()

        # before each remote call
        await manager.ensure_valid(client)
        headers = {"Authorization": f"Bearer {client.access_token}"}
        ```
    """

    def __init__(
        self,
        settings: Settings | None = None,
        storage: TokenStorage | None = None,
        sources: Sequence[CredentialSource] | None = None,
        key_sources: Sequence[KeySource] | None = None,
        token_endpoint: TokenEndpoint | None = None,
        authorization_provider: AuthorizationProvider | None = None,
        clock: Callable[[], int] = now_millis,
        refresh_horizon_ms: int = REFRESH_HORIZON_MS,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.storage = storage or TokenStorage(self.settings.token_path)
        self.sources = list(
            default_credential_sources(self.settings, self.storage) if sources is None else sources
        )
        self.key_sources = list(
            default_key_sources(self.settings) if key_sources is None else key_sources
        )
        self.token_endpoint = token_endpoint or GoogleTokenEndpoint()
        self.authorization_provider = authorization_provider or LocalServerAuthorizationProvider(
            redirect_uri=self.settings.redirect_uri
        )
        self.clock = clock
        self.refresh_horizon_ms = refresh_horizon_ms
        self.state = CredentialState.UNLOADED

    @property
    def token_path(self) -> Path:
        return self.storage.token_path

    def _classify(self, credential: Credential) -> CredentialState:
        now = self.clock()
        if credential.is_expired(now):
            return CredentialState.EXPIRED
        if credential.is_expiring(now, self.refresh_horizon_ms):
            return CredentialState.EXPIRING
        return CredentialState.VALID

    def load(self) -> AuthClient | None:
        """Load a credential from the first source that has one.

        Returns:
            AuthClient, or None when no source holds a credential.

        Raises:
            CredentialFormatError: If a source exists but is malformed.
        """
        for source in self.sources:
            client = source.load()
            if client is not None:
                self.state = self._classify(client.credential)
                return client

        logger.info("No saved token found, authentication required")
        return None

    def save(self, client: AuthClient) -> None:
        """Persist the client's credential merged with the client keys."""
        keys = resolve_keys(self.key_sources) or client.keys
        self.storage.write(StoredToken.build(client.credential, keys))
        logger.info("Credentials saved to %s", self.storage.token_path)

    async def _refresh(self, client: AuthClient) -> None:
        self.state = CredentialState.REFRESHING
        refreshed = await self.token_endpoint.refresh_access_token(client)
        client.update(refreshed)
        self.state = CredentialState.VALID
        try:
            self.save(client)
        except (OSError, AuthError) as e:
            # In-memory token is fresh; only persistence failed
            logger.error("Failed to persist refreshed token: %s", e)

    async def ensure_valid(self, client: AuthClient) -> None:
        """Refresh the client's token if it is expired or about to expire.

        Raises:
            AuthExpiredError: If the token is expired and refresh fails.
        """
        if self._classify(client.credential) is CredentialState.VALID:
            self.state = CredentialState.VALID
            return

        async with client.lock:
            # Another caller may have refreshed while we waited
            state = self._classify(client.credential)

            if state is CredentialState.EXPIRED:
                logger.info("Token expired, refreshing...")
                try:
                    await self._refresh(client)
                except Exception as e:
                    self.state = CredentialState.FAILED
                    logger.error("Token refresh failed: %s", e)
                    raise AuthExpiredError(
                        "Token is invalid and could not be refreshed. Re-authentication "
                        f"required: delete {self.storage.token_path} and run "
                        "'workspace-mcp setup'."
                    ) from e
                logger.info("Token refreshed")

            elif state is CredentialState.EXPIRING:
                logger.info("Token about to expire, refreshing proactively...")
                try:
                    await self._refresh(client)
                except Exception as e:
                    self.state = CredentialState.EXPIRING
                    logger.warning(
                        "Proactive token refresh failed, using current token: %s",
                        e,
                        exc_info=RefreshTransientError(str(e)),
                    )
                else:
                    logger.info("Token refreshed proactively")

            else:
                self.state = CredentialState.VALID

    async def authorize(
        self, scopes: list[str] | None = None, force_interactive: bool = False
    ) -> AuthClient:
        """Return an AuthClient, running the interactive grant if needed.

        A loaded credential is probed once against the token endpoint. If the
        probe fails, the interactive grant takes over. The resulting
        credential is saved before returning. With ``force_interactive`` no
        source is consulted and the interactive grant always runs.

        Raises:
            CredentialFormatError: If a stored credential is malformed.
            CredentialNotFoundError: If no client keys are configured.
            AuthorizationError: If the interactive grant fails.
        """
        if scopes is None:
            scopes = WORKSPACE_SCOPES

        client = None if force_interactive else self.load()
        if client is not None:
            try:
                probed = await self.token_endpoint.probe_access_token(client)
                if probed != client.credential:
                    client.update(probed)
            except AuthError as e:
                logger.warning("Saved token is invalid, re-authentication required: %s", e)
            else:
                self.save(client)
                self.state = self._classify(client.credential)
                return client

        keys = resolve_keys(self.key_sources)
        if keys is None:
            raise CredentialNotFoundError(
                "No OAuth client keys found. Set GOOGLE_CREDENTIALS or place "
                f"credentials.json in {self.settings.home}"
            )

        credential = await self.authorization_provider.authorize(scopes, keys)
        client = AuthClient(credential, keys, source="interactive")
        self.save(client)
        self.state = self._classify(client.credential)
        logger.info("Authentication successful")
        return client

    def get_status(self) -> tuple[TokenStatus, AuthClient | None]:
        """Report the status of the configured credential without refreshing.

        Returns:
            Tuple of (TokenStatus, AuthClient or None).
        """
        try:
            client = self.load()
        except CredentialFormatError as e:
            logger.warning("Stored credential is malformed: %s", e)
            return (TokenStatus.INVALID, None)

        if client is None:
            return (TokenStatus.MISSING, None)

        state = self._classify(client.credential)
        if state is CredentialState.EXPIRED:
            return (TokenStatus.EXPIRED, client)
        if state is CredentialState.EXPIRING:
            return (TokenStatus.EXPIRING, client)
        return (TokenStatus.VALID, client)

    def logout(self) -> bool:
        """Delete the persisted token.

        Returns:
            True if a token file was removed.
        """
        removed = self.storage.delete()
        self.state = CredentialState.UNLOADED
        return removed
