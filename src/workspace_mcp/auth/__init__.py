"""OAuth credential lifecycle for workspace-mcp.

Quick Start:
    ```python
    from workspace_mcp.auth import CredentialManager

    manager = CredentialManager()

    # Load, probe, or run the browser consent flow
    client = await manager.authorize()

    # Before each API call
    await manager.ensure_valid(client)
    ```
"""

from workspace_mcp.auth.client import AuthClient
from workspace_mcp.auth.credential_manager import CredentialManager
from workspace_mcp.auth.errors import (
    AuthError,
    AuthExpiredError,
    AuthorizationError,
    CredentialFormatError,
    CredentialNotFoundError,
    RefreshTransientError,
    TokenRefreshError,
)
from workspace_mcp.auth.models import (
    ClientKeys,
    Credential,
    CredentialState,
    StoredToken,
    TokenStatus,
)
from workspace_mcp.auth.providers import (
    AuthorizationProvider,
    GoogleTokenEndpoint,
    LocalServerAuthorizationProvider,
    TokenEndpoint,
)
from workspace_mcp.auth.token_storage import TokenStorage

__all__ = [
    "AuthClient",
    "AuthError",
    "AuthExpiredError",
    "AuthorizationError",
    "AuthorizationProvider",
    "ClientKeys",
    "Credential",
    "CredentialFormatError",
    "CredentialManager",
    "CredentialNotFoundError",
    "CredentialState",
    "GoogleTokenEndpoint",
    "LocalServerAuthorizationProvider",
    "RefreshTransientError",
    "StoredToken",
    "TokenEndpoint",
    "TokenRefreshError",
    "TokenStatus",
    "TokenStorage",
]
