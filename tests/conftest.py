"""Shared pytest fixtures for workspace-mcp tests.

This module provides reusable fixtures for credentials, client keys, token
storage, a CredentialManager wired to fake OAuth collaborators, and a
WorkspaceServer with an injected client.
"""

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from workspace_mcp.auth.client import AuthClient
from workspace_mcp.auth.credential_manager import CredentialManager
from workspace_mcp.auth.models import ClientKeys, Credential
from workspace_mcp.auth.token_storage import TokenStorage
from workspace_mcp.config import Settings

# 2025-01-15T10:00:00Z
NOW_MS = 1_736_935_200_000
HOUR_MS = 60 * 60 * 1000
MINUTE_MS = 60 * 1000

# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temporary credentials directory."""
    return Settings(home=tmp_path / ".workspace-mcp")


@pytest.fixture
def workspace_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Point environment-driven code at a temporary home with no overrides."""
    home = tmp_path / ".workspace-mcp"
    monkeypatch.setenv("WORKSPACE_MCP_HOME", str(home))
    for name in ("GOOGLE_TOKEN", "GOOGLE_CREDENTIALS", "GOOGLE_OAUTH_REDIRECT_URI"):
        monkeypatch.delenv(name, raising=False)
    return home


# =============================================================================
# Client Key Fixtures
# =============================================================================


@pytest.fixture
def client_key_document() -> dict[str, Any]:
    """A client-secret document as downloaded from Google Cloud Console."""
    return {
        "installed": {
            "client_id": "test-client-id.apps.googleusercontent.com",
            "client_secret": "test-client-secret",  # pragma: allowlist secret
            "redirect_uris": ["http://localhost"],
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
        }
    }


@pytest.fixture
def client_keys(client_key_document: dict[str, Any]) -> ClientKeys:
    return ClientKeys.from_document(client_key_document)


@pytest.fixture
def write_client_keys(settings: Settings, client_key_document: dict[str, Any]):
    """Write credentials.json into the settings home and return its path."""

    def _write(document: dict[str, Any] | None = None) -> Path:
        settings.home.mkdir(parents=True, exist_ok=True)
        settings.credentials_path.write_text(json.dumps(document or client_key_document))
        return settings.credentials_path

    return _write


# =============================================================================
# Credential Fixtures
# =============================================================================


@pytest.fixture
def valid_credential() -> Credential:
    """Credential expiring one hour after NOW_MS."""
    return Credential(
        access_token="test_access_token_abc123",
        refresh_token="test_refresh_token_xyz789",
        token_type="Bearer",
        expiry_date=NOW_MS + HOUR_MS,
    )


@pytest.fixture
def expiring_credential() -> Credential:
    """Credential expiring two minutes after NOW_MS."""
    return Credential(
        access_token="expiring_access_token",
        refresh_token="test_refresh_token_xyz789",
        expiry_date=NOW_MS + 2 * MINUTE_MS,
    )


@pytest.fixture
def expired_credential() -> Credential:
    """Credential that expired one millisecond before NOW_MS."""
    return Credential(
        access_token="expired_access_token",
        refresh_token="test_refresh_token_xyz789",
        expiry_date=NOW_MS - 1,
    )


@pytest.fixture
def refreshed_credential() -> Credential:
    """What the token endpoint returns: no refresh token, later expiry."""
    return Credential(
        access_token="refreshed_access_token",
        token_type="Bearer",
        expiry_date=NOW_MS + HOUR_MS + 30 * MINUTE_MS,
    )


@pytest.fixture
def auth_client(valid_credential: Credential, client_keys: ClientKeys) -> AuthClient:
    return AuthClient(valid_credential, client_keys, source="file")


# =============================================================================
# Storage and Manager Fixtures
# =============================================================================


@pytest.fixture
def token_storage(settings: Settings) -> TokenStorage:
    """TokenStorage writing into the temporary home."""
    return TokenStorage(settings.token_path)


@pytest.fixture
def token_endpoint(refreshed_credential: Credential) -> MagicMock:
    """Fake TokenEndpoint that always refreshes successfully."""
    endpoint = MagicMock()
    endpoint.refresh_access_token = AsyncMock(return_value=refreshed_credential)
    endpoint.probe_access_token = AsyncMock(side_effect=lambda client: client.credential)
    return endpoint


@pytest.fixture
def authorization_provider() -> MagicMock:
    """Fake AuthorizationProvider granting a fresh credential."""
    provider = MagicMock()
    provider.authorize = AsyncMock(
        return_value=Credential(
            access_token="granted_access_token",
            refresh_token="granted_refresh_token",
            expiry_date=NOW_MS + HOUR_MS,
        )
    )
    return provider


@pytest.fixture
def manager(
    settings: Settings,
    token_storage: TokenStorage,
    token_endpoint: MagicMock,
    authorization_provider: MagicMock,
) -> CredentialManager:
    """CredentialManager with fake collaborators and a clock fixed at NOW_MS."""
    return CredentialManager(
        settings=settings,
        storage=token_storage,
        token_endpoint=token_endpoint,
        authorization_provider=authorization_provider,
        clock=lambda: NOW_MS,
    )


# =============================================================================
# CLI Test Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
