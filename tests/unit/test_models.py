"""Unit tests for credential models and AuthClient."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from tests.conftest import HOUR_MS, NOW_MS
from workspace_mcp.auth.client import AuthClient, credential_from_google
from workspace_mcp.auth.errors import TokenRefreshError
from workspace_mcp.auth.models import (
    REFRESH_HORIZON_MS,
    ClientKeys,
    Credential,
    StoredToken,
    datetime_to_millis,
    millis_to_datetime,
)


@pytest.mark.unit
class TestCredential:
    """Tests for Credential expiry classification."""

    def test_should_require_access_or_refresh_token(self) -> None:
        with pytest.raises(ValidationError):
            Credential(token_type="Bearer", expiry_date=NOW_MS)

    def test_should_accept_refresh_token_only(self) -> None:
        credential = Credential(refresh_token="r")
        assert credential.access_token is None

    def test_should_ignore_unknown_fields(self) -> None:
        credential = Credential.model_validate(
            {"access_token": "a", "scope": "https://www.googleapis.com/auth/calendar"}
        )
        assert credential.access_token == "a"

    def test_should_treat_missing_expiry_as_expired(self) -> None:
        assert Credential(access_token="a").is_expired(NOW_MS) is True

    def test_should_treat_expiry_equal_to_now_as_expired(self) -> None:
        assert Credential(access_token="a", expiry_date=NOW_MS).is_expired(NOW_MS) is True

    def test_should_not_be_expired_before_expiry(self) -> None:
        assert Credential(access_token="a", expiry_date=NOW_MS + 1).is_expired(NOW_MS) is False

    def test_should_be_expiring_inside_horizon(self) -> None:
        credential = Credential(access_token="a", expiry_date=NOW_MS + REFRESH_HORIZON_MS - 1)
        assert credential.is_expiring(NOW_MS) is True

    def test_should_not_be_expiring_at_horizon(self) -> None:
        credential = Credential(access_token="a", expiry_date=NOW_MS + REFRESH_HORIZON_MS)
        assert credential.is_expiring(NOW_MS) is False

    def test_should_not_report_expired_token_as_expiring(self) -> None:
        credential = Credential(access_token="a", expiry_date=NOW_MS - 1)
        assert credential.is_expiring(NOW_MS) is False

    def test_should_not_report_token_without_expiry_as_expiring(self) -> None:
        assert Credential(access_token="a").is_expiring(NOW_MS) is False

    def test_should_expose_expiry_as_datetime(self) -> None:
        credential = Credential(access_token="a", expiry_date=NOW_MS)
        assert credential.expires_at == datetime(2025, 1, 15, 10, tzinfo=timezone.utc)

    def test_should_keep_refresh_token_when_merging(self) -> None:
        current = Credential(access_token="old", refresh_token="r", expiry_date=NOW_MS)
        merged = current.merged_with(Credential(access_token="new", expiry_date=NOW_MS + 1))

        assert merged.access_token == "new"
        assert merged.refresh_token == "r"
        assert merged.expiry_date == NOW_MS + 1


@pytest.mark.unit
class TestMillisConversion:
    def test_should_round_trip_aware_datetime(self) -> None:
        assert datetime_to_millis(millis_to_datetime(NOW_MS)) == NOW_MS

    def test_should_read_naive_datetime_as_utc(self) -> None:
        assert datetime_to_millis(datetime(2025, 1, 15, 10)) == NOW_MS


@pytest.mark.unit
class TestClientKeys:
    """Tests for parsing client-secret documents."""

    def test_should_parse_installed_section(self, client_key_document: dict) -> None:
        keys = ClientKeys.from_document(client_key_document)

        assert keys.client_type == "installed"
        assert keys.client_id == "test-client-id.apps.googleusercontent.com"
        assert keys.redirect_uris == ["http://localhost"]

    def test_should_parse_web_section(self) -> None:
        keys = ClientKeys.from_document({"web": {"client_id": "id", "client_secret": "s"}})

        assert keys.client_type == "web"
        assert keys.token_uri == "https://oauth2.googleapis.com/token"

    def test_should_prefer_installed_over_web(self) -> None:
        keys = ClientKeys.from_document(
            {
                "installed": {"client_id": "installed-id", "client_secret": "s"},
                "web": {"client_id": "web-id", "client_secret": "s"},
            }
        )
        assert keys.client_id == "installed-id"

    def test_should_reject_document_without_client_section(self) -> None:
        with pytest.raises(ValueError, match="no 'installed' or 'web'"):
            ClientKeys.from_document({"other": {}})

    def test_should_reject_empty_client_id(self) -> None:
        with pytest.raises(ValidationError):
            ClientKeys.from_document({"installed": {"client_id": "", "client_secret": "s"}})

    def test_should_build_oauthlib_client_config(self, client_keys: ClientKeys) -> None:
        config = client_keys.to_client_config()

        assert list(config) == ["installed"]
        assert config["installed"]["client_id"] == client_keys.client_id
        assert config["installed"]["auth_uri"] == "https://accounts.google.com/o/oauth2/auth"


@pytest.mark.unit
class TestStoredToken:
    def test_should_combine_credential_and_keys(
        self, valid_credential: Credential, client_keys: ClientKeys
    ) -> None:
        stored = StoredToken.build(valid_credential, client_keys)

        assert stored.type == "authorized_user"
        assert stored.client_id == client_keys.client_id
        assert stored.client_secret == client_keys.client_secret
        assert stored.refresh_token == valid_credential.refresh_token
        assert stored.expiry_date == valid_credential.expiry_date


@pytest.mark.unit
class TestAuthClient:
    """Tests for AuthClient.update() and google-auth conversion."""

    def test_should_install_later_credential(self, auth_client: AuthClient) -> None:
        auth_client.update(Credential(access_token="new", expiry_date=NOW_MS + 2 * HOUR_MS))

        assert auth_client.access_token == "new"
        assert auth_client.credential.refresh_token == "test_refresh_token_xyz789"

    def test_should_reject_earlier_expiry(self, auth_client: AuthClient) -> None:
        with pytest.raises(TokenRefreshError):
            auth_client.update(Credential(access_token="new", expiry_date=NOW_MS))

        assert auth_client.access_token == "test_access_token_abc123"

    def test_should_reject_credential_without_expiry(self, auth_client: AuthClient) -> None:
        with pytest.raises(TokenRefreshError):
            auth_client.update(Credential(access_token="new"))

    def test_should_convert_to_google_credentials(self, auth_client: AuthClient) -> None:
        credentials = auth_client.to_google_credentials()

        assert credentials.token == "test_access_token_abc123"
        assert credentials.refresh_token == "test_refresh_token_xyz789"
        assert credentials.client_id == auth_client.keys.client_id
        assert credentials.expiry == datetime(2025, 1, 15, 11)

    def test_should_convert_from_google_credentials(self, auth_client: AuthClient) -> None:
        credential = credential_from_google(auth_client.to_google_credentials())

        assert credential == auth_client.credential

    def test_should_not_show_token_in_repr(self, auth_client: AuthClient) -> None:
        assert "test_access_token" not in repr(auth_client)
