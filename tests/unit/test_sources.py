"""Unit tests for credential and client-key sources."""

import json
from pathlib import Path

import pytest

from workspace_mcp.auth.errors import CredentialFormatError
from workspace_mcp.auth.models import ClientKeys, Credential, StoredToken
from workspace_mcp.auth.sources import (
    EnvironmentKeySource,
    EnvironmentTokenSource,
    FileKeySource,
    FileTokenSource,
    default_credential_sources,
    resolve_keys,
)
from workspace_mcp.auth.token_storage import TokenStorage
from workspace_mcp.config import Settings


@pytest.mark.unit
class TestKeySources:
    """Tests for EnvironmentKeySource, FileKeySource and resolve_keys."""

    def test_should_return_none_for_unset_environment(self) -> None:
        assert EnvironmentKeySource(None).load_keys() is None
        assert EnvironmentKeySource("").load_keys() is None

    def test_should_parse_environment_keys(self, client_key_document: dict) -> None:
        keys = EnvironmentKeySource(json.dumps(client_key_document)).load_keys()

        assert keys is not None
        assert keys.client_secret == "test-client-secret"  # pragma: allowlist secret

    def test_should_raise_on_invalid_environment_json(self) -> None:
        with pytest.raises(CredentialFormatError, match="GOOGLE_CREDENTIALS"):
            EnvironmentKeySource("{oops").load_keys()

    def test_should_raise_on_environment_document_without_client(self) -> None:
        with pytest.raises(CredentialFormatError):
            EnvironmentKeySource(json.dumps({"client_id": "flat"})).load_keys()

    def test_should_return_none_for_missing_file(self, tmp_path: Path) -> None:
        assert FileKeySource(tmp_path / "credentials.json").load_keys() is None

    def test_should_parse_key_file(self, write_client_keys, client_keys: ClientKeys) -> None:
        path = write_client_keys()

        assert FileKeySource(path).load_keys() == client_keys

    def test_should_resolve_first_available_source(
        self, tmp_path: Path, write_client_keys
    ) -> None:
        path = write_client_keys()
        env_document = {"web": {"client_id": "env-id", "client_secret": "env-secret"}}

        keys = resolve_keys([EnvironmentKeySource(json.dumps(env_document)), FileKeySource(path)])
        assert keys is not None
        assert keys.client_id == "env-id"

        keys = resolve_keys([EnvironmentKeySource(None), FileKeySource(path)])
        assert keys is not None
        assert keys.client_type == "installed"

    def test_should_resolve_none_when_no_source_has_keys(self, tmp_path: Path) -> None:
        assert resolve_keys([EnvironmentKeySource(None), FileKeySource(tmp_path / "x")]) is None


@pytest.mark.unit
class TestTokenSources:
    """Tests for EnvironmentTokenSource and FileTokenSource."""

    def test_should_return_none_for_unset_environment_token(self) -> None:
        assert EnvironmentTokenSource(None, []).load() is None

    def test_should_load_environment_token(
        self, valid_credential: Credential, client_key_document: dict
    ) -> None:
        source = EnvironmentTokenSource(
            valid_credential.model_dump_json(),
            [EnvironmentKeySource(json.dumps(client_key_document))],
        )

        client = source.load()

        assert client is not None
        assert client.source == "environment"
        assert client.credential == valid_credential

    def test_should_raise_on_invalid_environment_token(self, client_key_document: dict) -> None:
        source = EnvironmentTokenSource(
            "not-json", [EnvironmentKeySource(json.dumps(client_key_document))]
        )

        with pytest.raises(CredentialFormatError, match="GOOGLE_TOKEN"):
            source.load()

    def test_should_require_keys_for_environment_token(self, valid_credential: Credential) -> None:
        source = EnvironmentTokenSource(valid_credential.model_dump_json(), [])

        with pytest.raises(CredentialFormatError, match="no client keys"):
            source.load()

    def test_should_return_none_for_missing_token_file(
        self, token_storage: TokenStorage, write_client_keys
    ) -> None:
        path = write_client_keys()

        assert FileTokenSource(token_storage, [FileKeySource(path)]).load() is None

    def test_should_load_token_file(
        self,
        token_storage: TokenStorage,
        valid_credential: Credential,
        client_keys: ClientKeys,
        write_client_keys,
    ) -> None:
        path = write_client_keys()
        token_storage.write(StoredToken.build(valid_credential, client_keys))

        client = FileTokenSource(token_storage, [FileKeySource(path)]).load()

        assert client is not None
        assert client.source == "file"
        assert client.credential == valid_credential
        assert client.keys == client_keys


@pytest.mark.unit
class TestDefaultSources:
    def test_should_order_environment_before_file(self, settings: Settings) -> None:
        storage = TokenStorage(settings.token_path)

        sources = default_credential_sources(settings, storage)

        assert [s.name for s in sources] == ["environment", "file"]

    def test_should_pair_token_file_with_credentials_file_only(
        self,
        tmp_path: Path,
        valid_credential: Credential,
        client_keys: ClientKeys,
        client_key_document: dict,
    ) -> None:
        """Verify GOOGLE_CREDENTIALS alone does not unlock token.json."""
        settings = Settings(home=tmp_path / "home", credentials_json=json.dumps(client_key_document))
        storage = TokenStorage(settings.token_path)
        storage.write(StoredToken.build(valid_credential, client_keys))

        _, file_source = default_credential_sources(settings, storage)

        with pytest.raises(CredentialFormatError):
            file_source.load()
