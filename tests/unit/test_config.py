"""Unit tests for environment-driven settings."""

from pathlib import Path

import pytest

from workspace_mcp.config import (
    DEFAULT_REDIRECT_URI,
    DEFAULT_TIMEZONE,
    WORKSPACE_SCOPES,
    Settings,
)


@pytest.mark.unit
class TestSettingsFromEnv:
    """Tests for Settings.from_env()."""

    def test_should_apply_defaults(self) -> None:
        settings = Settings.from_env({})

        assert settings.home == Path.cwd() / ".workspace-mcp"
        assert settings.token_json is None
        assert settings.credentials_json is None
        assert settings.redirect_uri == DEFAULT_REDIRECT_URI
        assert settings.timezone == DEFAULT_TIMEZONE == "America/Montevideo"
        assert settings.log_level == "INFO"

    def test_should_read_overrides(self, tmp_path: Path) -> None:
        settings = Settings.from_env(
            {
                "WORKSPACE_MCP_HOME": str(tmp_path),
                "GOOGLE_TOKEN": '{"access_token": "a"}',
                "GOOGLE_CREDENTIALS": '{"installed": {}}',
                "GOOGLE_OAUTH_REDIRECT_URI": "http://localhost:9000/cb",
                "WORKSPACE_MCP_TIMEZONE": "Europe/Madrid",
                "WORKSPACE_MCP_LOG_LEVEL": "debug",
            }
        )

        assert settings.home == tmp_path
        assert settings.token_json == '{"access_token": "a"}'
        assert settings.credentials_json == '{"installed": {}}'
        assert settings.redirect_uri == "http://localhost:9000/cb"
        assert settings.timezone == "Europe/Madrid"
        assert settings.log_level == "DEBUG"

    def test_should_treat_empty_inline_json_as_unset(self) -> None:
        settings = Settings.from_env({"GOOGLE_TOKEN": "", "GOOGLE_CREDENTIALS": ""})

        assert settings.token_json is None
        assert settings.credentials_json is None

    def test_should_derive_file_paths_from_home(self, tmp_path: Path) -> None:
        settings = Settings(home=tmp_path)

        assert settings.token_path == tmp_path / "token.json"
        assert settings.credentials_path == tmp_path / "credentials.json"

    def test_should_read_process_environment(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("WORKSPACE_MCP_HOME", str(tmp_path))

        assert Settings.from_env().home == tmp_path


@pytest.mark.unit
class TestWorkspaceScopes:
    """Tests for WORKSPACE_SCOPES constant."""

    @pytest.mark.parametrize(
        "scope",
        [
            "https://www.googleapis.com/auth/gmail.modify",
            "https://www.googleapis.com/auth/calendar",
            "https://www.googleapis.com/auth/documents",
            "https://www.googleapis.com/auth/drive",
            "https://www.googleapis.com/auth/fitness.activity.read",
            "https://www.googleapis.com/auth/fitness.activity.write",
        ],
    )
    def test_should_include_scope(self, scope: str) -> None:
        assert scope in WORKSPACE_SCOPES

    def test_should_have_six_scopes(self) -> None:
        assert len(WORKSPACE_SCOPES) == 6
