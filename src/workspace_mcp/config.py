"""Runtime configuration for workspace-mcp.

All settings come from environment variables so the server can be launched
by an MCP host without command-line flags.

Environment Variables:
    WORKSPACE_MCP_HOME: Directory holding token.json and credentials.json
        (default: ./.workspace-mcp).
    GOOGLE_TOKEN: Inline token JSON, checked before the token file.
    GOOGLE_CREDENTIALS: Inline client-key JSON, checked before credentials.json.
    GOOGLE_OAUTH_REDIRECT_URI: Redirect URI for the interactive grant
        (default: http://127.0.0.1:8789/callback).
    WORKSPACE_MCP_TIMEZONE: Timezone attached to created/updated events
        (default: America/Montevideo).
    WORKSPACE_MCP_LOG_LEVEL: Logging level name (default: INFO).
"""

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field

# Environment variable names
HOME_ENV = "WORKSPACE_MCP_HOME"
TOKEN_ENV = "GOOGLE_TOKEN"
CREDENTIALS_ENV = "GOOGLE_CREDENTIALS"
REDIRECT_URI_ENV = "GOOGLE_OAUTH_REDIRECT_URI"
TIMEZONE_ENV = "WORKSPACE_MCP_TIMEZONE"
LOG_LEVEL_ENV = "WORKSPACE_MCP_LOG_LEVEL"

TOKEN_FILENAME = "token.json"
CREDENTIALS_FILENAME = "credentials.json"

DEFAULT_REDIRECT_URI = "http://127.0.0.1:8789/callback"
DEFAULT_TIMEZONE = "America/Montevideo"

# Gmail, Calendar, Docs, Drive and Fit scopes
WORKSPACE_SCOPES = [
    "https://www.googleapis.com/auth/gmail.modify",
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/documents",
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/fitness.activity.read",
    "https://www.googleapis.com/auth/fitness.activity.write",
]


def default_home() -> Path:
    """Project-level credentials directory."""
    return Path.cwd() / ".workspace-mcp"


class Settings(BaseModel):
    """Resolved configuration.

    Attributes:
        home: Directory holding the token and client-key files.
        token_json: Inline token JSON from the environment, if any.
        credentials_json: Inline client-key JSON from the environment, if any.
        redirect_uri: Callback URI used by the interactive grant.
        timezone: IANA timezone name attached to calendar writes.
        log_level: Logging level name.
    """

    home: Path = Field(default_factory=default_home)
    token_json: str | None = None
    credentials_json: str | None = None
    redirect_uri: str = DEFAULT_REDIRECT_URI
    timezone: str = DEFAULT_TIMEZONE
    log_level: str = "INFO"

    @property
    def token_path(self) -> Path:
        return self.home / TOKEN_FILENAME

    @property
    def credentials_path(self) -> Path:
        return self.home / CREDENTIALS_FILENAME

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            Settings with defaults applied for unset variables.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {
            "token_json": env.get(TOKEN_ENV) or None,
            "credentials_json": env.get(CREDENTIALS_ENV) or None,
            "redirect_uri": env.get(REDIRECT_URI_ENV, DEFAULT_REDIRECT_URI),
            "timezone": env.get(TIMEZONE_ENV, DEFAULT_TIMEZONE),
            "log_level": env.get(LOG_LEVEL_ENV, "INFO").upper(),
        }
        if env.get(HOME_ENV):
            values["home"] = Path(env[HOME_ENV]).expanduser()
        return cls.model_validate(values)
