"""JSON token persistence for workspace-mcp.

Storage Location: ./.workspace-mcp/token.json (override with WORKSPACE_MCP_HOME)

The token file holds a single authorized-user record:

    {"type": "authorized_user", "client_id": ..., "client_secret": ...,
     "refresh_token": ..., "access_token": ..., "token_type": ...,
     "expiry_date": <epoch ms>}

Writes go to a temporary file in the same directory which is then renamed
over the token file, so a crash never leaves a truncated token behind.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from workspace_mcp.auth.errors import CredentialFormatError
from workspace_mcp.auth.models import StoredToken

logger = logging.getLogger(__name__)


class TokenStorage:
    """File-backed storage for the authorized-user token.

    Attributes:
        token_path: Path to the token.json file.

    Example:
        ```python
        storage = TokenStorage(Path(".workspace-mcp/token.json"))

        storage.write(StoredToken.build(credential, keys))
        data = storage.read()  # None when the file does not exist
        ```
    """

    def __init__(self, token_path: Path) -> None:
        """Initialize token storage.

        Args:
            token_path: Location of token.json. The parent directory is
                created on first write.
        """
        self.token_path = token_path

    @property
    def credentials_dir(self) -> Path:
        return self.token_path.parent

    def exists(self) -> bool:
        return self.token_path.exists()

    def _ensure_credentials_dir(self) -> None:
        """Create credentials directory with secure permissions if needed."""
        creds_dir = self.credentials_dir
        if not creds_dir.exists():
            creds_dir.mkdir(parents=True, mode=0o700)
        else:
            creds_dir.chmod(0o700)

    def read(self) -> dict[str, Any] | None:
        """Read the raw token document.

        Returns:
            Parsed JSON object, or None if the token file does not exist.

        Raises:
            CredentialFormatError: If the file exists but is not a JSON object.
        """
        if not self.token_path.exists():
            return None

        try:
            data = json.loads(self.token_path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise CredentialFormatError(f"Token file {self.token_path} is unreadable: {e}") from e

        if not isinstance(data, dict):
            raise CredentialFormatError(f"Token file {self.token_path} is not a JSON object")
        return data

    def write(self, stored: StoredToken) -> None:
        """Atomically replace the token file.

        Args:
            stored: Token record to persist.
        """
        self._ensure_credentials_dir()

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.token_path.name}.", suffix=".tmp", dir=self.credentials_dir
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(stored.model_dump(), f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            # Owner read/write only (600)
            tmp_path.chmod(0o600)
            os.replace(tmp_path, self.token_path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        logger.debug("Token written to %s", self.token_path)

    def delete(self) -> bool:
        """Delete the token file.

        Returns:
            True if a file was deleted, False if none existed.
        """
        if not self.token_path.exists():
            return False
        self.token_path.unlink()
        return True
