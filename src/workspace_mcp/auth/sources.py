"""Ordered credential and client-key sources.

Credentials are looked up through a chain of strategies, each returning an
AuthClient or None:

1. ``EnvironmentTokenSource``: token JSON from ``GOOGLE_TOKEN``, keys from
   ``GOOGLE_CREDENTIALS`` or credentials.json.
2. ``FileTokenSource``: token.json, keys from credentials.json.

A source that is absent returns None. A source that exists but cannot be
parsed raises CredentialFormatError.
"""

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from workspace_mcp.auth.client import AuthClient
from workspace_mcp.auth.errors import CredentialFormatError
from workspace_mcp.auth.models import ClientKeys, Credential
from workspace_mcp.auth.token_storage import TokenStorage
from workspace_mcp.config import Settings

logger = logging.getLogger(__name__)


def _parse_json(raw: str, origin: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise CredentialFormatError(f"{origin} is not valid JSON: {e}") from e


def parse_client_keys(data: Any, origin: str) -> ClientKeys:
    """Validate a client-key document.

    Raises:
        CredentialFormatError: If the document lacks a usable client section.
    """
    try:
        return ClientKeys.from_document(data)
    except (ValidationError, ValueError) as e:
        raise CredentialFormatError(f"{origin} is not a valid client key document: {e}") from e


def parse_credential(data: Any, origin: str) -> Credential:
    """Validate a token document.

    Raises:
        CredentialFormatError: If required token fields are missing or invalid.
    """
    if not isinstance(data, dict):
        raise CredentialFormatError(f"{origin} must be a JSON object")
    try:
        return Credential.model_validate(data)
    except ValidationError as e:
        raise CredentialFormatError(f"{origin} is not a valid token: {e}") from e


class KeySource(Protocol):
    """Strategy that yields OAuth client keys."""

    name: str

    def load_keys(self) -> ClientKeys | None: ...


class CredentialSource(Protocol):
    """Strategy that yields a ready AuthClient."""

    name: str

    def load(self) -> AuthClient | None: ...


class EnvironmentKeySource:
    """Client keys supplied inline through ``GOOGLE_CREDENTIALS``."""

    name = "environment"

    def __init__(self, raw: str | None) -> None:
        self.raw = raw

    def load_keys(self) -> ClientKeys | None:
        if not self.raw:
            return None
        return parse_client_keys(_parse_json(self.raw, "GOOGLE_CREDENTIALS"), "GOOGLE_CREDENTIALS")


class FileKeySource:
    """Client keys read from credentials.json."""

    name = "file"

    def __init__(self, path: Path) -> None:
        self.path = path

    def load_keys(self) -> ClientKeys | None:
        if not self.path.exists():
            return None
        try:
            raw = self.path.read_text()
        except OSError as e:
            raise CredentialFormatError(f"Cannot read {self.path}: {e}") from e
        return parse_client_keys(_parse_json(raw, str(self.path)), str(self.path))


def resolve_keys(key_sources: Sequence[KeySource]) -> ClientKeys | None:
    """Return keys from the first source that has them."""
    for source in key_sources:
        keys = source.load_keys()
        if keys is not None:
            return keys
    return None


def _require_keys(key_sources: Sequence[KeySource], origin: str) -> ClientKeys:
    keys = resolve_keys(key_sources)
    if keys is None:
        raise CredentialFormatError(
            f"Token found in {origin} but no client keys are configured "
            "(set GOOGLE_CREDENTIALS or add credentials.json)"
        )
    return keys


class EnvironmentTokenSource:
    """Token supplied inline through ``GOOGLE_TOKEN``."""

    name = "environment"

    def __init__(self, raw: str | None, key_sources: Sequence[KeySource]) -> None:
        self.raw = raw
        self.key_sources = list(key_sources)

    def load(self) -> AuthClient | None:
        if not self.raw:
            return None
        credential = parse_credential(_parse_json(self.raw, "GOOGLE_TOKEN"), "GOOGLE_TOKEN")
        keys = _require_keys(self.key_sources, "GOOGLE_TOKEN")
        logger.info("Token loaded from environment")
        return AuthClient(credential, keys, source=self.name)


class FileTokenSource:
    """Token persisted in token.json."""

    name = "file"

    def __init__(self, storage: TokenStorage, key_sources: Sequence[KeySource]) -> None:
        self.storage = storage
        self.key_sources = list(key_sources)

    def load(self) -> AuthClient | None:
        data = self.storage.read()
        if data is None:
            return None
        origin = str(self.storage.token_path)
        credential = parse_credential(data, origin)
        keys = _require_keys(self.key_sources, origin)
        logger.info("Token loaded from %s", origin)
        return AuthClient(credential, keys, source=self.name)


def default_key_sources(settings: Settings) -> list[KeySource]:
    """Environment keys first, then credentials.json."""
    return [
        EnvironmentKeySource(settings.credentials_json),
        FileKeySource(settings.credentials_path),
    ]


def default_credential_sources(settings: Settings, storage: TokenStorage) -> list[CredentialSource]:
    """Environment token first, then the token file.

    The environment token may take its keys from either source; the token
    file is paired with credentials.json only.
    """
    return [
        EnvironmentTokenSource(settings.token_json, default_key_sources(settings)),
        FileTokenSource(storage, [FileKeySource(settings.credentials_path)]),
    ]
