"""Network-facing OAuth collaborators.

``TokenEndpoint`` refreshes and probes access tokens; ``AuthorizationProvider``
runs the interactive consent flow. CredentialManager depends only on these
protocols so tests can substitute fakes without network or browser access.

The Google implementations wrap google-auth and google-auth-oauthlib. Both
libraries are blocking, so calls run in the default executor.
"""

import asyncio
import logging
import secrets
import sys
import webbrowser
from collections.abc import Callable
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Protocol
from urllib.parse import parse_qs, urlparse

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from workspace_mcp.auth.client import AuthClient, credential_from_google
from workspace_mcp.auth.errors import AuthorizationError, TokenRefreshError
from workspace_mcp.auth.models import ClientKeys, Credential
from workspace_mcp.config import DEFAULT_REDIRECT_URI

logger = logging.getLogger(__name__)

# OAuth callback server defaults
DEFAULT_OAUTH_HOST = "127.0.0.1"
DEFAULT_OAUTH_PORT = 8789
CALLBACK_TIMEOUT_SECONDS = 300


class TokenEndpoint(Protocol):
    """Remote token operations for an AuthClient."""

    async def probe_access_token(self, client: AuthClient) -> Credential:
        """Return a credential carrying a usable access token."""
        ...

    async def refresh_access_token(self, client: AuthClient) -> Credential:
        """Exchange the refresh token for a new access token."""
        ...


class AuthorizationProvider(Protocol):
    """Interactive consent flow producing a fresh credential."""

    async def authorize(self, scopes: list[str], keys: ClientKeys) -> Credential: ...


class GoogleTokenEndpoint:
    """TokenEndpoint backed by google-auth's token refresh."""

    def _refresh(self, client: AuthClient) -> Credential:
        """Refresh synchronously (blocking network call)."""
        if not client.credential.refresh_token:
            raise TokenRefreshError("No refresh token available")

        credentials = client.to_google_credentials()
        try:
            credentials.refresh(Request())
        except GoogleAuthError as e:
            raise TokenRefreshError(str(e)) from e

        return credential_from_google(credentials)

    async def refresh_access_token(self, client: AuthClient) -> Credential:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._refresh, client)

    async def probe_access_token(self, client: AuthClient) -> Credential:
        """Return the current credential if its access token is live, else refresh."""
        if client.credential.access_token and not client.credential.is_expired():
            return client.credential
        return await self.refresh_access_token(client)


class LocalServerAuthorizationProvider:
    """Browser consent flow with a one-shot local callback server.

    Attributes:
        redirect_uri: Callback URI; host, port and path of the local server
            are taken from it.
        open_browser: Function used to open the authorization URL.
        timeout: Seconds to wait for the callback.
    """

    def __init__(
        self,
        redirect_uri: str = DEFAULT_REDIRECT_URI,
        open_browser: Callable[[str], object] = webbrowser.open,
        timeout: int = CALLBACK_TIMEOUT_SECONDS,
    ) -> None:
        self.redirect_uri = redirect_uri
        self.open_browser = open_browser
        self.timeout = timeout

    async def authorize(self, scopes: list[str], keys: ClientKeys) -> Credential:
        """Run the consent flow and return the granted credential.

        Raises:
            AuthorizationError: If the user denies consent, no code arrives,
                or the code exchange fails.
        """
        loop = asyncio.get_running_loop()
        credentials = await loop.run_in_executor(
            None, self._run_oauth_flow, keys.to_client_config(), scopes, self.redirect_uri
        )
        return credential_from_google(credentials)

    def _run_oauth_flow(
        self, client_config: dict, scopes: list[str], redirect_uri: str
    ) -> Credentials:
        """Run the OAuth flow (blocking operation).

        Args:
            client_config: Google OAuth client configuration.
            scopes: List of OAuth scopes.
            redirect_uri: Full redirect URI including path.

        Returns:
            Google OAuth2 credentials.
        """
        flow = Flow.from_client_config(
            client_config,
            scopes=scopes,
            redirect_uri=redirect_uri,
        )

        # CSRF protection
        state = secrets.token_urlsafe(32)

        auth_url, _ = flow.authorization_url(
            access_type="offline",
            prompt="consent",
            state=state,
        )

        parsed = urlparse(redirect_uri)
        host = parsed.hostname or DEFAULT_OAUTH_HOST
        port = parsed.port or DEFAULT_OAUTH_PORT
        callback_path = parsed.path or "/callback"

        auth_code: list[str | None] = [None]
        error_message: list[str | None] = [None]

        class OAuthCallbackHandler(BaseHTTPRequestHandler):
            """HTTP handler for OAuth callback."""

            def log_message(self, format: str, *args) -> None:
                """Suppress HTTP server logs."""

            def _reply(self, status: int, body: bytes) -> None:
                self.send_response(status)
                self.send_header("Content-type", "text/html")
                self.end_headers()
                self.wfile.write(body)

            def do_GET(self) -> None:
                request_parsed = urlparse(self.path)

                if request_parsed.path != callback_path:
                    self.send_response(404)
                    self.end_headers()
                    self.wfile.write(b"Not Found")
                    return

                query_params = parse_qs(request_parsed.query)

                if "error" in query_params:
                    error_message[0] = query_params["error"][0]
                    self._reply(
                        400,
                        b"<html><body><h1>Authentication Failed</h1>"
                        b"<p>Please close this window and try again.</p></body></html>",
                    )
                    return

                if query_params.get("state", [None])[0] != state:
                    error_message[0] = "state mismatch"
                    self._reply(
                        400,
                        b"<html><body><h1>Authentication Failed</h1>"
                        b"<p>Invalid state parameter.</p></body></html>",
                    )
                    return

                if "code" in query_params:
                    auth_code[0] = query_params["code"][0]
                    self._reply(
                        200,
                        b"<html><body><h1>Authentication Successful!</h1>"
                        b"<p>You can close this window and return to the terminal.</p>"
                        b"</body></html>",
                    )
                else:
                    self._reply(
                        400,
                        b"<html><body><h1>Authentication Failed</h1>"
                        b"<p>No authorization code received.</p></body></html>",
                    )

        server = HTTPServer((host, port), OAuthCallbackHandler)
        server.timeout = self.timeout

        # stdout carries MCP traffic when launched by a host
        print("Opening browser for Google authorization...", file=sys.stderr)
        print(f"If browser doesn't open, visit: {auth_url}", file=sys.stderr)
        self.open_browser(auth_url)

        try:
            server.handle_request()
        finally:
            server.server_close()

        if error_message[0]:
            raise AuthorizationError(f"OAuth authentication failed: {error_message[0]}")

        if not auth_code[0]:
            raise AuthorizationError("No authorization code received from Google")

        try:
            flow.fetch_token(code=auth_code[0])
        except Exception as e:
            raise AuthorizationError(f"Authorization code exchange failed: {e}") from e

        logger.info("Interactive authorization completed")
        return flow.credentials
