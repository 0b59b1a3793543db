"""Command-line interface for workspace-mcp."""

import asyncio
import sys

import click

from workspace_mcp.__version__ import __version__


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Workspace MCP Server - Gmail, Calendar, Docs and Fit as MCP tools.

    Configuration is read from the environment (WORKSPACE_MCP_HOME,
    GOOGLE_TOKEN, GOOGLE_CREDENTIALS, ...).
    """
    pass


@main.command()
@click.option("--force", is_flag=True, help="Re-authenticate even if a valid token exists")
def setup(force: bool) -> None:
    """Authorize access to Google Workspace.

    Uses a saved token when it still works. Otherwise opens the browser for
    the OAuth2 consent flow and stores the result in token.json.

    Requires client keys in GOOGLE_CREDENTIALS or credentials.json.
    """
    from workspace_mcp.auth import CredentialManager, TokenStatus

    manager = CredentialManager()
    status, _ = manager.get_status()
    reauthenticate = False

    if status in (TokenStatus.VALID, TokenStatus.EXPIRING):
        click.echo("✓ Already authenticated!")
        click.echo(f"Token stored at: {manager.token_path}")
        click.echo("")

        if not force and not click.confirm("Re-authenticate?"):
            return
        manager.logout()
        reauthenticate = True

    click.echo("Starting OAuth authentication flow...")
    click.echo("Browser will open for Google consent if needed...")
    click.echo("")

    try:
        asyncio.run(manager.authorize(force_interactive=reauthenticate))
    except Exception as e:
        click.echo(f"❌ Authentication failed: {e}")
        sys.exit(1)

    click.echo("✓ Authentication successful!")
    click.echo(f"Token stored at: {manager.token_path}")
    if reauthenticate and manager.settings.token_json:
        click.echo("⚠️  GOOGLE_TOKEN is set and takes precedence over token.json.")
        click.echo("Unset GOOGLE_TOKEN to use the new token.")
    click.echo("")
    click.echo("Run 'workspace-mcp doctor' to verify setup.")


@main.command()
def mcp() -> None:
    """Start the MCP server over stdio.

    Authentication is required before starting the server.
    Run 'workspace-mcp setup' if not already authenticated.
    """
    from workspace_mcp.auth import CredentialManager, TokenStatus
    from workspace_mcp.server import main as server_main

    manager = CredentialManager()
    status, _ = manager.get_status()

    if status == TokenStatus.MISSING:
        click.echo("❌ Not authenticated. Run 'workspace-mcp setup' first.", err=True)
        sys.exit(1)

    if status == TokenStatus.INVALID:
        click.echo(
            "❌ Token or client keys are malformed. Run 'workspace-mcp setup' to re-authenticate.",
            err=True,
        )
        sys.exit(1)

    try:
        click.echo("Starting workspace MCP server...", err=True)
        server_main()
    except KeyboardInterrupt:
        click.echo("\nServer stopped.", err=True)
    except Exception as e:
        click.echo(f"❌ Server error: {e}", err=True)
        sys.exit(1)


@main.command()
def doctor() -> None:
    """Check installation and authentication status.

    Verifies:
    1. Python dependencies installed
    2. OAuth client keys configured
    3. Token validity
    """
    from workspace_mcp.auth import AuthError, CredentialManager, TokenStatus
    from workspace_mcp.auth.sources import resolve_keys

    click.echo("Workspace MCP Status:")
    click.echo("")

    click.echo("Dependencies:")
    try:
        import google.auth  # noqa: F401
        import google_auth_oauthlib  # noqa: F401

        click.echo("  ✓ google-auth installed")
        click.echo("  ✓ google-auth-oauthlib installed")
    except ImportError as e:
        click.echo(f"  ❌ Missing dependency: {e}")
        sys.exit(1)

    click.echo("")

    manager = CredentialManager()

    click.echo("Client keys:")
    try:
        keys = resolve_keys(manager.key_sources)
    except AuthError as e:
        click.echo(f"  ❌ {e}")
        keys = None
    else:
        if keys is None:
            click.echo("  ❌ Not configured (set GOOGLE_CREDENTIALS or add credentials.json)")
        else:
            click.echo(f"  ✓ {keys.client_type} client {keys.client_id}")

    click.echo("")

    status, client = manager.get_status()

    click.echo("Authentication:")
    click.echo(f"  Token file: {manager.token_path}")

    if status == TokenStatus.MISSING:
        click.echo("  ❌ Not authenticated")
        click.echo("")
        click.echo("Run 'workspace-mcp setup' to authenticate.")
        sys.exit(1)
    elif status == TokenStatus.INVALID:
        click.echo("  ❌ Token or client keys are malformed")
        click.echo("")
        click.echo("Run 'workspace-mcp setup' to re-authenticate.")
        sys.exit(1)

    if client is not None:
        click.echo(f"  Source: {client.source}")
        expires_at = client.credential.expires_at
        if expires_at is not None:
            click.echo(f"  Token expires: {expires_at.strftime('%Y-%m-%d %H:%M:%S UTC')}")

    if status == TokenStatus.EXPIRED:
        click.echo("  ⚠️  Token expired (will refresh automatically on use)")
    elif status == TokenStatus.EXPIRING:
        click.echo("  ⚠️  Token expires soon (will refresh automatically on use)")
    else:
        click.echo("  ✓ Authenticated")

    click.echo("")
    click.echo("✓ Ready to use!")


@main.command()
def logout() -> None:
    """Delete the stored token."""
    from workspace_mcp.auth import CredentialManager

    manager = CredentialManager()
    if manager.logout():
        click.echo(f"✓ Removed {manager.token_path}")
    else:
        click.echo("No stored token found.")


if __name__ == "__main__":
    main()
