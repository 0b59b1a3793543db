"""MCP server implementation for Gmail, Calendar, Docs and Fit.

Gmail Tools (4):
- List and read messages
- Send messages and create drafts

Calendar Tools (5):
- List, create, update and delete events
- Find free time slots

Docs Tools (8):
- Create, read, append, insert, replace and format text
- List recent documents and share them

Fit Tools (2):
- Daily activity summary
- Record activity sessions

Transport: Stdio
Authentication: OAuth 2.0 with automatic token refresh
"""

from workspace_mcp.server.workspace_server import WorkspaceServer, main


def create_server() -> WorkspaceServer:
    """Create a workspace MCP server configured from the environment.

    Example:
        >>> server = create_server()
        >>> asyncio.run(server.run())
    """
    return WorkspaceServer()


__all__ = ["create_server", "WorkspaceServer", "main"]
