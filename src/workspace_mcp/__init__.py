"""Workspace MCP Server.

Exposes Gmail, Google Calendar, Google Docs and Google Fit operations as
MCP tools, with OAuth2 credential lifecycle management.
"""

from workspace_mcp.__version__ import __version__

__all__ = ["__version__"]
