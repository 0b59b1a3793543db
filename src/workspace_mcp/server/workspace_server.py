"""Workspace MCP server.

This MCP server exposes Gmail, Calendar, Docs and Fit operations as tools.
REST calls go through a shared httpx client; before every call the
CredentialManager makes sure the injected AuthClient holds a live token.
"""

import asyncio
import base64
import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from email.mime.text import MIMEText
from typing import Any

import httpx
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from workspace_mcp.auth import AuthClient, CredentialManager
from workspace_mcp.config import Settings
from workspace_mcp.scheduling import (
    BusyInterval,
    busy_interval_from_event,
    find_free_slots,
    parse_timestamp,
)
from workspace_mcp.server.tool_schemas import TOOLS

logger = logging.getLogger(__name__)

# Google API base URLs
CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3"
GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1"
DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"
DOCS_API_BASE = "https://docs.googleapis.com/v1"
FITNESS_API_BASE = "https://fitness.googleapis.com/fitness/v1"

# gmail_list_messages fetches metadata for at most this many messages
MESSAGE_DETAIL_LIMIT = 5

DAY_MILLIS = 86_400_000

# Google Fit activity codes
FIT_ACTIVITY_CODES = {
    "running": 8,
    "walking": 7,
    "cycling": 1,
    "swimming": 82,
    "yoga": 104,
    "weightlifting": 97,
    "gym": 97,
    "musculacion": 97,
    "sala de musculacion": 97,
}
FIT_OTHER_ACTIVITY = 108
FIT_APPLICATION = {"packageName": "com.mcp.googleworkspace", "version": "1"}


class WorkspaceServer:
    """MCP server for Gmail, Calendar, Docs and Fit.

    The authenticated client is passed in (or obtained once through
    ``initialize``) rather than held in module state, so tests can inject a
    fake client and manager.

    Attributes:
        server: MCP Server instance.
        settings: Resolved configuration.
        credentials: CredentialManager that keeps ``client`` fresh.
        client: Authenticated client used for every API call.
    """

    def __init__(
        self,
        credentials: CredentialManager | None = None,
        client: AuthClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the workspace MCP server.

        Args:
            credentials: Credential manager. Created from settings if omitted.
            client: Already authorized client. Obtained in ``initialize`` if omitted.
            settings: Configuration. Read from the environment if omitted.
        """
        if settings is None:
            settings = credentials.settings if credentials is not None else Settings.from_env()
        self.settings = settings
        self.credentials = credentials or CredentialManager(settings=settings)
        self.client = client
        self.server = Server("workspace-mcp")
        self._http_client: httpx.AsyncClient | None = None
        self._setup_handlers()

    async def initialize(self) -> AuthClient:
        """Authorize once at startup if no client was injected."""
        if self.client is None:
            self.client = await self.credentials.authorize()
            logger.info("Authentication successful, server ready")
        return self.client

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create shared HTTP client with connection pooling.

        Returns:
            Shared httpx.AsyncClient instance.
        """
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                http2=True,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
                timeout=httpx.Timeout(30.0, connect=10.0),
            )
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client and release resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def _setup_handlers(self) -> None:
        """Register MCP tool handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            """Return list of available tools."""
            return TOOLS

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            """Handle tool calls."""
            return await self.handle_call_tool(name, arguments)

    async def handle_call_tool(
        self, name: str, arguments: dict[str, Any] | None
    ) -> list[TextContent]:
        """Run a tool and serialize its result.

        Failures never propagate: they are returned as an ``{"error": ...}``
        payload for the invoking tool call.
        """
        try:
            result = await self._dispatch_tool(name, arguments or {})
            return [TextContent(type="text", text=json.dumps(result, indent=2))]
        except Exception as e:
            logger.exception(f"Error calling tool {name}")
            return [
                TextContent(
                    type="text",
                    text=json.dumps({"error": str(e), "tool": name}, indent=2),
                )
            ]

    async def _get_access_token(self) -> str:
        """Get a valid access token, refreshing if necessary.

        Returns:
            Valid access token string.

        Raises:
            RuntimeError: If the server has no authenticated client.
            AuthExpiredError: If the token expired and refresh failed.
        """
        if self.client is None:
            raise RuntimeError("Not authenticated. Run 'workspace-mcp setup' first.")

        await self.credentials.ensure_valid(self.client)

        access_token = self.client.access_token
        if not access_token:
            raise RuntimeError("No access token available. Run 'workspace-mcp setup'.")
        return access_token

    async def _make_request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated HTTP request to Google APIs.

        Args:
            method: HTTP method (GET, POST, etc.).
            url: Full URL to request.
            params: Optional query parameters.
            json_data: Optional JSON body data.

        Returns:
            JSON response as a dictionary (empty for bodiless responses).

        Raises:
            httpx.HTTPStatusError: If the request fails.
        """
        access_token = await self._get_access_token()
        client = await self._get_http_client()

        response = await client.request(
            method=method,
            url=url,
            params=params,
            json=json_data,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
        )
        response.raise_for_status()
        if response.status_code == 204:
            return {}
        result: dict[str, Any] = response.json()
        return result

    async def _make_delete_request(self, url: str) -> None:
        """Make an authenticated DELETE request to Google APIs.

        Raises:
            httpx.HTTPStatusError: If the request fails.
        """
        access_token = await self._get_access_token()
        client = await self._get_http_client()

        response = await client.delete(
            url,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        response.raise_for_status()

    async def _dispatch_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Dispatch tool call to appropriate handler.

        Raises:
            ValueError: If tool name is not recognized.
        """
        handlers = {
            # Gmail
            "gmail_list_messages": self._gmail_list_messages,
            "gmail_get_message": self._gmail_get_message,
            "gmail_send_message": self._gmail_send_message,
            "gmail_create_draft": self._gmail_create_draft,
            # Calendar
            "calendar_list_events": self._calendar_list_events,
            "calendar_create_event": self._calendar_create_event,
            "calendar_update_event": self._calendar_update_event,
            "calendar_delete_event": self._calendar_delete_event,
            "calendar_find_free_slots": self._calendar_find_free_slots,
            # Docs
            "docs_create": self._docs_create,
            "docs_get": self._docs_get,
            "docs_append_text": self._docs_append_text,
            "docs_insert_text": self._docs_insert_text,
            "docs_replace_text": self._docs_replace_text,
            "docs_format_text": self._docs_format_text,
            "docs_list_recent": self._docs_list_recent,
            "docs_share": self._docs_share,
            # Fit
            "fit_get_activity_summary": self._fit_get_activity_summary,
            "fit_record_activity_session": self._fit_record_activity_session,
        }

        handler = handlers.get(name)
        if handler is None:
            raise ValueError(f"Unknown tool: {name}")

        return await handler(arguments)

    # =========================================================================
    # Gmail
    # =========================================================================

    async def _gmail_list_messages(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """List Gmail messages matching a query.

        Metadata for the first few messages is fetched concurrently.

        Args:
            arguments: Tool arguments with query and max_results.

        Returns:
            Message summaries with id, thread_id, subject, from, date, snippet.
        """
        query = arguments.get("query", "")
        max_results = arguments.get("max_results", 10)

        url = f"{GMAIL_API_BASE}/users/me/messages"
        response = await self._make_request(
            "GET", url, params={"q": query, "maxResults": max_results}
        )

        message_list = response.get("messages", [])[:MESSAGE_DETAIL_LIMIT]
        if not message_list:
            return {"messages": [], "count": 0}

        async def fetch_message_detail(msg_id: str) -> dict[str, Any]:
            msg_url = f"{GMAIL_API_BASE}/users/me/messages/{msg_id}"
            return await self._make_request(
                "GET",
                msg_url,
                params={"format": "metadata", "metadataHeaders": ["From", "Subject", "Date"]},
            )

        details = await asyncio.gather(
            *[fetch_message_detail(msg["id"]) for msg in message_list],
            return_exceptions=True,
        )

        messages = []
        for msg, msg_detail in zip(message_list, details, strict=False):
            if isinstance(msg_detail, BaseException):
                logger.warning("Failed to fetch message %s: %s", msg["id"], msg_detail)
                continue

            detail: dict[str, Any] = msg_detail
            headers = {h["name"]: h["value"] for h in detail.get("payload", {}).get("headers", [])}
            messages.append(
                {
                    "id": msg["id"],
                    "thread_id": msg.get("threadId"),
                    "subject": headers.get("Subject"),
                    "from": headers.get("From"),
                    "date": headers.get("Date"),
                    "snippet": detail.get("snippet"),
                }
            )

        return {"messages": messages, "count": len(messages)}

    async def _gmail_get_message(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Get full content of a Gmail message."""
        message_id = arguments["message_id"]

        url = f"{GMAIL_API_BASE}/users/me/messages/{message_id}"
        response = await self._make_request("GET", url, params={"format": "full"})

        payload = response.get("payload", {})
        headers = {h["name"]: h["value"] for h in payload.get("headers", [])}

        return {
            "id": response.get("id"),
            "thread_id": response.get("threadId"),
            "subject": headers.get("Subject"),
            "from": headers.get("From"),
            "to": headers.get("To"),
            "cc": headers.get("Cc"),
            "date": headers.get("Date"),
            "body": self._extract_message_body(payload),
            "labels": response.get("labelIds", []),
        }

    def _extract_message_body(self, payload: dict[str, Any]) -> str:
        """Extract message body from Gmail payload.

        Handles both simple and multipart messages, preferring text/plain.
        """
        if "body" in payload and payload["body"].get("data"):
            return _b64decode(payload["body"]["data"])

        parts = payload.get("parts", [])
        for part in parts:
            mime_type = part.get("mimeType", "")
            if mime_type == "text/plain":
                data = part.get("body", {}).get("data", "")
                if data:
                    return _b64decode(data)
            elif mime_type.startswith("multipart/"):
                result = self._extract_message_body(part)
                if result:
                    return result

        for part in parts:
            if part.get("mimeType") == "text/html":
                data = part.get("body", {}).get("data", "")
                if data:
                    return _b64decode(data)

        return ""

    def _build_email_message(self, to: str, subject: str, body: str) -> str:
        """Build an RFC 2822 message and return it base64url encoded."""
        message = MIMEText(body)
        message["to"] = to
        message["subject"] = subject
        return base64.urlsafe_b64encode(message.as_bytes()).decode()

    async def _gmail_send_message(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Send an email message."""
        raw_message = self._build_email_message(
            arguments["to"], arguments["subject"], arguments["body"]
        )

        url = f"{GMAIL_API_BASE}/users/me/messages/send"
        response = await self._make_request("POST", url, json_data={"raw": raw_message})

        return {
            "status": "sent",
            "id": response.get("id"),
            "thread_id": response.get("threadId"),
        }

    async def _gmail_create_draft(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Create an email draft."""
        raw_message = self._build_email_message(
            arguments["to"], arguments["subject"], arguments["body"]
        )

        url = f"{GMAIL_API_BASE}/users/me/drafts"
        response = await self._make_request(
            "POST", url, json_data={"message": {"raw": raw_message}}
        )

        return {
            "status": "draft_created",
            "draft_id": response.get("id"),
            "message_id": response.get("message", {}).get("id"),
        }

    # =========================================================================
    # Calendar
    # =========================================================================

    def _format_event(self, item: dict[str, Any]) -> dict[str, Any]:
        start = item.get("start", {})
        end = item.get("end", {})
        return {
            "id": item.get("id"),
            "summary": item.get("summary"),
            "description": item.get("description"),
            "start": start.get("dateTime") or start.get("date"),
            "end": end.get("dateTime") or end.get("date"),
            "location": item.get("location"),
            "attendees": [a.get("email") for a in item.get("attendees", [])],
            "html_link": item.get("htmlLink"),
        }

    async def _calendar_list_events(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """List upcoming events from the primary calendar.

        Args:
            arguments: Tool arguments with max_results, time_min, time_max.

        Returns:
            Events with summary, start, end times.
        """
        max_results = arguments.get("max_results", 10)
        time_min = arguments.get("time_min") or _utc_now_iso()
        time_max = arguments.get("time_max")

        url = f"{CALENDAR_API_BASE}/calendars/primary/events"
        params: dict[str, Any] = {
            "timeMin": time_min,
            "maxResults": max_results,
            "singleEvents": True,
            "orderBy": "startTime",
        }
        if time_max:
            params["timeMax"] = time_max

        response = await self._make_request("GET", url, params=params)

        events = [self._format_event(item) for item in response.get("items", [])]
        return {"events": events, "count": len(events)}

    async def _calendar_create_event(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Create a new event in the primary calendar."""
        tz = self.settings.timezone
        event_body: dict[str, Any] = {
            "summary": arguments["summary"],
            "start": {"dateTime": arguments["start_date_time"], "timeZone": tz},
            "end": {"dateTime": arguments["end_date_time"], "timeZone": tz},
        }
        if arguments.get("description"):
            event_body["description"] = arguments["description"]
        if arguments.get("location"):
            event_body["location"] = arguments["location"]
        attendees = arguments.get("attendees") or []
        if attendees:
            event_body["attendees"] = [{"email": email} for email in attendees]

        url = f"{CALENDAR_API_BASE}/calendars/primary/events"
        response = await self._make_request("POST", url, json_data=event_body)

        return {
            "status": "created",
            "id": response.get("id"),
            "summary": response.get("summary"),
            "html_link": response.get("htmlLink"),
        }

    async def _calendar_update_event(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Update an existing event, keeping fields that were not supplied."""
        event_id = arguments["event_id"]
        url = f"{CALENDAR_API_BASE}/calendars/primary/events/{event_id}"

        existing = await self._make_request("GET", url)

        event = dict(existing)
        for field in ("summary", "description", "location"):
            if arguments.get(field):
                event[field] = arguments[field]

        tz = self.settings.timezone
        if arguments.get("start_date_time"):
            event["start"] = {"dateTime": arguments["start_date_time"], "timeZone": tz}
        if arguments.get("end_date_time"):
            event["end"] = {"dateTime": arguments["end_date_time"], "timeZone": tz}

        response = await self._make_request("PUT", url, json_data=event)

        return {
            "status": "updated",
            "id": response.get("id"),
            "summary": response.get("summary"),
            "html_link": response.get("htmlLink"),
        }

    async def _calendar_delete_event(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Delete a calendar event."""
        event_id = arguments["event_id"]

        url = f"{CALENDAR_API_BASE}/calendars/primary/events/{event_id}"
        await self._make_delete_request(url)

        return {"status": "deleted", "event_id": event_id}

    async def list_busy_intervals(
        self, window_start: datetime, window_end: datetime
    ) -> list[BusyInterval]:
        """List busy intervals of the primary calendar within a window.

        All result pages are read, so the returned list is complete for the
        window.
        """
        url = f"{CALENDAR_API_BASE}/calendars/primary/events"
        params: dict[str, Any] = {
            "timeMin": window_start.isoformat(),
            "timeMax": window_end.isoformat(),
            "singleEvents": True,
            "orderBy": "startTime",
        }

        intervals: list[BusyInterval] = []
        while True:
            response = await self._make_request("GET", url, params=params)
            intervals.extend(
                busy_interval_from_event(item, window_start.tzinfo or timezone.utc)
                for item in response.get("items", [])
            )
            page_token = response.get("nextPageToken")
            if not page_token:
                return intervals
            params["pageToken"] = page_token

    async def _calendar_find_free_slots(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Find free slots of at least ``duration`` minutes in the primary calendar."""
        window_start = parse_timestamp(arguments["start_date"])
        window_end = parse_timestamp(arguments["end_date"])
        duration = int(arguments["duration"])

        busy = await self.list_busy_intervals(window_start, window_end)
        slots = find_free_slots(window_start, window_end, duration, busy)

        return {
            "free_slots": [slot.to_dict() for slot in slots],
            "count": len(slots),
            "busy_count": len(busy),
        }

    # =========================================================================
    # Docs
    # =========================================================================

    async def _docs_batch_update(
        self, document_id: str, requests: list[dict[str, Any]]
    ) -> dict[str, Any]:
        url = f"{DOCS_API_BASE}/documents/{document_id}:batchUpdate"
        return await self._make_request("POST", url, json_data={"requests": requests})

    async def _docs_create(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Create a new Google Doc, optionally with initial content."""
        title = arguments["title"]
        content = arguments.get("content")

        response = await self._make_request(
            "POST", f"{DOCS_API_BASE}/documents", json_data={"title": title}
        )
        document_id = response.get("documentId")

        if content:
            await self._docs_batch_update(
                document_id,
                [{"insertText": {"location": {"index": 1}, "text": content}}],
            )

        return {
            "status": "created",
            "document_id": document_id,
            "title": response.get("title"),
            "url": f"https://docs.google.com/document/d/{document_id}/edit",
        }

    def _extract_doc_text(self, body: dict[str, Any]) -> str:
        """Extract plain text from a Google Docs body structure."""
        text_parts = []
        for element in body.get("content", []):
            if "paragraph" in element:
                for para_element in element["paragraph"].get("elements", []):
                    if "textRun" in para_element:
                        text_parts.append(para_element["textRun"].get("content", ""))
            elif "table" in element:
                for row in element["table"].get("tableRows", []):
                    for cell in row.get("tableCells", []):
                        cell_text = self._extract_doc_text(cell)
                        if cell_text:
                            text_parts.append(cell_text)
                            text_parts.append("\t")
                    text_parts.append("\n")

        return "".join(text_parts)

    async def _docs_get(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Get the title and text of a Google Doc."""
        document_id = arguments["document_id"]

        response = await self._make_request("GET", f"{DOCS_API_BASE}/documents/{document_id}")

        return {
            "document_id": response.get("documentId"),
            "title": response.get("title"),
            "text_content": self._extract_doc_text(response.get("body", {})),
        }

    async def _docs_append_text(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Append text at the end of a Google Doc."""
        document_id = arguments["document_id"]
        text = arguments["text"]

        doc = await self._make_request("GET", f"{DOCS_API_BASE}/documents/{document_id}")

        content = doc.get("body", {}).get("content", [])
        if content:
            # Insert before the final newline
            insert_index = max(1, content[-1].get("endIndex", 1) - 1)
        else:
            insert_index = 1

        await self._docs_batch_update(
            document_id,
            [{"insertText": {"location": {"index": insert_index}, "text": text}}],
        )

        return {
            "status": "appended",
            "document_id": document_id,
            "index": insert_index,
            "text_length": len(text),
        }

    async def _docs_insert_text(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Insert text at an index of a Google Doc."""
        document_id = arguments["document_id"]
        text = arguments["text"]
        index = int(arguments["index"])

        await self._docs_batch_update(
            document_id,
            [{"insertText": {"location": {"index": index}, "text": text}}],
        )

        return {"status": "inserted", "document_id": document_id, "index": index}

    async def _docs_replace_text(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Replace every case-sensitive match of a string in a Google Doc."""
        document_id = arguments["document_id"]
        find_text = arguments["find_text"]
        replace_text = arguments["replace_text"]

        response = await self._docs_batch_update(
            document_id,
            [
                {
                    "replaceAllText": {
                        "containsText": {"text": find_text, "matchCase": True},
                        "replaceText": replace_text,
                    }
                }
            ],
        )

        replies = response.get("replies") or [{}]
        occurrences = replies[0].get("replaceAllText", {}).get("occurrencesChanged", 0)
        return {
            "status": "replaced",
            "document_id": document_id,
            "find_text": find_text,
            "replace_text": replace_text,
            "occurrences_changed": occurrences,
        }

    async def _docs_format_text(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Apply bold, italic or font size to a range of a Google Doc."""
        document_id = arguments["document_id"]
        start_index = int(arguments["start_index"])
        end_index = int(arguments["end_index"])

        text_style: dict[str, Any] = {}
        if arguments.get("bold") is not None:
            text_style["bold"] = arguments["bold"]
        if arguments.get("italic") is not None:
            text_style["italic"] = arguments["italic"]
        if arguments.get("font_size") is not None:
            text_style["fontSize"] = {"magnitude": arguments["font_size"], "unit": "PT"}

        if not text_style:
            raise ValueError("At least one of bold, italic or font_size is required")

        await self._docs_batch_update(
            document_id,
            [
                {
                    "updateTextStyle": {
                        "range": {"startIndex": start_index, "endIndex": end_index},
                        "textStyle": text_style,
                        "fields": ",".join(text_style),
                    }
                }
            ],
        )

        return {
            "status": "formatted",
            "document_id": document_id,
            "range": {"start_index": start_index, "end_index": end_index},
            "fields": list(text_style),
        }

    async def _docs_list_recent(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """List recently modified Google Docs."""
        max_results = arguments.get("max_results", 10)

        response = await self._make_request(
            "GET",
            f"{DRIVE_API_BASE}/files",
            params={
                "pageSize": max_results,
                "fields": "files(id, name, modifiedTime, webViewLink)",
                "q": "mimeType='application/vnd.google-apps.document'",
                "orderBy": "modifiedTime desc",
            },
        )

        documents = [
            {
                "id": f.get("id"),
                "name": f.get("name"),
                "modified_time": f.get("modifiedTime"),
                "web_view_link": f.get("webViewLink"),
            }
            for f in response.get("files", [])
        ]
        return {"documents": documents, "count": len(documents)}

    async def _docs_share(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Share a Google Doc with a user."""
        document_id = arguments["document_id"]
        email = arguments["email"]
        role = arguments["role"]

        response = await self._make_request(
            "POST",
            f"{DRIVE_API_BASE}/files/{document_id}/permissions",
            params={"sendNotificationEmail": "true"},
            json_data={"type": "user", "role": role, "emailAddress": email},
        )

        return {
            "status": "shared",
            "document_id": document_id,
            "email": email,
            "role": role,
            "permission_id": response.get("id"),
        }

    # =========================================================================
    # Fit
    # =========================================================================

    async def _fit_get_activity_summary(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Get daily step counts and calories expended for a period."""
        start_time_millis = int(arguments["start_time_millis"])
        end_time_millis = int(arguments["end_time_millis"])

        response = await self._make_request(
            "POST",
            f"{FITNESS_API_BASE}/users/me/dataset:aggregate",
            json_data={
                "aggregateBy": [
                    {"dataTypeName": "com.google.step_count.delta"},
                    {"dataTypeName": "com.google.calories.expended"},
                ],
                "bucketByTime": {"durationMillis": DAY_MILLIS},
                "startTimeMillis": start_time_millis,
                "endTimeMillis": end_time_millis,
            },
        )

        days = []
        for bucket in response.get("bucket", []):
            steps = _first_point_value(bucket, "step_count", "intVal") or 0
            calories = _first_point_value(bucket, "calories.expended", "fpVal") or 0.0
            bucket_start = datetime.fromtimestamp(
                int(bucket["startTimeMillis"]) / 1000, tz=timezone.utc
            )
            days.append(
                {
                    "date": bucket_start.date().isoformat(),
                    "steps": steps,
                    "calories_expended": round(calories),
                }
            )

        return {"days": days, "count": len(days)}

    async def _fit_record_activity_session(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Record a manual activity session in Google Fit."""
        activity_type = arguments["activity_type"]
        duration_minutes = int(arguments["duration_minutes"])
        start_time_millis = int(arguments["start_time_millis"])
        end_time_millis = start_time_millis + duration_minutes * 60 * 1000

        activity_code = FIT_ACTIVITY_CODES.get(activity_type.lower(), FIT_OTHER_ACTIVITY)
        session_id = f"session_{start_time_millis}_{uuid.uuid4().hex[:9]}"

        session = {
            "id": session_id,
            "name": activity_type,
            "description": f"{activity_type} session of {duration_minutes} minutes",
            "startTimeMillis": str(start_time_millis),
            "endTimeMillis": str(end_time_millis),
            "activityType": activity_code,
            "application": FIT_APPLICATION,
        }

        await self._make_request(
            "PUT",
            f"{FITNESS_API_BASE}/users/me/sessions/{session_id}",
            json_data=session,
        )

        return {
            "status": "recorded",
            "session_id": session_id,
            "activity_type": activity_type,
            "activity_code": activity_code,
            "duration_minutes": duration_minutes,
        }

    async def run(self) -> None:
        """Authorize, then run the MCP server using stdio transport."""
        await self.initialize()
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            await self.close()


def _b64decode(data: str) -> str:
    # Gmail strips base64url padding
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _first_point_value(bucket: dict[str, Any], source_fragment: str, field: str) -> Any:
    """First value of the dataset whose source id contains ``source_fragment``."""
    for dataset in bucket.get("dataset", []):
        if source_fragment in dataset.get("dataSourceId", ""):
            points = dataset.get("point", [])
            if points and points[0].get("value"):
                return points[0]["value"][0].get(field)
    return None


def main() -> None:
    """Entry point for the workspace MCP server."""
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, stream=sys.stderr)
    server = WorkspaceServer(settings=settings)
    asyncio.run(server.run())


if __name__ == "__main__":
    main()
