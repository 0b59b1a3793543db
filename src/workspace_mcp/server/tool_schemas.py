"""MCP tool definitions exposed by the workspace server."""

from mcp.types import Tool


def _object(properties: dict, required: list[str] | None = None) -> dict:
    return {"type": "object", "properties": properties, "required": required or []}


_EMAIL_PROPERTIES = {
    "to": {"type": "string", "description": "Recipient email address"},
    "subject": {"type": "string", "description": "Email subject"},
    "body": {"type": "string", "description": "Email body (plain text)"},
}

_EVENT_PROPERTIES = {
    "summary": {"type": "string", "description": "Event title"},
    "description": {"type": "string", "description": "Event description"},
    "start_date_time": {
        "type": "string",
        "description": "Start date/time (ISO 8601)",
    },
    "end_date_time": {
        "type": "string",
        "description": "End date/time (ISO 8601)",
    },
    "location": {"type": "string", "description": "Event location"},
}

TOOLS: list[Tool] = [
    # Gmail
    Tool(
        name="gmail_list_messages",
        description="List recent emails with optional Gmail search filters",
        inputSchema=_object(
            {
                "query": {
                    "type": "string",
                    "description": "Gmail search query (e.g., 'is:unread', 'from:user@example.com')",
                },
                "max_results": {
                    "type": "integer",
                    "description": "Maximum messages to return (default: 10)",
                    "default": 10,
                },
            }
        ),
    ),
    Tool(
        name="gmail_get_message",
        description="Get a specific email by its ID",
        inputSchema=_object(
            {"message_id": {"type": "string", "description": "ID of the message"}},
            ["message_id"],
        ),
    ),
    Tool(
        name="gmail_send_message",
        description="Send an email through Gmail",
        inputSchema=_object(_EMAIL_PROPERTIES, ["to", "subject", "body"]),
    ),
    Tool(
        name="gmail_create_draft",
        description="Create an email draft in Gmail",
        inputSchema=_object(_EMAIL_PROPERTIES, ["to", "subject", "body"]),
    ),
    # Calendar
    Tool(
        name="calendar_list_events",
        description="List upcoming events from the primary calendar",
        inputSchema=_object(
            {
                "max_results": {
                    "type": "integer",
                    "description": "Maximum events to return (default: 10)",
                    "default": 10,
                },
                "time_min": {
                    "type": "string",
                    "description": "Lower bound for event end time (ISO 8601, default: now)",
                },
                "time_max": {
                    "type": "string",
                    "description": "Upper bound for event start time (ISO 8601)",
                },
            }
        ),
    ),
    Tool(
        name="calendar_create_event",
        description="Create a new event in the primary calendar",
        inputSchema=_object(
            {
                **_EVENT_PROPERTIES,
                "attendees": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Attendee email addresses",
                },
            },
            ["summary", "start_date_time", "end_date_time"],
        ),
    ),
    Tool(
        name="calendar_update_event",
        description="Update an existing calendar event",
        inputSchema=_object(
            {
                "event_id": {"type": "string", "description": "ID of the event to update"},
                **_EVENT_PROPERTIES,
            },
            ["event_id"],
        ),
    ),
    Tool(
        name="calendar_delete_event",
        description="Delete a calendar event",
        inputSchema=_object(
            {"event_id": {"type": "string", "description": "ID of the event to delete"}},
            ["event_id"],
        ),
    ),
    Tool(
        name="calendar_find_free_slots",
        description="Find free time slots in the primary calendar",
        inputSchema=_object(
            {
                "start_date": {
                    "type": "string",
                    "description": "Start of the search window (ISO 8601)",
                },
                "end_date": {
                    "type": "string",
                    "description": "End of the search window (ISO 8601)",
                },
                "duration": {
                    "type": "integer",
                    "description": "Minimum slot length in minutes",
                },
            },
            ["start_date", "end_date", "duration"],
        ),
    ),
    # Docs
    Tool(
        name="docs_create",
        description="Create a new Google Docs document",
        inputSchema=_object(
            {
                "title": {"type": "string", "description": "Document title"},
                "content": {
                    "type": "string",
                    "description": "Initial document content (plain text)",
                },
            },
            ["title"],
        ),
    ),
    Tool(
        name="docs_get",
        description="Get the text content of a Google Docs document",
        inputSchema=_object(
            {"document_id": {"type": "string", "description": "Document ID"}},
            ["document_id"],
        ),
    ),
    Tool(
        name="docs_append_text",
        description="Append text to the end of a document",
        inputSchema=_object(
            {
                "document_id": {"type": "string", "description": "Document ID"},
                "text": {"type": "string", "description": "Text to append"},
            },
            ["document_id", "text"],
        ),
    ),
    Tool(
        name="docs_insert_text",
        description="Insert text at a specific position in a document",
        inputSchema=_object(
            {
                "document_id": {"type": "string", "description": "Document ID"},
                "text": {"type": "string", "description": "Text to insert"},
                "index": {
                    "type": "integer",
                    "description": "Insertion index (1 is the start of the document)",
                },
            },
            ["document_id", "text", "index"],
        ),
    ),
    Tool(
        name="docs_replace_text",
        description="Replace all occurrences of text in a document",
        inputSchema=_object(
            {
                "document_id": {"type": "string", "description": "Document ID"},
                "find_text": {"type": "string", "description": "Text to find"},
                "replace_text": {"type": "string", "description": "Replacement text"},
            },
            ["document_id", "find_text", "replace_text"],
        ),
    ),
    Tool(
        name="docs_format_text",
        description="Apply formatting to a range of text",
        inputSchema=_object(
            {
                "document_id": {"type": "string", "description": "Document ID"},
                "start_index": {"type": "integer", "description": "Range start index"},
                "end_index": {"type": "integer", "description": "Range end index"},
                "bold": {"type": "boolean", "description": "Apply bold"},
                "italic": {"type": "boolean", "description": "Apply italic"},
                "font_size": {"type": "number", "description": "Font size in points"},
            },
            ["document_id", "start_index", "end_index"],
        ),
    ),
    Tool(
        name="docs_list_recent",
        description="List recently modified Google Docs documents",
        inputSchema=_object(
            {
                "max_results": {
                    "type": "integer",
                    "description": "Maximum documents to return (default: 10)",
                    "default": 10,
                }
            }
        ),
    ),
    Tool(
        name="docs_share",
        description="Share a document with another user",
        inputSchema=_object(
            {
                "document_id": {"type": "string", "description": "Document ID"},
                "email": {"type": "string", "description": "Email of the user to share with"},
                "role": {
                    "type": "string",
                    "description": "Role: 'reader', 'writer', or 'commenter'",
                    "enum": ["reader", "writer", "commenter"],
                },
            },
            ["document_id", "email", "role"],
        ),
    ),
    # Fit
    Tool(
        name="fit_get_activity_summary",
        description=(
            "Get daily aggregated steps and calories for a period. "
            "Times are Unix epoch milliseconds."
        ),
        inputSchema=_object(
            {
                "start_time_millis": {
                    "type": "integer",
                    "description": "Period start (Unix epoch milliseconds)",
                },
                "end_time_millis": {
                    "type": "integer",
                    "description": "Period end (Unix epoch milliseconds)",
                },
            },
            ["start_time_millis", "end_time_millis"],
        ),
    ),
    Tool(
        name="fit_record_activity_session",
        description="Record a physical activity session (e.g., running, walking) in Google Fit",
        inputSchema=_object(
            {
                "activity_type": {
                    "type": "string",
                    "description": "Activity name (e.g., 'running', 'walking', 'yoga')",
                },
                "duration_minutes": {
                    "type": "integer",
                    "description": "Activity duration in minutes",
                },
                "start_time_millis": {
                    "type": "integer",
                    "description": "Activity start (Unix epoch milliseconds)",
                },
            },
            ["activity_type", "duration_minutes", "start_time_millis"],
        ),
    ),
]
