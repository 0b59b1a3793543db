"""Calendar scheduling helpers."""

from workspace_mcp.scheduling.free_slots import (
    BusyInterval,
    FreeInterval,
    busy_interval_from_event,
    find_free_slots,
    parse_timestamp,
)

__all__ = [
    "BusyInterval",
    "FreeInterval",
    "busy_interval_from_event",
    "find_free_slots",
    "parse_timestamp",
]
