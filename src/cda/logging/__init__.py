"""Structured logging utilities."""

from .events import (
    EVENTS_FILE_NAME,
    JsonlEventLogger,
    RunEvent,
    diagnostic_metadata,
    new_run_id,
    stats_metadata,
    utc_timestamp,
)

__all__ = [
    "EVENTS_FILE_NAME",
    "JsonlEventLogger",
    "RunEvent",
    "diagnostic_metadata",
    "new_run_id",
    "stats_metadata",
    "utc_timestamp",
]
