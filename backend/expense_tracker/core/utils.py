"""
Utility functions for the application.
"""
from typing import Any, Dict
from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_iso_date_or_datetime(value: Any) -> Any:
    """
    Parse an ISO 8601 string, preferring a plain date.
    Date-only input (2024-01-31 or 20240131) stays a ``date`` so callers can
    tell it apart from an explicit midnight. Non-string values pass through.
    """
    if not isinstance(value, str):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError:
        return datetime.fromisoformat(value)


def format_error(message: str, details: Any = None) -> Dict[str, Any]:
    """Format error response."""
    response = {"detail": message}
    if details:
        response["details"] = details
    return response
