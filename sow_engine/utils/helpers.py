"""Shared utility functions.

parse_date:        lenient, returns None on bad input
parse_date_input:  strict, raises ValidationError on bad input
"""
from datetime import date, datetime

from sow_engine.core.exceptions import ValidationError


def parse_date(value):
    """Parse a date string (ISO or DD.MM.YYYY) to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - DD.MM.YYYY
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except (ValueError, TypeError):
        return None


def parse_date_input(value, field_name="date"):
    """Same as parse_date() but raises ValidationError for unparseable input."""
    if not value:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationError(
            f"Invalid {field_name}: {value!r}",
            details={field_name: "expected YYYY-MM-DD"},
        )
    return parsed
