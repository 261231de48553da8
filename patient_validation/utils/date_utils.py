"""
Date Validation Utilities

Provides helper functions for date validation including:
- Date parsing from the formats seen in registration data
- Future / past checks against an explicit reference date

Every check takes the reference date as an argument so that rule
evaluation stays reproducible; callers decide what "today" is.
"""

from datetime import datetime, date
from typing import Union, Optional


def parse_date(date_str: str) -> Optional[date]:
    """
    Parse a date string into a date object.

    Supports:
    - YYYY-MM-DD (record store format)
    - DD/MM/YYYY (Emirates ID card print)
    - DD-MM-YYYY
    - Month DD, YYYY

    Args:
        date_str: String representation of a date

    Returns:
        date object if successfully parsed, None otherwise
    """
    if not date_str or not isinstance(date_str, str):
        return None

    date_str = date_str.strip()

    formats = [
        "%Y-%m-%d",      # 2024-12-31
        "%d/%m/%Y",      # 31/12/2024
        "%d-%m-%Y",      # 31-12-2024
        "%B %d, %Y",     # December 31, 2024
        "%b %d, %Y",     # Dec 31, 2024
    ]

    for fmt in formats:
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue

    return None


def _as_date(date_value: Union[str, date, datetime, None]) -> Optional[date]:
    if isinstance(date_value, str):
        return parse_date(date_value)
    if isinstance(date_value, datetime):
        return date_value.date()
    if isinstance(date_value, date):
        return date_value
    return None


def is_future_date(date_value: Union[str, date, datetime],
                   reference: date,
                   strict: bool = True) -> bool:
    """
    Check if a date lies after the reference date.

    Args:
        date_value: Date to check (string, date, or datetime)
        reference: The date treated as "today"
        strict: If True, date must be > reference. If False, >= is ok.

    Returns:
        True if date is in the future, False otherwise (including unparsable)
    """
    parsed = _as_date(date_value)
    if parsed is None:
        return False

    if strict:
        return parsed > reference
    return parsed >= reference


def is_past_date(date_value: Union[str, date, datetime],
                 reference: date,
                 strict: bool = True) -> bool:
    """
    Check if a date lies before the reference date.

    Used for expiry checks (policy expired before today).

    Args:
        date_value: Date to check (string, date, or datetime)
        reference: The date treated as "today"
        strict: If True, date must be < reference. If False, <= is ok.

    Returns:
        True if date is in the past, False otherwise (including unparsable)
    """
    parsed = _as_date(date_value)
    if parsed is None:
        return False

    if strict:
        return parsed < reference
    return parsed <= reference

