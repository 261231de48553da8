"""
Format Validation Utilities

Provides helper functions for blank checks and PHI masking.
Format rules themselves run from the catalog patterns.
"""

import re
from typing import Any
from ..config.constants import REGEX_PATTERNS


def is_blank(value: Any) -> bool:
    """
    Check whether a value counts as absent.

    None, empty or whitespace-only strings and empty collections are
    blank. False and 0 are real values.

    Args:
        value: Value to check

    Returns:
        True if the value is absent or empty
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) == 0
    return False


def validate_emirates_id(emirates_id: str) -> bool:
    """
    Validate Emirates ID format.

    Accepts only the hyphenated form 784-YYYY-NNNNNNN-C.

    Args:
        emirates_id: Emirates ID to validate

    Returns:
        True if valid format, False otherwise
    """
    if not emirates_id or not isinstance(emirates_id, str):
        return False

    return bool(re.fullmatch(REGEX_PATTERNS["emirates_id"], emirates_id.strip()))


def mask_emirates_id(emirates_id: str) -> str:
    """
    Mask Emirates ID for logging/display (784-****-*****67-1).

    Args:
        emirates_id: Emirates ID to mask

    Returns:
        Masked Emirates ID
    """
    if not validate_emirates_id(emirates_id):
        return "784-****-*******-*"

    value = emirates_id.strip()
    return f"784-****-*****{value[-4:]}"


def mask_phi(value: Any, field_name: str) -> str:
    """
    Mask PHI (Protected Health Information) for logging.

    Args:
        value: Value to mask
        field_name: Name of the field

    Returns:
        Masked value
    """
    if is_blank(value):
        return "[REDACTED]"

    if field_name.lower() == "emirates_id":
        return mask_emirates_id(str(value))

    text = str(value)

    # For other PHI, show only first and last characters
    if len(text) <= 2:
        return "*" * len(text)

    return f"{text[0]}{'*' * (len(text) - 2)}{text[-1]}"
