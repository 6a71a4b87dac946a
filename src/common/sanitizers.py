"""
Sanitization utilities for raw HubSpot property values.

HubSpot returns every property as a string (or null). These helpers turn
those values into clean strings, integers or None so they can be placed
directly into the survey payload. None of them raise.
"""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Keep printable characters plus these whitespace controls
_ALLOWED_CONTROL_CHARS = {"\n", "\r", "\t"}


def _strip_control_chars(value: str) -> str:
    return "".join(
        char for char in value if ord(char) >= 32 or char in _ALLOWED_CONTROL_CHARS
    )


def sanitize_text(value: Any) -> Optional[str]:
    """
    Normalize a free-text survey answer.

    Returns:
        The trimmed string, or None when the value is not a string or is blank.
    """
    if not isinstance(value, str):
        return None

    cleaned = _strip_control_chars(value).strip()
    return cleaned or None


def sanitize_string(value: Any) -> Optional[str]:
    """Like sanitize_text, but converts non-string values with str() first."""
    if value is None:
        return None
    return sanitize_text(str(value))


def sanitize_integer(value: Any) -> Optional[int]:
    """
    Parse a value into an int.

    Returns:
        The parsed integer, or None for empty input or unparseable values.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value

    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        if str(value).strip():
            logger.warning("Could not parse integer value: %r", value)
        return None
