"""
Input validation utilities for user data.
"""

import re
from typing import Optional

from utils.constants import MAX_NAME_LENGTH, MIN_NAME_LENGTH
from utils.exceptions import InvalidNameError


def sanitize_text(text: str, max_length: Optional[int] = None) -> str:
    """
    Sanitize user input text.

    Args:
        text: Input text
        max_length: Optional maximum length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    # Remove control characters except newlines and tabs
    sanitized = re.sub(r'[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]', '', str(text))

    # Trim whitespace
    sanitized = sanitized.strip()

    # Apply length limit if specified
    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized


def validate_client_name(text: str) -> str:
    """
    Clean up a client name typed into the chat.

    Args:
        text: Raw message text

    Returns:
        The sanitized name

    Raises:
        InvalidNameError: If fewer than MIN_NAME_LENGTH characters remain
    """
    name = sanitize_text(text, max_length=MAX_NAME_LENGTH)
    if len(name) < MIN_NAME_LENGTH:
        raise InvalidNameError(
            f"Name must contain at least {MIN_NAME_LENGTH} characters"
        )
    return name
