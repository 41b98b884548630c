"""
Shared utility functions for the scraper.
"""
from __future__ import annotations

import base64
import binascii
import re
from datetime import timezone
from typing import Optional

from dateutil import parser as dateparser

from hunt_scraper.config import IMAGE_CDN_URL, SITE_URL


def format_date(value: Optional[str]) -> str:
    """
    Reduce a timestamp to a ``YYYY-MM-DD`` date.

    Args:
        value: Timestamp string as returned by the API (can be None)

    Returns:
        The UTC calendar date, the original string when it cannot be parsed,
        or an empty string for missing input
    """
    if not value:
        return ""
    try:
        parsed = dateparser.parse(value)
    except (ValueError, OverflowError):
        return value
    if parsed.tzinfo:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


def normalize_text(text: str | None) -> str:
    """
    Normalize whitespace in text content.

    Args:
        text: Input text string (can be None)

    Returns:
        Normalized text with single spaces and trimmed edges
    """
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


def preview(text: str | None, width: int = 100) -> str:
    """Single-line excerpt for log messages."""
    flat = normalize_text(text)
    return flat if len(flat) <= width else flat[:width] + "..."


def encode_offset_cursor(offset: int) -> str:
    """Encode an item offset the way the reviews endpoint expects (10 -> "MTA=")."""
    return base64.b64encode(str(offset).encode("ascii")).decode("ascii")


def decode_offset_cursor(cursor: Optional[str]) -> int:
    """Inverse of ``encode_offset_cursor``; missing or malformed cursors mean offset 0."""
    if not cursor:
        return 0
    try:
        return int(base64.b64decode(cursor).decode("ascii"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return 0


def image_url(uuid: Optional[str]) -> Optional[str]:
    return f"{IMAGE_CDN_URL}/{uuid}" if uuid else None


def profile_url(username: Optional[str]) -> str:
    return f"{SITE_URL}/@{username}" if username else ""


def site_url(path: Optional[str]) -> str:
    return f"{SITE_URL}{path}" if path else ""
