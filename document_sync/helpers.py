"""Centralized helper functions for the Document Sync system."""

from __future__ import annotations

import datetime
import time
import uuid


def byte_length(content: str) -> int:
    """Return the UTF-8 encoded size of ``content`` in bytes."""
    return len(content.encode("utf-8"))


def is_blank(value: str | None) -> bool:
    """Return True for None, empty, or whitespace-only strings."""
    return not value or not value.strip()


def generate_file_id() -> str:
    """Generate a unique identifier for a newly stored file."""
    return f"file_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def format_bytes(num_bytes: int) -> str:
    """Format a byte count as a human readable string (e.g. ``1.5 MB``)."""
    if num_bytes <= 0:
        return "0 Bytes"

    sizes = ["Bytes", "KB", "MB", "GB"]
    value = float(num_bytes)
    i = 0
    while value >= 1024 and i < len(sizes) - 1:
        value /= 1024
        i += 1
    value = round(value, 2)

    # Drop a trailing ".0" so 5 MB renders as "5 MB", not "5.0 MB"
    if value == int(value):
        return f"{int(value)} {sizes[i]}"
    return f"{value} {sizes[i]}"
