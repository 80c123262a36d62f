"""Formatting helpers for showing bookmarks."""
from datetime import datetime
from urllib.parse import urlsplit


def display_domain(url: str) -> str:
    """Hostname without a leading `www.`; the url itself if it has no hostname."""
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return url
    if not hostname:
        return url
    return hostname.removeprefix("www.")


def format_added(created_at: datetime) -> str:
    """Date a bookmark was added, e.g. `Jan 5, 2025`."""
    return f"{created_at:%b} {created_at.day}, {created_at.year}"
